"""RMG analytics: utilization, efficiency, cost, skills and demand reports."""
