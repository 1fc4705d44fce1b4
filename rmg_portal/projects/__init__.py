"""Projects module: delivery engagements with client, dates and managers."""
