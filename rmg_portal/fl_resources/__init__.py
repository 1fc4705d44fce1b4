"""FL resources: people (or open demand) allocated to a financial line."""
