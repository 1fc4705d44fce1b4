"""Configuration master: typed lookup lists maintained by RMG."""
