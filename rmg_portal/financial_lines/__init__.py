"""Financial lines: billing and funding lines under a project."""
