"""Helpdesk tickets and responses."""
