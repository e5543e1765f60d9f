"""Utility modules for the Jira to OpenProject sync."""
