"""Jira to OpenProject issue sync."""
