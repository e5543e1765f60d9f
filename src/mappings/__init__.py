"""Lookup tables and identity mappings."""
