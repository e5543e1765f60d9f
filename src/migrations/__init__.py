"""Migration components."""
