"""Models package for data structures used in the application."""

from src.models.migration_error import MigrationError, UnknownLookupKeyError
from src.models.migration_results import RunSummary

__all__ = ["MigrationError", "RunSummary", "UnknownLookupKeyError"]
