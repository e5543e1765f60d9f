"""Defines exceptions for the migration process."""


class MigrationError(Exception):
    """Base exception for migration errors.

    Raised when a step of the migration cannot continue for the issue being
    processed. The issue loop catches it, counts the issue as failed and
    moves on.
    """

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class UnknownLookupKeyError(MigrationError):
    """A Jira type, status or priority has no OpenProject counterpart."""

    def __init__(self, kind: str, key: str | None) -> None:
        super().__init__(f"No OpenProject {kind} found for Jira {kind} '{key}'")
        self.kind = kind
        self.key = key
