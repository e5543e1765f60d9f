"""Common exceptions for all client modules."""

from typing import Any


class ClientError(Exception):
    """Base exception for all client errors."""


class ClientConnectionError(ClientError):
    """Error when connection to a service fails."""


class AuthenticationError(ClientError):
    """Error when authentication fails."""


class ApiError(ClientError):
    """An API call was rejected.

    ``payload`` holds the decoded JSON error body when the server sent one,
    which is what the error classifier inspects.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ResourceNotFoundError(ApiError):
    """Error when a resource is not found."""
