"""Classification of OpenProject API error responses.

OpenProject reports failures as HAL error documents::

    {"_type": "Error",
     "errorIdentifier": "urn:openproject-org:api:v3:errors:PropertyConstraintViolation",
     "message": "Assignee is not a member of the project.",
     "_embedded": {"details": {"attribute": "assignee"}}}

Several validation failures are wrapped in a ``MultipleErrors`` document
whose ``_embedded.errors`` holds the individual errors. The envelope is parsed
into ``SingleError | CompositeError`` and flattened into ``ErrorEntry`` pairs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple

import requests

from src.clients.exceptions import ApiError

ERROR_URN_PREFIX = "urn:openproject-org:api:v3:errors:"
MULTIPLE_ERRORS = f"{ERROR_URN_PREFIX}MultipleErrors"
PROPERTY_CONSTRAINT_VIOLATION = f"{ERROR_URN_PREFIX}PropertyConstraintViolation"


class ErrorEntry(NamedTuple):
    code: str
    attribute: str | None = None


@dataclass(frozen=True, slots=True)
class SingleError:
    code: str
    attribute: str | None = None


@dataclass(frozen=True, slots=True)
class CompositeError:
    errors: tuple[SingleError | CompositeError, ...]


type ErrorEnvelope = SingleError | CompositeError


def _payload_of(failure: Any) -> Any:
    match failure:
        case ApiError(payload=payload):
            return payload
        case requests.HTTPError(response=response) if response is not None:
            try:
                return response.json()
            except ValueError:
                return None
        case _:
            return failure


def parse_envelope(payload: Any) -> ErrorEnvelope | None:
    """Parse an error document, or return None if it is not one."""
    if not isinstance(payload, dict) or payload.get("_type") != "Error":
        return None

    code = payload.get("errorIdentifier")
    if not isinstance(code, str):
        return None

    embedded = payload.get("_embedded")
    if not isinstance(embedded, dict):
        embedded = {}

    if code == MULTIPLE_ERRORS:
        children = embedded.get("errors")
        if not isinstance(children, list):
            children = []
        parsed = (parse_envelope(child) for child in children)
        return CompositeError(tuple(p for p in parsed if p is not None))

    details = embedded.get("details")
    attribute = details.get("attribute") if isinstance(details, dict) else None
    return SingleError(code, attribute if isinstance(attribute, str) else None)


def flatten(envelope: ErrorEnvelope) -> list[ErrorEntry]:
    match envelope:
        case CompositeError(errors=errors):
            return [entry for child in errors for entry in flatten(child)]
        case SingleError(code=code, attribute=attribute):
            return [ErrorEntry(code, attribute)]
    return []


def classify(failure: Any) -> list[ErrorEntry]:
    """Flatten an API failure into (error code, attribute) pairs.

    ``failure`` may be an ApiError, a requests.HTTPError or a decoded error
    document. Anything unrecognized yields an empty list, which callers treat
    as not remediable.
    """
    envelope = parse_envelope(_payload_of(failure))
    if envelope is None:
        return []
    return flatten(envelope)
