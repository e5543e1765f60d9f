#!/usr/bin/env python3
"""Validation of user-supplied Jira keys.

Project and issue keys given on the command line end up inside JQL queries,
so they are checked against Jira's key syntax before use.
"""

import re

MAX_KEY_LENGTH = 100

_PROJECT_KEY = re.compile(r"^[A-Z][A-Z0-9_]*$")
_ISSUE_KEY = re.compile(r"^[A-Z][A-Z0-9_]*-\d+$")


def _check_plain(value: str, kind: str) -> str:
    if not value or not value.strip():
        msg = f"Jira {kind} cannot be empty or whitespace only."
        raise ValueError(msg)

    if len(value) > MAX_KEY_LENGTH:
        msg = f"Jira {kind} too long ({len(value)} chars). Maximum allowed: {MAX_KEY_LENGTH} characters."
        raise ValueError(msg)

    for char in value:
        if ord(char) < 32:
            msg = f"Jira {kind} contains control characters (ASCII {ord(char)})."
            raise ValueError(msg)

    return value.strip()


def validate_project_key(project_key: str) -> str:
    """Validate a Jira project key such as ``PROJ``.

    Returns:
        The key with surrounding whitespace removed

    Raises:
        ValueError: If the key is not a valid project key

    """
    key = _check_plain(project_key, "project key")
    if not _PROJECT_KEY.match(key):
        msg = f"Invalid Jira project key: {key}. Must be upper case letters, digits and underscores."
        raise ValueError(msg)
    return key


def validate_jira_key(jira_key: str) -> str:
    """Validate a Jira issue key such as ``PROJ-123``.

    Valid: ``PROJ-123``, ``A-1``, ``MY_TEAM-42``.
    Invalid: ``proj-123``, ``PROJ``, ``PROJ-12; DROP``, ``PROJ-1 OR 1=1``.

    Raises:
        ValueError: If the key is not a valid issue key

    """
    key = _check_plain(jira_key, "issue key")
    if not _ISSUE_KEY.match(key):
        msg = f"Invalid Jira issue key: {key}. Expected PROJECT-NUMBER."
        raise ValueError(msg)
    return key
