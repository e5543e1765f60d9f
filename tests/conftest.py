"""Shared pytest fixtures and configuration for all tests."""

import pytest
from _pytest.config import Config

from src.mappings.mappings import IdentityMap, LookupTables
from src.type_definitions import (
    SourceAttachment,
    SourceComment,
    SourceIssue,
    SourcePriority,
    SourceUser,
)
from tests.fakes import ALICE, BOB


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark a test as a unit test")


@pytest.fixture
def lookups() -> LookupTables:
    """Type/status/priority tables of a small OpenProject instance."""
    return LookupTables(
        types={"Task": 1, "User story": 2, "Epic": 3},
        statuses={"New": 1, "In progress": 7, "Closed": 12},
        priorities={"Low": 7, "Normal": 8, "High": 9},
        default_priority_id=8,
        aliases={"type": {"Story": "User story"}, "status": {"To Do": "New"}},
    )


@pytest.fixture
def identity_map() -> IdentityMap:
    return IdentityMap({ALICE.account_id: 101, BOB.account_id: 102})


@pytest.fixture
def make_issue():
    """Factory for SourceIssue records with sensible defaults."""

    def _make(key: str = "PROJ-1", **overrides: object) -> SourceIssue:
        values: dict[str, object] = {
            "key": key,
            "summary": f"Summary of {key}",
            "description": {
                "type": "doc",
                "content": [
                    {"type": "paragraph", "content": [{"type": "text", "text": f"About {key}"}]}
                ],
            },
            "issue_type": "Task",
            "status": "To Do",
            "priority": SourcePriority(name="High", id="2"),
            "creator": BOB,
            "assignee": ALICE,
            "created": "2024-01-15T10:30:00.000+0000",
        }
        values.update(overrides)
        return SourceIssue(**values)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def make_comment():
    def _make(text: str, author: SourceUser | None = ALICE) -> SourceComment:
        return SourceComment(author=author, body=text, created="2024-01-15T10:30:00.000+0000")

    return _make


@pytest.fixture
def make_attachment():
    def _make(filename: str) -> SourceAttachment:
        return SourceAttachment(
            filename=filename, content_url=f"https://jira.example.com/attachment/{filename}"
        )

    return _make
