"""Tests for the existence checks and comment rendering."""

import pytest

from src.type_definitions import SourceComment, SourceUser, TargetWorkItem
from src.utils.dedup import (
    attachment_exists,
    comment_exists,
    format_comment,
    localized_timestamp,
    matching_work_packages,
    parse_jira_timestamp,
    work_package_exists,
)

pytestmark = pytest.mark.unit

ALICE = SourceUser(account_id="acc-alice", display_name="Alice Example")


def adf(text: str) -> dict:
    return {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}]}


def test_work_package_exists_matches_jira_key() -> None:
    packages = [TargetWorkItem(id=1, jira_key="PROJ-1"), TargetWorkItem(id=2, jira_key="PROJ-2")]

    assert work_package_exists("PROJ-2", packages)
    assert not work_package_exists("PROJ-3", packages)
    assert not work_package_exists("PROJ-1", [])


def test_matching_work_packages_lowest_id_first() -> None:
    packages = [
        TargetWorkItem(id=7, jira_key="PROJ-1"),
        TargetWorkItem(id=3, jira_key="PROJ-1"),
        TargetWorkItem(id=5, jira_key="PROJ-11"),
    ]

    assert [wp.id for wp in matching_work_packages("PROJ-1", packages)] == [3, 7]
    assert matching_work_packages("PROJ-2", packages) == []


def test_attachment_exists_uses_exact_filename() -> None:
    attachments = [{"fileName": "spec.pdf"}, {"fileName": "notes.txt"}]

    assert attachment_exists("spec.pdf", attachments)
    assert not attachment_exists("Spec.pdf", attachments)
    assert not attachment_exists("diagram.png", attachments)


def test_attachment_exists_is_order_independent() -> None:
    a = [{"fileName": "x"}, {"fileName": "y"}]

    assert attachment_exists("y", a) == attachment_exists("y", list(reversed(a)))


def test_comment_exists_compares_raw_text() -> None:
    comments = [
        {"comment": {"raw": "Alice Example wrote on 1/15/2024, 10:30:00 AM:\nLooks good"}},
        {"comment": None},
        {},
    ]

    assert comment_exists("Alice Example wrote on 1/15/2024, 10:30:00 AM:\nLooks good", comments)
    assert not comment_exists("Alice Example wrote on 1/15/2024, 10:30:00 AM:\nLooks bad", comments)


def test_parse_jira_timestamp() -> None:
    moment = parse_jira_timestamp("2024-01-15T10:30:00.000+0000")

    assert (moment.year, moment.month, moment.day, moment.hour) == (2024, 1, 15, 10)
    assert moment.utcoffset() is not None


def test_parse_iso_timestamp_fallback() -> None:
    moment = parse_jira_timestamp("2024-01-15T10:30:00+01:00")

    assert moment.hour == 10


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-01-15T10:30:00.000+0000", "1/15/2024, 10:30:00 AM"),
        ("2024-01-15T00:05:09.000+0000", "1/15/2024, 12:05:09 AM"),
        ("2024-11-03T12:00:00.000+0000", "11/3/2024, 12:00:00 PM"),
        ("2024-11-03T23:59:59.000+0000", "11/3/2024, 11:59:59 PM"),
    ],
)
def test_localized_timestamp_layout(value: str, expected: str) -> None:
    from zoneinfo import ZoneInfo

    assert localized_timestamp(value, ZoneInfo("UTC")) == expected


def test_format_comment() -> None:
    comment = SourceComment(author=ALICE, body=adf("Looks good"), created="2024-01-15T10:30:00.000+0000")

    assert format_comment(comment) == "Alice Example wrote on 1/15/2024, 10:30:00 AM:\nLooks good"


def test_format_comment_uses_timezone() -> None:
    comment = SourceComment(author=ALICE, body="Hallo", created="2024-01-15T10:30:00.000+0000")

    assert format_comment(comment, "Europe/Berlin") == "Alice Example wrote on 1/15/2024, 11:30:00 AM:\nHallo"


def test_format_comment_is_stable() -> None:
    comment = SourceComment(author=ALICE, body=adf("Same"), created="2024-02-01T08:00:00.000+0000")

    assert format_comment(comment) == format_comment(comment)


def test_empty_comment_renders_empty() -> None:
    comment = SourceComment(author=ALICE, body=None, created="2024-01-15T10:30:00.000+0000")

    assert format_comment(comment) == ""


def test_comment_without_author() -> None:
    comment = SourceComment(author=None, body="orphan", created="2024-01-15T10:30:00.000+0000")

    assert format_comment(comment).startswith("Unknown user wrote on ")


def test_comment_author_without_account_id_keeps_display_name() -> None:
    author = SourceUser.from_jira({"name": "jdoe", "displayName": "Jane Doe"})
    comment = SourceComment(author=author, body="server", created="2024-01-15T10:30:00.000+0000")

    assert author is not None
    assert author.account_id == ""
    assert format_comment(comment).startswith("Jane Doe wrote on ")
