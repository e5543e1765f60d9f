"""Existence checks that keep reruns from duplicating data on OpenProject.

Each check compares a candidate against a listing fetched from OpenProject
right before the sub-entities of a work package are synced. Comments are
compared on their fully rendered text, so ``format_comment`` must produce the
same bytes on every run for the same Jira comment.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

from src.type_definitions import SourceComment, TargetWorkItem
from src.utils.document_renderer import adf_to_text

JIRA_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def matching_work_packages(
    jira_key: str, work_packages: Iterable[TargetWorkItem]
) -> list[TargetWorkItem]:
    """Work packages carrying this Jira key, lowest id first."""
    return sorted((wp for wp in work_packages if wp.jira_key == jira_key), key=lambda wp: wp.id)


def work_package_exists(jira_key: str, work_packages: Iterable[TargetWorkItem]) -> bool:
    return bool(matching_work_packages(jira_key, work_packages))


def attachment_exists(filename: str, attachments: Iterable[Mapping[str, Any]]) -> bool:
    """True if an attachment with exactly this file name is present."""
    return any(a.get("fileName") == filename for a in attachments)


def comment_exists(rendered: str, comments: Iterable[Mapping[str, Any]]) -> bool:
    """True if a comment activity carries exactly this raw text."""
    return any((c.get("comment") or {}).get("raw") == rendered for c in comments)


def parse_jira_timestamp(value: str) -> datetime:
    """Parse Jira's ``2024-01-15T10:30:00.000+0000`` timestamps."""
    try:
        return datetime.strptime(value, JIRA_TIMESTAMP_FORMAT)
    except ValueError:
        return datetime.fromisoformat(value)


def localized_timestamp(value: str, tz: tzinfo) -> str:
    """Render a timestamp as ``1/15/2024, 10:30:00 AM`` in the given timezone.

    Month, day and hour are not zero-padded.
    """
    moment = parse_jira_timestamp(value).astimezone(tz)
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment.month}/{moment.day}/{moment.year}, {hour}:{moment:%M:%S} {meridiem}"


def format_comment(comment: SourceComment, tz: tzinfo | str = "UTC") -> str:
    """Render a Jira comment the way it is stored on the work package.

    Returns an empty string when the comment has no text; such comments
    are not migrated.
    """
    text = adf_to_text(comment.body)
    if not text:
        return ""

    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    author = (comment.author and comment.author.display_name) or "Unknown user"
    return f"{author} wrote on {localized_timestamp(comment.created, tz)}:\n{text}"
