"""Type definitions for the Jira to OpenProject sync.

Records read from Jira and OpenProject during a run, the run options, and
the typed configuration sections.
"""

from dataclasses import dataclass
from typing import Any, Literal, TypedDict

type JiraData = dict[str, Any]
type OpenProjectData = dict[str, Any]
type AdfDocument = dict[str, Any] | str | None
type WorkPackagePayload = dict[str, Any]
type IssueIndex = dict[str, int]


@dataclass(frozen=True, slots=True)
class SourceUser:
    """A Jira user as referenced from an issue, comment or watcher list."""

    account_id: str
    display_name: str = ""
    email: str | None = None

    @classmethod
    def from_jira(cls, raw: JiraData | None) -> "SourceUser | None":
        """Build a user from Jira's user JSON.

        Jira Server and some REST v2 responses carry no ``accountId``; such
        users keep their display name but never resolve through the identity map.
        """
        if not raw or not (raw.get("accountId") or raw.get("displayName")):
            return None
        return cls(
            account_id=raw.get("accountId") or "",
            display_name=raw.get("displayName") or "",
            email=raw.get("emailAddress"),
        )


@dataclass(frozen=True, slots=True)
class SourcePriority:
    """Jira priority descriptor (name plus Jira id)."""

    name: str
    id: str | None = None


@dataclass(frozen=True, slots=True)
class SourceAttachment:
    filename: str
    content_url: str


@dataclass(frozen=True, slots=True)
class SourceComment:
    author: SourceUser | None
    body: AdfDocument
    created: str


@dataclass(frozen=True, slots=True)
class SourceIssue:
    """A Jira issue, immutable once fetched.

    Watchers are not part of the record: only the count is carried so the
    watcher list can be fetched lazily when it is non-zero.
    """

    key: str
    summary: str
    description: AdfDocument
    issue_type: str
    status: str
    priority: SourcePriority | None
    creator: SourceUser | None = None
    assignee: SourceUser | None = None
    attachments: tuple[SourceAttachment, ...] = ()
    comments: tuple[SourceComment, ...] = ()
    watch_count: int = 0
    created: str | None = None

    @classmethod
    def from_jira(cls, raw: JiraData) -> "SourceIssue":
        """Build an issue from the JSON returned by the Jira search API."""
        fields = raw.get("fields") or {}
        priority = fields.get("priority")
        comment_block = fields.get("comment") or {}
        return cls(
            key=raw["key"],
            summary=fields.get("summary") or "",
            description=fields.get("description"),
            issue_type=(fields.get("issuetype") or {}).get("name", ""),
            status=(fields.get("status") or {}).get("name", ""),
            priority=(
                SourcePriority(name=priority.get("name", ""), id=priority.get("id"))
                if priority
                else None
            ),
            creator=SourceUser.from_jira(fields.get("creator")),
            assignee=SourceUser.from_jira(fields.get("assignee")),
            attachments=tuple(
                SourceAttachment(filename=a["filename"], content_url=a["content"])
                for a in fields.get("attachment") or []
                if a.get("filename") and a.get("content")
            ),
            comments=tuple(
                SourceComment(
                    author=SourceUser.from_jira(c.get("author")),
                    body=c.get("body"),
                    created=c.get("created", ""),
                )
                for c in comment_block.get("comments") or []
            ),
            watch_count=int((fields.get("watches") or {}).get("watchCount") or 0),
            created=fields.get("created"),
        )


@dataclass(frozen=True, slots=True)
class TargetWorkItem:
    """An OpenProject work package as far as the sync cares about it."""

    id: int
    subject: str = ""
    jira_key: str | None = None
    lock_version: int | None = None


@dataclass(slots=True)
class MigrationOptions:
    """Switches for a single migrate() call."""

    specific_issues: list[str] | None = None
    skip_updates: bool = False
    map_responsible: bool = False


type ConfigValue = str | int | bool | dict[str, Any] | list[Any]


class JiraConfig(TypedDict, total=False):
    """Configuration for the Jira client."""

    url: str
    username: str
    api_token: str
    verify_ssl: bool
    rest_api_version: str
    page_size: int


class OpenProjectConfig(TypedDict, total=False):
    """Configuration for the OpenProject REST client."""

    url: str
    api_key: str
    jira_id_custom_field: int
    membership_role_id: int
    page_size: int
    verify_ssl: bool


type LogLevel = Literal[
    "DEBUG",
    "INFO",
    "NOTICE",
    "WARNING",
    "ERROR",
    "CRITICAL",
    "SUCCESS",
]


class MigrationConfig(TypedDict, total=False):
    """Configuration for the migration run."""

    log_level: LogLevel
    timezone: str
    request_timeout: int
    type_mapping: dict[str, str]
    status_mapping: dict[str, str]
    priority_mapping: dict[str, str]


class Config(TypedDict):
    jira: JiraConfig
    openproject: OpenProjectConfig
    migration: MigrationConfig


type DirType = Literal[
    "data",
    "logs",
    "results",
    "root",
    "run",
    "temp",
]
