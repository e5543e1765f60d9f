"""Jira API client for the issue sync.

Provides a clean, exception-based interface for reading issues, watchers,
attachments, users and projects from Jira.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import requests
from jira import JIRA
from jira.exceptions import JIRAError
from requests import Response

from src import config
from src.config import logger
from src.type_definitions import JiraData, SourceIssue, SourceUser
from src.utils.validators import validate_jira_key, validate_project_key

HTTP_BAD_REQUEST_MIN = 400
HTTP_NOT_FOUND = 404

DEFAULT_PAGE_SIZE = 100
DOWNLOAD_CHUNK_SIZE = 64 * 1024

ISSUE_FIELDS = [
    "summary",
    "description",
    "issuetype",
    "status",
    "priority",
    "creator",
    "assignee",
    "attachment",
    "comment",
    "watches",
    "created",
]


class JiraError(Exception):
    """Base exception for all Jira client errors."""


class JiraConnectionError(JiraError):
    """Error when connection to Jira server fails."""


class JiraAuthenticationError(JiraError):
    """Error when authentication to Jira fails."""


class JiraApiError(JiraError):
    """Error when Jira API returns an error response."""


class JiraResourceNotFoundError(JiraError):
    """Error when a requested Jira resource is not found."""


class JiraClient:
    """Jira client for API interactions.

    Instead of returning empty lists or None on failure, methods raise the
    exceptions above so the caller decides how to handle them.
    """

    def __init__(self, connection: JIRA | None = None, *, page_size: int | None = None) -> None:
        self.jira_url: str = config.jira_config.get("url", "")
        self.jira_username: str = config.jira_config.get("username", "")
        self.jira_token: str = config.jira_config.get("api_token", "")
        self.verify_ssl: bool = config.jira_config.get("verify_ssl", True)
        self.api_version: str = str(config.jira_config.get("rest_api_version", "3"))
        self.page_size: int = page_size or config.jira_config.get("page_size", DEFAULT_PAGE_SIZE)
        self.base_url = self.jira_url.rstrip("/")

        self.jira: JIRA | None = connection
        if self.jira is None:
            if not self.jira_url:
                msg = "Jira URL is required"
                raise ValueError(msg)
            if not self.jira_token:
                msg = "Jira API token is required"
                raise ValueError(msg)
            self._connect()

    def _connect(self) -> None:
        """Connect to the Jira API.

        Raises:
            JiraConnectionError: If connection to Jira server fails
            JiraAuthenticationError: If authentication fails

        """
        logger.info("Connecting to Jira at %s", self.jira_url)
        try:
            self.jira = JIRA(
                server=self.jira_url,
                basic_auth=(self.jira_username, self.jira_token),
                options={"rest_api_version": self.api_version, "verify": self.verify_ssl},
                timeout=config.migration_config.get(
                    "request_timeout", config.DEFAULT_REQUEST_TIMEOUT
                ),
            )
            server_info = self.jira.server_info()
        except JIRAError as e:
            if e.status_code in {401, 403}:
                msg = f"Failed to authenticate with Jira: {e.text or e!s}"
                raise JiraAuthenticationError(msg) from e
            msg = f"Failed to connect to Jira: {e!s}"
            raise JiraConnectionError(msg) from e
        except requests.RequestException as e:
            msg = f"Failed to connect to Jira: {e!s}"
            raise JiraConnectionError(msg) from e

        logger.success(
            "Successfully connected to Jira server: %s (%s)",
            server_info.get("baseUrl"),
            server_info.get("version"),
        )

    def _require_connection(self) -> JIRA:
        if not self.jira:
            msg = "Jira client is not initialized"
            raise JiraConnectionError(msg)
        return self.jira

    def _handle_response(self, response: Response) -> None:
        """Raise the matching exception for an error response."""
        if response.status_code < HTTP_BAD_REQUEST_MIN:
            return

        error_msg = f"HTTP Error {response.status_code}: {response.reason}"
        try:
            error_json = response.json()
        except ValueError:
            error_json = None
        if isinstance(error_json, dict):
            if error_json.get("errorMessages"):
                error_msg = f"{error_msg} - {', '.join(error_json['errorMessages'])}"
            elif error_json.get("errors"):
                error_msg = f"{error_msg} - {error_json['errors']}"

        if response.status_code == HTTP_NOT_FOUND:
            raise JiraResourceNotFoundError(error_msg)
        if response.status_code in {401, 403}:
            raise JiraAuthenticationError(error_msg)
        raise JiraApiError(error_msg)

    # =====================================
    # Issues
    # =====================================

    def _search(self, jql: str, label: str) -> list[SourceIssue]:
        """Run a JQL query and fetch every page of results."""
        jira = self._require_connection()
        issues: list[SourceIssue] = []
        start_at = 0

        while True:
            logger.debug(
                "Fetching issues for %s: startAt=%s, maxResults=%s", label, start_at, self.page_size
            )
            try:
                page = jira.search_issues(
                    jql,
                    startAt=start_at,
                    maxResults=self.page_size,
                    fields=ISSUE_FIELDS,
                    json_result=True,
                )
            except JIRAError as e:
                error_msg = f"Failed to get issues for {label} at startAt={start_at}: {e.text or e!s}"
                logger.exception(error_msg)
                raise JiraApiError(error_msg) from e

            raw_issues: list[JiraData] = page.get("issues") or []
            issues.extend(SourceIssue.from_jira(raw) for raw in raw_issues)

            total = page.get("total", 0)
            if not raw_issues or len(raw_issues) < self.page_size or len(issues) >= total:
                break
            start_at += len(raw_issues)

        logger.info("Fetched %d issues for %s", len(issues), label)
        return issues

    def get_all_issues_for_project(self, project_key: str) -> list[SourceIssue]:
        """All issues of a project, oldest first."""
        key = validate_project_key(project_key)
        jira = self._require_connection()

        try:
            jira.project(key)
        except JIRAError as e:
            msg = f"Project '{key}' not found: {e.text or e!s}"
            raise JiraResourceNotFoundError(msg) from e

        logger.notice("Fetching all issues for project '%s'...", key)
        # Quote the key so reserved JQL words still work as project keys
        return self._search(f'project = "{key}" ORDER BY created ASC', f"project '{key}'")

    def get_specific_issues(self, project_key: str, issue_keys: Iterable[str]) -> list[SourceIssue]:
        """The named issues of a project, oldest first."""
        key = validate_project_key(project_key)
        keys = [validate_jira_key(k) for k in issue_keys]
        if not keys:
            return []

        logger.notice("Fetching %d selected issues from project '%s'", len(keys), key)
        jql = f'project = "{key}" AND key in ({", ".join(keys)}) ORDER BY created ASC'
        issues = self._search(jql, f"project '{key}'")

        missing = set(keys) - {issue.key for issue in issues}
        if missing:
            logger.warning("Issues not found in Jira: %s", ", ".join(sorted(missing)))
        return issues

    def get_issue_watchers(self, issue_key: str) -> list[SourceUser]:
        """Get the watchers of an issue.

        Raises:
            JiraResourceNotFoundError: If the issue is not found
            JiraApiError: If the API request fails

        """
        jira = self._require_connection()
        try:
            result = jira.watchers(issue_key)
        except JIRAError as e:
            error_msg = f"Failed to get watchers for issue {issue_key}: {e.text or e!s}"
            if e.status_code == HTTP_NOT_FOUND:
                raise JiraResourceNotFoundError(error_msg) from e
            raise JiraApiError(error_msg) from e

        watchers = [SourceUser.from_jira(getattr(w, "raw", None)) for w in result.watchers]
        return [w for w in watchers if w is not None]

    def download_attachment(self, content_url: str, destination: Path) -> Path:
        """Stream an attachment's content into ``destination``."""
        jira = self._require_connection()
        try:
            response = jira._session.get(content_url, stream=True)  # noqa: SLF001
        except requests.RequestException as e:
            msg = f"Failed to download attachment {content_url}: {e!s}"
            raise JiraConnectionError(msg) from e

        try:
            self._handle_response(response)
            with Path(destination).open("wb") as fh:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        finally:
            response.close()

        logger.debug("Downloaded %s to %s", content_url, destination)
        return Path(destination)

    # =====================================
    # Users and projects
    # =====================================

    def get_users(self) -> list[dict[str, Any]]:
        """Get all users from Jira.

        Returns:
            List of user dictionaries with accountId, displayName,
            emailAddress and active

        """
        jira = self._require_connection()
        url = f"{self.base_url}/rest/api/{self.api_version}/users/search"
        users: list[dict[str, Any]] = []
        start_at = 0

        while True:
            try:
                response = jira._session.get(  # noqa: SLF001
                    url, params={"startAt": start_at, "maxResults": self.page_size}
                )
            except requests.RequestException as e:
                msg = f"Failed to get users: {e!s}"
                raise JiraConnectionError(msg) from e
            self._handle_response(response)

            page = response.json() or []
            users.extend(
                {
                    "accountId": u.get("accountId"),
                    "displayName": u.get("displayName"),
                    "emailAddress": u.get("emailAddress"),
                    "active": u.get("active", True),
                }
                for u in page
            )
            if len(page) < self.page_size:
                break
            start_at += len(page)

        logger.info("Retrieved %s users from Jira API", len(users))
        return users

    def get_projects(self) -> list[dict[str, Any]]:
        """Get all projects visible to the configured Jira user."""
        jira = self._require_connection()
        try:
            projects = jira.projects()
        except JIRAError as e:
            error_msg = f"Failed to get projects: {e.text or e!s}"
            logger.exception(error_msg)
            raise JiraApiError(error_msg) from e

        if not projects:
            logger.warning("No projects found in Jira")
        return [{"key": p.key, "name": p.name, "id": p.id} for p in projects]
