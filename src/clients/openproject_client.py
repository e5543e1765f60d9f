"""OpenProject API v3 client.

Provides a clean, exception-based interface to the OpenProject REST API for
everything the issue sync touches: work packages, memberships, attachments,
comments, watchers, users and the type/status/priority listings.
"""

import json
import mimetypes
from pathlib import Path
from typing import Any

import requests

from src import config
from src.clients.exceptions import (
    ApiError,
    AuthenticationError,
    ClientConnectionError,
    ResourceNotFoundError,
)
from src.config import logger
from src.models.mapping import custom_field_name, project_href, user_href
from src.type_definitions import OpenProjectData, TargetWorkItem, WorkPackagePayload
from src.utils.dedup import matching_work_packages

HTTP_BAD_REQUEST_MIN = 400
HTTP_NOT_FOUND = 404
HTTP_UNPROCESSABLE = 422

# Work package queries only return open work packages unless told otherwise
ANY_STATUS_FILTER = {"status": {"operator": "*", "values": []}}


class OpenProjectClient:
    """OpenProject REST client.

    Instead of returning empty values on failure, methods raise ApiError
    (carrying the decoded error document) so callers can decide whether a
    failure is recoverable.
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        *,
        jira_key_field: int | str | None = None,
        membership_role_id: int | None = None,
        page_size: int | None = None,
        timeout: int | None = None,
        verify_ssl: bool | None = None,
        session: requests.Session | None = None,
    ) -> None:
        op_config = config.openproject_config
        self.url: str = url or op_config.get("url", "")
        api_key = api_key or op_config.get("api_key", "")

        if not self.url:
            msg = "OpenProject URL is required"
            raise ValueError(msg)
        if not api_key:
            msg = "OpenProject API key is required"
            raise ValueError(msg)

        self.base_url = f"{self.url.rstrip('/')}/api/v3"
        self.jira_key_field_id = jira_key_field or op_config.get("jira_id_custom_field")
        self.jira_key_field = (
            custom_field_name(self.jira_key_field_id) if self.jira_key_field_id else None
        )
        self.membership_role_id = membership_role_id or op_config.get(
            "membership_role_id", config.DEFAULT_MEMBERSHIP_ROLE_ID
        )
        self.page_size = page_size or op_config.get("page_size", config.DEFAULT_PAGE_SIZE)
        self.timeout = timeout or config.migration_config.get(
            "request_timeout", config.DEFAULT_REQUEST_TIMEOUT
        )

        self.session = session or requests.Session()
        self.session.auth = ("apikey", api_key)
        self.session.headers.update({"Accept": "application/hal+json"})
        self.session.verify = (
            verify_ssl if verify_ssl is not None else op_config.get("verify_ssl", True)
        )

    # =====================================
    # Transport
    # =====================================

    def _handle_response(self, response: requests.Response) -> None:
        """Raise the matching exception for an error response."""
        if response.status_code < HTTP_BAD_REQUEST_MIN:
            return

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = None

        detail = (payload or {}).get("message") or response.reason
        error_msg = f"HTTP {response.status_code} {response.request.method} {response.url}: {detail}"

        if response.status_code in {401, 403} and (payload or {}).get("errorIdentifier", "").endswith(
            ("Unauthenticated", "MissingPermission")
        ):
            raise AuthenticationError(error_msg)
        if response.status_code == HTTP_NOT_FOUND:
            raise ResourceNotFoundError(error_msg, response.status_code, payload)
        raise ApiError(error_msg, response.status_code, payload)

    def _request(self, method: str, path: str, **kwargs: Any) -> OpenProjectData:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            msg = f"Error during API request to {url}: {e!s}"
            raise ClientConnectionError(msg) from e

        self._handle_response(response)
        if not response.content:
            return {}
        return response.json()

    def _get_collection(self, path: str, params: dict[str, Any] | None = None) -> list[OpenProjectData]:
        """Fetch every element of a paginated collection."""
        elements: list[OpenProjectData] = []
        offset = 1
        while True:
            page = self._request(
                "GET", path, params={**(params or {}), "offset": offset, "pageSize": self.page_size}
            )
            page_elements = page.get("_embedded", {}).get("elements", [])
            elements.extend(page_elements)

            total = page.get("total", len(elements))
            if not page_elements or len(elements) >= total:
                break
            offset += 1

        return elements

    # =====================================
    # Lookup listings
    # =====================================

    def get_types(self) -> list[OpenProjectData]:
        return self._get_collection("/types")

    def get_statuses(self) -> list[OpenProjectData]:
        return self._get_collection("/statuses")

    def get_priorities(self) -> list[OpenProjectData]:
        return self._get_collection("/priorities")

    def get_projects(self) -> list[OpenProjectData]:
        return self._get_collection("/projects")

    def get_users(self) -> list[OpenProjectData]:
        users = self._get_collection("/users")
        logger.debug("Fetched %d OpenProject users", len(users))
        return users

    def create_user(self, payload: OpenProjectData) -> OpenProjectData:
        return self._request("POST", "/users", json=payload)

    # =====================================
    # Work packages
    # =====================================

    def _require_jira_key_field(self) -> str:
        if not self.jira_key_field:
            msg = "OpenProject jira_id_custom_field is not configured"
            raise ValueError(msg)
        return self.jira_key_field

    def _to_work_item(self, element: OpenProjectData) -> TargetWorkItem:
        return TargetWorkItem(
            id=int(element["id"]),
            subject=element.get("subject", ""),
            jira_key=element.get(self.jira_key_field) if self.jira_key_field else None,
            lock_version=element.get("lockVersion"),
        )

    def find_work_package_by_jira_key(
        self, jira_key: str, project_id: int | str
    ) -> TargetWorkItem | None:
        """Return the work package in the project that carries this Jira key."""
        field = self._require_jira_key_field()
        filters = [ANY_STATUS_FILTER, {field: {"operator": "=", "values": [jira_key]}}]
        elements = self._get_collection(
            f"/projects/{project_id}/work_packages",
            {"filters": json.dumps(filters), "sortBy": json.dumps([["id", "asc"]])},
        )
        matches = matching_work_packages(jira_key, (self._to_work_item(e) for e in elements))
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "Jira key %s is carried by %d work packages (%s); using %s",
                jira_key,
                len(matches),
                ", ".join(str(wp.id) for wp in matches),
                matches[0].id,
            )
        return matches[0]

    def get_work_packages_by_jira_key(self, project_id: int | str) -> dict[str, TargetWorkItem]:
        """Index all work packages of a project by their Jira key."""
        self._require_jira_key_field()
        elements = self._get_collection(
            f"/projects/{project_id}/work_packages",
            {"filters": json.dumps([ANY_STATUS_FILTER]), "sortBy": json.dumps([["id", "asc"]])},
        )
        index: dict[str, TargetWorkItem] = {}
        for element in elements:
            wp = self._to_work_item(element)
            if wp.jira_key and wp.jira_key not in index:
                index[wp.jira_key] = wp
        return index

    def get_work_package(self, work_package_id: int) -> TargetWorkItem:
        return self._to_work_item(self._request("GET", f"/work_packages/{work_package_id}"))

    def create_work_package(
        self, project_id: int | str, payload: WorkPackagePayload
    ) -> TargetWorkItem:
        created = self._request("POST", f"/projects/{project_id}/work_packages", json=payload)
        return self._to_work_item(created)

    def update_work_package(
        self, work_package_id: int, payload: WorkPackagePayload
    ) -> TargetWorkItem:
        """PATCH a work package; the current lockVersion is fetched first."""
        current = self.get_work_package(work_package_id)
        body = {**payload, "lockVersion": current.lock_version}
        updated = self._request("PATCH", f"/work_packages/{work_package_id}", json=body)
        return self._to_work_item(updated)

    # =====================================
    # Memberships and watchers
    # =====================================

    def add_user_to_project(self, user_id: int, project_id: int | str) -> None:
        """Grant the configured role on the project to the user.

        A membership that already exists is reported as a validation error
        by OpenProject; that case is logged and otherwise ignored.
        """
        payload = {
            "_links": {
                "principal": {"href": user_href(user_id)},
                "project": {"href": project_href(project_id)},
                "roles": [{"href": f"/api/v3/roles/{self.membership_role_id}"}],
            }
        }
        try:
            self._request("POST", "/memberships", json=payload)
        except ApiError as e:
            if e.status_code != HTTP_UNPROCESSABLE:
                raise
            logger.warning(
                "Membership of user %s in project %s not created: %s", user_id, project_id, e
            )

    def add_watcher(self, work_package_id: int, user_id: int) -> None:
        self._request(
            "POST",
            f"/work_packages/{work_package_id}/watchers",
            json={"user": {"href": user_href(user_id)}},
        )

    # =====================================
    # Attachments and comments
    # =====================================

    def get_attachments(self, work_package_id: int) -> list[OpenProjectData]:
        return self._get_collection(f"/work_packages/{work_package_id}/attachments")

    def upload_attachment(self, work_package_id: int, file_path: Path, filename: str) -> OpenProjectData:
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        with Path(file_path).open("rb") as fh:
            files = {
                "metadata": (None, json.dumps({"fileName": filename}), "application/json"),
                "file": (filename, fh, content_type),
            }
            return self._request(
                "POST", f"/work_packages/{work_package_id}/attachments", files=files
            )

    def get_comments(self, work_package_id: int) -> list[OpenProjectData]:
        """Activities of the work package that carry a comment."""
        activities = self._get_collection(f"/work_packages/{work_package_id}/activities")
        return [a for a in activities if (a.get("comment") or {}).get("raw")]

    def add_comment(self, work_package_id: int, text: str) -> OpenProjectData:
        return self._request(
            "POST",
            f"/work_packages/{work_package_id}/activities",
            json={"comment": {"raw": text}},
        )
