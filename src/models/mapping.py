"""Translation of Jira issues into OpenProject work package payloads.

The payload is a HAL document accepted by both POST /projects/{id}/work_packages
and PATCH /work_packages/{id}. The Jira key is always written to the
configured custom field; that field is how later runs find the work package
again.
"""

from src.mappings.mappings import IdentityMap, LookupTables
from src.type_definitions import SourceIssue, WorkPackagePayload
from src.utils.document_renderer import adf_to_text

API_PREFIX = "/api/v3"


def user_href(user_id: int) -> str:
    return f"{API_PREFIX}/users/{user_id}"


def project_href(project_id: int | str) -> str:
    return f"{API_PREFIX}/projects/{project_id}"


def custom_field_name(custom_field_id: int | str) -> str:
    """Name of a custom field property in a work package payload."""
    return f"customField{custom_field_id}"


class WorkPackageTranslator:
    """Map a Jira issue to an OpenProject work package payload.

    Args:
        lookups: Type/status/priority tables for the target instance
        identity_map: Jira account id to OpenProject user id
        project_id: Target OpenProject project
        jira_key_field: Id of the custom field holding the Jira key
        map_responsible: Also set the accountable user from the issue creator

    """

    def __init__(
        self,
        lookups: LookupTables,
        identity_map: IdentityMap,
        project_id: int | str,
        jira_key_field: int | str,
        *,
        map_responsible: bool = False,
    ) -> None:
        self.lookups = lookups
        self.identity_map = identity_map
        self.project_id = project_id
        self.jira_key_field = custom_field_name(jira_key_field)
        self.map_responsible = map_responsible

    def resolve_identities(self, issue: SourceIssue) -> tuple[int | None, int | None]:
        """Return (assignee_id, responsible_id) for the issue."""
        assignee_id = self.identity_map.resolve(issue.assignee)
        responsible_id = (
            self.identity_map.resolve(issue.creator) if self.map_responsible else None
        )
        return assignee_id, responsible_id

    def translate(self, issue: SourceIssue) -> WorkPackagePayload:
        """Build the payload for one issue.

        Raises:
            UnknownLookupKeyError: If the type, status or priority has no
                OpenProject counterpart

        """
        links: dict[str, dict[str, str]] = {
            "type": {"href": f"{API_PREFIX}/types/{self.lookups.type_id(issue.issue_type)}"},
            "status": {"href": f"{API_PREFIX}/statuses/{self.lookups.status_id(issue.status)}"},
            "priority": {
                "href": f"{API_PREFIX}/priorities/{self.lookups.priority_id(issue.priority)}"
            },
            "project": {"href": project_href(self.project_id)},
        }

        assignee_id, responsible_id = self.resolve_identities(issue)
        if assignee_id is not None:
            links["assignee"] = {"href": user_href(assignee_id)}
        if responsible_id is not None:
            links["responsible"] = {"href": user_href(responsible_id)}

        return {
            "_type": "WorkPackage",
            "subject": issue.summary,
            "description": {"raw": adf_to_text(issue.description)},
            "_links": links,
            self.jira_key_field: issue.key,
        }
