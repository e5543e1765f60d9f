"""Grant-membership-and-retry wrapper for OpenProject calls.

OpenProject refuses to assign a work package to, or add as a watcher, a user
who is not a member of the work package's project. The refusal comes back as
a ``PropertyConstraintViolation`` on the attribute that referenced the user
(``assignee``, ``responsible`` or ``user``). MembershipRemediator recognizes
exactly that failure, adds the referenced users to the project and runs the
call one more time. There is no retry loop and no backoff: whatever the
second attempt does is the result.
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, TypeVar

from src.clients.exceptions import ApiError
from src.config import logger
from src.utils.error_classifier import PROPERTY_CONSTRAINT_VIOLATION, classify

if TYPE_CHECKING:
    from src.clients.openproject_client import OpenProjectClient

T = TypeVar("T")

WORK_PACKAGE_IDENTITY_ATTRIBUTES = ("assignee", "responsible")
WATCHER_IDENTITY_ATTRIBUTES = ("user",)


def remediable_attributes(error: ApiError, candidates: Mapping[str, object]) -> list[str]:
    """Attributes of ``candidates`` the error flags as constraint violations.

    Order follows the error document, duplicates removed.
    """
    flagged: list[str] = []
    for entry in classify(error):
        if (
            entry.code == PROPERTY_CONSTRAINT_VIOLATION
            and entry.attribute in candidates
            and entry.attribute not in flagged
        ):
            flagged.append(entry.attribute)
    return flagged


class MembershipRemediator:
    """Run an OpenProject call, granting project membership once if needed."""

    def __init__(self, op_client: "OpenProjectClient", project_id: int | str) -> None:
        self.op_client = op_client
        self.project_id = project_id

    def run(self, operation: Callable[[], T], identities: Mapping[str, int | None]) -> T:
        """Execute ``operation``, remediating membership violations once.

        Args:
            operation: Zero-argument callable performing a single API call
            identities: Remediable attribute name -> OpenProject user id it
                references in this call (None when the attribute is unset)

        Raises:
            ApiError: The original error when it is not remediable, or the
                error of the single retry

        """
        try:
            return operation()
        except ApiError as error:
            flagged = remediable_attributes(error, identities)
            user_ids = list(
                dict.fromkeys(
                    identities[attr] for attr in flagged if identities[attr] is not None
                )
            )
            if not user_ids:
                raise

            logger.info(
                "Adding user%s %s to project %s (%s rejected)",
                "s" if len(user_ids) > 1 else "",
                ", ".join(str(u) for u in user_ids),
                self.project_id,
                ", ".join(flagged),
            )
            for user_id in user_ids:
                self.op_client.add_user_to_project(user_id, self.project_id)

        logger.info("Retrying after adding to project %s", self.project_id)
        result = operation()
        logger.success("Retry succeeded")
        return result
