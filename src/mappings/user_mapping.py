"""Generate the Jira to OpenProject identity map.

Jira users are matched to OpenProject users by e-mail address. Jira users
without a match can optionally be created in OpenProject first.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Any

from src.clients.exceptions import ApiError
from src.config import logger
from src.mappings.mappings import IdentityMap

if TYPE_CHECKING:
    from pathlib import Path

    from src.clients.jira_client import JiraClient
    from src.clients.openproject_client import OpenProjectClient


def _index_by_email(op_users: list[dict[str, Any]]) -> dict[str, int]:
    return {u["email"].casefold(): int(u["id"]) for u in op_users if u.get("email") and u.get("id")}


def split_display_name(display_name: str) -> tuple[str, str]:
    """Split ``"Ada King Lovelace"`` into ``("Ada King", "Lovelace")``."""
    parts = display_name.split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], parts[0]
    return " ".join(parts[:-1]), parts[-1]


def new_user_payload(jira_user: dict[str, Any]) -> dict[str, Any]:
    """OpenProject user for a Jira user; login and e-mail are the Jira address."""
    email = jira_user["emailAddress"]
    first_name, last_name = split_display_name(jira_user.get("displayName") or email)
    return {
        "login": email,
        "email": email,
        "firstName": first_name,
        "lastName": last_name,
        "password": secrets.token_urlsafe(24),
        "status": "active",
    }


def generate_user_mapping(
    jira_client: JiraClient,
    op_client: OpenProjectClient,
    *,
    domain: str | None = None,
    create_users: bool = False,
    dry_run: bool = False,
    data_dir: Path | None = None,
) -> IdentityMap:
    """Build and save the identity map.

    Args:
        jira_client: Source of Jira users
        op_client: Source of OpenProject users, and target for creation
        domain: Only consider Jira users whose address ends with ``@domain``
        create_users: Create OpenProject users for unmatched Jira users
        dry_run: Log what would be created and saved without doing it
        data_dir: Directory of ``user_mapping.json`` (default: var/data)

    Returns:
        The generated map

    """
    suffix = f"@{domain.lstrip('@')}".casefold() if domain else ""
    jira_users = [
        u
        for u in jira_client.get_users()
        if u.get("accountId")
        and u.get("emailAddress")
        and u["emailAddress"].casefold().endswith(suffix)
    ]
    logger.info("Considering %d Jira users with an e-mail address", len(jira_users))

    op_by_email = _index_by_email(op_client.get_users())
    mapping: dict[str, int] = {}
    created: list[dict[str, Any]] = []

    for user in jira_users:
        op_id = op_by_email.get(user["emailAddress"].casefold())
        if op_id is not None:
            logger.info(
                "Mapping Jira %s (%s) to OpenProject %s",
                user.get("displayName"),
                user["emailAddress"],
                op_id,
            )
            mapping[user["accountId"]] = op_id
            continue

        if not create_users:
            logger.notice(
                "No OpenProject user for Jira %s (%s)", user.get("displayName"), user["emailAddress"]
            )
            continue

        payload = new_user_payload(user)
        if dry_run:
            logger.notice(
                "Would create OpenProject user %s (%s %s)",
                payload["login"],
                payload["firstName"],
                payload["lastName"],
            )
            continue

        logger.info("Creating OpenProject user for Jira %s", user["emailAddress"])
        try:
            op_client.create_user(payload)
        except ApiError as e:
            logger.error("Could not create OpenProject user for %s: %s", user["emailAddress"], e)
            continue
        created.append(user)

    if created:
        op_by_email = _index_by_email(op_client.get_users())
        for user in created:
            op_id = op_by_email.get(user["emailAddress"].casefold())
            if op_id is None:
                logger.warning("Created user %s not found in OpenProject", user["emailAddress"])
                continue
            mapping[user["accountId"]] = op_id

    identity_map = IdentityMap(mapping)
    if dry_run:
        logger.notice("Dry run: user mapping with %d entries not saved", len(identity_map))
    else:
        path = identity_map.save(data_dir)
        logger.success("User mapping with %d entries saved to %s", len(identity_map), path)
    return identity_map
