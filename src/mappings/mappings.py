"""Read-only lookup tables used while translating Jira issues.

LookupTables resolves Jira type, status and priority names to OpenProject
ids. IdentityMap resolves Jira account ids to OpenProject user ids. Both are
built once before a run and passed explicitly to whatever needs them.
"""

from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from src.config import logger
from src.models.migration_error import UnknownLookupKeyError
from src.type_definitions import SourcePriority, SourceUser
from src.utils import data_handler

if TYPE_CHECKING:
    from src.clients.openproject_client import OpenProjectClient


class IdentityMap:
    """Jira accountId -> OpenProject user id.

    A missing entry is a normal state (the Jira user has no OpenProject
    account) and resolves to None.
    """

    USER_MAPPING_FILE = Path("user_mapping.json")

    def __init__(self, mapping: Mapping[str, int] | None = None) -> None:
        self._mapping: Mapping[str, int] = MappingProxyType(
            {str(k): int(v) for k, v in (mapping or {}).items() if v is not None}
        )

    @classmethod
    def load(cls, data_dir: Path | None = None) -> "IdentityMap":
        """Load the identity map saved by the user mapping step."""
        raw = data_handler.load_dict(cls.USER_MAPPING_FILE, data_dir)
        if not raw:
            logger.notice("User mapping (%s) is missing or empty", cls.USER_MAPPING_FILE)
        else:
            logger.notice("Loaded user mapping with %d entries", len(raw))
        return cls(raw)

    def save(self, data_dir: Path | None = None) -> Path:
        return data_handler.save(dict(self._mapping), self.USER_MAPPING_FILE, data_dir)

    def resolve(self, user: SourceUser | None) -> int | None:
        if user is None or not user.account_id:
            return None

        op_user_id = self._mapping.get(user.account_id)
        if op_user_id is not None:
            logger.debug(
                "Found OpenProject user %s for Jira user %s", op_user_id, user.display_name
            )
        else:
            logger.debug("No OpenProject user mapped for Jira user %s", user.display_name)
        return op_user_id

    def as_dict(self) -> dict[str, int]:
        return dict(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._mapping


def _index_by_name(elements: Iterable[dict[str, Any]]) -> dict[str, int]:
    return {e["name"]: int(e["id"]) for e in elements if e.get("name") and e.get("id") is not None}


class LookupTables:
    """Jira name -> OpenProject id for types, statuses and priorities.

    Names are matched exactly first, then case-insensitively. Configured
    aliases (Jira name -> OpenProject name) are applied before matching.
    """

    def __init__(
        self,
        types: Mapping[str, int],
        statuses: Mapping[str, int],
        priorities: Mapping[str, int],
        *,
        default_priority_id: int | None = None,
        aliases: Mapping[str, Mapping[str, str]] | None = None,
    ) -> None:
        self._tables: dict[str, Mapping[str, int]] = {
            "type": MappingProxyType(dict(types)),
            "status": MappingProxyType(dict(statuses)),
            "priority": MappingProxyType(dict(priorities)),
        }
        self._aliases = {kind: dict(m) for kind, m in (aliases or {}).items()}
        self.default_priority_id = default_priority_id

    @classmethod
    def from_openproject(
        cls,
        op_client: "OpenProjectClient",
        aliases: Mapping[str, Mapping[str, str]] | None = None,
    ) -> "LookupTables":
        """Fetch types, statuses and priorities once for the run."""
        priorities = op_client.get_priorities()
        default_priority_id = next(
            (int(p["id"]) for p in priorities if p.get("isDefault")), None
        )
        tables = cls(
            types=_index_by_name(op_client.get_types()),
            statuses=_index_by_name(op_client.get_statuses()),
            priorities=_index_by_name(priorities),
            default_priority_id=default_priority_id,
            aliases=aliases,
        )
        logger.info(
            "Loaded %d types, %d statuses and %d priorities from OpenProject",
            len(tables._tables["type"]),
            len(tables._tables["status"]),
            len(tables._tables["priority"]),
        )
        return tables

    def _lookup(self, kind: str, name: str | None) -> int:
        if not name:
            raise UnknownLookupKeyError(kind, name)

        target_name = self._aliases.get(kind, {}).get(name, name)
        table = self._tables[kind]
        if target_name in table:
            return table[target_name]

        folded = target_name.casefold()
        for candidate, op_id in table.items():
            if candidate.casefold() == folded:
                return op_id

        raise UnknownLookupKeyError(kind, name)

    def type_id(self, name: str | None) -> int:
        return self._lookup("type", name)

    def status_id(self, name: str | None) -> int:
        return self._lookup("status", name)

    def priority_id(self, descriptor: SourcePriority | None) -> int:
        """Resolve a Jira priority; issues without one get the default priority."""
        if descriptor is None:
            if self.default_priority_id is None:
                raise UnknownLookupKeyError("priority", None)
            return self.default_priority_id
        return self._lookup("priority", descriptor.name)
