"""API clients for Jira and OpenProject.

Client classes are exposed lazily so importing the package does not pull in
the ``jira`` library until a Jira client is actually needed.
"""

__all__ = ["JiraClient", "OpenProjectClient"]


def __getattr__(name: str) -> object:  # pragma: no cover - lazy import shim
    if name == "JiraClient":
        from .jira_client import JiraClient as _JiraClient  # noqa: PLC0415

        return _JiraClient
    if name == "OpenProjectClient":
        from .openproject_client import OpenProjectClient as _OpenProjectClient  # noqa: PLC0415

        return _OpenProjectClient
    raise AttributeError(name)
