"""Plain-text rendering of Atlassian Document Format (ADF) values.

Jira REST v3 returns descriptions and comment bodies as ADF trees. The sync
keeps only the text: each top-level block contributes the concatenation of
its inline text runs, and blocks are joined by single newlines.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


def render_block(block: dict[str, Any]) -> str:
    """Concatenate the text runs of one top-level block.

    Inline nodes without text (hard breaks, mentions without a label, ...)
    contribute nothing.
    """
    return "".join(node.get("text") or "" for node in block.get("content") or [])


def adf_to_text(document: Any) -> str:
    """Render an ADF document (or a plain string) as plain text.

    Returns an empty string for a missing document and for anything that
    cannot be rendered; rendering problems are logged, never raised.
    """
    if not document:
        return ""
    if isinstance(document, str):
        return document

    try:
        blocks = document.get("content")
        if not blocks:
            return ""
        return "\n".join(render_block(block) for block in blocks).strip()
    except (AttributeError, TypeError) as e:
        logger.warning("Could not render Atlassian document: %s", e)
        return ""
