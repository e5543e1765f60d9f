"""Tests for the Jira issue to work package translation."""

import json

import pytest

from src.mappings.mappings import IdentityMap
from src.models import UnknownLookupKeyError
from src.models.mapping import WorkPackageTranslator, custom_field_name, user_href
from tests.fakes import ALICE, BOB, CAROL

pytestmark = pytest.mark.unit


@pytest.fixture
def translator(lookups, identity_map) -> WorkPackageTranslator:
    return WorkPackageTranslator(lookups, identity_map, 5, 9)


def test_translate_builds_hal_payload(translator, make_issue) -> None:
    payload = translator.translate(make_issue("PROJ-3", issue_type="Story"))

    assert payload == {
        "_type": "WorkPackage",
        "subject": "Summary of PROJ-3",
        "description": {"raw": "About PROJ-3"},
        "_links": {
            "type": {"href": "/api/v3/types/2"},
            "status": {"href": "/api/v3/statuses/1"},
            "priority": {"href": "/api/v3/priorities/9"},
            "project": {"href": "/api/v3/projects/5"},
            "assignee": {"href": "/api/v3/users/101"},
        },
        "customField9": "PROJ-3",
    }


def test_translate_is_deterministic(translator, make_issue) -> None:
    issue = make_issue("PROJ-4")

    first = json.dumps(translator.translate(issue), sort_keys=True)
    second = json.dumps(translator.translate(issue), sort_keys=True)

    assert first == second


def test_unmapped_assignee_is_omitted(translator, make_issue) -> None:
    payload = translator.translate(make_issue(assignee=CAROL))

    assert "assignee" not in payload["_links"]


def test_missing_assignee_is_omitted(translator, make_issue) -> None:
    payload = translator.translate(make_issue(assignee=None))

    assert "assignee" not in payload["_links"]


def test_responsible_only_when_enabled(lookups, identity_map, make_issue) -> None:
    issue = make_issue(creator=BOB)

    without = WorkPackageTranslator(lookups, identity_map, 5, 9).translate(issue)
    with_responsible = WorkPackageTranslator(
        lookups, identity_map, 5, 9, map_responsible=True
    ).translate(issue)

    assert "responsible" not in without["_links"]
    assert with_responsible["_links"]["responsible"] == {"href": user_href(102)}


def test_resolve_identities(lookups, identity_map, make_issue) -> None:
    translator = WorkPackageTranslator(lookups, identity_map, 5, 9, map_responsible=True)

    assert translator.resolve_identities(make_issue(assignee=ALICE, creator=BOB)) == (101, 102)
    assert translator.resolve_identities(make_issue(assignee=None, creator=CAROL)) == (None, None)


def test_unknown_type_is_fatal(translator, make_issue) -> None:
    with pytest.raises(UnknownLookupKeyError) as exc_info:
        translator.translate(make_issue("PROJ-12", issue_type="Bug"))

    assert exc_info.value.kind == "type"
    assert exc_info.value.key == "Bug"


def test_missing_priority_uses_default(translator, make_issue) -> None:
    payload = translator.translate(make_issue(priority=None))

    assert payload["_links"]["priority"] == {"href": "/api/v3/priorities/8"}


def test_empty_description(translator, make_issue) -> None:
    payload = translator.translate(make_issue(description=None))

    assert payload["description"] == {"raw": ""}


def test_jira_key_always_written(lookups, make_issue) -> None:
    translator = WorkPackageTranslator(lookups, IdentityMap(), "demo", 1)

    payload = translator.translate(make_issue("PROJ-77", assignee=None))

    assert payload[custom_field_name(1)] == "PROJ-77"
    assert payload["_links"]["project"] == {"href": "/api/v3/projects/demo"}
