"""Tests for generating the Jira to OpenProject user mapping."""

import json
from unittest.mock import MagicMock

import pytest

from src.clients.exceptions import ApiError
from src.mappings.user_mapping import generate_user_mapping, new_user_payload, split_display_name

pytestmark = pytest.mark.unit

JIRA_USERS = [
    {"accountId": "acc-alice", "displayName": "Alice Example", "emailAddress": "alice@example.com"},
    {"accountId": "acc-bob", "displayName": "Bob van Builder", "emailAddress": "Bob@Example.com"},
    {"accountId": "acc-eve", "displayName": "Eve", "emailAddress": "eve@partner.org"},
    {"accountId": "acc-app", "displayName": "Automation", "emailAddress": None},
]


@pytest.fixture
def jira_client() -> MagicMock:
    client = MagicMock()
    client.get_users.return_value = JIRA_USERS
    return client


@pytest.fixture
def op_client() -> MagicMock:
    client = MagicMock()
    client.get_users.return_value = [
        {"id": 101, "email": "alice@example.com"},
        {"id": 102, "email": "bob@example.com"},
    ]
    return client


def test_users_are_matched_by_email(jira_client, op_client, tmp_path) -> None:
    identity_map = generate_user_mapping(jira_client, op_client, data_dir=tmp_path)

    assert identity_map.as_dict() == {"acc-alice": 101, "acc-bob": 102}
    op_client.create_user.assert_not_called()
    saved = json.loads((tmp_path / "user_mapping.json").read_text())
    assert saved == {"acc-alice": 101, "acc-bob": 102}


def test_domain_filter(jira_client, op_client, tmp_path) -> None:
    identity_map = generate_user_mapping(
        jira_client, op_client, domain="partner.org", data_dir=tmp_path
    )

    assert identity_map.as_dict() == {}


def test_missing_users_are_created(jira_client, op_client, tmp_path) -> None:
    op_client.get_users.side_effect = [
        [{"id": 101, "email": "alice@example.com"}, {"id": 102, "email": "bob@example.com"}],
        [
            {"id": 101, "email": "alice@example.com"},
            {"id": 102, "email": "bob@example.com"},
            {"id": 103, "email": "eve@partner.org"},
        ],
    ]

    identity_map = generate_user_mapping(
        jira_client, op_client, create_users=True, data_dir=tmp_path
    )

    assert identity_map.as_dict() == {"acc-alice": 101, "acc-bob": 102, "acc-eve": 103}
    payload = op_client.create_user.call_args.args[0]
    assert payload["login"] == "eve@partner.org"
    assert (payload["firstName"], payload["lastName"]) == ("Eve", "Eve")


def test_dry_run_creates_and_saves_nothing(jira_client, op_client, tmp_path) -> None:
    identity_map = generate_user_mapping(
        jira_client, op_client, create_users=True, dry_run=True, data_dir=tmp_path
    )

    op_client.create_user.assert_not_called()
    assert not (tmp_path / "user_mapping.json").exists()
    assert len(identity_map) == 2


def test_failed_creation_is_skipped(jira_client, op_client, tmp_path) -> None:
    op_client.create_user.side_effect = ApiError("HTTP 422", status_code=422)

    identity_map = generate_user_mapping(
        jira_client, op_client, create_users=True, data_dir=tmp_path
    )

    assert "acc-eve" not in identity_map
    assert op_client.get_users.call_count == 1


@pytest.mark.parametrize(
    ("display_name", "expected"),
    [
        ("Ada King Lovelace", ("Ada King", "Lovelace")),
        ("Alice Example", ("Alice", "Example")),
        ("Cher", ("Cher", "Cher")),
        ("", ("", "")),
    ],
)
def test_split_display_name(display_name: str, expected: tuple[str, str]) -> None:
    assert split_display_name(display_name) == expected


def test_new_user_payload_gets_random_password() -> None:
    first = new_user_payload(JIRA_USERS[0])
    second = new_user_payload(JIRA_USERS[0])

    assert first["email"] == "alice@example.com"
    assert first["status"] == "active"
    assert first["password"] != second["password"]
