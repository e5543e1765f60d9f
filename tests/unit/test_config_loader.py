#!/usr/bin/env python3
"""Tests for the configuration loader."""

import pytest
import yaml

from src.config_loader import ConfigLoader

pytestmark = pytest.mark.unit


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove JOS_* variables and keep .env files out of the test."""
    import os

    for name in list(os.environ):
        if name.startswith("JOS_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr(ConfigLoader, "_load_environment_configuration", lambda self: None)
    return monkeypatch


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "jira": {"url": "https://jira.example.com", "username": "sync"},
                "openproject": {"url": "https://op.example.com", "jira_id_custom_field": 4},
                "migration": {"log_level": "INFO", "timezone": "UTC"},
            }
        )
    )
    return path


def test_loads_yaml_sections(clean_env, config_file) -> None:
    loader = ConfigLoader(config_file)

    assert loader.get_jira_config()["url"] == "https://jira.example.com"
    assert loader.get_openproject_config()["jira_id_custom_field"] == 4
    assert loader.get_migration_config()["timezone"] == "UTC"
    assert "missing" not in loader.get_migration_config()


def test_environment_overrides(clean_env, config_file) -> None:
    clean_env.setenv("JOS_JIRA_API_TOKEN", "token-123")
    clean_env.setenv("JOS_OPENPROJECT_API_KEY", "op-key")
    clean_env.setenv("JOS_OPENPROJECT_MEMBERSHIP_ROLE_ID", "5")
    clean_env.setenv("JOS_MIGRATION_TIMEZONE", "Europe/Berlin")
    clean_env.setenv("JOS_LOG_LEVEL", "debug")

    loader = ConfigLoader(config_file)

    assert loader.get_jira_config()["api_token"] == "token-123"
    assert loader.get_openproject_config()["api_key"] == "op-key"
    assert loader.get_openproject_config()["membership_role_id"] == 5
    assert loader.get_migration_config()["timezone"] == "Europe/Berlin"
    assert loader.get_migration_config()["log_level"] == "DEBUG"


def test_ssl_verify_override_reaches_both_clients(clean_env, config_file) -> None:
    clean_env.setenv("JOS_SSL_VERIFY", "false")

    loader = ConfigLoader(config_file)

    assert loader.get_jira_config()["verify_ssl"] is False
    assert loader.get_openproject_config()["verify_ssl"] is False
    assert "ssl_verify" not in loader.get_migration_config()


def test_unknown_log_level_is_ignored(clean_env, config_file) -> None:
    clean_env.setenv("JOS_LOG_LEVEL", "chatty")

    assert ConfigLoader(config_file).get_migration_config()["log_level"] == "INFO"


def test_missing_file_falls_back_to_environment(clean_env, tmp_path) -> None:
    clean_env.setenv("JOS_JIRA_URL", "https://env-jira.example.com")

    loader = ConfigLoader(tmp_path / "absent.yaml")

    assert loader.get_jira_config()["url"] == "https://env-jira.example.com"
    assert loader.get_openproject_config() == {}


def test_non_mapping_file_is_rejected(clean_env, tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="mapping"):
        ConfigLoader(path)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("42", 42), ("true", True), ("No", False), ("y", True), ("text", "text")],
)
def test_convert_value(clean_env, config_file, raw: str, expected: object) -> None:
    assert ConfigLoader(config_file)._convert_value(raw) == expected

