"""Configuration loading for the Jira to OpenProject sync.

Handles loading and accessing configuration settings.
"""

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from src.type_definitions import (
    Config,
    ConfigValue,
    JiraConfig,
    MigrationConfig,
    OpenProjectConfig,
)

config_logger = logging.getLogger("config_loader")

ENV_PREFIX = "JOS"
DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "config" / "config.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "NOTICE", "WARNING", "ERROR", "CRITICAL", "SUCCESS")


def is_test_environment() -> bool:
    """Detect if code is running under pytest or with JOS_TEST_MODE set."""
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True

    return os.environ.get(f"{ENV_PREFIX}_TEST_MODE", "").lower() in ("true", "1", "yes")


class ConfigLoader:
    """Loads configuration from a YAML file and applies JOS_* environment overrides."""

    def __init__(self, config_file_path: Path | None = None) -> None:
        """Initialize the configuration loader.

        Args:
            config_file_path: Path to the YAML configuration file. Defaults to
                config/config.yaml in the project root.

        """
        self._load_environment_configuration()

        self.config: Config = self._load_yaml_config(config_file_path or DEFAULT_CONFIG_FILE)

        for section in ("jira", "openproject", "migration"):
            if not isinstance(self.config.get(section), dict):
                self.config[section] = {}

        self._apply_environment_overrides()

    def _load_environment_configuration(self) -> None:
        """Load environment variables from .env files based on execution context.

        Later files override values from earlier files:
        - .env (base config for all environments)
        - .env.local (local overrides, if present)
        - .env.test and .env.test.local (only in test mode)
        """
        load_dotenv(".env")

        if Path(".env.local").exists():
            load_dotenv(".env.local", override=True)
            config_logger.debug("Loaded local overrides from .env.local")

        if is_test_environment():
            for env_file in (".env.test", ".env.test.local"):
                if Path(env_file).exists():
                    load_dotenv(env_file, override=True)
                    config_logger.debug("Loaded test environment from %s", env_file)

    def _load_yaml_config(self, config_file_path: Path) -> Config:
        """Load configuration from YAML file.

        A missing file is not fatal: everything can come from the environment.
        """
        try:
            with config_file_path.open("r", encoding="utf-8") as config_file:
                loaded = yaml.safe_load(config_file) or {}
        except FileNotFoundError:
            config_logger.warning(
                "Config file not found: %s (using environment only)", config_file_path
            )
            loaded = {}

        if not isinstance(loaded, dict):
            msg = f"Config file {config_file_path} must contain a mapping"
            raise ValueError(msg)
        return loaded  # type: ignore[return-value]

    def _apply_environment_overrides(self) -> None:
        """Override configuration settings with JOS_* environment variables."""
        for env_var, env_value in os.environ.items():
            if not env_var.startswith(f"{ENV_PREFIX}_"):
                continue

            match env_var.split("_"):
                case [_, "LOG", "LEVEL"]:
                    log_level = env_value.upper()
                    if log_level in LOG_LEVELS:
                        self.config["migration"]["log_level"] = log_level
                    config_logger.debug("Applied log level: %s", log_level)

                case [_, "JIRA", *rest] if rest:
                    key = "_".join(rest).lower()
                    self.config["jira"][key] = self._convert_value(env_value)
                    config_logger.debug("Applied Jira config: %s", key)

                case [_, "OPENPROJECT", *rest] if rest:
                    key = "_".join(rest).lower()
                    self.config["openproject"][key] = self._convert_value(env_value)
                    config_logger.debug("Applied OpenProject config: %s", key)

                case [_, "MIGRATION", *rest] if rest:
                    key = "_".join(rest).lower()
                    self.config["migration"][key] = self._convert_value(env_value)
                    config_logger.debug("Applied migration config: %s=%s", key, env_value)

                case [_, "SSL", "VERIFY"]:
                    ssl_verify = env_value.lower() not in ("false", "0", "no", "n", "f")
                    self.config["jira"]["verify_ssl"] = ssl_verify
                    self.config["openproject"]["verify_ssl"] = ssl_verify
                    config_logger.debug("Applied SSL verify: %s", ssl_verify)

    def _convert_value(self, value: str) -> ConfigValue:
        """Convert string value to appropriate type."""
        if value.isdigit():
            return int(value)

        match value.lower():
            case "true" | "yes" | "y":
                return True
            case "false" | "no" | "n":
                return False
            case _:
                return value

    def get_jira_config(self) -> JiraConfig:
        return self.config["jira"]

    def get_openproject_config(self) -> OpenProjectConfig:
        return self.config["openproject"]

    def get_migration_config(self) -> MigrationConfig:
        return self.config["migration"]
