"""Configuration module for the Jira to OpenProject sync.
Provides a centralized configuration interface using ConfigLoader.
"""

from pathlib import Path
from typing import Any

from src.config_loader import ConfigLoader
from src.display import configure_logging
from src.type_definitions import DirType, LogLevel

_config_loader = ConfigLoader()

jira_config = _config_loader.get_jira_config()
openproject_config = _config_loader.get_openproject_config()
migration_config = _config_loader.get_migration_config()

root_dir = Path(__file__).parent.parent.parent
var_dir = root_dir / "var"

var_dirs: dict[DirType, Path] = {
    "root": var_dir,
    "data": var_dir / "data",
    "logs": var_dir / "logs",
    "results": var_dir / "results",
    "run": var_dir / "run",
    "temp": var_dir / "temp",
}

created_dirs = []
for dir_path in var_dirs.values():
    if not dir_path.exists():
        dir_path.mkdir(parents=True, exist_ok=True)
        created_dirs.append(dir_path)

LOG_LEVEL: LogLevel = migration_config.get("log_level", "INFO")
log_file = var_dirs["logs"] / "migration.log"
logger = configure_logging(LOG_LEVEL, log_file)

for created in created_dirs:
    logger.debug("Created directory: %s", created)

DEFAULT_MEMBERSHIP_ROLE_ID = 3
DEFAULT_PAGE_SIZE = 100
DEFAULT_REQUEST_TIMEOUT = 60

__all__ = [
    "DEFAULT_MEMBERSHIP_ROLE_ID",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_REQUEST_TIMEOUT",
    "LOG_LEVEL",
    "get_path",
    "jira_config",
    "logger",
    "migration_config",
    "openproject_config",
    "update_from_cli_args",
    "validate_config",
    "var_dirs",
]


def get_path(path_type: DirType) -> Path:
    """Get a specific path from var_dirs."""
    if path_type not in var_dirs:
        msg = f"Invalid path type: {path_type}"
        raise ValueError(msg)

    return var_dirs[path_type]


def validate_config() -> bool:
    """Validate that all required configuration variables are set."""
    missing_vars = []

    for section, required_keys in [
        ("jira", ["url", "username", "api_token"]),
        ("openproject", ["url", "api_key", "jira_id_custom_field"]),
    ]:
        match section:
            case "jira":
                config_section = jira_config
                prefix = "JOS_JIRA_"
            case "openproject":
                config_section = openproject_config
                prefix = "JOS_OPENPROJECT_"
            case _:
                continue

        for key in required_keys:
            if not config_section.get(key):
                missing_vars.append(f"{prefix}{key.upper()}")

    if missing_vars:
        logger.error(
            "Missing required configuration: %s",
            ", ".join(missing_vars),
        )
        return False

    return True


def update_from_cli_args(args: Any) -> None:
    """Apply CLI arguments to the runtime configuration.

    Args:
        args: An object containing CLI arguments (typically from argparse)

    """
    if getattr(args, "log_level", None):
        migration_config["log_level"] = args.log_level.upper()
        configure_logging(args.log_level, log_file)
        logger.debug("Setting log_level=%s from CLI arguments", args.log_level)

    if getattr(args, "timezone", None):
        migration_config["timezone"] = args.timezone
        logger.debug("Setting timezone=%s from CLI arguments", args.timezone)
