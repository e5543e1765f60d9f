"""Data handler module for serialization and deserialization of data.

This module provides a consistent interface for loading and saving JSON
files, with special handling for Pydantic models.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from src import config
from src.models.migration_error import MigrationError


def _json_default(value: Any) -> Any:
    """Best-effort encoder for non-JSON-native objects."""
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


def _resolve(filename: str | Path, directory: str | Path | None, default_dir: str) -> Path:
    directory = Path(directory) if directory is not None else config.get_path(default_dir)
    # Only the name part of a full path is used
    return directory / Path(filename).name


def save(
    data: Any,
    filename: str | Path,
    directory: str | Path | None = None,
    indent: int = 2,
    ensure_ascii: bool = False,
) -> Path:
    """Save data to a JSON file, automatically handling Pydantic models.

    Args:
        data: The data to save (Pydantic model or any JSON-serializable data)
        filename: Name of the file to save
        directory: Directory to save to (default: config.get_path("data"))
        indent: JSON indentation level
        ensure_ascii: Whether to escape non-ASCII characters

    Returns:
        Path of the written file

    Raises:
        MigrationError: If saving fails

    """
    filepath = _resolve(filename, directory, "data")
    filepath.parent.mkdir(parents=True, exist_ok=True)

    try:
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json")

        with filepath.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, default=_json_default)

        config.logger.info("Saved data to %s", filepath)
    except (OSError, TypeError, ValueError) as e:
        msg = f"Failed to save data to {filepath}"
        raise MigrationError(msg) from e
    return filepath


def save_results(data: Any, filename: str | Path, directory: str | Path | None = None) -> Path:
    """Like save(), defaulting to the results directory."""
    return save(data, filename, directory if directory is not None else config.get_path("results"))


def load_dict(
    filename: str | Path,
    directory: str | Path | None = None,
    default: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load dictionary data from a JSON file.

    Returns ``default`` (an empty dict unless given) when the file is
    missing, empty, unparsable or does not hold an object.
    """
    if default is None:
        default = {}

    file_path = _resolve(filename, directory, "data")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        config.logger.debug("File does not exist: %s", file_path)
        return default
    except json.JSONDecodeError:
        if file_path.stat().st_size == 0:
            config.logger.debug("File is empty: %s", file_path)
        else:
            config.logger.exception("Error parsing JSON from %s", file_path)
        return default

    if not isinstance(data, dict):
        config.logger.warning("File %s does not contain a dictionary", file_path)
        return default

    config.logger.debug("Loaded dictionary data from %s", file_path)
    return data
