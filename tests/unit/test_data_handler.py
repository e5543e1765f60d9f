"""Tests for the data_handler utility module."""

import json

import pytest

from src.models import MigrationError, RunSummary
from src.utils import data_handler

pytestmark = pytest.mark.unit


def test_save_and_load_dict(tmp_path) -> None:
    data = {"PROJ-1": 101, "nested": {"a": 1}, "text": "Größe"}

    path = data_handler.save(data, "mapping.json", tmp_path)

    assert path == tmp_path / "mapping.json"
    assert data_handler.load_dict("mapping.json", tmp_path) == data
    assert "Größe" in path.read_text(encoding="utf-8")


def test_save_pydantic_model(tmp_path) -> None:
    summary = RunSummary(project_key="PROJ", op_project_id=5)
    summary.record_done()
    summary.record_skipped("PROJ-2", 50)

    data_handler.save(summary, "summary.json", tmp_path)

    saved = json.loads((tmp_path / "summary.json").read_text())
    assert saved["processed"] == 1
    assert saved["skipped"] == 1
    assert saved["total"] == 2
    assert saved["issue_map"] == {"PROJ-2": 50}


def test_only_file_name_of_a_path_is_used(tmp_path) -> None:
    path = data_handler.save({"a": 1}, "/somewhere/else/data.json", tmp_path)

    assert path == tmp_path / "data.json"


def test_save_results_uses_given_directory(tmp_path) -> None:
    path = data_handler.save_results({"a": 1}, "out.json", tmp_path)

    assert path.parent == tmp_path


def test_unserializable_data_raises_migration_error(tmp_path) -> None:
    circular: dict = {}
    circular["self"] = circular

    with pytest.raises(MigrationError):
        data_handler.save(circular, "bad.json", tmp_path)


def test_load_missing_file_returns_default(tmp_path) -> None:
    assert data_handler.load_dict("nothing.json", tmp_path) == {}
    assert data_handler.load_dict("nothing.json", tmp_path, default={"x": 1}) == {"x": 1}


@pytest.mark.parametrize("content", ["", "{not json", "[1, 2]"])
def test_load_unusable_file_returns_default(tmp_path, content: str) -> None:
    (tmp_path / "data.json").write_text(content)

    assert data_handler.load_dict("data.json", tmp_path) == {}
