"""
Pytest configuration and fixtures for equalizer tests.
Provides shared table specs, datasets and working directories.
"""

import os
from pathlib import Path

import pytest

from equalizer.jsonio import write_json_file
from equalizer.specs import TableSpec


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "property: mark test as hypothesis property test")


@pytest.fixture(autouse=True)
def clear_equalizer_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep EQUALIZER_* settings from the outer environment out of tests."""
    for name in list(os.environ):
        if name.startswith("EQUALIZER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def source_spec_payload() -> dict:
    return {
        "name": "source",
        "columns": [
            {"name": "id", "type": "INTEGER"},
            {"name": "name", "type": "STRING"},
            {"name": "updated_at", "type": "STRING"},
        ],
        "key_columns": ["id"],
        "change_control_column": "updated_at",
    }


@pytest.fixture
def target_spec_payload() -> dict:
    return {
        "name": "target",
        "columns": [
            {"name": "id", "type": "INTEGER"},
            {"name": "updated_at", "type": "STRING"},
        ],
        "key_columns": ["id"],
        "change_control_column": "updated_at",
    }


@pytest.fixture
def source_spec(source_spec_payload: dict) -> TableSpec:
    """Source spec: id(INTEGER), name(STRING), updated_at(STRING)."""
    return TableSpec.from_dict(source_spec_payload)


@pytest.fixture
def target_spec(target_spec_payload: dict) -> TableSpec:
    """Target spec: id(INTEGER), updated_at(STRING)."""
    return TableSpec.from_dict(target_spec_payload)


@pytest.fixture
def source_rows() -> list[dict]:
    return [
        {"id": 1, "name": "Alice", "updated_at": "2020-01-01"},
        {"id": 2, "name": "Bob", "updated_at": "2020-01-03"},
        {"id": 3, "name": "Charlie", "updated_at": "2020-01-03"},
    ]


@pytest.fixture
def target_rows() -> list[dict]:
    return [
        {"id": 1, "updated_at": "2020-01-01"},
        {"id": 2, "updated_at": "2020-01-02"},
        {"id": 4, "updated_at": "2020-01-03"},
    ]


@pytest.fixture
def work_dir(
    tmp_path: Path,
    source_spec_payload: dict,
    target_spec_payload: dict,
    source_rows: list[dict],
    target_rows: list[dict],
) -> Path:
    """Working directory populated with the two specs and the two datasets."""
    write_json_file(tmp_path / "source_spec.json", source_spec_payload)
    write_json_file(tmp_path / "target_spec.json", target_spec_payload)
    write_json_file(tmp_path / "source_data.json", source_rows)
    write_json_file(tmp_path / "target_data.json", target_rows)
    return tmp_path
