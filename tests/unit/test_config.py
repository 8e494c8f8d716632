"""
Unit tests for equalizer.config and equalizer.jsonio
"""

import json

import pytest

from equalizer.config import EqualizerSettings
from equalizer.jsonio import read_json_file, write_json_file


class TestEqualizerSettings:
    """Test environment-backed settings"""

    def test_defaults(self):
        settings = EqualizerSettings.from_env()

        assert settings == EqualizerSettings(work_dir=None, max_workers=1, lock_timeout=60.0, io_retries=3)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("EQUALIZER_WORK_DIR", "/data/inbox")
        monkeypatch.setenv("EQUALIZER_MAX_WORKERS", "8")
        monkeypatch.setenv("EQUALIZER_LOCK_TIMEOUT", "2.5")
        monkeypatch.setenv("EQUALIZER_IO_RETRIES", "0")

        settings = EqualizerSettings.from_env()

        assert settings.work_dir == "/data/inbox"
        assert settings.max_workers == 8
        assert settings.lock_timeout == 2.5
        assert settings.io_retries == 0

    def test_blank_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("EQUALIZER_MAX_WORKERS", " ")
        assert EqualizerSettings.from_env().max_workers == 1

    @pytest.mark.parametrize("name,value", [
        ("EQUALIZER_MAX_WORKERS", "many"),
        ("EQUALIZER_MAX_WORKERS", "0"),
        ("EQUALIZER_IO_RETRIES", "-1"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError, match=name):
            EqualizerSettings.from_env()


class TestJsonIO:
    """Test JSON file helpers"""

    def test_write_then_read(self, tmp_path):
        path = tmp_path / "data.json"

        write_json_file(path, {"id": [1, 2], "name": ["a", None]})

        assert read_json_file(path) == {"id": [1, 2], "name": ["a", None]}
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]

    def test_read_strips_bom(self, tmp_path):
        path = tmp_path / "bom.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps([{"id": 1}]).encode("utf-8"))

        assert read_json_file(path) == [{"id": 1}]

    def test_failed_write_leaves_no_temp_file(self, tmp_path):
        path = tmp_path / "data.json"

        with pytest.raises(TypeError):
            write_json_file(path, {"bad": object()})

        assert list(tmp_path.iterdir()) == []

