"""
Unit tests for equalizer.batch

Tests verify:
- Output files and the processed_data/ lifecycle
- The error_data/ lifecycle on failure
- Input validation and lock handling
"""

import logging
import os
from unittest.mock import patch

import pytest

from equalizer.batch import (
    ERROR_DATA_DIR,
    OUTPUT_FILES,
    PROCESSED_DATA_DIR,
    BatchReport,
    move_all_files,
    run_batch,
)
from equalizer.dirlock import DirLock, LockTimeoutError
from equalizer.exceptions import MissingInputError, TypeMismatchError
from equalizer.jsonio import read_json_file, write_json_file

INPUTS = ("source_spec.json", "target_spec.json", "source_data.json", "target_data.json")


def run(work_dir, **kwargs):
    return run_batch(str(work_dir), *INPUTS, **kwargs)


class TestRunBatch:
    """Test a successful batch run"""

    def test_writes_outputs(self, work_dir):
        run(work_dir)

        processed = work_dir / PROCESSED_DATA_DIR
        assert read_json_file(processed / OUTPUT_FILES["insert"]) == [
            {"id": 3, "name": "Charlie", "updated_at": "2020-01-03"}
        ]
        assert read_json_file(processed / OUTPUT_FILES["update"]) == [
            {"id": 2, "name": "Bob", "updated_at": "2020-01-03"}
        ]
        assert read_json_file(processed / OUTPUT_FILES["delete"]) == [{"id": 4, "updated_at": "2020-01-03"}]
        assert read_json_file(processed / OUTPUT_FILES["equalized"]) == [
            {"id": 1, "name": "Alice", "updated_at": "2020-01-01"}
        ]

    def test_moves_inputs_to_processed_data(self, work_dir):
        (work_dir / "notes.txt").write_text("kept with the batch")

        report = run(work_dir)

        remaining = sorted(p.name for p in work_dir.iterdir())
        assert remaining == [ERROR_DATA_DIR, PROCESSED_DATA_DIR]
        for name in INPUTS + ("notes.txt",):
            assert (work_dir / PROCESSED_DATA_DIR / name).is_file()
        assert sorted(report.moved_files) == sorted(INPUTS + ("notes.txt",))
        assert os.listdir(work_dir / ERROR_DATA_DIR) == []

    def test_report(self, work_dir):
        report = run(work_dir, max_workers=2)

        assert isinstance(report, BatchReport)
        assert report.counts == {"insert": 1, "update": 1, "delete": 1, "equalized": 1}
        assert report.source_table == "source"
        assert report.target_table == "target"
        assert set(report.output_files) == {"insert", "update", "delete", "equalized"}
        assert report.to_dict()["counts"] == report.counts

    def test_holds_and_releases_lock(self, work_dir):
        run(work_dir, lock_name="equalizer", lock_timeout=1)

        assert not (work_dir / "equalizer.lock").exists()


class TestRunBatchFailures:
    """Test failure handling"""

    def test_failure_moves_inputs_to_error_data(self, work_dir, source_rows):
        source_rows[0]["id"] = "not-an-int"
        write_json_file(work_dir / "source_data.json", source_rows)

        with pytest.raises(TypeMismatchError):
            run(work_dir)

        for name in INPUTS:
            assert (work_dir / ERROR_DATA_DIR / name).is_file()
            assert not (work_dir / name).exists()
        assert os.listdir(work_dir / PROCESSED_DATA_DIR) == []

    def test_move_failure_keeps_original_error(self, work_dir, source_rows, caplog):
        source_rows[0]["id"] = "not-an-int"
        write_json_file(work_dir / "source_data.json", source_rows)

        with patch("equalizer.batch.move_all_files", side_effect=PermissionError("denied")):
            with caplog.at_level(logging.ERROR, logger="equalizer.batch"):
                with pytest.raises(TypeMismatchError):
                    run(work_dir)

        assert any("Could not move inputs" in r.getMessage() for r in caplog.records)
        assert (work_dir / "source_data.json").is_file()

    def test_invalid_json_moves_inputs_to_error_data(self, work_dir):
        (work_dir / "target_data.json").write_text("{not json")

        with pytest.raises(ValueError):
            run(work_dir)

        assert (work_dir / ERROR_DATA_DIR / "target_data.json").is_file()

    def test_missing_input_file_leaves_directory_untouched(self, work_dir):
        os.remove(work_dir / "target_data.json")

        with pytest.raises(MissingInputError, match="target_data.json"):
            run(work_dir)

        assert not (work_dir / PROCESSED_DATA_DIR).exists()
        assert (work_dir / "source_data.json").is_file()

    def test_missing_work_dir(self, tmp_path):
        with pytest.raises(MissingInputError):
            run(tmp_path / "missing")

    def test_held_lock_times_out_without_touching_inputs(self, work_dir):
        DirLock(str(work_dir), "equalizer").try_lock()

        with pytest.raises(LockTimeoutError):
            run(work_dir, lock_name="equalizer", lock_timeout=0.01)

        for name in INPUTS:
            assert (work_dir / name).is_file()


class TestMoveAllFiles:
    """Test move_all_files"""

    def test_skips_directories(self, tmp_path):
        source = tmp_path / "in"
        target = tmp_path / "out"
        source.mkdir()
        target.mkdir()
        (source / "a.json").write_text("1")
        (source / "sub").mkdir()

        moved = move_all_files(str(source), str(target))

        assert moved == ["a.json"]
        assert (target / "a.json").is_file()
        assert (source / "sub").is_dir()

    def test_missing_target_dir(self, tmp_path):
        with pytest.raises(MissingInputError):
            move_all_files(str(tmp_path), str(tmp_path / "missing"))
