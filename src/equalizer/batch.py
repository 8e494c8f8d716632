"""
Batch reconciliation over a working directory.

A batch run reads two table specs and two datasets from a working directory,
reconciles them and writes the four outputs into processed_data/. Afterwards
every regular file left in the working directory is moved into
processed_data/, or into error_data/ if any step failed, so the directory is
ready for the next batch.
"""

import os
import time
import uuid
from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

from equalizer.dirlock import DirLock
from equalizer.engine import reconcile
from equalizer.exceptions import MissingInputError
from equalizer.jsonio import read_json_file, write_json_file
from equalizer.specs import read_spec_file
from utils.logging import ContextLogger
from utils.retry import retry_file_operation
from utils.tracing import add_span_event, trace_operation

logger = ContextLogger(__name__)

PROCESSED_DATA_DIR = "processed_data"
ERROR_DATA_DIR = "error_data"

OUTPUT_FILES = {
    "insert": "insert_data.json",
    "update": "update_data.json",
    "delete": "delete_data.json",
    "equalized": "equalized_data.json",
}


@dataclass
class BatchReport:
    """Summary of a successful batch run."""

    run_id: str
    work_dir: str
    source_table: str
    target_table: str
    counts: dict[str, int]
    output_files: dict[str, str]
    moved_files: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "work_dir": self.work_dir,
            "source_table": self.source_table,
            "target_table": self.target_table,
            "counts": dict(self.counts),
            "output_files": dict(self.output_files),
            "moved_files": list(self.moved_files),
            "duration_seconds": self.duration_seconds,
            "timestamp": self.timestamp,
        }


def create_dirs(work_dir: str) -> tuple[str, str]:
    """Create processed_data/ and error_data/ under the working directory."""
    processed_dir = os.path.join(work_dir, PROCESSED_DATA_DIR)
    error_dir = os.path.join(work_dir, ERROR_DATA_DIR)
    os.makedirs(processed_dir, exist_ok=True)
    os.makedirs(error_dir, exist_ok=True)
    return processed_dir, error_dir


def move_all_files(source_dir: str, target_dir: str, io_retries: int = 3) -> list[str]:
    """
    Move every regular file of source_dir into target_dir.

    Subdirectories (including lock directories) are left in place.

    Returns:
        Names of the moved files, sorted
    """
    if not os.path.isdir(source_dir):
        raise MissingInputError(f"source directory does not exist: {source_dir}")
    if not os.path.isdir(target_dir):
        raise MissingInputError(f"target directory does not exist: {target_dir}")

    replace = retry_file_operation(max_retries=io_retries)(os.replace)
    with os.scandir(source_dir) as entries:
        names = sorted(entry.name for entry in entries if not entry.is_dir())

    for name in names:
        replace(os.path.join(source_dir, name), os.path.join(target_dir, name))
    logger.info(f"Moved {len(names)} file(s) from '{source_dir}' to '{target_dir}'")
    return names


def validate_inputs(work_dir: str, *file_names: str) -> None:
    """
    Check that the working directory and every input file exist.

    Raises:
        MissingInputError: On the first missing path
    """
    if not work_dir or not os.path.isdir(work_dir):
        raise MissingInputError(f"work dir does not exist: {work_dir}")
    for name in file_names:
        if not name:
            raise MissingInputError("input file name must not be empty")
        if not os.path.isfile(os.path.join(work_dir, name)):
            raise MissingInputError(f"input file does not exist in '{work_dir}': {name}")


def run_batch(
    work_dir: str,
    source_spec_file: str,
    target_spec_file: str,
    source_data_file: str,
    target_data_file: str,
    max_workers: int = 1,
    lock_name: str | None = None,
    lock_timeout: float = 60.0,
    io_retries: int = 3,
) -> BatchReport:
    """
    Reconcile the datasets of a working directory.

    Args:
        work_dir: Working directory holding the input files
        source_spec_file: Source spec file name, relative to work_dir
        target_spec_file: Target spec file name, relative to work_dir
        source_data_file: Source data file name, relative to work_dir
        target_data_file: Target data file name, relative to work_dir
        max_workers: Worker threads used to match partitions
        lock_name: Hold DirLock(work_dir, lock_name) for the whole run
        lock_timeout: Seconds to wait for the lock
        io_retries: Retries for transient file system errors

    Returns:
        BatchReport of the run

    Raises:
        MissingInputError: If the working directory or an input file is missing
        LockTimeoutError: If the lock could not be acquired in time
        EqualizerError: Any reconciliation error, after the inputs were
            moved to error_data/
    """
    validate_inputs(work_dir, source_spec_file, target_spec_file, source_data_file, target_data_file)

    run_id = f"{datetime.now(UTC).strftime('%Y%m%dT%H%M%S')}-{uuid.uuid4().hex[:8]}"
    run_logger = logger.bind(run_id=run_id, work_dir=work_dir)

    lock = DirLock(work_dir, lock_name) if lock_name else None
    with lock.hold(lock_timeout) if lock else nullcontext():
        if lock:
            run_logger.info(f"Holding lock {lock.lock_path}")
        with trace_operation(
            "batch_run",
            kind=trace.SpanKind.INTERNAL,
            run_id=run_id,
            work_dir=work_dir,
        ):
            processed_dir, error_dir = create_dirs(work_dir)
            try:
                return _process(
                    run_id, run_logger, work_dir, processed_dir,
                    source_spec_file, target_spec_file, source_data_file, target_data_file,
                    max_workers, io_retries,
                )
            except Exception:
                run_logger.exception("Batch run failed, moving inputs to error_data")
                try:
                    move_all_files(work_dir, error_dir, io_retries)
                except (OSError, MissingInputError):
                    run_logger.exception("Could not move inputs to error_data")
                raise


def _process(
    run_id: str,
    run_logger: ContextLogger,
    work_dir: str,
    processed_dir: str,
    source_spec_file: str,
    target_spec_file: str,
    source_data_file: str,
    target_data_file: str,
    max_workers: int,
    io_retries: int,
) -> BatchReport:
    start_time = time.monotonic()
    retry = retry_file_operation(max_retries=io_retries)
    read_spec = retry(read_spec_file)
    read_data = retry(read_json_file)
    write_data = retry(write_json_file)

    run_logger.info("Reading table specs")
    source_spec = read_spec(os.path.join(work_dir, source_spec_file))
    target_spec = read_spec(os.path.join(work_dir, target_spec_file))
    run_logger = run_logger.bind(source_table=source_spec.name, target_table=target_spec.name)

    run_logger.info("Reading datasets")
    source_data = read_data(os.path.join(work_dir, source_data_file))
    target_data = read_data(os.path.join(work_dir, target_data_file))
    add_span_event("inputs_loaded", source_table=source_spec.name, target_table=target_spec.name)

    result = reconcile(source_spec, target_spec, source_data, target_data, max_workers=max_workers)

    output_files = {}
    for name, data in result.to_dict().items():
        path = os.path.join(processed_dir, OUTPUT_FILES[name])
        run_logger.debug(f"Writing {name} data to {path}")
        write_data(path, data)
        output_files[name] = path

    moved = move_all_files(work_dir, processed_dir, io_retries)

    report = BatchReport(
        run_id=run_id,
        work_dir=work_dir,
        source_table=source_spec.name,
        target_table=target_spec.name,
        counts=result.counts(),
        output_files=output_files,
        moved_files=moved,
        duration_seconds=round(time.monotonic() - start_time, 3),
        timestamp=datetime.now(UTC).isoformat(),
    )
    run_logger.info("Batch run completed", duration_seconds=report.duration_seconds, **report.counts)
    return report
