"""
CLI command implementations.

This module contains the implementation of the three CLI commands:
- run: Batch reconciliation of a working directory
- lock: Directory lock management
- diff: One-off reconciliation printed as JSON

Each command returns the process exit code.
"""

import argparse
import json
import logging
import sys

from equalizer.batch import run_batch
from equalizer.config import EqualizerSettings
from equalizer.dirlock import DirLock, DirLockError, LockTimeoutError
from equalizer.engine import reconcile
from equalizer.exceptions import EqualizerError
from equalizer.jsonio import read_json_file, write_json_file
from equalizer.specs import read_spec_file

logger = logging.getLogger(__name__)


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run a batch reconciliation

    Args:
        args: Parsed command-line arguments
    """
    settings = EqualizerSettings.from_env()
    work_dir = args.work_dir or settings.work_dir
    if not work_dir:
        logger.error("--work-dir is required when EQUALIZER_WORK_DIR is not set")
        return 1

    logger.info(f"Starting batch run in {work_dir}")
    try:
        report = run_batch(
            work_dir=work_dir,
            source_spec_file=args.source_spec,
            target_spec_file=args.target_spec,
            source_data_file=args.source_data,
            target_data_file=args.target_data,
            max_workers=args.max_workers or settings.max_workers,
            lock_name=args.lock,
            lock_timeout=args.lock_timeout or settings.lock_timeout,
            io_retries=settings.io_retries,
        )
    except (EqualizerError, OSError, ValueError) as e:
        logger.error(f"Batch run failed: {type(e).__name__}: {e}", exc_info=True)
        return 1

    if args.report_output:
        write_json_file(args.report_output, report.to_dict())
        logger.info(f"Report saved to {args.report_output}")

    print(json.dumps(report.counts))
    return 0


def cmd_lock(args: argparse.Namespace) -> int:
    """
    Acquire, wait for or release a directory lock

    Exit code 0 means the requested state was reached; 1 means the lock is
    held by someone else or could not be managed.
    """
    try:
        lock = DirLock(args.dir, args.lock)

        if args.unlock:
            if lock.unlock():
                logger.info(f"Released {lock.lock_path}")
            else:
                logger.warning(f"Lock {lock.lock_path} was not held")
            return 0

        if args.wait:
            lock.wait_lock(args.timeout)
            logger.info(f"Acquired {lock.lock_path}")
            return 0

        if lock.try_lock():
            logger.info(f"Acquired {lock.lock_path}")
            return 0
        logger.warning(f"Lock {lock.lock_path} is already held")
        return 1

    except LockTimeoutError as e:
        logger.error(str(e))
        return 1
    except (DirLockError, OSError) as e:
        logger.error(f"Lock operation failed: {e}", exc_info=True)
        return 1


def cmd_diff(args: argparse.Namespace) -> int:
    """
    Reconcile two datasets and emit the four outputs as one JSON document

    Args:
        args: Parsed command-line arguments
    """
    try:
        source_spec = read_spec_file(args.source_spec)
        target_spec = read_spec_file(args.target_spec)
        source_data = read_json_file(args.source_data)
        target_data = read_json_file(args.target_data)
        result = reconcile(source_spec, target_spec, source_data, target_data, max_workers=args.max_workers)
    except (EqualizerError, OSError, ValueError) as e:
        logger.error(f"Diff failed: {type(e).__name__}: {e}", exc_info=True)
        return 1

    if args.output:
        write_json_file(args.output, result.to_dict())
        logger.info(f"Result saved to {args.output}")
    else:
        json.dump(result.to_dict(), sys.stdout, indent=2)
        sys.stdout.write("\n")
    return 0
