"""
Command-line argument parser configuration.

This module sets up the argument parser for the equalizer CLI tool,
defining all commands and their options.
"""

import argparse


def positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value}")
    return number


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="equalizer",
        description="Reconcile a source dataset against a target dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reconcile the files of a working directory
  equalizer run --work-dir /data/inbox --source-spec source_spec.json \\
      --target-spec target_spec.json --source-data source.json --target-data target.json

  # Same, holding a lock on the working directory and matching on 4 threads
  equalizer run --work-dir /data/inbox --lock equalizer --lock-timeout 120 --max-workers 4 ...

  # Print the four outputs without touching the working directory layout
  equalizer diff --source-spec s.json --target-spec t.json --source-data s_data.json \\
      --target-data t_data.json --output result.json

  # Acquire, wait for or release a directory lock
  equalizer lock --dir /data/inbox --lock equalizer
  equalizer lock --dir /data/inbox --lock equalizer --wait --timeout 60
  equalizer lock --dir /data/inbox --lock equalizer --unlock
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit structured JSON log records'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file (rotated)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Reconcile the files of a working directory')
    run_parser.add_argument(
        '--work-dir',
        help='Working directory (default: $EQUALIZER_WORK_DIR)'
    )
    run_parser.add_argument(
        '--source-spec',
        required=True,
        help='Source table spec file, relative to the working directory'
    )
    run_parser.add_argument(
        '--target-spec',
        required=True,
        help='Target table spec file, relative to the working directory'
    )
    run_parser.add_argument(
        '--source-data',
        required=True,
        help='Source data file, relative to the working directory'
    )
    run_parser.add_argument(
        '--target-data',
        required=True,
        help='Target data file, relative to the working directory'
    )
    run_parser.add_argument(
        '--max-workers',
        type=positive_int,
        help='Threads used to match partitions (default: $EQUALIZER_MAX_WORKERS or 1)'
    )
    run_parser.add_argument(
        '--lock',
        help='Hold a lock with this name on the working directory during the run'
    )
    run_parser.add_argument(
        '--lock-timeout',
        type=positive_float,
        help='Seconds to wait for the lock (default: $EQUALIZER_LOCK_TIMEOUT or 60)'
    )
    run_parser.add_argument(
        '--report-output',
        help='Write a JSON run report to this file'
    )

    # ========== Lock command ==========
    lock_parser = subparsers.add_parser('lock', help='Manage a directory lock')
    lock_parser.add_argument(
        '--dir',
        required=True,
        help='Directory holding the lock'
    )
    lock_parser.add_argument(
        '--lock',
        required=True,
        help='Lock name (the lock directory is <dir>/<name>.lock)'
    )
    lock_mode = lock_parser.add_mutually_exclusive_group()
    lock_mode.add_argument(
        '--wait',
        action='store_true',
        help='Wait for the lock instead of failing when it is held'
    )
    lock_mode.add_argument(
        '--unlock',
        action='store_true',
        help='Release the lock'
    )
    lock_parser.add_argument(
        '--timeout',
        type=positive_float,
        default=60.0,
        help='Seconds to wait with --wait (default: 60)'
    )

    # ========== Diff command ==========
    diff_parser = subparsers.add_parser('diff', help='Reconcile two datasets and print the result')
    diff_parser.add_argument(
        '--source-spec',
        required=True,
        help='Source table spec file'
    )
    diff_parser.add_argument(
        '--target-spec',
        required=True,
        help='Target table spec file'
    )
    diff_parser.add_argument(
        '--source-data',
        required=True,
        help='Source data file'
    )
    diff_parser.add_argument(
        '--target-data',
        required=True,
        help='Target data file'
    )
    diff_parser.add_argument(
        '--max-workers',
        type=positive_int,
        default=1,
        help='Threads used to match partitions (default: 1)'
    )
    diff_parser.add_argument(
        '--output',
        help='Write the result to this file instead of stdout'
    )

    return parser
