"""
Command-line interface for the equalizer.

Available commands:
- run: Reconcile the files of a working directory
- lock: Acquire, wait for or release a directory lock
- diff: Reconcile two datasets and print the four outputs
"""

import sys

from utils.logging import setup_logging, shutdown_logging
from utils.tracing import initialize_tracing, shutdown_tracing

from .commands import cmd_diff, cmd_lock, cmd_run
from .parser import create_parser

COMMANDS = {
    'run': cmd_run,
    'lock': cmd_lock,
    'diff': cmd_diff,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the equalizer CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        json_format=args.log_json,
    )
    initialize_tracing()

    try:
        exit_code = command(args)
    finally:
        shutdown_tracing()
        shutdown_logging()

    sys.exit(exit_code)


__all__ = [
    'main',
    'cmd_run',
    'cmd_lock',
    'cmd_diff',
    'create_parser',
]


if __name__ == '__main__':
    main()
