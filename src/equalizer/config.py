"""
Runtime settings for batch runs and the CLI.

Command-line flags take precedence; these settings provide the fallbacks
read from the environment.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class EqualizerSettings:
    """
    Environment-backed defaults.

    Environment variables:
        EQUALIZER_WORK_DIR: Default working directory for batch runs
        EQUALIZER_MAX_WORKERS: Partition matching threads (default: 1)
        EQUALIZER_LOCK_TIMEOUT: Seconds to wait for the work-dir lock (default: 60)
        EQUALIZER_IO_RETRIES: Retries for transient file errors (default: 3)
    """

    work_dir: str | None = None
    max_workers: int = 1
    lock_timeout: float = 60.0
    io_retries: int = 3

    @classmethod
    def from_env(cls) -> "EqualizerSettings":
        return cls(
            work_dir=os.getenv("EQUALIZER_WORK_DIR") or None,
            max_workers=_env_number("EQUALIZER_MAX_WORKERS", int, 1, minimum=1),
            lock_timeout=_env_number("EQUALIZER_LOCK_TIMEOUT", float, 60.0, minimum=0),
            io_retries=_env_number("EQUALIZER_IO_RETRIES", int, 3, minimum=0),
        )


def _env_number(name: str, kind: type, default, minimum):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value
