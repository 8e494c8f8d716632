"""
JSON file helpers for specs and datasets.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def read_json_file(path: str | Path) -> Any:
    """
    Read an untyped JSON document.

    A leading UTF-8 byte order mark is ignored.
    """
    with open(path, encoding="utf-8") as f:
        body = f.read()
    if body.startswith(BOM):
        body = body[len(BOM):]
    return json.loads(body)


def write_json_file(path: str | Path, data: Any) -> None:
    """
    Write a JSON document atomically.

    The document is written to a temporary file in the destination directory
    and then renamed over the destination.
    """
    path = Path(path)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f)
            f.write("\n")
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    logger.debug(f"Wrote {path}")

