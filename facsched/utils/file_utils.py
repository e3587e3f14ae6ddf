"""Atomic JSON persistence for cache entries."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def atomic_json_write(filepath: Path, data: Any) -> None:
    """Serialize *data* as JSON and write it to *filepath* atomically.

    The payload is serialized before anything touches the disk, so an
    unserializable value raises ``TypeError``/``ValueError`` without
    leaving a partial file behind. The bytes go to a temporary file in the
    target directory which is then renamed over the destination; readers
    see either the old entry or the new one, never a truncated file.

    Args:
        filepath: Destination path (parent directories are created).
        data: Any JSON-serializable value (lists, dicts, ints...).

    Raises:
        TypeError, ValueError: *data* is not JSON-serializable.
        OSError: The file could not be written.
    """
    filepath = Path(filepath)
    payload = json.dumps(data, ensure_ascii=False)

    filepath.parent.mkdir(parents=True, exist_ok=True)

    # Same directory so os.replace stays on one filesystem
    fd, tmp_path = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_path, filepath)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def read_json(filepath: Path) -> Any:
    """Load a JSON document from *filepath*.

    Raises:
        FileNotFoundError: The file does not exist.
        json.JSONDecodeError: The content is not valid JSON.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        return json.load(f)
