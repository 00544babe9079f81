"""JSON file store — whole-file reads and atomic temp-then-rename writes."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union


DEFAULT_HOME = os.path.join(str(Path.home()), ".test-sentinel")


def read_json_array(path: Union[str, os.PathLike]) -> list[dict[str, Any]]:
    """Read a JSON array of objects. A missing file reads as empty.

    Raises:
        OSError: If the file exists but cannot be read.
        ValueError: If the content is not a JSON array of objects.
    """
    path = Path(path)
    if not path.exists():
        return []
    with open(path, encoding="utf-8") as f:
        text = f.read()
    if not text.strip():
        return []
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return [item for item in data if isinstance(item, dict)]


def write_json_atomic(path: Union[str, os.PathLike], payload: Any) -> None:
    """Write JSON so readers see either the old file or the new one, never a partial."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
