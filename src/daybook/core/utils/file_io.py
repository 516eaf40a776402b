"""
File I/O utilities: atomic writes.

All functions operate on explicit paths, no implicit directory lookups.
"""

from __future__ import annotations

import os
import tempfile


def atomic_write(filepath: str, content: str, encoding: str = "utf-8") -> None:
    """Write content via a temp file in the same directory and rename it into place.

    Readers never observe a half-written file.
    """
    directory = os.path.dirname(filepath) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=os.path.basename(filepath))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
        os.replace(tmp_path, filepath)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
