# SPDX-License-Identifier: Apache-2.0
"""
Filesystem utilities: safe filenames, directory creation and atomic writes.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path


# -------------------------- Names & directories --------------------------


def safe_filename(name: str, default: str = "file.txt") -> str:
    s = (name or "").strip().replace("\\", "/").split("/")[-1]
    s = "".join(ch for ch in s if ch.isalnum() or ch in ("-", "_", ".", " "))
    s = "_".join(s.split())  # collapse whitespace
    return s or default


def slugify_title(title: str, default: str = "untitled") -> str:
    """
    Export filename stem: every non [a-z0-9] character becomes '_' and the
    result is lower-cased ("My Book!" -> "my_book_").
    """
    s = re.sub(r"[^a-z0-9]", "_", (title or "").lower())
    return s or default


def ensure_dir(path: Path) -> Path:
    p = Path(path).expanduser().resolve()
    p.mkdir(parents=True, exist_ok=True)
    return p


# ------------------------------ Atomic writes -----------------------------


def atomic_write(path: Path | str, data: str | bytes, encoding: str = "utf-8") -> Path:
    """
    Write `data` next to `path` in a temp file, then os.replace() it into
    place so readers never observe a half-written export.
    """
    target = Path(path).expanduser().resolve()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = data.encode(encoding) if isinstance(data, str) else data
    fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", dir=str(target.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return target
