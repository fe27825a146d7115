# markdown_notes/infrastructure/filesystem.py

from __future__ import annotations

import os
import uuid
from datetime import datetime
from pathlib import Path

from markdown_notes.settings import RECOVERY_DIR


# ───────────────────────── public API ─────────────────────────


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """
    Atomic-ish file write:
      - write to temp file in same directory
      - fsync
      - replace() into final path
    A crash mid-write leaves the previous file intact.
    """
    path = Path(path)
    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)

    tmp_path = parent / f".{path.name}.tmp-{uuid.uuid4().hex}"

    try:
        with open(tmp_path, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_recovery_copy(stem: str, text: str, *, recovery_dir: Path = RECOVERY_DIR) -> Path:
    """
    Emergency save when the normal save fails.
    Writes a timestamped copy into ~/.markdown-notes/recovery/.
    """
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    rec_path = Path(recovery_dir) / f"{stem or 'state'}.recovery.{ts}.json"
    atomic_write_text(rec_path, text)
    return rec_path
