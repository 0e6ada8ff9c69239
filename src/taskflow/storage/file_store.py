# src/taskflow/storage/file_store.py

from __future__ import annotations

import contextlib
import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileBlobStore:
    """
    Key-value blob store: one JSON file per key under a data directory.

    Writes go to a temp file first and are moved into place with os.replace,
    so a crash mid-write never leaves a half-written blob behind.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self._dir = Path(data_dir)
        self._dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        if not key or not _SAFE_KEY.match(key):
            raise ValueError(f"invalid blob key: {key!r}")
        return self._dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text("utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(Exception):
            # Task titles can be personal; keep the file private on disk.
            os.chmod(path, 0o600)
        logger.debug("Blob written key=%s bytes=%d", key, len(value))
