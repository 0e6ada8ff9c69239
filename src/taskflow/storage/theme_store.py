# src/taskflow/storage/theme_store.py

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass

from ..core.ports import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_ACCENT = "#4f46e5"

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


@dataclass(slots=True)
class Theme:
    dark_mode: bool = False
    accent_color: str = DEFAULT_ACCENT


def normalize_color(raw: str) -> str:
    s = (raw or "").strip()
    if not s.startswith("#"):
        s = "#" + s
    if not _HEX_COLOR.match(s):
        raise ValueError(f"accent color must be a hex color like #4f46e5, got {raw!r}")
    return s.lower()


class ThemeStore:
    """Appearance preferences, persisted as their own blob."""

    def __init__(self, blobs: BlobStore, key: str = "taskflow_theme") -> None:
        self._blobs = blobs
        self._key = key
        self.theme = self.load()

    def load(self) -> Theme:
        try:
            raw = self._blobs.get(self._key)
        except Exception:
            logger.exception("Failed to read theme blob key=%s", self._key)
            return Theme()
        if not raw:
            return Theme()
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Theme blob key=%s is not valid JSON; using defaults.", self._key)
            return Theme()
        if not isinstance(data, dict):
            return Theme()

        accent = DEFAULT_ACCENT
        try:
            accent = normalize_color(str(data.get("accent_color") or DEFAULT_ACCENT))
        except ValueError:
            logger.debug("Ignoring stored accent color %r", data.get("accent_color"))
        return Theme(dark_mode=bool(data.get("dark_mode", False)), accent_color=accent)

    def persist(self) -> None:
        try:
            self._blobs.set(self._key, json.dumps(asdict(self.theme)))
        except Exception:
            logger.exception("Failed to persist theme key=%s", self._key)

    def set_dark_mode(self, enabled: bool) -> Theme:
        self.theme.dark_mode = bool(enabled)
        self.persist()
        return self.theme

    def toggle_dark_mode(self) -> Theme:
        return self.set_dark_mode(not self.theme.dark_mode)

    def set_accent_color(self, color: str) -> Theme:
        self.theme.accent_color = normalize_color(color)
        self.persist()
        return self.theme
