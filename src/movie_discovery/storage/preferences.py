from __future__ import annotations

import json
import logging
from pathlib import Path

from movie_discovery.models import SortMode

logger = logging.getLogger(__name__)

SORT_MODE_KEY = "sortType"


class JsonPreferenceStore:
    """Persists user preferences as a small JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def read_sort_mode(self) -> SortMode | None:
        raw = self._load().get(SORT_MODE_KEY)
        return SortMode.parse(raw) if isinstance(raw, str) else None

    def write_sort_mode(self, mode: SortMode) -> None:
        payload = self._load()
        payload[SORT_MODE_KEY] = mode.value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _load(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"[PREFERENCES] Ignoring unreadable {self._path}: {exc}")
            return {}
        return payload if isinstance(payload, dict) else {}


class MemoryPreferenceStore:
    def __init__(self, sort_mode: SortMode | None = None) -> None:
        self.sort_mode = sort_mode

    def read_sort_mode(self) -> SortMode | None:
        return self.sort_mode

    def write_sort_mode(self, mode: SortMode) -> None:
        self.sort_mode = mode


__all__ = ["JsonPreferenceStore", "MemoryPreferenceStore", "SORT_MODE_KEY"]
