"""Atomic JSON file persistence shared by the game state managers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)


class JsonFileStore:
    """Read and write one JSON document, replacing the file atomically."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Dict[str, Any]:
        """Return the stored document, or an empty dict if there is none."""

        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.error("Failed to read state from %s: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.error("Unexpected state document in %s", self._path)
            return {}
        return payload

    def write(self, payload: Dict[str, Any]) -> None:
        """Write ``payload`` next to the target and swap it into place."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)

    def clear(self) -> None:
        """Remove the persisted file entirely."""

        try:
            if self._path.exists():
                self._path.unlink()
        except OSError as exc:
            LOGGER.error("Failed to delete state file %s: %s", self._path, exc)


__all__ = ["JsonFileStore"]
