"""
JSON file key-value store.

Persists all keys to a single JSON object on disk (``~/.newschat/storage.json``
by default), the terminal counterpart of browser local storage.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from newschat.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    """Best-effort key-value store backed by one JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> bool:
        data = self._load()
        data[key] = value
        return self._save(data)

    def remove(self, key: str) -> bool:
        data = self._load()
        if key not in data:
            return True
        del data[key]
        return self._save(data)

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning(
                f"Unreadable key-value store, treating as empty: {exc}",
                extra={"path": str(self.path)},
            )
            return {}
        if not isinstance(payload, dict):
            logger.warning(
                "Key-value store is not a JSON object, treating as empty",
                extra={"path": str(self.path)},
            )
            return {}
        return payload

    def _save(self, data: dict[str, Any]) -> bool:
        try:
            self._ensure_dir()
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            tmp_path.replace(self.path)
        except OSError as exc:
            logger.warning(
                f"Failed to write key-value store: {exc}",
                extra={"path": str(self.path)},
            )
            return False
        try:
            self.path.chmod(0o600)
        except OSError:
            pass
        return True
