"""
Key-Value Store Interface

Durable, synchronous, best-effort string storage shared by the session store
and the history cache. Implementations never raise on I/O failure: reads
degrade to ``None`` and writes report ``False`` so callers can carry on
in memory.
"""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Abstract persisted key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or unreadable."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        """Store ``value`` under ``key``. Returns False if the write failed."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Delete ``key`` if present. Returns False if the write failed."""
        pass  # pragma: no cover - abstract method


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for tests and when persistence is disabled."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    def keys(self) -> list[str]:
        return list(self._data)
