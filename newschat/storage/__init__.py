"""Persisted key-value storage used by the session store and history cache."""

from .base import KeyValueStore, MemoryKeyValueStore
from .file_store import JsonFileKeyValueStore

__all__ = ["JsonFileKeyValueStore", "KeyValueStore", "MemoryKeyValueStore"]
