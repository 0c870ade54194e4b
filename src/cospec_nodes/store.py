"""Workflow-scoped persistence for trigger bookkeeping."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Protocol

from loguru import logger


class StaticDataStore(Protocol):
    """Key-value storage scoped by a caller-supplied instance key."""

    def get(self, scope: str, key: str) -> Any: ...

    def set(self, scope: str, key: str, value: Any) -> None: ...

    def delete(self, scope: str, key: str) -> None: ...


class InMemoryStaticDataStore:
    """Process-local store, lost on restart."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def get(self, scope: str, key: str) -> Any:
        return self._data.get(scope, {}).get(key)

    def set(self, scope: str, key: str, value: Any) -> None:
        self._data.setdefault(scope, {})[key] = value

    def delete(self, scope: str, key: str) -> None:
        values = self._data.get(scope)
        if values is None:
            return
        values.pop(key, None)
        if not values:
            del self._data[scope]


class JSONStaticDataStore:
    """
    A simple JSON-file store.

    The whole file is rewritten on every change, which is fine for the handful of
    webhook identifiers a host keeps.
    """

    def __init__(self, file_path: str | Path):
        self.file_path = Path(file_path)
        self._lock = threading.RLock()
        self._data: dict[str, dict[str, Any]] = self._load()

    def _load(self) -> dict[str, dict[str, Any]]:
        """Load data from the JSON file."""
        if self.file_path.exists():
            try:
                with open(self.file_path, encoding="utf-8") as f:
                    loaded = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error loading static data store: {e}")
                return {}
            if isinstance(loaded, dict):
                return {str(scope): dict(values) for scope, values in loaded.items() if isinstance(values, dict)}
        return {}

    def _save(self) -> None:
        """Save data to the JSON file."""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.file_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f"Error saving static data store: {e}")

    def get(self, scope: str, key: str) -> Any:
        with self._lock:
            return self._data.get(scope, {}).get(key)

    def set(self, scope: str, key: str, value: Any) -> None:
        with self._lock:
            self._data.setdefault(scope, {})[key] = value
            self._save()

    def delete(self, scope: str, key: str) -> None:
        with self._lock:
            values = self._data.get(scope)
            if values is None or key not in values:
                return
            del values[key]
            if not values:
                del self._data[scope]
            self._save()
