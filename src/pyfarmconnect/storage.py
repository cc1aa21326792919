"""Local durable key-value storage.

Mirrors the string key/value store a mobile app keeps between launches:
the staff id, the active check-in reference and the outgoing queue.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pyfarmconnect.exceptions import FarmConnectStorageError

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String key/value storage.

    Implementations raise :class:`FarmConnectStorageError` when the
    backing medium cannot be read or written; callers decide whether the
    failure is fatal.
    """

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStore:
    """Process-local store; contents are lost when the client goes away."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStore:
    """Store backed by one JSON object file.

    Every write rewrites the whole file through a temporary sibling and
    ``os.replace``, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise FarmConnectStorageError(f"Cannot read {self._path}: {exc}") from exc

        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise FarmConnectStorageError(f"Corrupt storage file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise FarmConnectStorageError(f"Storage file {self._path} does not hold a JSON object")
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _write(self, data: dict[str, str]) -> None:
        directory = self._path.parent
        tmp: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=directory, prefix=f".{self._path.name}-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
            tmp = None
        except OSError as exc:
            raise FarmConnectStorageError(f"Cannot write {self._path}: {exc}") from exc
        finally:
            if tmp is not None and os.path.exists(tmp):
                try:
                    os.remove(tmp)
                except OSError:
                    _logger.debug("Could not remove temporary file %s", tmp, exc_info=True)

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        del data[key]
        self._write(data)


def open_store(path: str | os.PathLike[str] | None) -> KeyValueStore:
    """Return a :class:`JsonFileStore` for *path*, or a :class:`MemoryStore`."""
    if path is None:
        return MemoryStore()
    return JsonFileStore(path)
