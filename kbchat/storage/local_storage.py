"""Durable client-local key/value storage."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Minimal storage contract used by the credential store."""

    def get_item(self, key: str) -> Any | None: ...

    def set_items(self, items: dict[str, Any]) -> None: ...

    def remove_items(self, *keys: str) -> None: ...


class MemoryStorage:
    """In-process storage; lost when the process exits."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get_item(self, key: str) -> Any | None:
        return self._data.get(key)

    def set_items(self, items: dict[str, Any]) -> None:
        self._data.update(items)

    def remove_items(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class LocalStorage:
    """JSON-file storage that survives restarts.

    Every write replaces the whole file through a temporary file in the same
    directory, so a reader sees either the previous or the new contents.
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            self._data = {}
            return self._data

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                logger.warning(f"Ignoring non-object storage file: {self.path}")
                data = {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read storage file {self.path}: {e}")
            data = {}

        self._data = data
        return self._data

    def _flush(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_name, 0o600)  # rw-------
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Any | None:
        return self._load().get(key)

    def set_items(self, items: dict[str, Any]) -> None:
        data = {**self._load(), **items}
        self._flush(data)
        self._data = data

    def remove_items(self, *keys: str) -> None:
        current = self._load()
        if not any(key in current for key in keys):
            return
        data = {k: v for k, v in current.items() if k not in keys}
        self._flush(data)
        self._data = data

    def reload(self) -> None:
        """Drop the in-memory copy so the next read goes to disk."""
        self._data = None
