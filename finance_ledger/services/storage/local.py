"""
Local Key-Value Storage

The on-device fallback backend. Each record kind is stored as one JSON
blob under its own key, and the migration flag is a key of its own.

DESIGN DECISION: A corrupt blob is treated as "no data". Local storage is
a convenience copy; refusing to start because of it would be worse than
starting empty.
"""

import os
import re
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from finance_ledger.audit.logger import get_logger
from finance_ledger.services.storage.interface import KeyValueStore


logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")

FLAG_VALUE = "true"


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. State is lost when the process exits."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class FileKeyValueStore(KeyValueStore):
    """
    One file per key inside a directory.

    Writes go to a temporary file first and are moved into place, so a
    crash mid-write leaves the previous value intact.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)


class LocalStore:
    """
    Typed access to record sequences in a KeyValueStore.

    Records are encoded as a JSON array with camelCase keys, the same shape
    older clients wrote, so pre-existing data stays readable.
    """

    def __init__(self, backend: KeyValueStore):
        self._backend = backend
        self._adapters: dict[type, TypeAdapter] = {}

    def _adapter(self, model: type[T]) -> TypeAdapter:
        if model not in self._adapters:
            self._adapters[model] = TypeAdapter(list[model])
        return self._adapters[model]

    def load(self, key: str, model: type[T]) -> list[T]:
        """
        Load the sequence stored under `key`.

        Missing, unreadable or corrupt data yields an empty list.
        """
        try:
            raw = self._backend.get_item(key)
        except OSError as e:
            logger.warning("local_read_failed", key=key, error=str(e))
            return []

        if raw is None:
            return []

        try:
            return self._adapter(model).validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "local_blob_corrupt",
                key=key,
                error_count=e.error_count(),
                error=str(e).splitlines()[0],
            )
            return []

    def save(self, key: str, records: Sequence[T], model: type[T]) -> bool:
        """Overwrite the sequence stored under `key`."""
        payload = self._adapter(model).dump_json(list(records), by_alias=True)
        try:
            self._backend.set_item(key, payload.decode("utf-8"))
        except OSError as e:
            logger.error("local_write_failed", key=key, error=str(e))
            return False
        return True

    def clear(self, key: str) -> None:
        try:
            self._backend.remove_item(key)
        except OSError as e:
            logger.error("local_clear_failed", key=key, error=str(e))

    def has_flag(self, key: str) -> bool:
        try:
            return self._backend.get_item(key) is not None
        except OSError as e:
            logger.warning("local_read_failed", key=key, error=str(e))
            return False

    def set_flag(self, key: str) -> None:
        try:
            self._backend.set_item(key, FLAG_VALUE)
        except OSError as e:
            logger.error("local_write_failed", key=key, error=str(e))
