"""Key-value persistence: one JSON document per logical collection."""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional

from .errors import StorageError, StorageQuotaExceededError

logger = logging.getLogger(__name__)


class StorageProvider(ABC):
    """Minimal string key-value store. Read misses return ``None``."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryStorageProvider(StorageProvider):
    """In-process store, mainly for tests and one-off runs.

    Args:
        quota_bytes: Optional cap on the total size of stored values
    """

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._items.items() if k != key)
            if others + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceededError(f"Storage quota exceeded writing {key}")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class JsonFileStorageProvider(StorageProvider):
    """Stores each key as ``<data_dir>/<key>.json``.

    Args:
        data_dir: Directory holding the files (created on first write)
        quota_bytes: Optional per-value size cap
    """

    def __init__(self, data_dir: Path, quota_bytes: Optional[int] = None) -> None:
        self.data_dir = Path(data_dir).expanduser()
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.data_dir / f"{safe}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        encoded = value.encode("utf-8")
        if self.quota_bytes is not None and len(encoded) > self.quota_bytes:
            raise StorageQuotaExceededError(
                f"Value for {key} is {len(encoded):,} bytes, quota is {self.quota_bytes:,}"
            )

        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".json.tmp")
            tmp.write_bytes(encoded)
            tmp.replace(path)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to write {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        if not self.data_dir.exists():
            return
        for path in self.data_dir.glob("*.json"):
            path.unlink(missing_ok=True)


class StorageAdapter:
    """JSON codec on top of a ``StorageProvider``."""

    def __init__(self, provider: StorageProvider) -> None:
        self.provider = provider

    def get_data(self, key: str, default: Any = None) -> Any:
        raw = self.provider.get_item(key)
        if not raw:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable data for {key}: {e}")
            return default

    def set_data(self, key: str, value: Any) -> None:
        self.provider.set_item(key, json.dumps(value, ensure_ascii=False))

    def update_data(self, key: str, updater: Callable[[Any], Any], default: Any = None) -> Any:
        """Read, transform and write back; returns the written value."""
        updated = updater(self.get_data(key, default))
        self.set_data(key, updated)
        return updated

    def remove_data(self, key: str) -> None:
        self.provider.remove_item(key)
