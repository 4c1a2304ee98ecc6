"""Key/value client storage used for shortcuts and custom actions.

The host normally provides this service; :class:`JsonFileStorage` backs the
developer harness and :class:`MemoryStorage` backs tests. Both implement the
same two coroutines. Writers always replace the whole value for a key.
"""
from __future__ import annotations

import asyncio
import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

_LOGGER = logging.getLogger("ShortcutActions.Storage")

SHORTCUTS_KEY = "shortcuts"
CUSTOM_ACTIONS_KEY = "customActions"
STORAGE_FILE = "client_storage.json"


class ClientStorage(Protocol):
    async def get_async(self, key: str) -> Any: ...

    async def set_async(self, key: str, value: Any) -> None: ...


class MemoryStorage:
    """Dictionary-backed storage; values are deep-copied on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get_async(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def set_async(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFileStorage:
    """Single JSON document on disk holding every stored key."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get_async(self, key: str) -> Any:
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, self._read)
        return data.get(key)

    async def set_async(self, key: str, value: Any) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_key, key, value)

    def _read(self) -> Dict[str, Any]:
        with self._lock:
            return self._read_unlocked()

    def _read_unlocked(self) -> Dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.warning("Ignoring unreadable storage file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_key(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_unlocked()
            data[key] = value
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
            tmp_path.replace(self._path)
