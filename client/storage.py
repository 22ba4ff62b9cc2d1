"""
Session store — durable, namespaced key/value persistence on the client.

The storage medium (``MemoryStorage`` / ``FileStorage``) mirrors browser
local storage: a flat mapping of string keys to string values that may be
shared with unrelated code.  ``SessionStore`` layers a namespace on top and
only ever reads, enumerates or deletes keys carrying its own prefix.

Values are JSON-serialised on write and deserialised on read.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The storage medium could not be read or written."""


class StorageBackend(Protocol):
    def keys(self) -> List[str]: ...

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage medium; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def keys(self) -> List[str]:
        return list(self._data)

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """
    Storage medium backed by a single JSON document on disk.

    Every mutation rewrites the document through a temp file followed by
    ``os.replace``, so readers only ever see a complete document.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(f"Cannot read {self.path}: {exc}") from exc

        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt storage document {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Corrupt storage document {self.path}: not an object")
        return data

    def _dump(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, indent=2, sort_keys=True)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc

    def keys(self) -> List[str]:
        return list(self._load())

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class SessionStore:
    """Namespaced view over a storage medium."""

    def __init__(self, backend: StorageBackend, namespace: str = "auth"):
        if not namespace:
            raise ValueError("namespace must be non-empty")
        if "." in namespace:
            # "auth" would otherwise claim every key of an "auth.admin" store.
            raise ValueError(f"namespace must not contain '.': {namespace!r}")
        self.backend = backend
        self.namespace = namespace
        self._prefix = f"{namespace}."

    def _key(self, key: str) -> str:
        return self._prefix + key

    def set(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot serialise value for {key!r}: {exc}") from exc
        self.backend.set_item(self._key(key), encoded)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self.backend.get_item(self._key(key))
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Written by something that doesn't JSON-encode; hand back as-is.
            return raw

    def remove(self, key: str) -> None:
        self.backend.remove_item(self._key(key))

    def keys(self) -> List[str]:
        """Un-prefixed keys currently held in this namespace."""
        return [
            k[len(self._prefix):]
            for k in self.backend.keys()
            if k.startswith(self._prefix)
        ]

    def clear_all(self) -> None:
        """Remove every key in this namespace; other keys are left alone."""
        owned = self.keys()
        for key in owned:
            self.backend.remove_item(self._key(key))
        logger.debug("Cleared %d key(s) from namespace %r", len(owned), self.namespace)
