"""A process-local cache of JSON-encoded values."""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, is_dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Union


def _encode(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class CacheRepository:
    """Keeps values as JSON bytes under string keys.

    Entries stay until deleted; the expiration passed to :meth:`set`
    is accepted but not enforced.
    """

    def __init__(self) -> None:
        self._store: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, expiration: Optional[Union[timedelta, float]] = None) -> None:
        """Store ``value`` encoded as JSON; raise TypeError if it cannot be."""
        data = json.dumps(value, default=_encode).encode("utf-8")
        with self._lock:
            self._store[key] = data

    def get(self, key: str) -> Optional[bytes]:
        """Return the stored JSON bytes, or None when the key is absent."""
        with self._lock:
            return self._store.get(key)

    def delete(self, key: str) -> None:
        """Forget ``key`` if present."""
        with self._lock:
            self._store.pop(key, None)