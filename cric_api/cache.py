# cric_api/cache.py
from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional, Tuple

# Process-local TTL cache for identity directory answers.
# key -> (expires_at_epoch, value); ball appends hit it from several threads.
_entries: Dict[str, Tuple[float, Any]] = {}
_lock = threading.Lock()


def make_key(namespace: str, *parts: Any) -> str:
    """
    make_key("identity", "players", 7) -> "identity:players:7"
    """
    namespace = namespace.strip()
    cleaned = [str(p).strip() for p in parts]
    if not namespace or not cleaned or not all(cleaned):
        raise ValueError("Cache namespace and key parts must be non-empty")
    return ":".join([namespace, *cleaned])


def get(key: str) -> Optional[Any]:
    with _lock:
        item = _entries.get(key)
        if item is None:
            return None
        expires_at, value = item
        if time.monotonic() > expires_at:
            del _entries[key]
            return None
        return value


def set(key: str, value: Any, ttl_seconds: int) -> None:
    if ttl_seconds <= 0:
        return
    with _lock:
        _entries[key] = (time.monotonic() + ttl_seconds, value)


def clear() -> None:
    with _lock:
        _entries.clear()
