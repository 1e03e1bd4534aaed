"""Key/value persistence for tokens.

The store is an external concern; these are the two backends shipped with
the package. Entries may carry an absolute expiry after which they read as
absent, the way a browser drops an expired cookie.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Protocol

from .telemetry import get_logger


class KeyValueStore(Protocol):
    """Protocol for token persistence backends."""

    def get(self, key: str) -> str | None:
        """Get a value, or None if absent or expired."""
        ...

    def set(self, key: str, value: str, *, expires_at: datetime | None = None) -> None:
        """Store a value, optionally evicted after ``expires_at``."""
        ...

    def delete(self, key: str) -> None:
        """Remove a value; missing keys are ignored."""
        ...


@dataclass(frozen=True)
class _Entry:
    value: str
    expires_at: float | None = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class MemoryStore:
    """In-process store with expiry."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: str, *, expires_at: datetime | None = None) -> None:
        self._entries[key] = _Entry(
            value, expires_at.timestamp() if expires_at is not None else None
        )

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class FileStore:
    """JSON file store with expiry.

    The whole file is rewritten on every change. A missing or corrupt file
    reads as empty.
    """

    def __init__(self, path: str | Path, clock: Callable[[], float] = time.time) -> None:
        self.path = Path(path)
        self._clock = clock

    def _load(self) -> dict[str, _Entry]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return {
                key: _Entry(item["value"], item.get("expires_at"))
                for key, item in raw.items()
            }
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            get_logger("storage").warning(
                "Token file unreadable, ignoring", path=str(self.path), error=str(e)
            )
            return {}

    def _save(self, entries: dict[str, _Entry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            key: {"value": entry.value, "expires_at": entry.expires_at}
            for key, entry in entries.items()
        }
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def get(self, key: str) -> str | None:
        entries = self._load()
        entry = entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del entries[key]
            self._save(entries)
            return None
        return entry.value

    def set(self, key: str, value: str, *, expires_at: datetime | None = None) -> None:
        entries = self._load()
        entries[key] = _Entry(value, expires_at.timestamp() if expires_at is not None else None)
        self._save(entries)

    def delete(self, key: str) -> None:
        entries = self._load()
        if entries.pop(key, None) is not None:
            self._save(entries)
