"""Single-file cache for the last successful UptimeRobot response.

The file holds the upstream body byte-for-byte. Freshness is judged from the
file's modification time only; nothing inside the payload is trusted for it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from uptime_proxy.errors import CacheMissingError, CacheUnreadableError

logger = logging.getLogger("uptime_proxy.cache")


@dataclass(frozen=True)
class CacheEntry:
    raw: bytes
    written_at: float

    def age(self, now: float) -> int:
        return max(0, int(now - self.written_at))

    def payload(self) -> Optional[dict[str, Any]]:
        """Decoded JSON object, or None when the stored bytes are not one."""
        try:
            decoded = json.loads(self.raw)
        except (UnicodeDecodeError, ValueError):
            return None
        if not isinstance(decoded, dict):
            return None
        return decoded


class CacheStore(Protocol):
    """Single-key durable store for the last good upstream body."""

    def now(self) -> float: ...

    def load(self) -> CacheEntry: ...

    def get(self) -> Optional[CacheEntry]: ...

    def get_fresh(self, ttl_seconds: float) -> Optional[CacheEntry]: ...

    def put(self, raw: bytes) -> None: ...


def read_any(store: CacheStore) -> Optional[tuple[CacheEntry, dict[str, Any]]]:
    """Entry and decoded object regardless of age; None when absent or corrupt."""
    return _structured(store.get())


def read_fresh(store: CacheStore, ttl_seconds: float) -> Optional[tuple[CacheEntry, dict[str, Any]]]:
    return _structured(store.get_fresh(ttl_seconds))


def _structured(entry: Optional[CacheEntry]) -> Optional[tuple[CacheEntry, dict[str, Any]]]:
    if entry is None:
        return None
    payload = entry.payload()
    if payload is None:
        return None
    return entry, payload


class FileCacheStore:
    def __init__(self, path: str, clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> CacheEntry:
        """Strict read. Raises instead of reporting absence."""
        try:
            written_at = self.path.stat().st_mtime
            raw = self.path.read_bytes()
        except FileNotFoundError as exc:
            raise CacheMissingError(str(self.path)) from exc
        except OSError as exc:
            raise CacheUnreadableError(str(self.path), exc.__class__.__name__) from exc
        if not raw.strip():
            raise CacheUnreadableError(str(self.path), "empty file")
        return CacheEntry(raw=raw, written_at=written_at)

    def get(self) -> Optional[CacheEntry]:
        try:
            return self.load()
        except CacheMissingError:
            return None
        except CacheUnreadableError as exc:
            logger.warning("Ignoring cache at %s (%s)", self.path, exc.reason)
            return None

    def get_fresh(self, ttl_seconds: float) -> Optional[CacheEntry]:
        entry = self.get()
        if entry is None:
            return None
        if self.now() - entry.written_at >= ttl_seconds:
            return None
        return entry

    def put(self, raw: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=self.path.parent,
            prefix=f"{self.path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp.write(raw)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = Path(tmp.name)
        tmp_path.replace(self.path)
        logger.debug("Cache written path=%s bytes=%d", self.path, len(raw))
