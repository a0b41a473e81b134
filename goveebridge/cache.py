"""A persistent, SQLite backed cache for slow or rate limited lookups."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sqlite3
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

import platformdirs

log = logging.getLogger(__name__)

ENV_CACHE_DIR = "GOVEE_CACHE_DIR"
CACHE_FILE_NAME = "govee2mqtt-cache.sqlite"

TtlLike = Union[timedelta, float, int, None]


class CachedError(Exception):
    """An error that was computed earlier and remembered by the cache."""


@dataclass(frozen=True)
class CacheGetOptions:
    key: str
    topic: str
    soft_ttl: timedelta
    hard_ttl: timedelta
    negative_ttl: timedelta
    allow_stale: bool


@dataclass(frozen=True)
class CacheComputeResult:
    """A freshly computed value, optionally with its own soft TTL."""

    value: Any
    ttl: Optional[timedelta] = None

    def into_inner(self) -> Any:
        return self.value


def _seconds(ttl: TtlLike) -> Optional[float]:
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


class Cache:
    """Blobs stored by topic and key, each with an optional expiry."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
        self._lock = threading.Lock()
        self._update_locks: dict[tuple[str, str], asyncio.Lock] = {}
        with self._lock, self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS cache_entries ("
                " topic TEXT NOT NULL,"
                " key TEXT NOT NULL,"
                " data BLOB NOT NULL,"
                " expires REAL,"
                " PRIMARY KEY (topic, key))"
            )

    def __enter__(self) -> Cache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get(self, topic: str, key: str) -> Optional[bytes]:
        """Return the stored data, or None if absent or past its TTL."""
        with self._lock:
            row = self._conn.execute(
                "SELECT data, expires FROM cache_entries WHERE topic = ? AND key = ?",
                (topic, key),
            ).fetchone()
        if row is None:
            return None
        data, expires = row
        if expires is not None and expires <= time.time():
            return None
        return bytes(data)

    def put(self, topic: str, key: str, data: bytes, ttl: TtlLike) -> None:
        """Store ``data``; it is discarded once ``ttl`` has passed."""
        seconds = _seconds(ttl)
        now = time.time()
        expires = None if seconds is None else now + seconds
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache_entries (topic, key, data, expires)"
                " VALUES (?, ?, ?, ?)",
                (topic, key, bytes(data), expires),
            )
            self._conn.execute(
                "DELETE FROM cache_entries WHERE expires IS NOT NULL AND expires <= ?",
                (now,),
            )

    def delete(self, topic: str, key: str) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "DELETE FROM cache_entries WHERE topic = ? AND key = ?", (topic, key)
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _update_lock(self, topic: str, key: str) -> asyncio.Lock:
        with self._lock:
            return self._update_locks.setdefault((topic, key), asyncio.Lock())


def cache_file_name() -> Path:
    """Location of the cache database."""
    override = os.environ.get(ENV_CACHE_DIR)
    base = Path(override) if override is not None else Path(platformdirs.user_cache_dir())
    return base / CACHE_FILE_NAME


def open_cache() -> Cache:
    path = cache_file_name()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return Cache(path)
    except (OSError, sqlite3.Error) as exc:
        raise OSError(f"failed to open {path}: {exc}") from exc


_current: Optional[Cache] = None
_current_lock = threading.Lock()


def get_cache() -> Cache:
    """The shared cache for the currently configured location."""
    global _current
    path = cache_file_name()
    with _current_lock:
        if _current is None or _current.path != path:
            _current = open_cache()
        return _current


def purge_cache() -> None:
    """Delete the cache database and start over with an empty one."""
    global _current
    path = cache_file_name()
    with _current_lock:
        if _current is not None and _current.path == path:
            _current.close()
            _current = None
        try:
            path.unlink()
        except OSError as exc:
            raise OSError(f"removing cache file {path}: {exc}") from exc
        _current = open_cache()


def invalidate_key(topic: str, key: str) -> None:
    get_cache().delete(topic, key)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    stamp = datetime.fromisoformat(text)
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def _describe(exc: BaseException) -> str:
    parts = []
    current: Optional[BaseException] = exc
    while current is not None:
        parts.append(str(current) or type(current).__name__)
        current = current.__cause__
    return ": ".join(parts)


@dataclass
class _Entry:
    expires: datetime
    ok: bool
    payload: Any

    def to_bytes(self) -> bytes:
        result = {"Ok": self.payload} if self.ok else {"Err": self.payload}
        document = {"expires": self.expires.isoformat(), "result": result}
        return json.dumps(document, indent=2).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> _Entry:
        document = json.loads(data.decode("utf-8"))
        expires = _parse_time(document["expires"])
        result = document["result"]
        if not isinstance(result, dict) or len(result) != 1:
            raise ValueError(f"malformed cache result {result!r}")
        (tag, payload), = result.items()
        if tag == "Ok":
            return cls(expires, True, payload)
        if tag == "Err" and isinstance(payload, str):
            return cls(expires, False, payload)
        raise ValueError(f"malformed cache result {result!r}")

    def into_result(self) -> Any:
        if self.ok:
            return self.payload
        raise CachedError(self.payload)


async def cache_get(
    options: CacheGetOptions,
    compute: Callable[[], Awaitable[CacheComputeResult]],
) -> Any:
    """Return a cached value, computing it when the soft TTL has passed.

    Errors are remembered for ``negative_ttl``. When ``allow_stale`` is set
    and recomputing fails, the previous result is kept and returned.
    """
    store = get_cache()
    async with store._update_lock(options.topic, options.key):
        current = store.get(options.topic, options.key)
        prior: Optional[_Entry] = None

        if current is not None:
            try:
                entry = _Entry.from_bytes(current)
            except (ValueError, KeyError, TypeError, UnicodeDecodeError) as exc:
                log.warning(
                    "Error parsing CacheEntry: %s %r",
                    exc,
                    current.decode("utf-8", errors="replace"),
                )
            else:
                if _utcnow() < entry.expires:
                    log.debug("cache hit for %s", options.key)
                    return entry.into_result()
                prior = entry

        log.debug("cache miss for %s", options.key)
        try:
            computed = await compute()
        except Exception as exc:
            message = _describe(exc)
            if prior is not None and options.allow_stale:
                log.warning("%s, will use prior results", message)
                prior.expires = _utcnow() + options.negative_ttl
                if not prior.ok:
                    prior.payload = message
                store.put(options.topic, options.key, prior.to_bytes(), options.hard_ttl)
                return prior.into_result()

            failure = _Entry(_utcnow() + options.negative_ttl, False, message)
            store.put(options.topic, options.key, failure.to_bytes(), options.hard_ttl)
            raise CachedError(message) from exc

        ttl = computed.ttl if computed.ttl is not None else options.soft_ttl
        entry = _Entry(_utcnow() + ttl, True, computed.value)
        store.put(options.topic, options.key, entry.to_bytes(), options.hard_ttl)
        return computed.value