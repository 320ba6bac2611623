"""SQLite-backed feed cache with TTL expiry.

Holds raw USGS feed responses (and anything else JSON-serialisable) keyed
by a request fingerprint. Entries expire lazily after ``ttl`` seconds.

The cache may be shared between threads: the connection is guarded by a
lock, and ``get_or_compute`` runs at most one computation per key at a
time, so concurrent callers asking for the same fingerprint wait for the
first one instead of all hitting the upstream feed.

Usage::

    from quakewatch.cache import ResponseCache

    with ResponseCache(db_path="data/feed-cache.db", ttl=60) as cache:
        key = cache.make_key(FEED_URLS["all_day"])
        data = cache.get_or_compute(key, lambda: fetch(url))
"""

import hashlib
import json
import logging
import sqlite3
import threading
import time
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60  # 1 hour, matching the snapshot reload interval


class ResponseCache:
    """Thread-safe SQLite cache with TTL expiry.

    Args:
        db_path: SQLite file; parent directories are created. Use
            ":memory:" for a process-local cache.
        ttl: Seconds an entry stays valid.
    """

    def __init__(self, db_path: str | Path = "feed-cache.db", ttl: float = DEFAULT_TTL):
        self.ttl = ttl
        self._lock = threading.RLock()
        self._key_locks: dict[str, threading.Lock] = {}
        if str(db_path) == ":memory:":
            self.db_path = None
            self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS cache (
                key TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                cached_at REAL NOT NULL
            )
        """)
        self._conn.commit()

    def get(self, key: str):
        """Return the cached value, or None on a miss or expired entry."""
        with self._lock:
            row = self._conn.execute(
                "SELECT data, cached_at FROM cache WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            data_json, cached_at = row
            if time.time() - cached_at > self.ttl:
                self._conn.execute("DELETE FROM cache WHERE key = ?", (key,))
                self._conn.commit()
                return None
        return json.loads(data_json)

    def put(self, key: str, data) -> None:
        raw = json.dumps(data)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache (key, data, cached_at) VALUES (?, ?, ?)",
                (key, raw, time.time()),
            )
            self._conn.commit()

    def has(self, key: str) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT cached_at FROM cache WHERE key = ?", (key,)
            ).fetchone()
        return row is not None and time.time() - row[0] <= self.ttl

    def get_or_compute(self, key: str, compute):
        """Return the cached value for ``key``, computing and storing it on a miss.

        Only one thread computes a given key at a time; others block on the
        key's lock and then read the stored value. The lock is discarded
        once its holder finishes, so idle keys hold no lock. Exceptions from
        ``compute`` propagate and nothing is cached.

        Args:
            key: Request fingerprint, e.g. from ``make_key``.
            compute: Zero-argument callable returning a JSON-serialisable value.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            try:
                cached = self.get(key)
                if cached is not None:
                    return cached
                logger.debug(f"Cache miss for {key[:12]}, computing")
                value = compute()
                self.put(key, value)
                return value
            finally:
                with self._lock:
                    if self._key_locks.get(key) is key_lock:
                        del self._key_locks[key]

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM cache")
            self._conn.commit()

    def clear_expired(self) -> int:
        """Remove expired entries and return how many were removed."""
        cutoff = time.time() - self.ttl
        with self._lock:
            cursor = self._conn.execute("DELETE FROM cache WHERE cached_at < ?", (cutoff,))
            self._conn.commit()
        return cursor.rowcount

    def stats(self) -> dict:
        cutoff = time.time() - self.ttl
        with self._lock:
            total = self._conn.execute("SELECT COUNT(*) FROM cache").fetchone()[0]
            valid = self._conn.execute(
                "SELECT COUNT(*) FROM cache WHERE cached_at >= ?", (cutoff,)
            ).fetchone()[0]
        return {"total_entries": total, "valid_entries": valid, "expired_entries": total - valid}

    @staticmethod
    def make_key(url: str, params: dict | None = None) -> str:
        """SHA-256 fingerprint of a URL and its (sorted) query parameters."""
        raw = url
        if params:
            raw += json.dumps(params, sort_keys=True)
        return hashlib.sha256(raw.encode()).hexdigest()

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
