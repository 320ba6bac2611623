"""Tests for quakewatch.cache — SQLite feed cache.

The cache must support:
- SQLite-backed storage, or an in-memory database
- Configurable TTL with lazy expiration on get()
- URL+params fingerprint keys
- get_or_compute with one computation per key under concurrency
- Context manager protocol, statistics and bulk expiration cleanup
"""

import threading
import time

import pytest

from quakewatch.cache import DEFAULT_TTL, ResponseCache


# ── Basic put/get ────────────────────────────────────────────────────────


class TestPutGet:
    """Store and retrieve cached responses."""

    def test_put_and_get(self, tmp_path):
        """Basic round-trip: put a feed response, get it back."""
        db = tmp_path / "cache.db"
        data = {"type": "FeatureCollection", "features": [{"id": "nc1"}]}
        with ResponseCache(db_path=db, ttl=3600) as cache:
            cache.put("all_day", data)
            assert cache.get("all_day") == data

    def test_get_miss_returns_none(self, tmp_path):
        with ResponseCache(db_path=tmp_path / "cache.db") as cache:
            assert cache.get("nonexistent") is None

    def test_put_overwrites(self, tmp_path):
        with ResponseCache(db_path=tmp_path / "cache.db") as cache:
            cache.put("k", {"v": 1})
            cache.put("k", {"v": 2})
            assert cache.get("k") == {"v": 2}

    def test_in_memory(self):
        with ResponseCache(db_path=":memory:") as cache:
            assert cache.db_path is None
            cache.put("k", [1, 2, 3])
            assert cache.get("k") == [1, 2, 3]

    def test_default_ttl(self, tmp_path):
        with ResponseCache(db_path=tmp_path / "cache.db") as cache:
            assert cache.ttl == DEFAULT_TTL == 3600


# ── TTL ─────────────────────────────────────────────────────────────────


class TestTTL:
    """Lazy expiry on read."""

    def test_fresh_entry_returned(self, tmp_path, monkeypatch):
        t = 1000000.0
        monkeypatch.setattr(time, "time", lambda: t)
        with ResponseCache(db_path=tmp_path / "cache.db", ttl=60) as cache:
            cache.put("k", {"v": 1})
            monkeypatch.setattr(time, "time", lambda: t + 59)
            assert cache.get("k") == {"v": 1}

    def test_expired_entry_returns_none(self, tmp_path, monkeypatch):
        t = 1000000.0
        monkeypatch.setattr(time, "time", lambda: t)
        with ResponseCache(db_path=tmp_path / "cache.db", ttl=60) as cache:
            cache.put("k", {"v": 1})
            monkeypatch.setattr(time, "time", lambda: t + 61)
            assert cache.get("k") is None

    def test_expired_entry_deleted_on_get(self, tmp_path, monkeypatch):
        """An expired get() removes the row."""
        t = 1000000.0
        monkeypatch.setattr(time, "time", lambda: t)
        with ResponseCache(db_path=tmp_path / "cache.db", ttl=60) as cache:
            cache.put("k", {"v": 1})
            monkeypatch.setattr(time, "time", lambda: t + 200)
            cache.get("k")
            assert cache.stats()["total_entries"] == 0


# ── get_or_compute ───────────────────────────────────────────────────────


class TestGetOrCompute:
    """Compute-on-miss helper."""

    def test_computes_on_miss_then_reuses(self):
        calls = []

        def compute():
            calls.append(1)
            return {"features": []}

        with ResponseCache(db_path=":memory:") as cache:
            assert cache.get_or_compute("k", compute) == {"features": []}
            assert cache.get_or_compute("k", compute) == {"features": []}
        assert len(calls) == 1

    def test_recomputes_after_expiry(self, monkeypatch):
        t = 1000000.0
        monkeypatch.setattr(time, "time", lambda: t)
        values = iter([{"v": 1}, {"v": 2}])
        with ResponseCache(db_path=":memory:", ttl=10) as cache:
            assert cache.get_or_compute("k", lambda: next(values)) == {"v": 1}
            monkeypatch.setattr(time, "time", lambda: t + 11)
            assert cache.get_or_compute("k", lambda: next(values)) == {"v": 2}

    def test_exception_not_cached(self):
        def boom():
            raise RuntimeError("upstream down")

        with ResponseCache(db_path=":memory:") as cache:
            with pytest.raises(RuntimeError):
                cache.get_or_compute("k", boom)
            assert cache.has("k") is False

    def test_key_locks_released(self):
        """Per-key locks do not accumulate across many distinct keys."""
        def boom():
            raise RuntimeError("upstream down")

        with ResponseCache(db_path=":memory:") as cache:
            for i in range(100):
                cache.get_or_compute(f"k{i}", lambda: {"v": 1})
            with pytest.raises(RuntimeError):
                cache.get_or_compute("failing", boom)
            assert cache._key_locks == {}

    def test_single_computation_under_concurrency(self):
        """Eight threads asking for one key trigger a single computation."""
        calls = []
        gate = threading.Event()

        def compute():
            calls.append(1)
            gate.wait(timeout=1.0)
            return {"v": 1}

        results = []
        with ResponseCache(db_path=":memory:") as cache:
            threads = [
                threading.Thread(target=lambda: results.append(cache.get_or_compute("k", compute)))
                for _ in range(8)
            ]
            for th in threads:
                th.start()
            gate.set()
            for th in threads:
                th.join(timeout=5)
        assert len(calls) == 1
        assert results == [{"v": 1}] * 8
        assert cache._key_locks == {}


# ── make_key ─────────────────────────────────────────────────────────────


class TestMakeKey:
    """URL/params fingerprints."""

    def test_deterministic(self):
        url = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_day.geojson"
        assert ResponseCache.make_key(url) == ResponseCache.make_key(url)
        assert len(ResponseCache.make_key(url)) == 64

    def test_params_order_irrelevant(self):
        a = ResponseCache.make_key("https://x", {"a": 1, "b": 2})
        b = ResponseCache.make_key("https://x", {"b": 2, "a": 1})
        assert a == b

    def test_params_change_key(self):
        assert ResponseCache.make_key("https://x", {"a": 1}) != ResponseCache.make_key("https://x")


# ── Context manager ───────────────────────────────────────────────────────


class TestContextManager:
    """Persistence and lifecycle."""

    def test_data_persists_across_sessions(self, tmp_path):
        db = tmp_path / "cache.db"
        with ResponseCache(db_path=db) as cache:
            cache.put("k", {"v": 1})
        with ResponseCache(db_path=db) as cache:
            assert cache.get("k") == {"v": 1}

    def test_creates_parent_directories(self, tmp_path):
        db = tmp_path / "nested" / "dir" / "cache.db"
        with ResponseCache(db_path=db) as cache:
            cache.put("k", {"v": 1})
        assert db.exists()

    def test_close_is_idempotent(self, tmp_path):
        cache = ResponseCache(db_path=tmp_path / "cache.db")
        cache.close()
        cache.close()


# ── Stats and clearing ───────────────────────────────────────────────────


class TestStatsAndClear:
    """stats(), clear(), clear_expired() and has()."""

    def test_stats_with_expired(self, tmp_path, monkeypatch):
        t = 1000000.0
        monkeypatch.setattr(time, "time", lambda: t)
        with ResponseCache(db_path=tmp_path / "cache.db", ttl=100) as cache:
            cache.put("old", {"v": 1})
            monkeypatch.setattr(time, "time", lambda: t + 50)
            cache.put("new", {"v": 2})
            monkeypatch.setattr(time, "time", lambda: t + 150)
            assert cache.stats() == {"total_entries": 2, "valid_entries": 1, "expired_entries": 1}

    def test_clear_removes_all(self, tmp_path):
        with ResponseCache(db_path=tmp_path / "cache.db") as cache:
            cache.put("a", {"v": 1})
            cache.put("b", {"v": 2})
            cache.clear()
            assert cache.stats()["total_entries"] == 0

    def test_clear_expired_only(self, tmp_path, monkeypatch):
        t = 1000000.0
        monkeypatch.setattr(time, "time", lambda: t)
        with ResponseCache(db_path=tmp_path / "cache.db", ttl=100) as cache:
            cache.put("old", {"v": 1})
            monkeypatch.setattr(time, "time", lambda: t + 50)
            cache.put("new", {"v": 2})
            monkeypatch.setattr(time, "time", lambda: t + 150)
            assert cache.clear_expired() == 1
            assert cache.get("new") == {"v": 2}

    def test_has(self, tmp_path, monkeypatch):
        t = 1000000.0
        monkeypatch.setattr(time, "time", lambda: t)
        with ResponseCache(db_path=tmp_path / "cache.db", ttl=100) as cache:
            assert cache.has("k") is False
            cache.put("k", {"v": 1})
            assert cache.has("k") is True
            monkeypatch.setattr(time, "time", lambda: t + 200)
            assert cache.has("k") is False
