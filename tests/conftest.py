"""
Pytest configuration and fixtures for the job fleet tests.

This module provides an in-memory asyncio Redis double covering the commands
the fleet uses, plus shared settings and job seeding helpers.
"""

import asyncio
import fnmatch
import time
from typing import Any, Dict, List, Optional

import pytest
import redis

from hashfleet.core.config import Settings
from hashfleet.core.constants import QUEUE_KEY, job_key


class FakePipeline:
    """
    Pipeline double.

    Commands are buffered until ``execute()`` unless the pipeline is
    watching keys and ``multi()`` has not been called yet, in which case they
    run immediately, mirroring redis-py.
    """

    def __init__(self, fake: "FakeRedis", transaction: bool = True):
        self._fake = fake
        self._transaction = transaction
        self._commands: List = []
        self._watched: Dict[str, int] = {}
        self._multi = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.reset()

    def reset(self):
        self._commands = []
        self._watched = {}
        self._multi = False

    async def watch(self, *keys):
        for key in keys:
            self._watched[key] = self._fake.version(key)
        if self._fake.after_watch is not None:
            hook, self._fake.after_watch = self._fake.after_watch, None
            await hook()

    async def unwatch(self):
        self._watched = {}

    def multi(self):
        self._multi = True

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        method = getattr(self._fake, name)
        if self._watched and not self._multi:
            return method

        def buffered(*args, **kwargs):
            self._commands.append((method, args, kwargs))
            return self

        return buffered

    async def execute(self):
        for key, version in self._watched.items():
            if self._fake.version(key) != version:
                self.reset()
                raise redis.WatchError("Watched variable changed.")
        commands, self._commands = self._commands, []
        results = []
        for method, args, kwargs in commands:
            results.append(await method(*args, **kwargs))
        self.reset()
        return results


class FakeRedis:
    """
    In-memory stand-in for ``redis.asyncio.Redis`` with ``decode_responses=True``.

    TTLs run on a manual clock: call ``advance(seconds)`` to expire keys.
    Set ``failures[command] = exc`` to make a command raise.
    """

    def __init__(self):
        self.clock = 0.0
        self._strings: Dict[str, str] = {}
        self._hashes: Dict[str, Dict[str, str]] = {}
        self._lists: Dict[str, List[str]] = {}
        self._expiry: Dict[str, float] = {}
        self._versions: Dict[str, int] = {}
        self.failures: Dict[str, Exception] = {}
        self.after_watch = None
        self.closed = False
        self.calls: List[str] = []

    # helpers
    def advance(self, seconds: float):
        self.clock += seconds

    def version(self, key: str) -> int:
        return self._versions.get(key, 0)

    def _touch(self, key: str):
        self._versions[key] = self._versions.get(key, 0) + 1

    def _check(self, command: str):
        self.calls.append(command)
        if command in self.failures:
            raise self.failures[command]

    def _purge(self, key: str):
        expires = self._expiry.get(key)
        if expires is not None and self.clock >= expires:
            self._strings.pop(key, None)
            self._hashes.pop(key, None)
            self._lists.pop(key, None)
            self._expiry.pop(key, None)
            self._touch(key)

    def _all_keys(self):
        keys = set(self._strings) | set(self._hashes) | set(self._lists)
        for key in list(keys):
            self._purge(key)
        return sorted(set(self._strings) | set(self._hashes) | set(self._lists))

    # strings
    async def set(self, key: str, value: Any, ex: Optional[float] = None, nx: bool = False):
        self._check("set")
        self._purge(key)
        if nx and key in self._strings:
            return None
        self._strings[key] = str(value)
        if ex is not None:
            self._expiry[key] = self.clock + ex
        else:
            self._expiry.pop(key, None)
        self._touch(key)
        return True

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        self._purge(key)
        return self._strings.get(key)

    async def exists(self, *keys: str) -> int:
        self._check("exists")
        return sum(1 for key in keys if key in self._all_keys())

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        deleted = 0
        for key in keys:
            self._purge(key)
            for store in (self._strings, self._hashes, self._lists):
                if key in store:
                    del store[key]
                    deleted += 1
            self._expiry.pop(key, None)
            self._touch(key)
        return deleted

    def ttl_of(self, key: str) -> Optional[float]:
        expires = self._expiry.get(key)
        return None if expires is None else expires - self.clock

    # hashes
    async def hset(self, key: str, field: Optional[str] = None, value: Any = None,
                   mapping: Optional[Dict[str, Any]] = None) -> int:
        self._check("hset")
        self._purge(key)
        data = self._hashes.setdefault(key, {})
        items = dict(mapping or {})
        if field is not None:
            items[field] = value
        added = 0
        for name, item in items.items():
            if name not in data:
                added += 1
            data[name] = str(item)
        self._touch(key)
        return added

    async def hgetall(self, key: str) -> Dict[str, str]:
        self._check("hgetall")
        self._purge(key)
        return dict(self._hashes.get(key, {}))

    async def hget(self, key: str, field: str) -> Optional[str]:
        self._check("hget")
        self._purge(key)
        return self._hashes.get(key, {}).get(field)

    async def hmget(self, key: str, keys: List[str], *args: str) -> List[Optional[str]]:
        self._check("hmget")
        self._purge(key)
        data = self._hashes.get(key, {})
        return [data.get(name) for name in list(keys) + list(args)]

    async def hdel(self, key: str, *fields: str) -> int:
        self._check("hdel")
        self._purge(key)
        data = self._hashes.get(key, {})
        removed = 0
        for name in fields:
            if data.pop(name, None) is not None:
                removed += 1
        self._touch(key)
        return removed

    # lists
    async def lpush(self, key: str, *values: str) -> int:
        self._check("lpush")
        items = self._lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        self._touch(key)
        return len(items)

    async def rpush(self, key: str, *values: str) -> int:
        self._check("rpush")
        items = self._lists.setdefault(key, [])
        items.extend(values)
        self._touch(key)
        return len(items)

    async def llen(self, key: str) -> int:
        self._check("llen")
        return len(self._lists.get(key, []))

    async def lrange(self, key: str, start: int, end: int) -> List[str]:
        self._check("lrange")
        items = self._lists.get(key, [])
        end = len(items) if end == -1 else end + 1
        return list(items[start:end])

    async def brpop(self, keys, timeout: float = 0):
        self._check("brpop")
        if isinstance(keys, str):
            keys = [keys]
        deadline = None if not timeout else time.monotonic() + timeout
        while True:
            for key in keys:
                items = self._lists.get(key)
                if items:
                    value = items.pop()
                    if not items:
                        del self._lists[key]
                    self._touch(key)
                    return (key, value)
            if deadline is not None and time.monotonic() >= deadline:
                return None
            await asyncio.sleep(0.005)

    # keyspace
    async def scan_iter(self, match: Optional[str] = None, count: Optional[int] = None):
        self._check("scan_iter")
        for key in self._all_keys():
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True

    # test conveniences
    def queue_items(self) -> List[str]:
        """Queue contents, oldest first."""
        return list(reversed(self._lists.get(QUEUE_KEY, [])))

    def job_data(self, job_id: str) -> Dict[str, str]:
        return dict(self._hashes.get(job_key(job_id), {}))


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Fresh in-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def settings() -> Settings:
    """Fast settings for tests: no simulated delay, short loop periods."""
    return Settings(
        worker_id="worker-test-1",
        simulated_delay_ms=0,
        heartbeat_interval=0.05,
        heartbeat_ttl=3,
        worker_error_backoff=0.01,
        janitor_interval=0.01,
        autoscaler_interval=0.01,
        max_queue_depth=5000,
    )


@pytest.fixture
def seed_job(fake_redis):
    """Write a job record directly, bypassing admission control."""

    def _seed(job_id: str, **fields) -> Dict[str, str]:
        data = {
            "status": "queued",
            "text": "hello",
            "algorithm": "sha256",
            "retries": "0",
            "workerId": "",
        }
        data.update({k: str(v) for k, v in fields.items() if v is not None})
        for name in [k for k, v in fields.items() if v is None]:
            data.pop(name, None)
        fake_redis._hashes[job_key(job_id)] = data
        return data

    return _seed
