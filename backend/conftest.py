"""Pytest configuration: test env, an in-memory Redis double, and store fixtures."""

import asyncio
import os
import time
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio

# Set before files_manager.limiter is imported (the limiter reads it once)
os.environ.setdefault("FILES_MANAGER_RATE_LIMIT_ENABLED", "false")


class FakeRedis:
    """Async in-memory stand-in for the Redis commands the stores use.

    ``advance(seconds)`` moves the clock forward so key expiry can be tested.
    """

    def __init__(self):
        self._values: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lists: Dict[str, List[str]] = {}
        self._offset = 0.0
        self.closed = False

    def _now(self) -> float:
        return time.monotonic() + self._offset

    def advance(self, seconds: float) -> None:
        self._offset += seconds

    def _live(self, key: str) -> Optional[str]:
        item = self._values.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._now() >= expires_at:
            del self._values[key]
            return None
        return value

    async def ping(self) -> bool:
        return True

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._values[key] = (str(value), self._now() + ex if ex else None)
        return True

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def ttl(self, key: str) -> int:
        if self._live(key) is None:
            return -2
        expires_at = self._values[key][1]
        return -1 if expires_at is None else int(round(expires_at - self._now()))

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self._values[key]
                removed += 1
        return removed

    async def lpush(self, name: str, *values: str) -> int:
        lst = self._lists.setdefault(name, [])
        for v in values:
            lst.insert(0, v)
        return len(lst)

    async def llen(self, name: str) -> int:
        return len(self._lists.get(name, []))

    async def lrange(self, name: str, start: int, end: int) -> List[str]:
        lst = self._lists.get(name, [])
        return lst[start:] if end == -1 else lst[start : end + 1]

    async def lmove(self, first: str, second: str, src: str = "LEFT", dest: str = "RIGHT") -> Optional[str]:
        lst = self._lists.get(first)
        if not lst:
            return None
        value = lst.pop(0) if src == "LEFT" else lst.pop()
        target = self._lists.setdefault(second, [])
        if dest == "LEFT":
            target.insert(0, value)
        else:
            target.append(value)
        return value

    async def blmove(self, first: str, second: str, timeout: float, src: str = "LEFT", dest: str = "RIGHT") -> Optional[str]:
        value = await self.lmove(first, second, src, dest)
        if value is None:
            await asyncio.sleep(0)
        return value

    async def lrem(self, name: str, count: int, value: str) -> int:
        lst = self._lists.get(name, [])
        if value in lst:
            lst.remove(value)
            return 1
        return 0

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def db(tmp_path):
    """A fresh SQLite database per test."""
    from files_manager.db.session import Database

    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await database.init()
    yield database
    await database.dispose()


@pytest.fixture
def metadata(db):
    from files_manager.files.store import MetadataStore

    return MetadataStore(db.session_factory)


@pytest.fixture
def blobs(tmp_path):
    from files_manager.files.storage import BlobStore

    return BlobStore(tmp_path / "blobs")


@pytest.fixture
def file_queue(fake_redis):
    from files_manager.jobs.queue import JobQueue

    return JobQueue(fake_redis, "fileQueue")


@pytest.fixture
def file_service(metadata, blobs, file_queue):
    from files_manager.files.service import FileService

    return FileService(metadata, blobs, thumbnail_queue=file_queue)


@pytest.fixture
def client(tmp_path, monkeypatch, fake_redis):
    """TestClient for the FastAPI app. Use as context manager so lifespan runs.
    Database, blob root and Redis are per-test."""
    from fastapi.testclient import TestClient

    from files_manager import main

    monkeypatch.setenv("FILES_MANAGER_DB_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("FILES_MANAGER_DATABASE_URL", "")
    monkeypatch.setenv("FILES_MANAGER_FOLDER_PATH", str(tmp_path / "files"))
    monkeypatch.setattr(main, "create_redis", lambda url: fake_redis)
    with TestClient(main.app) as c:
        yield c
