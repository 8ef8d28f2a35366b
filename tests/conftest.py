"""
Pytest configuration and shared fixtures.
"""

import fnmatch
import os
import sys
from contextlib import contextmanager
from typing import Dict, List, Optional, Sequence

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.join(os.getcwd(), "src"))

from gallery.cache.base import Cache  # noqa: E402
from gallery.storage.models import Base, UserModel  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> None:
    """Set up test environment variables."""
    os.environ.setdefault("APP_ENV", "test")
    os.environ.setdefault("DEBUG", "true")


class InMemoryCache(Cache):
    """
    Dict-backed Cache that records every call and the TTL of every write.

    Expiry is not simulated; tests inspect ``ttls`` instead.
    """

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.calls: List[tuple] = []

    async def connect(self) -> None:
        self.calls.append(("connect",))

    async def disconnect(self) -> None:
        self.calls.append(("disconnect",))

    async def health_check(self) -> bool:
        return True

    async def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        return self.store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.calls.append(("set", key))
        self.store[key] = value
        self.ttls[key] = ttl_seconds

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        self.calls.append(("mget", tuple(keys)))
        return [self.store.get(key) for key in keys]

    async def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        self.store.pop(key, None)
        self.ttls.pop(key, None)

    async def keys(self, pattern: str) -> List[str]:
        self.calls.append(("keys", pattern))
        return [key for key in self.store if fnmatch.fnmatchcase(key, pattern)]


class UnavailableCache(Cache):
    """A Cache whose backend is down: every operation raises."""

    async def connect(self) -> None:
        raise ConnectionError("redis down")

    async def disconnect(self) -> None:
        pass

    async def health_check(self) -> bool:
        return False

    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("redis down")

    async def mget(self, keys):
        raise ConnectionError("redis down")

    async def delete(self, key):
        raise ConnectionError("redis down")

    async def keys(self, pattern):
        raise ConnectionError("redis down")


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def unavailable_cache() -> UnavailableCache:
    return UnavailableCache()


# Use in-memory SQLite shared across sessions, no external DB needed
@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Same contract as PostgresAdapter.get_session, against SQLite."""
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def get_session():
        session = Session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return get_session


@pytest.fixture
def session(engine):
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def make_user(session):
    def _make(user_id: str, role: str = "USER", accepted_author_agreement=None, **fields) -> UserModel:
        user = UserModel(id=user_id, role=role, accepted_author_agreement=accepted_author_agreement, **fields)
        session.add(user)
        session.commit()
        return user

    return _make
