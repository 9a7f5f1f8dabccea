"""Pytest configuration and fixtures."""

import asyncio
import itertools
import os
from datetime import UTC, datetime
from typing import Any

# Use test database - PostgreSQL when TEST_DATABASE_URL is set, SQLite locally
SQLALCHEMY_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///./test.db")
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from planboard.database import Base, get_db  # noqa: E402
from planboard.errors import RemoteError  # noqa: E402
from planboard.main import app  # noqa: E402
from planboard.schemas.board import OrderPatch  # noqa: E402
from planboard.schemas.category import CategoryResponse  # noqa: E402
from planboard.schemas.topic import TopicResponse  # noqa: E402
from planboard.services.content_engine import ContentSyncEngine  # noqa: E402
from planboard.services.sessions import EngineRegistry, get_engine_registry  # noqa: E402
from planboard.services.store import ContentStore, SqlContentStore  # noqa: E402

OWNER_ID = 1


class AuthHeaders(dict):
    """Dict subclass that also stores user_id."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeContentStore(ContentStore):
    """In-memory store that records every call and can be told to fail."""

    def __init__(self):
        self.categories: dict[int, CategoryResponse] = {}
        self.topics: dict[int, TopicResponse] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on: set[str] = set()
        self._ids = itertools.count(1)

    def seed_category(self, name: str, order: int, owner_id: int = OWNER_ID) -> CategoryResponse:
        category = CategoryResponse(
            id=next(self._ids),
            user_id=owner_id,
            name=name,
            order=order,
            created_at=datetime.now(UTC),
        )
        self.categories[category.id] = category
        return category

    def seed_topic(
        self,
        category_id: int,
        title: str,
        order: int,
        completed: bool = False,
        owner_id: int = OWNER_ID,
    ) -> TopicResponse:
        topic = TopicResponse(
            id=next(self._ids),
            user_id=owner_id,
            category_id=category_id,
            title=title,
            order=order,
            completed=completed,
            created_at=datetime.now(UTC),
        )
        self.topics[topic.id] = topic
        return topic

    @property
    def writes(self) -> list[tuple[Any, ...]]:
        """Calls that change stored data."""
        return [call for call in self.calls if not call[0].startswith("fetch")]

    async def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        # Yield like a real network call would
        await asyncio.sleep(0)
        if name in self.fail_on:
            raise RemoteError(f"{name} failed")

    async def fetch_categories(self, owner_id: int) -> list[CategoryResponse]:
        await self._record("fetch_categories", owner_id)
        owned = [c for c in self.categories.values() if c.user_id == owner_id]
        return sorted(owned, key=lambda c: c.order)

    async def fetch_topics(self, owner_id: int) -> list[TopicResponse]:
        await self._record("fetch_topics", owner_id)
        owned = [t for t in self.topics.values() if t.user_id == owner_id]
        return sorted(owned, key=lambda t: t.order)

    async def insert_category(self, owner_id: int, name: str, order: int) -> CategoryResponse:
        await self._record("insert_category", owner_id, name, order)
        return self.seed_category(name, order, owner_id)

    async def update_category(self, category_id: int, **fields: Any) -> CategoryResponse:
        await self._record("update_category", category_id, fields)
        updated = self.categories[category_id].model_copy(update=fields)
        self.categories[category_id] = updated
        return updated

    async def delete_category(self, category_id: int) -> None:
        await self._record("delete_category", category_id)
        del self.categories[category_id]

    async def insert_topic(
        self, owner_id: int, category_id: int, title: str, order: int
    ) -> TopicResponse:
        await self._record("insert_topic", owner_id, category_id, title, order)
        return self.seed_topic(category_id, title, order, owner_id=owner_id)

    async def update_topic(self, topic_id: int, **fields: Any) -> TopicResponse:
        await self._record("update_topic", topic_id, fields)
        updated = self.topics[topic_id].model_copy(update=fields)
        self.topics[topic_id] = updated
        return updated

    async def delete_topic(self, topic_id: int) -> None:
        await self._record("delete_topic", topic_id)
        del self.topics[topic_id]

    async def batch_reorder(self, kind: str, entries: list[OrderPatch]) -> None:
        await self._record("batch_reorder", kind, list(entries))
        table = self.categories if kind == "category" else self.topics
        for entry in entries:
            update: dict[str, Any] = {"order": entry.order}
            if entry.category_id is not None:
                update["category_id"] = entry.category_id
            table[entry.id] = table[entry.id].model_copy(update=update)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def store():
    """Empty in-memory store."""
    return FakeContentStore()


@pytest.fixture
def board_engine(store):
    """Board engine for OWNER_ID over the in-memory store (not loaded yet)."""
    return ContentSyncEngine(store, OWNER_ID)


@pytest.fixture
def sql_store(db):
    """Store over the test database session."""
    return SqlContentStore(db)


@pytest.fixture(scope="function")
def registry(db):
    """Engine registry whose stores share the test session."""
    engines = EngineRegistry(lambda: SqlContentStore(db))
    yield engines
    engines.clear()


@pytest.fixture(scope="function")
def client(db, registry):
    """Create a test client with database and registry overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    email = "test@example.com"
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": "testpass123", "name": "Test User"},
    )
    assert response.status_code == 201
    data = response.json()
    token = data["access_token"]
    user_id = data["user"]["id"]

    return AuthHeaders({"Authorization": f"Bearer {token}"}, user_id=user_id, email=email)
