"""Persistence boundary for categories and topics.

``ContentStore`` is what the board engine talks to. Each call either succeeds
or raises ``RemoteError``; there are no transactions spanning calls.
``SqlContentStore`` implements it on a SQLAlchemy session, committing each
call on its own.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Literal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from planboard.errors import RemoteError
from planboard.models.category import Category
from planboard.models.topic import Topic
from planboard.schemas.board import OrderPatch
from planboard.schemas.category import CategoryResponse
from planboard.schemas.topic import TopicResponse

logger = logging.getLogger(__name__)

ReorderKind = Literal["category", "topic"]

CATEGORY_FIELDS = frozenset({"name", "order"})
TOPIC_FIELDS = frozenset({"title", "order", "completed", "category_id"})


class ContentStore(ABC):
    """Abstract store for a user's categories and topics."""

    @abstractmethod
    async def fetch_categories(self, owner_id: int) -> list[CategoryResponse]: ...

    @abstractmethod
    async def fetch_topics(self, owner_id: int) -> list[TopicResponse]: ...

    @abstractmethod
    async def insert_category(self, owner_id: int, name: str, order: int) -> CategoryResponse: ...

    @abstractmethod
    async def update_category(self, category_id: int, **fields: Any) -> CategoryResponse: ...

    @abstractmethod
    async def delete_category(self, category_id: int) -> None:
        """Delete a category. Callers must reassign its topics beforehand."""

    @abstractmethod
    async def insert_topic(
        self, owner_id: int, category_id: int, title: str, order: int
    ) -> TopicResponse: ...

    @abstractmethod
    async def update_topic(self, topic_id: int, **fields: Any) -> TopicResponse: ...

    @abstractmethod
    async def delete_topic(self, topic_id: int) -> None: ...

    @abstractmethod
    async def batch_reorder(self, kind: ReorderKind, entries: list[OrderPatch]) -> None:
        """Write new orders (and, for topics, optional category moves) in one go."""

    def close(self) -> None:
        """Release resources held by the store."""


class SqlContentStore(ContentStore):
    """ContentStore backed by the application database."""

    def __init__(self, db: Session, owns_session: bool = False):
        self.db = db
        self.owns_session = owns_session

    def close(self) -> None:
        if self.owns_session:
            self.db.close()

    @contextmanager
    def _write(self, action: str) -> Iterator[None]:
        """Roll back and raise RemoteError if anything in the block fails."""
        try:
            yield
        except RemoteError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise RemoteError(f"Failed to {action}") from e

    def _commit(self, instance: Category | Topic | None = None) -> None:
        self.db.commit()
        if instance is not None:
            self.db.refresh(instance)

    def _get(self, model: type[Category] | type[Topic], entity_id: int) -> Any:
        instance = self.db.get(model, entity_id)
        if instance is None:
            raise RemoteError(f"{model.__name__} {entity_id} not found")
        return instance

    async def fetch_categories(self, owner_id: int) -> list[CategoryResponse]:
        try:
            rows = (
                self.db.query(Category)
                .filter(Category.user_id == owner_id)
                .order_by(Category.order, Category.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch categories for user {owner_id}: {e}")
            raise RemoteError("Failed to load categories") from e
        return [CategoryResponse.model_validate(row) for row in rows]

    async def fetch_topics(self, owner_id: int) -> list[TopicResponse]:
        try:
            rows = (
                self.db.query(Topic)
                .filter(Topic.user_id == owner_id)
                .order_by(Topic.order, Topic.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch topics for user {owner_id}: {e}")
            raise RemoteError("Failed to load topics") from e
        return [TopicResponse.model_validate(row) for row in rows]

    async def insert_category(self, owner_id: int, name: str, order: int) -> CategoryResponse:
        with self._write("create category"):
            category = Category(user_id=owner_id, name=name, order=order)
            self.db.add(category)
            self._commit(category)
            return CategoryResponse.model_validate(category)

    async def update_category(self, category_id: int, **fields: Any) -> CategoryResponse:
        unknown = set(fields) - CATEGORY_FIELDS
        if unknown:
            raise RemoteError(f"Unknown category fields: {', '.join(sorted(unknown))}")
        with self._write("update category"):
            category = self._get(Category, category_id)
            for key, value in fields.items():
                setattr(category, key, value)
            self._commit(category)
            return CategoryResponse.model_validate(category)

    async def delete_category(self, category_id: int) -> None:
        with self._write("delete category"):
            category = self._get(Category, category_id)
            remaining = self.db.query(Topic).filter(Topic.category_id == category_id).count()
            if remaining:
                raise RemoteError(f"Category {category_id} still has {remaining} topics")
            self.db.delete(category)
            self._commit()

    async def insert_topic(
        self, owner_id: int, category_id: int, title: str, order: int
    ) -> TopicResponse:
        with self._write("add topic"):
            topic = Topic(
                user_id=owner_id,
                category_id=category_id,
                title=title,
                order=order,
                completed=False,
            )
            self.db.add(topic)
            self._commit(topic)
            return TopicResponse.model_validate(topic)

    async def update_topic(self, topic_id: int, **fields: Any) -> TopicResponse:
        unknown = set(fields) - TOPIC_FIELDS
        if unknown:
            raise RemoteError(f"Unknown topic fields: {', '.join(sorted(unknown))}")
        with self._write("update topic"):
            topic = self._get(Topic, topic_id)
            for key, value in fields.items():
                setattr(topic, key, value)
            self._commit(topic)
            return TopicResponse.model_validate(topic)

    async def delete_topic(self, topic_id: int) -> None:
        with self._write("delete topic"):
            self.db.delete(self._get(Topic, topic_id))
            self._commit()

    async def batch_reorder(self, kind: ReorderKind, entries: list[OrderPatch]) -> None:
        if not entries:
            return
        model = Category if kind == "category" else Topic
        with self._write(f"reorder {kind}s"):
            for entry in entries:
                instance = self._get(model, entry.id)
                instance.order = entry.order
                if kind == "topic" and entry.category_id is not None:
                    instance.category_id = entry.category_id
            self._commit()
        logger.debug(f"Persisted {len(entries)} {kind} order changes")
