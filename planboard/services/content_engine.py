"""Board synchronization engine.

The engine owns an in-memory mirror of one user's categories and topics.
Every operation computes the complete new state first, writes it to the
store, and only swaps the mirror once the store has accepted the write, so
callers see either the old board or the new one.

Operations are serialized per engine with an ``asyncio.Lock``: two requests
for the same board never compute their changes from the same stale mirror.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from planboard.errors import (
    ContentError,
    DuplicateDefaultCategory,
    EngineNotReady,
    InvariantViolation,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from planboard.schemas.board import BoardCategory, OrderPatch
from planboard.schemas.category import CategoryResponse
from planboard.schemas.topic import TopicResponse
from planboard.services.default_category import (
    DEFAULT_CATEGORY_NAME,
    find_default_category,
    plan_default_category,
)
from planboard.services.ordering import (
    append_to_end,
    changed_orders,
    compact_after_removal,
    insert_at,
    reindex_by_explicit_sequence,
    sort_by_completion_then_order,
)
from planboard.services.store import ContentStore

logger = logging.getLogger(__name__)


class EngineState(StrEnum):
    """Lifecycle of a board session."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an engine operation. Engine operations never raise."""

    ok: bool
    value: Any = None
    message: str | None = None
    error: ContentError | None = None

    @property
    def level(self) -> str:
        """Either success, or the error's level (info for benign rejections)."""
        if self.ok:
            return "success"
        return self.error.level if self.error else "error"

    @classmethod
    def success(cls, value: Any = None, message: str | None = None) -> "OperationResult":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, error: ContentError) -> "OperationResult":
        return cls(ok=False, message=error.message, error=error)


def _by_order(records: Iterable[Any]) -> list[Any]:
    return sorted(records, key=lambda record: record.order)


def _with_orders(records: Iterable[Any], mapping: dict[int, int]) -> list[Any]:
    """Copy records whose order changes under ``mapping``; keep the rest as-is."""
    return [
        record.model_copy(update={"order": mapping[record.id]})
        if record.id in mapping and mapping[record.id] != record.order
        else record
        for record in records
    ]


def _patches(mapping: dict[int, int]) -> list[OrderPatch]:
    return [OrderPatch(id=entity_id, order=order) for entity_id, order in mapping.items()]


def _clean_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} cannot be empty")
    return text


class ContentSyncEngine:
    """Ordered categories and topics for one authenticated user."""

    def __init__(
        self,
        store: ContentStore,
        owner_id: int,
        default_category_name: str = DEFAULT_CATEGORY_NAME,
    ):
        self.store = store
        self.owner_id = owner_id
        self.default_category_name = default_category_name
        self.last_error: ContentError | None = None
        self._state = EngineState.IDLE
        self._categories: tuple[CategoryResponse, ...] = ()
        self._topics: tuple[TopicResponse, ...] = ()
        self._lock = asyncio.Lock()

    # Read side

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def categories(self) -> tuple[CategoryResponse, ...]:
        """Categories sorted by order."""
        return self._categories

    @property
    def topics(self) -> tuple[TopicResponse, ...]:
        return self._topics

    @property
    def default_category(self) -> CategoryResponse | None:
        return find_default_category(list(self._categories), self.default_category_name)

    def topics_in(self, category_id: int) -> list[TopicResponse]:
        """Topics of one category sorted by order."""
        return _by_order(topic for topic in self._topics if topic.category_id == category_id)

    def board(self) -> list[BoardCategory]:
        """Categories with their ordered topics nested."""
        return [
            BoardCategory(**category.model_dump(), topics=self.topics_in(category.id))
            for category in self._categories
        ]

    def _get_category(self, category_id: int) -> CategoryResponse:
        for category in self._categories:
            if category.id == category_id:
                return category
        raise NotFoundError("Category not found")

    def _get_topic(self, topic_id: int) -> TopicResponse:
        for topic in self._topics:
            if topic.id == topic_id:
                return topic
        raise NotFoundError("Topic not found")

    def _replace_topics(self, updated: Iterable[TopicResponse]) -> None:
        changes = {topic.id: topic for topic in updated}
        self._topics = tuple(changes.get(topic.id, topic) for topic in self._topics)

    def _set_categories(self, categories: Iterable[CategoryResponse]) -> None:
        self._categories = tuple(_by_order(categories))

    # Lifecycle

    async def load(self) -> OperationResult:
        """Fetch the board, make sure the default category exists, rebuild the mirror."""
        async with self._lock:
            self._state = EngineState.LOADING
            try:
                categories, topics = await self._fetch_board()
            except ContentError as e:
                logger.error(f"Failed to load board for user {self.owner_id}: {e.message}")
                return self._load_failed(e)
            except Exception as e:
                logger.exception(f"Unexpected error loading board for user {self.owner_id}")
                error = RemoteError("Failed to load board")
                error.__cause__ = e
                return self._load_failed(error)

            self._set_categories(categories)
            self._topics = tuple(topics)
            self._state = EngineState.READY
            self.last_error = None
            logger.info(
                f"Loaded board for user {self.owner_id}: "
                f"{len(self._categories)} categories, {len(self._topics)} topics"
            )
            return OperationResult.success(self.board())

    def _load_failed(self, error: ContentError) -> OperationResult:
        """Empty the mirror; mutations stay blocked until a load succeeds."""
        self._categories = ()
        self._topics = ()
        self._state = EngineState.ERROR
        self.last_error = error
        return OperationResult.failure(error)

    async def refresh(self) -> OperationResult:
        """Reload the board from the store."""
        return await self.load()

    def teardown(self) -> None:
        """Drop the mirror; the engine must be loaded again before use."""
        self._categories = ()
        self._topics = ()
        self._state = EngineState.IDLE
        self.last_error = None

    async def _fetch_board(self) -> tuple[list[CategoryResponse], list[TopicResponse]]:
        categories = await self.store.fetch_categories(self.owner_id)
        topics = await self.store.fetch_topics(self.owner_id)

        plan = plan_default_category(categories, self.default_category_name)
        if plan.order_patches:
            await self.store.batch_reorder("category", plan.order_patches)
        categories = plan.categories
        if plan.needs_default:
            default = await self.store.insert_category(
                self.owner_id, self.default_category_name, plan.create_at
            )
            logger.info(f"Created '{default.name}' category for user {self.owner_id}")
            categories = [default, *categories]

        topics = await self._adopt_orphans(categories, topics)
        return await self._repair_density(categories, topics)

    async def _adopt_orphans(
        self, categories: list[CategoryResponse], topics: list[TopicResponse]
    ) -> list[TopicResponse]:
        """Move topics whose category no longer exists to the end of the default category."""
        known = {category.id for category in categories}
        orphans = _by_order(topic for topic in topics if topic.category_id not in known)
        if not orphans:
            return topics

        default = find_default_category(categories, self.default_category_name)
        start = max((t.order for t in topics if t.category_id == default.id), default=-1) + 1
        moves = {
            topic.id: OrderPatch(id=topic.id, order=start + offset, category_id=default.id)
            for offset, topic in enumerate(orphans)
        }
        logger.warning(
            f"Moving {len(orphans)} topics without a category to '{default.name}' "
            f"for user {self.owner_id}"
        )
        await self.store.batch_reorder("topic", list(moves.values()))
        return [
            topic.model_copy(update={"category_id": default.id, "order": moves[topic.id].order})
            if topic.id in moves
            else topic
            for topic in topics
        ]

    async def _repair_density(
        self, categories: list[CategoryResponse], topics: list[TopicResponse]
    ) -> tuple[list[CategoryResponse], list[TopicResponse]]:
        """Close gaps and duplicates left by earlier partial failures."""
        category_map = reindex_by_explicit_sequence(c.id for c in _by_order(categories))
        category_changes = changed_orders(categories, category_map)
        if category_changes:
            logger.warning(f"Repairing {len(category_changes)} category orders")
            await self.store.batch_reorder("category", _patches(category_changes))
            categories = _with_orders(categories, category_changes)

        topic_changes: dict[int, int] = {}
        for category_id in {topic.category_id for topic in topics}:
            group = [topic for topic in topics if topic.category_id == category_id]
            mapping = reindex_by_explicit_sequence(t.id for t in _by_order(group))
            topic_changes.update(changed_orders(group, mapping))
        if topic_changes:
            logger.warning(f"Repairing {len(topic_changes)} topic orders")
            await self.store.batch_reorder("topic", _patches(topic_changes))
            topics = _with_orders(topics, topic_changes)

        return categories, topics

    async def _run(
        self, action: str, operation: Callable[..., Awaitable[OperationResult]], *args: Any
    ) -> OperationResult:
        """Serialize ``operation`` and turn its errors into a failed result."""
        if self._state is EngineState.LOADING:
            return OperationResult.failure(EngineNotReady("Board is still loading"))
        async with self._lock:
            try:
                if self._state is EngineState.IDLE:
                    raise EngineNotReady("Board is not loaded")
                if self._state is EngineState.ERROR:
                    raise EngineNotReady("Board failed to load; refresh to try again")
                return await operation(*args)
            except InvariantViolation as e:
                logger.error(f"Invariant violated while trying to {action}: {e.message}")
                return OperationResult.failure(e)
            except RemoteError as e:
                logger.error(f"Failed to {action} for user {self.owner_id}: {e.message}")
                return OperationResult.failure(e)
            except ContentError as e:
                logger.info(f"Rejected {action} for user {self.owner_id}: {e.message}")
                return OperationResult.failure(e)

    # Categories

    async def add_category(self, name: str) -> OperationResult:
        return await self._run("create category", self._add_category, name)

    async def _add_category(self, name: str) -> OperationResult:
        name = _clean_text(name, "Category name")
        if name == self.default_category_name and self.default_category is not None:
            raise DuplicateDefaultCategory(f'Category "{name}" already exists')

        order = append_to_end(self._categories)
        created = await self.store.insert_category(self.owner_id, name, order)
        self._set_categories([*self._categories, created])
        return OperationResult.success(created, f'Category "{name}" created')

    async def rename_category(self, category_id: int, name: str) -> OperationResult:
        return await self._run("update category", self._rename_category, category_id, name)

    async def _rename_category(self, category_id: int, name: str) -> OperationResult:
        category = self._get_category(category_id)
        name = _clean_text(name, "Category name")
        default = self.default_category
        if default is not None and category.id == default.id and name != default.name:
            raise ValidationError(f'Cannot rename the {default.name} category')
        if name == self.default_category_name and (default is None or category.id != default.id):
            raise DuplicateDefaultCategory(f'Category "{name}" already exists')

        await self.store.update_category(category_id, name=name)
        renamed = category.model_copy(update={"name": name})
        self._set_categories(renamed if c.id == category_id else c for c in self._categories)
        return OperationResult.success(renamed, f'Category renamed to "{name}"')

    async def delete_category(self, category_id: int) -> OperationResult:
        return await self._run("delete category", self._delete_category, category_id)

    async def _delete_category(self, category_id: int) -> OperationResult:
        default = self.default_category
        if default is None:
            raise InvariantViolation(
                f"Cannot delete category: {self.default_category_name} category not found"
            )
        if category_id == default.id:
            raise ValidationError(f"Cannot delete the {default.name} category")
        self._get_category(category_id)

        # Reassigned topics go after the default category's own topics.
        base = append_to_end(self.topics_in(default.id))
        reassigned = [
            topic.model_copy(update={"category_id": default.id, "order": base + index})
            for index, topic in enumerate(self.topics_in(category_id))
        ]
        if reassigned:
            await self.store.batch_reorder(
                "topic",
                [OrderPatch(id=t.id, order=t.order, category_id=default.id) for t in reassigned],
            )
            self._replace_topics(reassigned)

        await self.store.delete_category(category_id)
        remaining = [category for category in self._categories if category.id != category_id]
        compacted = changed_orders(remaining, compact_after_removal(self._categories, category_id))
        self._set_categories(remaining)

        if compacted:
            await self.store.batch_reorder("category", _patches(compacted))
            self._set_categories(_with_orders(remaining, compacted))
        logger.info(
            f"Deleted category {category_id} for user {self.owner_id}, "
            f"moved {len(reassigned)} topics to '{default.name}'"
        )
        return OperationResult.success(message="Category deleted")

    async def reorder_categories(self, ids: list[int]) -> OperationResult:
        return await self._run("reorder categories", self._reorder_categories, ids)

    async def _reorder_categories(self, ids: list[int]) -> OperationResult:
        if len(set(ids)) != len(ids) or set(ids) != {c.id for c in self._categories}:
            raise ValidationError("Category ids do not match the board")

        changes = changed_orders(self._categories, reindex_by_explicit_sequence(ids))
        if changes:
            await self.store.batch_reorder("category", _patches(changes))
            self._set_categories(_with_orders(self._categories, changes))
        return OperationResult.success(list(self._categories))

    # Topics

    async def add_topic(self, category_id: int, title: str) -> OperationResult:
        return await self._run("add topic", self._add_topic, category_id, title)

    async def _add_topic(self, category_id: int, title: str) -> OperationResult:
        self._get_category(category_id)
        title = _clean_text(title, "Topic title")

        order = append_to_end(self.topics_in(category_id))
        created = await self.store.insert_topic(self.owner_id, category_id, title, order)
        self._topics = (*self._topics, created)
        return OperationResult.success(created, "Topic added")

    async def rename_topic(self, topic_id: int, title: str) -> OperationResult:
        return await self._run("update topic", self._rename_topic, topic_id, title)

    async def _rename_topic(self, topic_id: int, title: str) -> OperationResult:
        topic = self._get_topic(topic_id)
        title = _clean_text(title, "Topic title")

        await self.store.update_topic(topic_id, title=title)
        renamed = topic.model_copy(update={"title": title})
        self._replace_topics([renamed])
        return OperationResult.success(renamed, "Topic updated")

    async def toggle_completion(self, topic_id: int) -> OperationResult:
        return await self._run("update topic status", self._toggle_completion, topic_id)

    async def _toggle_completion(self, topic_id: int) -> OperationResult:
        topic = self._get_topic(topic_id)
        toggled = topic.model_copy(update={"completed": not topic.completed})
        siblings = [
            toggled if sibling.id == topic_id else sibling
            for sibling in self.topics_in(topic.category_id)
        ]
        changes = changed_orders(siblings, sort_by_completion_then_order(siblings))

        await self.store.update_topic(topic_id, completed=toggled.completed)
        # The flag is stored now; keep the mirror truthful even if the resort fails.
        self._replace_topics([toggled])
        if changes:
            await self.store.batch_reorder("topic", _patches(changes))
            self._replace_topics(_with_orders(siblings, changes))

        message = "Topic marked as completed" if toggled.completed else "Topic marked as active"
        return OperationResult.success(self._get_topic(topic_id), message)

    async def delete_topic(self, topic_id: int) -> OperationResult:
        return await self._run("remove topic", self._delete_topic, topic_id)

    async def _delete_topic(self, topic_id: int) -> OperationResult:
        topic = self._get_topic(topic_id)
        siblings = self.topics_in(topic.category_id)
        remaining = [sibling for sibling in siblings if sibling.id != topic_id]
        changes = changed_orders(remaining, compact_after_removal(siblings, topic_id))

        await self.store.delete_topic(topic_id)
        self._topics = tuple(t for t in self._topics if t.id != topic_id)
        if changes:
            await self.store.batch_reorder("topic", _patches(changes))
            self._replace_topics(_with_orders(remaining, changes))
        return OperationResult.success(message="Topic removed")

    async def move_topic(
        self, topic_id: int, target_category_id: int, target_index: int
    ) -> OperationResult:
        return await self._run(
            "move topic", self._move_topic, topic_id, target_category_id, target_index
        )

    async def _move_topic(
        self, topic_id: int, target_category_id: int, target_index: int
    ) -> OperationResult:
        topic = self._get_topic(topic_id)
        self._get_category(target_category_id)
        if isinstance(target_index, bool) or not isinstance(target_index, int):
            raise ValidationError("Target index must be an integer")
        if topic.category_id == target_category_id and topic.order == target_index:
            return OperationResult.success(topic)

        source = self.topics_in(topic.category_id)
        if topic.category_id == target_category_id:
            orders = insert_at(source, topic_id, target_index)
        else:
            orders = compact_after_removal(source, topic_id)
            orders.update(insert_at(self.topics_in(target_category_id), topic_id, target_index))

        before = {t.id: t for t in (*source, *self.topics_in(target_category_id))}
        updated: list[TopicResponse] = []
        patches: list[OrderPatch] = []
        for entity_id, order in orders.items():
            current = before[entity_id]
            category_id = target_category_id if entity_id == topic_id else current.category_id
            if category_id == current.category_id and order == current.order:
                continue
            updated.append(current.model_copy(update={"category_id": category_id, "order": order}))
            patches.append(
                OrderPatch(
                    id=entity_id,
                    order=order,
                    category_id=category_id if category_id != current.category_id else None,
                )
            )

        if patches:
            await self.store.batch_reorder("topic", patches)
            self._replace_topics(updated)
        return OperationResult.success(self._get_topic(topic_id), "Topic moved")

    async def reorder_topics(self, category_id: int, ids: list[int]) -> OperationResult:
        return await self._run("reorder topics", self._reorder_topics, category_id, ids)

    async def _reorder_topics(self, category_id: int, ids: list[int]) -> OperationResult:
        self._get_category(category_id)
        siblings = self.topics_in(category_id)
        if len(set(ids)) != len(ids) or set(ids) != {t.id for t in siblings}:
            raise ValidationError("Topic ids do not match the category")

        changes = changed_orders(siblings, reindex_by_explicit_sequence(ids))
        if changes:
            await self.store.batch_reorder("topic", _patches(changes))
            self._replace_topics(_with_orders(siblings, changes))
        return OperationResult.success(self.topics_in(category_id))
