"""One board engine per logged-in user."""

import logging
from collections.abc import Callable

from planboard.config import get_settings
from planboard.database import SessionLocal
from planboard.services.content_engine import ContentSyncEngine, EngineState
from planboard.services.store import ContentStore, SqlContentStore

logger = logging.getLogger(__name__)
settings = get_settings()


class EngineRegistry:
    """Creates, hands out and tears down board engines keyed by user id."""

    def __init__(self, store_factory: Callable[[], ContentStore]):
        self.store_factory = store_factory
        self._engines: dict[int, ContentSyncEngine] = {}

    def __contains__(self, owner_id: int) -> bool:
        return owner_id in self._engines

    def _create(self, owner_id: int) -> ContentSyncEngine:
        engine = ContentSyncEngine(
            self.store_factory(),
            owner_id,
            default_category_name=settings.default_category_name,
        )
        self._engines[owner_id] = engine
        return engine

    async def open(self, owner_id: int) -> ContentSyncEngine:
        """Start a fresh session for the user (login): rebuild the mirror from the store."""
        self.close(owner_id)
        engine = self._create(owner_id)
        await engine.load()
        return engine

    async def get(self, owner_id: int) -> ContentSyncEngine:
        """Return the user's engine, loading it on first use or after a failed load."""
        engine = self._engines.get(owner_id) or self._create(owner_id)
        if engine.state in (EngineState.IDLE, EngineState.ERROR):
            await engine.load()
        return engine

    def close(self, owner_id: int) -> None:
        """End the user's session (logout) and drop the mirror."""
        engine = self._engines.pop(owner_id, None)
        if engine is not None:
            engine.teardown()
            engine.store.close()
            logger.info(f"Closed board session for user {owner_id}")

    def clear(self) -> None:
        for owner_id in list(self._engines):
            self.close(owner_id)


def _sql_store() -> ContentStore:
    return SqlContentStore(SessionLocal(), owns_session=True)


_registry = EngineRegistry(_sql_store)


def get_engine_registry() -> EngineRegistry:
    """Dependency returning the process-wide engine registry."""
    return _registry
