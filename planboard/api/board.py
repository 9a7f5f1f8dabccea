"""Board API endpoints for categories and topics."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from planboard.api.dependencies import get_board_engine, raise_for_result
from planboard.schemas.board import BoardResponse, ReorderRequest
from planboard.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from planboard.schemas.topic import TopicCreate, TopicMove, TopicResponse, TopicUpdate
from planboard.services.content_engine import ContentSyncEngine

router = APIRouter(prefix="/api/v1", tags=["board"])

Engine = Annotated[ContentSyncEngine, Depends(get_board_engine)]


def _board(engine: ContentSyncEngine) -> BoardResponse:
    return BoardResponse(state=engine.state.value, categories=engine.board())


@router.get("/board", response_model=BoardResponse)
async def get_board(engine: Engine):
    """Get all categories with their topics in display order."""
    return _board(engine)


@router.post("/board/refresh", response_model=BoardResponse)
async def refresh_board(engine: Engine):
    """Reload the board from the database."""
    raise_for_result(await engine.refresh())
    return _board(engine)


@router.post(
    "/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_category(category_data: CategoryCreate, engine: Engine):
    """Create a category at the end of the board."""
    return raise_for_result(await engine.add_category(category_data.name)).value


# Registered before /categories/{category_id} so "order" is not parsed as an id
@router.put("/categories/order", response_model=list[CategoryResponse])
async def reorder_categories(reorder: ReorderRequest, engine: Engine):
    """Reorder all categories after a drag-and-drop."""
    return raise_for_result(await engine.reorder_categories(reorder.ids)).value


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: int, category_data: CategoryUpdate, engine: Engine):
    """Rename a category."""
    return raise_for_result(await engine.rename_category(category_id, category_data.name)).value


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: int, engine: Engine):
    """Delete a category. Its topics move to the default category."""
    raise_for_result(await engine.delete_category(category_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/categories/{category_id}/topics",
    response_model=TopicResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_topic(category_id: int, topic_data: TopicCreate, engine: Engine):
    """Add a topic at the end of a category."""
    return raise_for_result(await engine.add_topic(category_id, topic_data.title)).value


@router.put("/categories/{category_id}/topics/order", response_model=list[TopicResponse])
async def reorder_topics(category_id: int, reorder: ReorderRequest, engine: Engine):
    """Reorder the topics of one category after a drag-and-drop."""
    return raise_for_result(await engine.reorder_topics(category_id, reorder.ids)).value


@router.put("/topics/{topic_id}", response_model=TopicResponse)
async def update_topic(topic_id: int, topic_data: TopicUpdate, engine: Engine):
    """Rename a topic."""
    return raise_for_result(await engine.rename_topic(topic_id, topic_data.title)).value


@router.post("/topics/{topic_id}/toggle", response_model=TopicResponse)
async def toggle_topic(topic_id: int, engine: Engine):
    """Flip a topic's completion; completed topics sort to the top of their category."""
    return raise_for_result(await engine.toggle_completion(topic_id)).value


@router.post("/topics/{topic_id}/move", response_model=TopicResponse)
async def move_topic(topic_id: int, move: TopicMove, engine: Engine):
    """Move a topic to a position in the same or another category."""
    return raise_for_result(await engine.move_topic(topic_id, move.category_id, move.index)).value


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(topic_id: int, engine: Engine):
    """Delete a topic and close the gap in its category."""
    raise_for_result(await engine.delete_topic(topic_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
