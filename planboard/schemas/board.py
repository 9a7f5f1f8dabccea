"""Board-level schemas: ordering batches and nested board views."""

from pydantic import BaseModel, ConfigDict, Field

from planboard.schemas.category import CategoryResponse
from planboard.schemas.topic import TopicResponse


class OrderPatch(BaseModel):
    """One entry of a batch reorder write."""

    model_config = ConfigDict(frozen=True)

    id: int
    order: int
    category_id: int | None = None


class ReorderRequest(BaseModel):
    """Explicit sequence of ids after a drag-and-drop reorder."""

    ids: list[int] = Field(default_factory=list)


class BoardCategory(CategoryResponse):
    """Category with its topics in display order."""

    topics: list[TopicResponse] = Field(default_factory=list)


class BoardResponse(BaseModel):
    """Full board for the current user."""

    state: str
    categories: list[BoardCategory]
