"""Topic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TopicCreate(BaseModel):
    """Create a new topic."""

    title: str = Field(..., max_length=500)


class TopicUpdate(BaseModel):
    """Rename a topic."""

    title: str = Field(..., max_length=500)


class TopicMove(BaseModel):
    """Move a topic to a position in a (possibly different) category."""

    category_id: int
    index: int


class TopicResponse(BaseModel):
    """Topic record as held in the board mirror."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: int
    category_id: int
    title: str
    order: int
    completed: bool
    created_at: datetime
