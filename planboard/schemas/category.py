"""Category schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    """Create a new category."""

    name: str = Field(..., max_length=255)


class CategoryUpdate(BaseModel):
    """Rename a category."""

    name: str = Field(..., max_length=255)


class CategoryResponse(BaseModel):
    """Category record as held in the board mirror."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: int
    name: str
    order: int
    created_at: datetime
