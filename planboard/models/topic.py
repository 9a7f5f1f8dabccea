"""Topic model."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from planboard.database import Base
from planboard.models.mixins import TimestampMixin


class Topic(Base, TimestampMixin):
    """Topic model for planned content inside a category."""

    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    order = Column("sort_order", Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False, index=True)
