"""SQLAlchemy models."""

from planboard.models.category import Category
from planboard.models.topic import Topic
from planboard.models.user import User

__all__ = [
    "User",
    "Category",
    "Topic",
]
