"""Pydantic schemas for API requests and responses."""

from planboard.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from planboard.schemas.board import BoardCategory, BoardResponse, OrderPatch, ReorderRequest
from planboard.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from planboard.schemas.topic import TopicCreate, TopicMove, TopicResponse, TopicUpdate

__all__ = [
    "UserRegister",
    "UserLogin",
    "AuthResponse",
    "UserResponse",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "TopicCreate",
    "TopicUpdate",
    "TopicMove",
    "TopicResponse",
    "OrderPatch",
    "ReorderRequest",
    "BoardCategory",
    "BoardResponse",
]
