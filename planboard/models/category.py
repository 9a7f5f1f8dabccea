"""Category model."""

from sqlalchemy import Column, ForeignKey, Integer, String

from planboard.database import Base
from planboard.models.mixins import TimestampMixin


class Category(Base, TimestampMixin):
    """Category model grouping a user's topics on the board."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # "order" is reserved in SQL, so the column keeps the sort_order name
    order = Column("sort_order", Integer, nullable=False, default=0)
