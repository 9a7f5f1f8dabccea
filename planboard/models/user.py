"""Board owner accounts."""

from sqlalchemy import Column, DateTime, Integer, String

from planboard.database import Base
from planboard.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """Account owning one board; categories and topics reference it by user_id."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    # Set each time a board session is opened
    last_login_at = Column(DateTime(timezone=True), nullable=True)
