"""Account schemas for board owners."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserLogin(BaseModel):
    """Email and password of an existing account."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class UserRegister(UserLogin):
    """New account; the board is created empty apart from the default category."""

    name: str | None = Field(None, max_length=255)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    last_login_at: datetime | None = None


class AuthResponse(BaseModel):
    """Bearer token plus the state of the board session opened with it."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserResponse
    board_state: str
