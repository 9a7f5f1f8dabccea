"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from planboard.api.dependencies import get_current_user
from planboard.database import get_db
from planboard.models.user import User
from planboard.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from planboard.services.auth import check_credentials, register_owner, start_session
from planboard.services.sessions import EngineRegistry, get_engine_registry

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

Registry = Annotated[EngineRegistry, Depends(get_engine_registry)]


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
    registry: Registry,
):
    """Create an account and its board (with the default category)."""
    user = register_owner(db, user_data)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    return await start_session(db, registry, user)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
    registry: Registry,
):
    """Sign in; the board is rebuilt from the database."""
    user = check_credentials(db, credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await start_session(db, registry, user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: Annotated[User, Depends(get_current_user)]):
    return current_user


@router.post("/logout")
async def logout(current_user: Annotated[User, Depends(get_current_user)], registry: Registry):
    """Drop the board session; the client discards its token."""
    registry.close(current_user.id)
    return {"message": "Logged out successfully"}
