"""FastAPI dependencies for authentication and board sessions."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from planboard.database import get_db
from planboard.errors import DuplicateDefaultCategory, EngineNotReady, NotFoundError, RemoteError
from planboard.models.user import User
from planboard.services.auth import token_owner_id
from planboard.services.content_engine import ContentSyncEngine, OperationResult
from planboard.services.sessions import EngineRegistry, get_engine_registry

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    owner_id = token_owner_id(credentials.credentials)
    if owner_id is None:
        raise _unauthorized("Invalid authentication credentials")

    user = db.get(User, owner_id)
    if user is None:
        raise _unauthorized("User not found")

    return user


async def get_board_engine(
    current_user: Annotated[User, Depends(get_current_user)],
    registry: Annotated[EngineRegistry, Depends(get_engine_registry)],
) -> ContentSyncEngine:
    """Get the current user's board engine, loading it on first use."""
    return await registry.get(current_user.id)


def raise_for_result(result: OperationResult) -> OperationResult:
    """Translate a failed engine result into an HTTP error."""
    if result.ok:
        return result

    if isinstance(result.error, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(result.error, DuplicateDefaultCategory | EngineNotReady):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(result.error, RemoteError):
        status_code = status.HTTP_502_BAD_GATEWAY
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    raise HTTPException(status_code=status_code, detail=result.message)
