"""Sign-up and sign-in for board owners.

Signing in issues a bearer token and opens the owner's board session, so the
first board request after login is served from a freshly loaded mirror.
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from planboard.config import get_settings
from planboard.models.user import User
from planboard.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from planboard.services.sessions import EngineRegistry

logger = logging.getLogger(__name__)
settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def issue_token(user_id: int) -> str:
    """Signed token whose subject is the owner id."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    claims = {"sub": str(user_id), "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_owner_id(token: str) -> int | None:
    """Owner id carried by a valid token, or None."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = claims.get("sub")
    return int(subject) if subject is not None else None


def register_owner(db: Session, data: UserRegister) -> User | None:
    """Create an account, or return None when the email is already registered."""
    if db.query(User).filter(User.email == data.email).first():
        return None
    user = User(email=data.email, password_hash=pwd_context.hash(data.password), name=data.name)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def check_credentials(db: Session, credentials: UserLogin) -> User | None:
    user = db.query(User).filter(User.email == credentials.email).first()
    if user is None or not pwd_context.verify(credentials.password, user.password_hash):
        return None
    return user


async def start_session(db: Session, registry: EngineRegistry, user: User) -> AuthResponse:
    """Record the login, load the owner's board and hand out a token.

    A board that fails to load does not block the login; the response reports
    the engine state and the next board request retries the load.
    """
    user.last_login_at = datetime.now(UTC)
    db.commit()
    db.refresh(user)

    engine = await registry.open(user.id)
    return AuthResponse(
        access_token=issue_token(user.id),
        user=UserResponse.model_validate(user),
        board_state=engine.state.value,
    )
