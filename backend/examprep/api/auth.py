"""Request identity.

Tokens are issued by the upstream identity provider; this service only
verifies them. Every route receives a ``SessionContext`` built once per
request instead of looking the user up on its own.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.config import settings
from examprep.db.database import get_db
from examprep.db.models import ProfileDB
from examprep.models.user import CurrentUser

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_EXPIRE_MINUTES = 60


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Mint a token the way the identity provider does. Used for local runs and tests."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode["exp"] = expire
    if settings.jwt_audience and "aud" not in to_encode:
        to_encode["aud"] = settings.jwt_audience
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    options = {"verify_aud": settings.jwt_audience is not None}
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )


@dataclass(frozen=True)
class SessionContext:
    """Who is making the request; ``user`` is None for anonymous callers."""

    user: CurrentUser | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


async def get_session_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    if credentials is None:
        return SessionContext()

    try:
        payload = decode_token(credentials.credentials)
    except JWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return SessionContext()

    user_id = payload.get("sub")
    if not user_id:
        return SessionContext()

    email = payload.get("email")
    metadata = payload.get("user_metadata") or {}
    user = CurrentUser(
        id=user_id,
        email=email,
        username=metadata.get("username") or (email.split("@")[0] if email else "User"),
    )

    try:
        profile = await db.get(ProfileDB, user_id)
    except SQLAlchemyError:
        logger.warning(f"Profile lookup failed for {user_id}, using token claims only")
        profile = None

    if profile is not None:
        user = user.model_copy(
            update={
                "username": profile.username or user.username,
                "full_name": profile.full_name,
                "avatar_url": profile.avatar_url,
                "target_exam": profile.target_exam,
            }
        )
    return SessionContext(user=user)


async def require_user(
    context: Annotated[SessionContext, Depends(get_session_context)],
) -> CurrentUser:
    if context.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return context.user
