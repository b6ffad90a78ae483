import logging
from typing import Optional, Type, TypeVar

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel
import jwt

from taskboard.core.clock import utcnow
from taskboard.core.security import JWTIdentityProvider, get_identity_provider
from taskboard.models.user import User
from taskboard.schemas.user import Identity

logger = logging.getLogger(__name__)

# auto_error=False so a missing header yields our own 401 body
security = HTTPBearer(auto_error=False)

ModelT = TypeVar("ModelT", bound=SQLModel)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_identity(
    token: Optional[HTTPAuthorizationCredentials] = Depends(security),
    provider: JWTIdentityProvider = Depends(get_identity_provider),
) -> Identity:
    if token is None or not token.credentials:
        raise _unauthorized()

    try:
        return provider.verify(token.credentials)
    except jwt.exceptions.PyJWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise _unauthorized()


def get_current_user_id(identity: Identity = Depends(get_current_identity)) -> str:
    return identity.user_id


def sync_user_with_database(session: Session, identity: Identity) -> Optional[User]:
    """Create or refresh the caller's profile row from the token claims.

    Store failures are logged and do not fail the calling request.
    """
    try:
        user = session.get(User, identity.user_id)
        if user is None:
            user = User(
                id=identity.user_id,
                email=identity.email,
                name=identity.name or (identity.email.split("@")[0] if identity.email else None),
                avatar_url=identity.avatar_url,
            )
        else:
            user.email = identity.email
            user.updated_at = utcnow()
        session.add(user)
        session.commit()
        return user
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error syncing user %s with database", identity.user_id)
        return None


def get_owned_or_404(
    session: Session, model: Type[ModelT], object_id: int, user_id: str, label: str
) -> ModelT:
    """Load a user-owned row, 404 if it does not exist, 403 if someone else owns it."""
    obj = session.get(model, object_id)
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    if obj.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to access this {label.lower()}",
        )
    return obj


def parse_id(raw: Optional[str], label: str) -> int:
    """Validate an ``?id=`` style query parameter."""
    if raw is None or raw == "":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} ID is required")
    try:
        return int(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label.lower()} ID")
