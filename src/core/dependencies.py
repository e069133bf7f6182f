"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes. Every
manager receives a request-scoped database session; the hasher and token
service are built from read-only configuration.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import password_hasher
from utils import session_tokens
from utils import track_manager
from utils import user_manager


def get_password_hasher() -> password_hasher.PasswordHasher:
    """Get a PasswordHasher configured with BCRYPT_ROUNDS."""
    return password_hasher.PasswordHasher()


def get_token_service() -> session_tokens.SessionTokenService:
    """Get a SessionTokenService configured with the JWT settings."""
    return session_tokens.SessionTokenService()


PasswordHasherDep = Annotated[
    password_hasher.PasswordHasher, Depends(get_password_hasher)
]
TokenServiceDep = Annotated[
    session_tokens.SessionTokenService, Depends(get_token_service)
]


def get_user_manager(
    hasher: PasswordHasherDep,
    tokens: TokenServiceDep,
    db: Session = Depends(get_db),
) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        hasher: Password hasher.
        tokens: Session token service.
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db, hasher=hasher, tokens=tokens)


def get_track_manager(db: Session = Depends(get_db)) -> track_manager.TrackManager:
    """Get TrackManager instance with request-scoped DB session."""
    return track_manager.TrackManager(db)


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
TrackManagerDep = Annotated[
    track_manager.TrackManager, Depends(get_track_manager)
]
