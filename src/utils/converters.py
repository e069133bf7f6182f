"""Conversions between database models and API schemas."""

from datetime import datetime
from typing import Optional

import pytz

from models.track import TrackModel
from models.user import UserModel
from schemas.track import Track
from schemas.user import PublicUser, User


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return pytz.utc.localize(value)
    return value


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        name=model.name,
        email=model.email,
        password_hash=model.password_hash,
        role=model.role,
        last_login_at=_as_utc(model.last_login_at),
        created_at=_as_utc(model.created_at),
    )


def user_to_public(user: User) -> PublicUser:
    return PublicUser(
        id=user.user_id,
        name=user.name,
        email=user.email,
        role=user.role,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
    )


def model_to_track(model: TrackModel) -> Track:
    return Track(
        track_id=model.track_id,
        name=model.name,
        description=model.description,
        coordinator=model.coordinator,
        coordinator_email=model.coordinator_email,
        knowledge_area=model.knowledge_area,
        required_credits=model.required_credits,
        subjects=[subject.name for subject in model.subjects],
        status=model.status,
        created_at=_as_utc(model.created_at),
        updated_at=_as_utc(model.updated_at),
        version=model.version or 0,
    )
