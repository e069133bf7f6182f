"""User schema definitions.

Request/response bodies use the camelCase Spanish keys of the public API;
attributes stay snake_case in Python.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    student = "estudiante"
    admin = "admin"
    # Stored marker for a deactivated account; never assignable at registration.
    inactive = "inactivo"


REGISTRABLE_ROLES = (UserRole.student.value, UserRole.admin.value)


class User(BaseModel):
    """Internal user record, including the password hash."""

    user_id: str
    name: str
    email: str
    password_hash: str
    role: str = UserRole.student.value
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value


class PublicUser(BaseModel):
    """User as returned to clients."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(alias="nombre")
    email: str
    role: str = Field(alias="rol")
    last_login_at: Optional[datetime] = Field(default=None, alias="ultimoLogin")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, alias="nombre")
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = Field(default=None, alias="rol")
    admin_token: Optional[str] = Field(default=None, alias="adminToken")


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(default=None, alias="passwordActual")
    new_password: Optional[str] = Field(default=None, alias="nuevaPassword")


class AuthResult(BaseModel):
    """Outcome of a successful registration or login."""

    token: str
    user: PublicUser
