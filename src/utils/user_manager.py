"""User management utilities.

This module provides registration, login, profile lookup and password change
on top of the credential store, the password hasher and the session token
service.
"""

import logging
import secrets
from datetime import datetime
from typing import Optional

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import ADMIN_REGISTRATION_TOKEN, MIN_PASSWORD_LENGTH
from core.exceptions import (
    ConflictError,
    CorruptPasswordHashError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from models.user import UserModel
from schemas.user import REGISTRABLE_ROLES, AuthResult, PublicUser, User, UserRole
from utils.converters import model_to_user, user_to_public
from utils.password_hasher import PasswordHasher
from utils.session_tokens import SessionTokenService
from utils.validators import is_blank, is_valid_email, normalize_email

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password, so responses do not
# reveal which accounts exist.
INVALID_CREDENTIALS_MESSAGE = "Credenciales inválidas"


class UserManager:
    """Manages user data persistence and authentication using SQLAlchemy."""

    def __init__(
        self,
        db: Session,
        hasher: Optional[PasswordHasher] = None,
        tokens: Optional[SessionTokenService] = None,
        admin_registration_token: Optional[str] = ADMIN_REGISTRATION_TOKEN,
    ):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            hasher: Password hasher; a default-cost one is created if omitted.
            tokens: Session token service; configured defaults if omitted.
            admin_registration_token: When set, admin self-registration must
                present this value.
        """
        self.db = db
        self.hasher = hasher or PasswordHasher()
        self.tokens = tokens or SessionTokenService()
        self.admin_registration_token = admin_registration_token

    def _get_model_by_email(self, email: str) -> Optional[UserModel]:
        return self.db.query(UserModel).filter(UserModel.email == email).first()

    def _get_model_by_id(self, user_id: str) -> Optional[UserModel]:
        return self.db.query(UserModel).filter(UserModel.user_id == user_id).first()

    def _password_matches(self, password: str, model: UserModel) -> bool:
        try:
            return self.hasher.verify(password, model.password_hash)
        except CorruptPasswordHashError:
            logger.error("User %s has a corrupt password hash", model.user_id)
            return False

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self._get_model_by_id(user_id)
        if model:
            return model_to_user(model)
        return None

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""
        model = self._get_model_by_email(normalize_email(email))
        if model:
            return model_to_user(model)
        return None

    def get_profile(self, user_id: str) -> PublicUser:
        """Return the public view of a user.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("Usuario no encontrado")
        return user_to_public(user)

    def register(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: Optional[str] = None,
        admin_token: Optional[str] = None,
    ) -> AuthResult:
        """Create a new account and issue a session token for it.

        Args:
            name: Display name.
            email: Login email; stored trimmed and lowercased.
            password: Plain text password.
            role: 'estudiante' (default) or 'admin'.
            admin_token: Registration token required for admins when configured.

        Returns:
            AuthResult with the token and the public user.

        Raises:
            ValidationError: If a field is missing or malformed.
            ForbiddenError: If admin registration is gated and the token is wrong.
            ConflictError: If the email is already registered.
        """
        if is_blank(name) or is_blank(email) or not password:
            raise ValidationError("Nombre, email y contraseña son requeridos")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
            )

        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValidationError("El formato del email no es válido")

        role = role or UserRole.student.value
        if role not in REGISTRABLE_ROLES:
            raise ValidationError(
                f"Rol inválido: {role}. Debe ser 'estudiante' o 'admin'."
            )
        if (
            role == UserRole.admin.value
            and self.admin_registration_token
            and not secrets.compare_digest(
                admin_token or "", self.admin_registration_token
            )
        ):
            logger.warning("Rejected admin registration for %s: bad admin token", email)
            raise ForbiddenError("Token de administrador inválido")

        # Fast path; the unique index on users.email is the real guard.
        if self._get_model_by_email(email):
            logger.warning("Registration attempt with existing email: %s", email)
            raise ConflictError("El usuario ya existe")

        now = datetime.now(pytz.utc)
        model = UserModel(
            user_id=secrets.token_hex(12),
            name=name.strip(),
            email=email,
            password_hash=self.hasher.hash(password),
            role=role,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Concurrent registration lost the race for %s", email)
            raise ConflictError("El usuario ya existe") from e

        logger.info("Registered user %s (%s) with role %s", model.user_id, email, role)
        user = model_to_user(model)
        return AuthResult(token=self.tokens.issue(user.user_id), user=user_to_public(user))

    def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        """Authenticate with email and password.

        Raises:
            ValidationError: If email or password is missing.
            UnauthenticatedError: If the credentials do not match an account.
            ForbiddenError: If the account is deactivated.
        """
        if is_blank(email) or not password:
            raise ValidationError("Email y contraseña son requeridos")

        email = normalize_email(email)
        model = self._get_model_by_email(email)
        if model is None:
            logger.warning("Login attempt with unknown email: %s", email)
            raise UnauthenticatedError(INVALID_CREDENTIALS_MESSAGE)

        if not self._password_matches(password, model):
            logger.warning("Login attempt with wrong password for user %s", model.user_id)
            raise UnauthenticatedError(INVALID_CREDENTIALS_MESSAGE)

        if model.role == UserRole.inactive.value:
            logger.warning("Login attempt on inactive account %s", model.user_id)
            raise ForbiddenError("Cuenta inactiva. Contacte al administrador.")

        model.last_login_at = datetime.now(pytz.utc)
        self.db.commit()
        self.db.refresh(model)

        logger.info("User %s logged in", model.user_id)
        user = model_to_user(model)
        return AuthResult(token=self.tokens.issue(user.user_id), user=user_to_public(user))

    def change_password(
        self,
        user_id: str,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        """Replace a user's password after checking the current one.

        Outstanding tokens are not revoked.

        Raises:
            ValidationError: If a password is missing or the new one is too short.
            NotFoundError: If the user does not exist.
            UnauthenticatedError: If the current password does not verify.
        """
        if not current_password or not new_password:
            raise ValidationError(
                "La contraseña actual y la nueva contraseña son requeridas"
            )
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
            )

        model = self._get_model_by_id(user_id)
        if model is None:
            raise NotFoundError("Usuario no encontrado")

        if not self._password_matches(current_password, model):
            logger.warning("Password change with wrong current password for user %s", user_id)
            raise UnauthenticatedError("La contraseña actual es incorrecta")

        model.password_hash = self.hasher.hash(new_password)
        model.updated_at = datetime.now(pytz.utc)
        self.db.commit()
        logger.info("Password changed for user %s", user_id)
