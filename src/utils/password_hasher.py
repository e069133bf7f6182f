"""Password hashing with bcrypt."""

import logging

import bcrypt

from config import BCRYPT_ROUNDS
from core.exceptions import CorruptPasswordHashError

logger = logging.getLogger(__name__)

# bcrypt only consumes the first 72 bytes of its input
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password) -> bytes:
    if isinstance(password, bytes):
        password_bytes = password
    else:
        password_bytes = str(password).encode("utf-8")
    return password_bytes[:BCRYPT_MAX_PASSWORD_BYTES]


class PasswordHasher:
    """Salted one-way hashing and constant-time verification of passwords."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        """Initialize PasswordHasher.

        Args:
            rounds: bcrypt cost factor (log2 of the iteration count).
        """
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify(self, password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        The comparison inside ``bcrypt.checkpw`` does not exit early on the
        first differing byte.

        Args:
            password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.

        Raises:
            CorruptPasswordHashError: If the stored hash is not a bcrypt hash.
        """
        if isinstance(hashed_password, str):
            hash_bytes = hashed_password.encode("utf-8")
        else:
            hash_bytes = hashed_password or b""

        try:
            return bcrypt.checkpw(_password_bytes(password), hash_bytes)
        except ValueError as e:
            logger.error("Stored password hash is not a valid bcrypt hash: %s", e)
            raise CorruptPasswordHashError("Stored password hash is invalid") from e
