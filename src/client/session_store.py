"""Client-side session state.

Keeps the session token and the signed-in user in a small JSON file under two
fixed keys. Both are always cleared together.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from core.exceptions import InvalidTokenError
from utils.session_tokens import SessionTokenService

logger = logging.getLogger(__name__)

TOKEN_KEY = "lineas_profundizacion_token"
USER_KEY = "lineas_profundizacion_usuario"

DEFAULT_SESSION_FILE = Path.home() / ".lineas_profundizacion" / "session.json"


class SessionStore:
    """File-backed cache of the current token and user."""

    def __init__(self, path: Union[str, Path] = DEFAULT_SESSION_FILE):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.error("Error reading session file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
        except OSError as e:
            logger.error("Error writing session file %s: %s", self.path, e)

    def _set(self, key: str, value: Any) -> None:
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        self._write(data)

    def save_token(self, token: str) -> None:
        self._set(TOKEN_KEY, token)

    def get_token(self) -> Optional[str]:
        token = self._read().get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def remove_token(self) -> None:
        self._set(TOKEN_KEY, None)

    def save_user(self, user: Dict[str, Any]) -> None:
        self._set(USER_KEY, user)

    def get_user(self) -> Optional[Dict[str, Any]]:
        user = self._read().get(USER_KEY)
        return user if isinstance(user, dict) else None

    def remove_user(self) -> None:
        self._set(USER_KEY, None)

    def is_authenticated(self) -> bool:
        return self.get_token() is not None

    def is_admin(self) -> bool:
        user = self.get_user()
        return bool(user) and user.get("rol") == "admin"

    def token_expires_at(self) -> Optional[float]:
        """Expiry of the stored token as a UNIX timestamp, read without verification."""
        token = self.get_token()
        if not token:
            return None
        try:
            exp = SessionTokenService.decode_unverified(token).get("exp")
        except InvalidTokenError as e:
            logger.error("Error decoding stored token: %s", e)
            return None
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        return float(exp)

    def token_is_valid(self, now: Optional[float] = None) -> bool:
        """True when a token is stored and its expiry is still in the future."""
        expires_at = self.token_expires_at()
        if expires_at is None:
            return False
        return (time.time() if now is None else now) < expires_at

    def logout(self) -> None:
        """Forget token and user."""
        data = self._read()
        data.pop(TOKEN_KEY, None)
        data.pop(USER_KEY, None)
        self._write(data)
