"""
Admin Session Gate

The admin panel is protected by a single configured credential pair.
A successful sign-in is remembered in a small JSON key-value file so the
admin stays signed in across restarts; signing out removes the entry.

Version: 1.0.0
"""

import hmac
import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from menu_store.core.config import get_settings
from menu_store.exceptions import AuthenticationError
from menu_store.schemas import UserInfo

logger = logging.getLogger(__name__)

SESSION_KEY = "userInfo"


class AdminSession:
    """
    Sign-in state of the admin panel.

    Example:
        >>> session = AdminSession()
        >>> session.sign_in("admin", "admin")
        UserInfo(name='Admin', username='admin')
        >>> session.is_signed_in
        True
    """

    def __init__(
        self,
        session_file: Optional[Union[str, Path]] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        settings = get_settings()
        self.session_file = Path(session_file or settings.session_file)
        self._username = username if username is not None else settings.admin_username
        self._password = password if password is not None else settings.admin_password

    # =========================================================================
    # KEY-VALUE FILE
    # =========================================================================

    def _load(self) -> dict[str, Any]:
        if not self.session_file.exists():
            return {}
        try:
            data = json.loads(self.session_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.session_file} - {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        self.session_file.write_text(json.dumps(data), encoding="utf-8")

    # =========================================================================
    # SESSION
    # =========================================================================

    @property
    def current_user(self) -> Optional[UserInfo]:
        stored = self._load().get(SESSION_KEY)
        if stored is None:
            return None
        try:
            return UserInfo.model_validate(stored)
        except ValidationError:
            logger.warning("Stored admin session is malformed, treating as signed out")
            return None

    @property
    def is_signed_in(self) -> bool:
        return self.current_user is not None

    def sign_in(self, username: str, password: str) -> UserInfo:
        """
        Check the credentials and remember the admin.

        Raises:
            AuthenticationError: Username or password does not match
        """
        valid_user = hmac.compare_digest(username.encode(), self._username.encode())
        valid_password = hmac.compare_digest(password.encode(), self._password.encode())
        if not (valid_user and valid_password):
            logger.info(f"Rejected admin sign-in for '{username}'")
            raise AuthenticationError("Invalid username or password")

        user = UserInfo(name="Admin", username=username)
        data = self._load()
        data[SESSION_KEY] = user.to_wire()
        self._save(data)
        logger.info(f"Admin '{username}' signed in")
        return user

    def sign_out(self) -> None:
        data = self._load()
        if data.pop(SESSION_KEY, None) is not None:
            self._save(data)
            logger.info("Admin signed out")
