from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from office_dashboard.config import settings
from office_dashboard.constants import ROLE_ADMIN, ROLE_USER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass
class SessionState:
    identity: Identity
    expires_at: datetime


class AuthStore:
    """
    Password login with two shared credentials: the administrator's and the
    one handed out to regular staff.
    """

    def __init__(
        self,
        admin_password: str | None = None,
        user_password: str | None = None,
        session_ttl_hours: int | None = None,
    ) -> None:
        self.admin_password = admin_password if admin_password is not None else settings.admin_password
        self.user_password = user_password if user_password is not None else settings.user_password
        self.session_ttl_hours = session_ttl_hours or settings.session_ttl_hours
        self._sessions: dict[str, SessionState] = {}

    def authenticate(self, password: str) -> Identity | None:
        if not self.admin_password and not self.user_password:
            logger.warning("No passwords configured; login is disabled")
            return None
        if self.admin_password and secrets.compare_digest(password.encode(), self.admin_password.encode()):
            return Identity(user_id=ROLE_ADMIN, role=ROLE_ADMIN)
        if self.user_password and secrets.compare_digest(password.encode(), self.user_password.encode()):
            return Identity(user_id=ROLE_USER, role=ROLE_USER)
        return None

    def create_session(self, identity: Identity) -> str:
        token = uuid.uuid4().hex
        self._sessions[token] = SessionState(
            identity=identity,
            expires_at=datetime.utcnow() + timedelta(hours=self.session_ttl_hours),
        )
        return token

    def get_session_identity(self, token: str) -> Identity | None:
        state = self._sessions.get(token)
        if state is None:
            return None
        if datetime.utcnow() > state.expires_at:
            self._sessions.pop(token, None)
            return None
        return state.identity

    def logout(self, token: str) -> None:
        self._sessions.pop(token, None)
