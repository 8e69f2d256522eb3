from __future__ import annotations

from fastapi import Header, HTTPException

from office_dashboard.notifications import ChangeFeed
from office_dashboard.repository import ExcelRepository
from office_dashboard.security import AuthStore, Identity
from office_dashboard.services import DashboardService

repo = ExcelRepository()
auth_store = AuthStore()
service = DashboardService(repo=repo)
change_feed = ChangeFeed()
repo.subscribe(change_feed)


def bearer_token(authorization: str | None) -> str | None:
    parts = (authorization or "").split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip()


def require_identity(token: str | None = Header(default=None, alias="Authorization")) -> Identity:
    if not token:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    session_token = bearer_token(token)
    if not session_token:
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    identity = auth_store.get_session_identity(session_token)
    if not identity:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return identity
