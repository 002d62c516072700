from fastapi import Header, HTTPException, Request

from flashstudy.db.sqlite import SQLiteStore
from flashstudy.services.session_manager import SessionManager


def get_store(request: Request) -> SQLiteStore:
    return request.app.state.store


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_user_id(x_user_id: int | None = Header(default=None)) -> int:
    """Caller identity, resolved upstream and forwarded in `X-User-Id`."""
    if x_user_id is None or x_user_id < 1:
        raise HTTPException(status_code=401, detail="Missing or invalid X-User-Id header")
    return x_user_id
