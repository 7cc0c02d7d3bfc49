from __future__ import annotations

from fastapi import HTTPException

from .models import Admin
from .ring import RingStore


def get_admin_from_session_cookie(store: RingStore, sid: str | None) -> Admin:
    if not sid:
        raise HTTPException(status_code=401, detail="not logged in")
    admin = store.admin_for_session(sid)
    if admin is None:
        raise HTTPException(status_code=401, detail="session expired")
    return admin
