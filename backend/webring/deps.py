from __future__ import annotations

from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, Request

from . import config
from .auth import decode_token, hash_fingerprint
from .models import Admin
from .ring import RingStore
from .session_deps import get_admin_from_session_cookie


def get_store(request: Request) -> RingStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="db not ready")
    return store


StoreDep = Annotated[RingStore, Depends(get_store)]


def get_admin_from_token(store: RingStore, authorization: str) -> Admin:
    if not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="invalid auth")
    token = authorization.split(" ", 1)[1].strip()
    try:
        claims = decode_token(token)
        admin_id = int(claims["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="invalid token")

    admin = store.get_admin(admin_id)
    if admin is None:
        raise HTTPException(status_code=401, detail="admin missing")
    # tokens die with the password they were issued under
    if claims.get("pwf") != hash_fingerprint(admin.password_hash):
        raise HTTPException(status_code=401, detail="token revoked")
    return admin


def get_current_admin(
    request: Request,
    store: StoreDep,
    authorization: str | None = Header(default=None),
) -> Admin:
    sid = request.cookies.get(config.SESSION_COOKIE)
    if authorization:
        # a stale cookie must not shadow a valid bearer token
        admin = store.admin_for_session(sid) if sid else None
        return admin or get_admin_from_token(store, authorization)
    return get_admin_from_session_cookie(store, sid)


AdminDep = Annotated[Admin, Depends(get_current_admin)]
