from __future__ import annotations

import logging
import time
from typing import Callable

import redis
from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.engine import Engine

from . import config
from .admin_routes import router as admin_router
from .auth import make_token
from .db import get_engine
from .deps import AdminDep, StoreDep
from .errors import AlreadyRegistered, NotFound, RingError, Unrecoverable
from .logging_config import setup_logging
from .models import Base
from .ownership import AUTH_PATH, ownership_hash, verify_ownership
from .ring import RingStore
from .schemas import AuthIn, AuthOut, JoinIn, LeaveIn, LoginIn, LoginOut, OwnershipHashOut
from .validation import validate_email, validate_site_url

logger = logging.getLogger(__name__)

NO_SITES_HTML = (
    "<h1>Error</h1><br><p>There are currently no approved sites in the webring :( "
    "Maybe you should add yours!</p>"
)

router = APIRouter()


async def ring_error_handler(request: Request, exc: RingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    else:
        logger.debug("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})


def _bootstrap_admin(store: RingStore) -> None:
    username = config.ADMIN_BOOTSTRAP_USERNAME
    password = config.ADMIN_BOOTSTRAP_PASSWORD
    if not username or not password:
        return
    email = config.ADMIN_BOOTSTRAP_EMAIL or f"{username}@localhost.localdomain"
    try:
        store.add_admin(username, email, password)
    except AlreadyRegistered:
        logger.debug("Bootstrap admin %s already exists", username)


def create_app(engine: Engine | None = None, redis_client: redis.Redis | None = None) -> FastAPI:
    setup_logging()

    app = FastAPI(title="Webring API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = None
    app.state.redis = redis_client or redis.Redis.from_url(
        config.REDIS_URL, decode_responses=True, socket_connect_timeout=1
    )

    @app.on_event("startup")
    def _startup():
        # The database might not be reachable yet when the API boots.
        # Retry a few times before failing hard.
        last_exc: Exception | None = None
        for _ in range(30):
            try:
                eng = engine or get_engine()
                Base.metadata.create_all(bind=eng)
                store = RingStore(eng)
                _bootstrap_admin(store)
                app.state.store = store
                logger.info("Ring store ready")
                return
            except Exception as exc:  # noqa: BLE001
                last_exc = exc
                logger.warning("Database init failed, retrying: %s", exc)
                time.sleep(1.0)
        raise RuntimeError(f"DB init failed after retries: {last_exc}")

    @app.on_event("shutdown")
    def _shutdown():
        if app.state.store is not None:
            app.state.store.close()
            app.state.store = None

    app.add_exception_handler(RingError, ring_error_handler)
    app.include_router(router)
    app.include_router(admin_router)
    return app


@router.get("/health")
def health(request: Request):
    try:
        request.app.state.redis.ping()
        redis_ok = True
    except redis.RedisError:
        redis_ok = False
    return {"ok": True, "redis": redis_ok, "db": request.app.state.store is not None}


@router.get("/healthz")
async def healthz():
    # super cheap liveness probe
    return {"ok": True}


# ---------------------------------------------------------------- membership


@router.get("/api/join/hash", response_model=OwnershipHashOut)
def join_hash(url: str):
    """What a site has to serve before it can join."""
    url = url.strip()
    validate_site_url(url)
    return OwnershipHashOut(url=url, hash=ownership_hash(url), path=AUTH_PATH)


@router.post("/api/join")
def join(body: JoinIn, store: StoreDep):
    url = body.url.strip()
    email = body.email.strip()
    if not url or not email:
        raise HTTPException(status_code=400, detail="url/email required")
    validate_site_url(url)
    validate_email(email)

    verify_ownership(url)
    store.add_site(url, email)
    return {"ok": True, "status": "pending"}


@router.post("/api/leave")
def leave(body: LeaveIn, store: StoreDep):
    url = body.url.strip()
    validate_site_url(url)

    verify_ownership(url)
    store.remove_site(url)
    return {"ok": True}


@router.get("/api/sites", response_model=list[str])
def list_sites(store: StoreDep):
    return store.list_urls()


# ------------------------------------------------------------------ traversal


def _move(step: Callable[[str], str], current: str) -> Response:
    try:
        url = step(current)
    except NotFound:
        logger.debug("End of the ring reached from %s, sending visitor home", current)
        return RedirectResponse(config.RING_HOME_URL, status_code=303)
    except Unrecoverable:
        return RedirectResponse(current, status_code=303)
    logger.debug("Redirecting visitor to %s", url)
    return RedirectResponse(url, status_code=303)


@router.get("/next")
def next_site(current: str, store: StoreDep):
    return _move(store.get_next, current)


@router.get("/prev")
def prev_site(current: str, store: StoreDep):
    return _move(store.get_prev, current)


@router.get("/random")
def random_site(store: StoreDep):
    try:
        url = store.get_random_site()
    except NotFound:
        logger.warning("There are currently no approved sites in the webring")
        return HTMLResponse(NO_SITES_HTML)
    except Unrecoverable:
        return RedirectResponse(config.RING_HOME_URL, status_code=303)
    logger.info("Redirecting visitor to %s", url)
    return RedirectResponse(url, status_code=303)


# ---------------------------------------------------------------------- auth


@router.post("/api/login", response_model=LoginOut)
def login(body: LoginIn, response: Response, store: StoreDep):
    username = body.username.strip()
    password = body.password
    if not username or not password:
        raise HTTPException(status_code=400, detail="username/password required")

    admin = store.authenticate(username, password)
    if admin is None:
        raise HTTPException(status_code=401, detail="invalid credentials")
    sid = store.create_session(int(admin.id))

    # httpOnly cookie, Lax for form posts
    response.set_cookie(
        key=config.SESSION_COOKIE,
        value=sid,
        httponly=True,
        samesite="lax",
        secure=False,
        path="/",
        max_age=config.SESSION_TTL_SECONDS,
    )
    return LoginOut(ok=True, next=body.next)


@router.post("/api/token", response_model=AuthOut)
def token(body: AuthIn, store: StoreDep):
    admin = store.authenticate(body.username.strip(), body.password)
    if admin is None:
        raise HTTPException(status_code=401, detail="invalid credentials")
    return AuthOut(token=make_token(int(admin.id), admin.username, admin.password_hash))


@router.post("/api/logout")
def logout(request: Request, response: Response, store: StoreDep):
    sid = request.cookies.get(config.SESSION_COOKIE)
    if sid:
        store.end_session(sid)
    else:
        logger.warning("Logout without an active session")
    response.delete_cookie(key=config.SESSION_COOKIE, path="/")
    return {"ok": True}


@router.get("/api/me")
def me(admin: AdminDep):
    return {"id": int(admin.id), "username": admin.username, "email": admin.email}


app = create_app()
