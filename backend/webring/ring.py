"""The ring directory: site membership, moderation, traversal and admin accounts.

:class:`RingStore` is the only thing that touches the database. It wraps the
SQLAlchemy engine (and with it the connection pool) plus a small thread pool
used for password hashing, and is handed to request handlers explicitly.
"""

from __future__ import annotations

import logging
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import config
from .auth import hash_password, verify_password
from .errors import (
    AlreadyModerated,
    AlreadyRegistered,
    NotApproved,
    NotFound,
    PasswordHashingError,
    RingError,
    Unauthorized,
    Unrecoverable,
)
from .models import Admin, Approval, Denial, SessionRow, Site
from .schemas import ApprovedSite, DeniedSite, PendingSite

logger = logging.getLogger(__name__)

_APPROVED = Site.approval_id.is_not(None)

# bulk statements below never touch objects loaded in the same session
_NO_SYNC = {"synchronize_session": False}


def now_s() -> int:
    return int(time.time())


def new_sid() -> str:
    return secrets.token_hex(32)


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == "23505":  # psycopg
        return True
    if getattr(orig, "sqlite_errorname", None) == "SQLITE_CONSTRAINT_UNIQUE":
        return True
    return "UNIQUE constraint failed" in str(orig)


class RingStore:
    def __init__(self, engine: Engine, hash_workers: int | None = None):
        self.engine = engine
        self._hasher = ThreadPoolExecutor(
            max_workers=hash_workers or config.HASH_WORKERS,
            thread_name_prefix="pw-hash",
        )
        self._dummy_hash = hash_password(secrets.token_urlsafe(16))

    def close(self) -> None:
        self._hasher.shutdown(wait=True)
        self.engine.dispose()

    @contextmanager
    def _transaction(self, conflict: str | None = None) -> Iterator[Session]:
        """One session, one transaction; commit on success, roll back on any error.

        ``conflict`` names the value reported by AlreadyRegistered when a
        unique constraint fires. Without it a unique violation is just another
        storage failure.
        """
        with Session(self.engine, expire_on_commit=False) as s:
            try:
                with s.begin():
                    yield s
            except RingError:
                raise
            except IntegrityError as exc:
                if conflict is not None and _is_unique_violation(exc):
                    logger.info("Unique constraint violated by %s", conflict)
                    raise AlreadyRegistered(conflict) from exc
                logger.error("Integrity error: %s", exc)
                raise Unrecoverable("integrity error") from exc
            except SQLAlchemyError as exc:
                logger.error("Database error: %s", exc)
                raise Unrecoverable("database error") from exc

    def _offload(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return self._hasher.submit(fn, *args).result()
        except Exception as exc:
            logger.error("Password hashing task failed: %s", exc)
            raise PasswordHashingError("password hashing failed") from exc

    # ------------------------------------------------------------------ sites

    def add_site(self, url: str, email: str) -> None:
        logger.debug("Adding site %s", url)
        with self._transaction(conflict=url) as s:
            s.add(Site(root_url=url, email=email))
        logger.info("Registered site %s, waiting for approval", url)

    def remove_site(self, url: str) -> None:
        with self._transaction() as s:
            res = s.execute(delete(Site).where(Site.root_url == url), execution_options=_NO_SYNC)
            if res.rowcount == 0:
                raise NotFound(f"site {url} is not registered")
        logger.info("Removed site %s", url)

    def _pending_site(self, s: Session, url: str) -> Site:
        site = s.execute(select(Site).where(Site.root_url == url)).scalars().first()
        if site is None:
            raise NotFound(f"site {url} is not registered")
        self._check_pending(url, site.approval_id, site.denial_id)
        return site

    @staticmethod
    def _check_pending(url: str, approval_id: int | None, denial_id: int | None) -> None:
        if approval_id is not None:
            raise AlreadyModerated(url, "approved")
        if denial_id is not None:
            raise AlreadyModerated(url, "denied")

    def _record_decision(self, s: Session, site: Site, **decision: int) -> None:
        """Link an audit row to ``site``, provided nobody decided on it meanwhile.

        The guarded UPDATE is what makes the transition atomic. When it
        matches nothing the raised error rolls back the audit row as well.
        """
        res = s.execute(
            update(Site)
            .where(Site.id == site.id, Site.approval_id.is_(None), Site.denial_id.is_(None))
            .values(**decision),
            execution_options=_NO_SYNC,
        )
        if res.rowcount == 1:
            return
        current = s.execute(select(Site.approval_id, Site.denial_id).where(Site.id == site.id)).first()
        if current is None:
            raise NotFound(f"site {site.root_url} is not registered")
        self._check_pending(site.root_url, *current)
        raise Unrecoverable(f"could not record decision on {site.root_url}")

    def approve_site(self, url: str, admin_id: int) -> None:
        with self._transaction() as s:
            site = self._pending_site(s, url)
            approval = Approval(admin_id=admin_id, approved_at=now_s())
            s.add(approval)
            s.flush()
            self._record_decision(s, site, approval_id=approval.id)
        logger.info("Admin %s approved site %s", admin_id, url)

    def deny_site(self, url: str, reason: str, admin_id: int) -> None:
        with self._transaction() as s:
            site = self._pending_site(s, url)
            denial = Denial(admin_id=admin_id, denied_at=now_s(), reason=reason)
            s.add(denial)
            s.flush()
            self._record_decision(s, site, denial_id=denial.id)
        logger.info("Admin %s denied site %s: %s", admin_id, url, reason)

    def list_approved(self) -> list[ApprovedSite]:
        with self._transaction() as s:
            rows = s.execute(
                select(Site, Approval).join(Approval, Site.approval_id == Approval.id).order_by(Site.id.asc())
            ).all()
        return [
            ApprovedSite(
                id=site.id,
                root_url=site.root_url,
                email=site.email,
                approved_at=int(a.approved_at),
                approved_by=a.admin_id,
            )
            for site, a in rows
        ]

    def list_denied(self) -> list[DeniedSite]:
        with self._transaction() as s:
            rows = s.execute(
                select(Site, Denial).join(Denial, Site.denial_id == Denial.id).order_by(Site.id.asc())
            ).all()
        return [
            DeniedSite(
                id=site.id,
                root_url=site.root_url,
                email=site.email,
                denied_at=int(d.denied_at),
                denied_by=d.admin_id,
                reason=d.reason or "",
            )
            for site, d in rows
        ]

    def list_pending(self) -> list[PendingSite]:
        with self._transaction() as s:
            rows = (
                s.execute(
                    select(Site)
                    .where(Site.approval_id.is_(None), Site.denial_id.is_(None))
                    .order_by(Site.id.asc())
                )
                .scalars()
                .all()
            )
        return [PendingSite(id=site.id, root_url=site.root_url, email=site.email) for site in rows]

    def list_urls(self) -> list[str]:
        with self._transaction() as s:
            return list(s.execute(select(Site.root_url).where(_APPROVED).order_by(Site.id.asc())).scalars())

    # -------------------------------------------------------------- traversal

    def _approved_id(self, s: Session, url: str) -> int:
        site_id = s.execute(select(Site.id).where(Site.root_url == url, _APPROVED)).scalar_one_or_none()
        if site_id is None:
            raise NotApproved(url)
        return int(site_id)

    def get_next(self, current_url: str) -> str:
        with self._transaction() as s:
            site_id = self._approved_id(s, current_url)
            url = s.execute(
                select(Site.root_url).where(_APPROVED, Site.id > site_id).order_by(Site.id.asc()).limit(1)
            ).scalar_one_or_none()
        if url is None:
            raise NotFound(f"no approved site after {current_url}")
        return url

    def get_prev(self, current_url: str) -> str:
        with self._transaction() as s:
            site_id = self._approved_id(s, current_url)
            url = s.execute(
                select(Site.root_url).where(_APPROVED, Site.id < site_id).order_by(Site.id.desc()).limit(1)
            ).scalar_one_or_none()
        if url is None:
            raise NotFound(f"no approved site before {current_url}")
        return url

    def get_random_site(self) -> str:
        with self._transaction() as s:
            url = s.execute(select(Site.root_url).where(_APPROVED).order_by(func.random()).limit(1)).scalar_one_or_none()
        if url is None:
            raise NotFound("there are no approved sites in the ring")
        return url

    # ----------------------------------------------------------------- admins

    def add_admin(self, username: str, email: str, password_plaintext: str) -> Admin:
        pw_hash = self._offload(hash_password, password_plaintext)
        with self._transaction(conflict=f"{username} / {email}") as s:
            admin = Admin(username=username, email=email, password_hash=pw_hash)
            s.add(admin)
        logger.info("Added admin %r", admin)
        return admin

    def get_admin(self, admin_id: int) -> Admin | None:
        with self._transaction() as s:
            return s.get(Admin, admin_id)

    def delete_admin(self, admin_id: int) -> None:
        with self._transaction() as s:
            s.execute(delete(SessionRow).where(SessionRow.admin_id == admin_id), execution_options=_NO_SYNC)
            res = s.execute(delete(Admin).where(Admin.id == admin_id), execution_options=_NO_SYNC)
            if res.rowcount == 0:
                raise NotFound(f"admin {admin_id} does not exist")
        logger.info("Deleted admin %s", admin_id)

    def authenticate(self, username: str, password: str) -> Admin | None:
        with self._transaction() as s:
            admin = s.execute(select(Admin).where(Admin.username == username)).scalars().first()
        if admin is None:
            # same PBKDF2 cost as a real check, so unknown usernames do not answer faster
            self._offload(verify_password, password, self._dummy_hash)
            logger.debug("No admin with username %s", username)
            return None
        if not self._offload(verify_password, password, admin.password_hash):
            logger.info("Invalid login to admin %r", admin)
            return None
        logger.info("Verified admin %r", admin)
        return admin

    def change_password(self, current_admin: Admin, current_password: str, new_password: str) -> None:
        # A live session is not enough; the caller has to know the current password.
        admin = self.authenticate(current_admin.username, current_password)
        if admin is None:
            raise Unauthorized()
        new_hash = self._offload(hash_password, new_password)
        with self._transaction() as s:
            res = s.execute(
                update(Admin).where(Admin.id == admin.id).values(password_hash=new_hash),
                execution_options=_NO_SYNC,
            )
            if res.rowcount == 0:
                raise NotFound(f"admin {admin.id} does not exist")
            # force a fresh login everywhere
            s.execute(delete(SessionRow).where(SessionRow.admin_id == admin.id), execution_options=_NO_SYNC)
        logger.info("Changed password of admin %r", admin)

    # --------------------------------------------------------------- sessions

    def create_session(self, admin_id: int) -> str:
        sid = new_sid()
        with self._transaction() as s:
            s.add(SessionRow(sid=sid, admin_id=admin_id, expires_at=now_s() + config.SESSION_TTL_SECONDS))
        return sid

    def admin_for_session(self, sid: str) -> Admin | None:
        with self._transaction() as s:
            row = s.get(SessionRow, sid)
            if row is None:
                return None
            if row.expired(now_s()):
                s.delete(row)
                return None
            return s.get(Admin, int(row.admin_id))

    def end_session(self, sid: str) -> None:
        with self._transaction() as s:
            s.execute(delete(SessionRow).where(SessionRow.sid == sid), execution_options=_NO_SYNC)
