from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response

from . import config
from .admin_schemas import AddAdminIn, AdminOut, ApproveSiteIn, DeleteAccountIn, DenySiteIn, RemoveSiteIn
from .deps import AdminDep, StoreDep
from .models import Admin
from .schemas import ChangePasswordIn, SiteOut
from .validation import validate_email, validate_strong_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")


def _admin_out(admin: Admin) -> AdminOut:
    return AdminOut(id=int(admin.id), username=admin.username, email=admin.email)


@router.get("/sites", response_model=list[SiteOut])
def admin_list_sites(admin: AdminDep, store: StoreDep, status: str = "pending"):
    status = status.strip().lower()
    if status not in {"pending", "approved", "denied", "all"}:
        raise HTTPException(status_code=400, detail="invalid status")

    sites: list = []
    if status in {"pending", "all"}:
        sites.extend(store.list_pending())
    if status in {"approved", "all"}:
        sites.extend(store.list_approved())
    if status in {"denied", "all"}:
        sites.extend(store.list_denied())
    if status == "all":
        sites.sort(key=lambda site: site.id)
    return sites


@router.post("/sites/approve")
def admin_approve_site(body: ApproveSiteIn, admin: AdminDep, store: StoreDep):
    url = body.url.strip()
    store.approve_site(url, int(admin.id))
    return {"ok": True, "detail": f"Site {url} approved"}


@router.post("/sites/deny")
def admin_deny_site(body: DenySiteIn, admin: AdminDep, store: StoreDep):
    url = body.url.strip()
    reason = body.reason.strip()
    store.deny_site(url, reason, int(admin.id))
    return {"ok": True, "detail": f"Site {url} denied with reason {reason}"}


@router.post("/sites/remove")
def admin_remove_site(body: RemoveSiteIn, admin: AdminDep, store: StoreDep):
    url = body.url.strip()
    store.remove_site(url)
    logger.info("Admin %r removed site %s", admin, url)
    return {"ok": True}


@router.post("/admins", response_model=AdminOut)
def admin_add_admin(body: AddAdminIn, admin: AdminDep, store: StoreDep):
    username = body.username.strip()
    email = body.email.strip()
    if not username or not email or not body.password:
        raise HTTPException(status_code=400, detail="username/email/password required")
    if body.password != body.confirm_password:
        raise HTTPException(status_code=400, detail="passwords do not match")
    validate_email(email)
    validate_strong_password(body.password)

    new_admin = store.add_admin(username, email, body.password)
    logger.info("Admin %r added admin %r", admin, new_admin)
    return _admin_out(new_admin)


@router.get("/account", response_model=AdminOut)
def admin_account(admin: AdminDep):
    return _admin_out(admin)


@router.post("/account/change_password")
def admin_change_password(body: ChangePasswordIn, response: Response, admin: AdminDep, store: StoreDep):
    if not body.current_password or not body.new_password:
        raise HTTPException(status_code=400, detail="current_password/new_password required")
    if body.new_password != body.confirm_new_password:
        raise HTTPException(status_code=400, detail="new password and confirmation do not match")
    validate_strong_password(body.new_password)

    store.change_password(admin, body.current_password, body.new_password)

    # every session of this admin is gone now
    response.delete_cookie(key=config.SESSION_COOKIE, path="/")
    return {"ok": True, "detail": "password changed, please log in again"}


@router.post("/account/delete")
def admin_delete_account(body: DeleteAccountIn, response: Response, admin: AdminDep, store: StoreDep):
    if not body.confirm:
        raise HTTPException(status_code=400, detail="confirm=true required to delete the account")
    store.delete_admin(int(admin.id))
    response.delete_cookie(key=config.SESSION_COOKIE, path="/")
    return {"ok": True}
