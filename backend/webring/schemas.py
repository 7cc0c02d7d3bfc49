from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class AuthIn(BaseModel):
    username: str
    password: str


class LoginIn(AuthIn):
    # where the frontend should go after logging in
    next: str | None = None


class JoinIn(BaseModel):
    url: str
    email: str


class LeaveIn(BaseModel):
    url: str


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str
    confirm_new_password: str


class AuthOut(BaseModel):
    token: str


# cookie session mode (preferred for same-origin SSR)
class LoginOut(BaseModel):
    ok: bool
    next: str | None = None


class OwnershipHashOut(BaseModel):
    url: str
    hash: str
    path: str


# Site records. Exactly one of these describes a site at any time.


class PendingSite(BaseModel):
    status: Literal["pending"] = "pending"
    id: int
    root_url: str
    email: str


class ApprovedSite(BaseModel):
    status: Literal["approved"] = "approved"
    id: int
    root_url: str
    email: str
    approved_at: int
    approved_by: int | None = None


class DeniedSite(BaseModel):
    status: Literal["denied"] = "denied"
    id: int
    root_url: str
    email: str
    denied_at: int
    denied_by: int | None = None
    reason: str


SiteOut = Annotated[Union[PendingSite, ApprovedSite, DeniedSite], Field(discriminator="status")]
