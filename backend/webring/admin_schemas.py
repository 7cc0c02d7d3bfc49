from __future__ import annotations

from pydantic import BaseModel


class AdminOut(BaseModel):
    id: int
    username: str
    email: str


class AddAdminIn(BaseModel):
    username: str
    email: str
    password: str
    confirm_password: str


class ApproveSiteIn(BaseModel):
    url: str


class DenySiteIn(BaseModel):
    url: str
    reason: str = ""


class RemoveSiteIn(BaseModel):
    url: str


class DeleteAccountIn(BaseModel):
    confirm: bool = False
