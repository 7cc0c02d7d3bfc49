from __future__ import annotations

import re

from fastapi import HTTPException

from .ownership import valid_site_url


def validate_strong_password(pw: str) -> None:
    # >=8, at least 1 digit, 1 uppercase, 1 lowercase
    if len(pw) < 8:
        raise HTTPException(status_code=400, detail="password must be at least 8 characters")
    if not re.search(r"[a-z]", pw):
        raise HTTPException(status_code=400, detail="password must include a lowercase letter")
    if not re.search(r"[A-Z]", pw):
        raise HTTPException(status_code=400, detail="password must include an uppercase letter")
    if not re.search(r"\d", pw):
        raise HTTPException(status_code=400, detail="password must include a number")


def validate_email(email: str) -> None:
    if "@" not in email or "." not in email.split("@")[-1]:
        raise HTTPException(status_code=400, detail="invalid email")


def validate_site_url(url: str) -> None:
    if not valid_site_url(url):
        raise HTTPException(status_code=400, detail="url must be an http:// or https:// address")
