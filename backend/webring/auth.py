from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from typing import Any

import jwt

from . import config

JWT_ALG = "HS256"


def _b64(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("utf-8").rstrip("=")


def _b64d(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode((s + pad).encode("utf-8"))


def hash_password(pw: str) -> str:
    # Format: pbkdf2_sha256$iters$salt$hash
    iters = config.PBKDF2_ITERS
    salt = secrets.token_bytes(16)
    dk = hashlib.pbkdf2_hmac("sha256", pw.encode("utf-8"), salt, iters, dklen=32)
    return f"pbkdf2_sha256${iters}${_b64(salt)}${_b64(dk)}"


def verify_password(pw: str, pw_hash: str) -> bool:
    """True when ``pw`` matches the stored verifier.

    A wrong password returns False. A verifier that cannot be parsed raises
    ValueError so callers can tell a broken row from a bad login.
    """
    algo, iters_s, salt_s, hash_s = pw_hash.split("$", 3)
    if algo != "pbkdf2_sha256":
        raise ValueError(f"unsupported password hash algorithm {algo!r}")
    iters = int(iters_s)
    salt = _b64d(salt_s)
    expected = _b64d(hash_s)
    dk = hashlib.pbkdf2_hmac("sha256", pw.encode("utf-8"), salt, iters, dklen=len(expected))
    return hmac.compare_digest(dk, expected)


def hash_fingerprint(pw_hash: str) -> str:
    """Short digest of the stored verifier; changes whenever the password does."""
    return hashlib.sha256(pw_hash.encode("utf-8")).hexdigest()[:16]


def make_token(admin_id: int, username: str, pw_hash: str) -> str:
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": str(admin_id),
        "username": username,
        "pwf": hash_fingerprint(pw_hash),
        "iat": now,
        "exp": now + config.JWT_TTL_SECONDS,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, config.JWT_SECRET, algorithms=[JWT_ALG])
