"""Proof that whoever joins (or leaves) with a URL controls that site.

The site has to serve the SHA-256 hex digest of its own root URL as the body
of ``<root url>/webringer/auth``.
"""

from __future__ import annotations

import hashlib
import logging
from urllib.parse import urlparse

import requests

from . import config
from .errors import OwnershipNotVerified

logger = logging.getLogger(__name__)

AUTH_PATH = "/webringer/auth"


def valid_site_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def ownership_hash(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def auth_url(url: str) -> str:
    return url.rstrip("/") + AUTH_PATH


def fetch_ownership_token(url: str, timeout: float | None = None) -> str:
    target = auth_url(url)
    try:
        resp = requests.get(target, timeout=timeout or config.VERIFY_TIMEOUT_SECS)
    except requests.RequestException as exc:
        logger.info("Could not fetch %s: %s", target, exc)
        raise OwnershipNotVerified(f"could not get the verification string from {target}") from exc

    if resp.status_code == 404:
        raise OwnershipNotVerified(f"got a 404 error when trying to get {target}")
    if not resp.ok:
        raise OwnershipNotVerified(f"got HTTP {resp.status_code} when trying to get {target}")
    return resp.text.strip()


def verify_ownership(url: str) -> None:
    expected = ownership_hash(url)
    found = fetch_ownership_token(url)
    if found != expected:
        logger.info("Ownership hash mismatch for %s", url)
        raise OwnershipNotVerified(
            f"the hash served at {auth_url(url)} did not match, expected {expected}"
        )
    logger.debug("Verified ownership of %s", url)
