"""tests/test_ownership.py"""
from __future__ import annotations

import pytest
import requests

from webring.errors import OwnershipNotVerified
from webring.ownership import auth_url, ownership_hash, valid_site_url, verify_ownership


def test_hash_is_hex_sha256_of_the_url():
    h = ownership_hash("https://a.example")
    assert len(h) == 64
    assert int(h, 16) >= 0
    assert h == ownership_hash("https://a.example")
    assert h != ownership_hash("https://a.example/")


def test_auth_url():
    assert auth_url("https://a.example") == "https://a.example/webringer/auth"
    assert auth_url("https://a.example/~me/") == "https://a.example/~me/webringer/auth"


@pytest.mark.parametrize(
    "url, ok",
    [
        ("https://a.example", True),
        ("http://a.example/~me", True),
        ("ftp://a.example", False),
        ("a.example", False),
        ("javascript:alert(1)", False),
        ("", False),
    ],
)
def test_valid_site_url(url, ok):
    assert valid_site_url(url) is ok


def test_verified(owned_sites):
    verify_ownership("https://a.example")


@pytest.mark.parametrize(
    "status, text, message",
    [
        (404, "", "404"),
        (500, "", "HTTP 500"),
        (200, "deadbeef", "did not match"),
    ],
)
def test_not_verified(owned_sites, status, text, message):
    owned_sites(status, text)
    with pytest.raises(OwnershipNotVerified) as exc_info:
        verify_ownership("https://a.example")
    assert message in str(exc_info.value)


def test_unreachable_site(monkeypatch):
    def _boom(url, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", _boom)
    with pytest.raises(OwnershipNotVerified):
        verify_ownership("https://a.example")
