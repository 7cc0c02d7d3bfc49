"""tests/test_traversal.py"""
from __future__ import annotations

import pytest

from webring.errors import NotApproved, NotFound


@pytest.fixture
def ring(store, admin):
    """A < B < C, all approved, in that order."""
    urls = ["https://a.example", "https://b.example", "https://c.example"]
    for url in urls:
        store.add_site(url, "owner@example.org")
        store.approve_site(url, admin.id)
    return urls


def test_two_site_scenario(store, admin):
    store.add_site("a.example", "a@example.org")
    store.add_site("b.example", "b@example.org")
    store.approve_site("a.example", admin.id)
    store.approve_site("b.example", admin.id)

    assert store.get_random_site() in {"a.example", "b.example"}
    assert store.get_next("a.example") == "b.example"
    with pytest.raises(NotFound):
        store.get_next("b.example")


def test_next_and_prev_walk_the_ring(store, ring):
    a, b, c = ring
    assert store.get_next(a) == b
    assert store.get_next(b) == c
    assert store.get_prev(c) == b
    assert store.get_prev(b) == a


def test_ring_does_not_wrap(store, ring):
    a, _, c = ring
    with pytest.raises(NotFound):
        store.get_next(c)
    with pytest.raises(NotFound):
        store.get_prev(a)


def test_unapproved_sites_are_skipped(store, admin):
    store.add_site("https://a.example", "x@example.org")
    store.add_site("https://b.example", "x@example.org")
    store.add_site("https://c.example", "x@example.org")
    store.add_site("https://d.example", "x@example.org")
    store.approve_site("https://a.example", admin.id)
    store.deny_site("https://b.example", "no", admin.id)
    store.approve_site("https://d.example", admin.id)

    assert store.get_next("https://a.example") == "https://d.example"
    assert store.get_prev("https://d.example") == "https://a.example"


def test_newly_approved_site_joins_traversal(store, ring, admin):
    a, b, c = ring
    store.add_site("https://d.example", "x@example.org")
    with pytest.raises(NotFound):
        store.get_next(c)

    store.approve_site("https://d.example", admin.id)
    assert store.get_next(c) == "https://d.example"
    assert store.get_prev("https://d.example") == c


@pytest.mark.parametrize("state", ["pending", "denied", "unknown"])
def test_traversal_from_non_member_is_not_approved(store, ring, admin, state):
    url = "https://x.example"
    if state != "unknown":
        store.add_site(url, "x@example.org")
    if state == "denied":
        store.deny_site(url, "no", admin.id)

    with pytest.raises(NotApproved):
        store.get_next(url)
    with pytest.raises(NotApproved):
        store.get_prev(url)


def test_denied_site_never_comes_up(store, admin):
    store.add_site("https://a.example", "x@example.org")
    store.add_site("https://b.example", "x@example.org")
    store.approve_site("https://a.example", admin.id)
    store.deny_site("https://b.example", "no", admin.id)

    for _ in range(20):
        assert store.get_random_site() == "https://a.example"
    assert store.list_urls() == ["https://a.example"]
    with pytest.raises(NotFound):
        store.get_next("https://a.example")


def test_random_on_empty_ring(store):
    with pytest.raises(NotFound):
        store.get_random_site()

    store.add_site("https://pending.example", "x@example.org")
    with pytest.raises(NotFound):
        store.get_random_site()


def test_random_stays_inside_the_ring(store, ring):
    seen = {store.get_random_site() for _ in range(50)}
    assert seen <= set(ring)
