"""Tests for counter reconciliation."""

from shortlinks.models import Link, User
from shortlinks.services.counters import reconcile_counters


def test_reconcile_repairs_drifted_counters(db, owner, other_user, make_link, make_click):
    first = make_link(short_code="first1", owner=owner)
    second = make_link(short_code="second", owner=owner)
    anonymous = make_link(short_code="anon12")
    for _ in range(3):
        make_click(first)
    make_click(second)
    make_click(anonymous)

    # Simulate lost counter writes and stale totals
    first.clicks_count = 1
    anonymous.clicks_count = 5
    owner.links_count = 7
    owner.total_clicks = 0
    other_user.links_count = 1
    db.commit()

    result = reconcile_counters(db)

    assert result == {"links_fixed": 3, "users_fixed": 2}
    db.expire_all()
    assert db.get(Link, first.id).clicks_count == 3
    assert db.get(Link, second.id).clicks_count == 1
    assert db.get(Link, anonymous.id).clicks_count == 1
    refreshed = db.get(User, owner.id)
    assert (refreshed.links_count, refreshed.total_clicks) == (2, 4)
    other = db.get(User, other_user.id)
    assert (other.links_count, other.total_clicks) == (0, 0)


def test_reconcile_is_a_no_op_when_consistent(db, owner, make_link, make_click):
    link = make_link(owner=owner, clicks_count=1)
    make_click(link)
    owner.links_count = 1
    owner.total_clicks = 1
    db.commit()

    assert reconcile_counters(db) == {"links_fixed": 0, "users_fixed": 0}
