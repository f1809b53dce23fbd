"""
Pytest configuration and shared fixtures for shortlinks tests.
"""

import os
import tempfile
from datetime import timedelta
from pathlib import Path

# Settings are read at import time, so configure them before importing the app
_tmp_dir = tempfile.mkdtemp(prefix="shortlinks-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_tmp_dir) / 'test.db'}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GEO_LOOKUP_ENABLED"] = "false"
os.environ["BASE_URL"] = "https://sho.rt"

import pytest
from fastapi.testclient import TestClient

from shortlinks.core.security import create_access_token
from shortlinks.database import Base, SessionLocal, engine
from shortlinks.main import app
from shortlinks.models import Click, Link, User
from shortlinks.utils.dates import utcnow


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db) -> User:
    user = User(email="owner@example.com", name="Owner")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db) -> User:
    user = User(email="other@example.com", name="Other")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers(owner) -> dict:
    token = create_access_token({"sub": str(owner.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user) -> dict:
    token = create_access_token({"sub": str(other_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_link(db):
    """Insert a link directly, bypassing the registry."""
    def _make_link(short_code="abc123", original_url="https://example.com", owner=None, **fields):
        link = Link(
            short_code=short_code,
            original_url=original_url,
            owner_id=owner.id if owner else None,
            **fields
        )
        db.add(link)
        db.commit()
        db.refresh(link)
        return link
    return _make_link


@pytest.fixture
def make_click(db):
    """Insert a click directly; defaults describe a desktop Chrome visit."""
    def _make_click(link, ago=timedelta(hours=1), **fields):
        values = {
            "ip_address": "203.0.113.1",
            "country": "United States",
            "city": "New York",
            "browser_name": "Chrome",
            "os_name": "Windows",
            "device_type": "desktop",
        }
        values.update(fields)
        click = Click(link_id=link.id, clicked_at=utcnow() - ago, **values)
        db.add(click)
        db.commit()
        return click
    return _make_click
