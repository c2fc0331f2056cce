from __future__ import annotations

import time
from datetime import timedelta

import pytest

from api import create_app
from models import storage
from models.user import User
from models.user_store import DBUserStore
from user_auth import TokenSettings, build_auth_flow
from utils.security import hash_password

PASSWORD = "password123"


class FakeClock:
    """Controllable time source, starting at the current whole second."""

    def __init__(self, start: float | None = None):
        self.now = float(int(start if start is not None else time.time()))

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return TokenSettings(
        secret="unit-test-secret-with-enough-length-for-hs256",
        algorithm="HS256",
        access_lifetime=timedelta(minutes=30),
        refresh_lifetime=timedelta(hours=24),
        reference_secret="unit-test-reference-secret",
    )


@pytest.fixture
def db():
    storage.reload("sqlite://")
    yield storage
    storage.close()


@pytest.fixture
def users(db):
    return DBUserStore(db)


@pytest.fixture
def flow(settings, users, clock):
    return build_auth_flow(settings, users, clock=clock)


@pytest.fixture
def make_user():
    def _make_user(email="kaimu@example.com", name="Kaimu", password=PASSWORD, activated=True):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            activated=activated,
        )
        user.save()
        return user

    return _make_user


@pytest.fixture
def user(db, make_user):
    return make_user()


@pytest.fixture
def app(clock):
    app = create_app("testing", clock=clock)
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()
