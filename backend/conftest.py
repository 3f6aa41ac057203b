"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``create_unit`` / ``create_personnel`` factories.
  - an autouse fixture that points the snapshot cache at LocMem and
    empties it between tests.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _clear_snapshot_cache(settings):
    """
    Run every test against an empty in-process snapshot cache.

    The deployed default is the database cache; tests that need it
    switch ``settings.CACHES`` themselves.
    """
    from django.core.cache import cache

    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "reskrim-tests",
        }
    }
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_unit(db):
    """
    Factory fixture for ``Unit`` rows.

    Usage::

        unit = create_unit("Unit Ranmor")
    """
    from organization.models import Unit

    _counter = 0

    def _factory(name: str | None = None):
        nonlocal _counter
        _counter += 1
        return Unit.objects.create(name=name or f"Unit {_counter}")

    return _factory


@pytest.fixture()
def create_personnel(db, create_unit):
    """Factory fixture for ``Personnel`` rows; creates a unit when none is given."""
    from organization.models import Personnel

    _counter = 0

    def _factory(*, name: str | None = None, rank: str = "BRIPKA", unit=None, user=None):
        nonlocal _counter
        _counter += 1
        return Personnel.objects.create(
            name=name or f"Personil {_counter}",
            rank=rank,
            unit=unit or create_unit(),
            user=user,
        )

    return _factory


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(username="alice")
            # or an operator of a unit:
            user = create_user(username="bob", role=UserRole.OPERATOR, unit=unit)
    """
    from accounts.models import User, UserRole

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        role=UserRole.OPERATOR,
        unit=None,
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            role=role,
            unit=unit,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper function that creates a user and returns an
    ``Authorization`` header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(username="alice", role=UserRole.ADMIN)
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/reports/")
            assert resp.status_code != 401

    The returned dict looks like::

        {"Authorization": "Bearer eyJ..."}
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(*, username: str | None = None, **user_kwargs) -> dict[str, str]:
        user = create_user(username=username, **user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make
