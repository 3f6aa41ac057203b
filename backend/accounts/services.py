"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service function / method, and
return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``AuthenticationService``  — email/username login, JWT issuance, logout.
- ``AccountProvisioningService`` — creation of operator login accounts
  (called by the organization app's privileged operations).
- ``CurrentUserService``     — "Me" endpoint helpers (theme preference).

A login or logout always drops the user's cached report snapshot so the
next read rebuilds it from the store.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import authenticate as django_authenticate
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from core.domain.exceptions import Conflict, DomainError
from reports.cache import ReportSnapshotCache

from .models import UserRole

logger = logging.getLogger(__name__)

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """
    Handles email-or-username login, JWT token generation and logout.
    """

    @staticmethod
    def authenticate(identifier: str, password: str) -> User | None:
        """
        Validate credentials and return the user if successful.

        Returns ``None`` when the credentials are wrong or the account is
        inactive (``ModelBackend.user_can_authenticate``).
        """
        return django_authenticate(identifier=identifier, password=password)

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh token pair for the given user.

        Returns ``{"access": "<token>", "refresh": "<token>"}``.
        """
        refresh = RefreshToken.for_user(user)
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }

    @staticmethod
    def on_login(user: User) -> None:
        """Drop any snapshot left over from a previous session."""
        ReportSnapshotCache.forget_user(user.pk)
        logger.info("User %s logged in", user)

    @staticmethod
    def logout(user: User, refresh_token: str) -> None:
        """
        Blacklist the refresh token and tear down the user's snapshot.

        Raises
        ------
        DomainError
            If the refresh token is malformed, expired or already
            blacklisted.
        """
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as exc:
            raise DomainError(f"Token tidak valid: {exc}") from exc

        ReportSnapshotCache.forget_user(user.pk)
        logger.info("User %s logged out", user)


# ═══════════════════════════════════════════════════════════════════
#  Account Provisioning
# ═══════════════════════════════════════════════════════════════════


class AccountProvisioningService:
    """
    Creates and removes login accounts on behalf of privileged
    operations.  Role checks happen in the caller.
    """

    @staticmethod
    def _unique_username(email: str) -> str:
        base = email.split("@", 1)[0][:140] or "operator"
        candidate = base
        suffix = 1
        while User.objects.filter(username=candidate).exists():
            suffix += 1
            candidate = f"{base}{suffix}"
        return candidate

    @staticmethod
    @transaction.atomic
    def create_operator(*, email: str, password: str, unit) -> User:
        """
        Create an active Operator account bound to ``unit``.

        Raises
        ------
        Conflict
            If the email address is already registered.
        """
        email = User.objects.normalize_email(email)
        if User.objects.filter(email__iexact=email).exists():
            raise Conflict(f"Email {email} sudah terdaftar.")

        try:
            user = User.objects.create_user(
                username=AccountProvisioningService._unique_username(email),
                email=email,
                password=password,
                role=UserRole.OPERATOR,
                unit=unit,
            )
        except IntegrityError as exc:
            raise Conflict(f"Email {email} sudah terdaftar.") from exc

        logger.info("Operator account %s created for unit %s", user, unit)
        return user

    @staticmethod
    def delete_account(user_id: int | None) -> bool:
        """
        Delete a login account if it still exists.

        Returns ``True`` when an account was removed; a missing account is
        not an error.
        """
        if user_id is None:
            return False
        deleted, _ = User.objects.filter(pk=user_id).delete()
        if deleted:
            ReportSnapshotCache.forget_user(user_id)
            logger.info("Login account #%d deleted", user_id)
        return bool(deleted)


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """Helpers for the "Me" endpoint."""

    @staticmethod
    def get_profile(user: User) -> User:
        return User.objects.select_related("unit").get(pk=user.pk)

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Update the authenticated user's own preference fields.

        Only ``prefers_dark_theme``, ``first_name`` and ``last_name`` are
        writable here; role and unit are managed by an admin.
        """
        for field, value in validated_data.items():
            setattr(user, field, value)
        if validated_data:
            user.save(update_fields=list(validated_data.keys()))
        return CurrentUserService.get_profile(user)
