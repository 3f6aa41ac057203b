"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here — all domain
rules are delegated to ``services.py``.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .services import AuthenticationService

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Custom SimpleJWT serializer that:

    1. Accepts ``identifier`` (email or username) + ``password``.
    2. Resolves the user via ``EmailOrUsernameBackend``.
    3. Injects ``role`` and ``unit_id`` claims into the token payload.
    """

    username_field = "identifier"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop(self.username_field, None)
        self.fields["identifier"] = serializers.CharField(
            help_text="Email or username.",
        )

    @classmethod
    def get_token(cls, user) -> Any:
        token = super().get_token(user)
        token["role"] = user.role
        token["unit_id"] = user.unit_id
        return token

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        user = AuthenticationService.authenticate(
            identifier=attrs.get("identifier"),
            password=attrs.get("password"),
        )

        if user is None:
            raise serializers.ValidationError(
                {"detail": "Email atau kata sandi salah."},
                code="authentication",
            )

        refresh = self.get_token(user)
        data = {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }

        # Attach user for the view to serialise in the response
        self.user = user
        return data


class LogoutRequestSerializer(serializers.Serializer):
    refresh = serializers.CharField(help_text="Refresh token to invalidate.")


# ═══════════════════════════════════════════════════════════════════
#  User Serializers
# ═══════════════════════════════════════════════════════════════════


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Current-user representation returned by login and ``/me/``.

    ``personnel_id`` is set for operator accounts created from a
    personnel record.
    """

    unit_name = serializers.CharField(read_only=True, allow_null=True)
    personnel_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "unit",
            "unit_name",
            "personnel_id",
            "prefers_dark_theme",
            "is_active",
            "date_joined",
        ]
        read_only_fields = fields

    def get_personnel_id(self, obj) -> int | None:
        personnel = getattr(obj, "personnel", None)
        return personnel.pk if personnel is not None else None


class MeUpdateSerializer(serializers.ModelSerializer):
    """PATCH /me/ — preference and display-name fields only."""

    class Meta:
        model = User
        fields = ["prefers_dark_theme", "first_name", "last_name"]
