"""
Organization app serializers.

Request serializers validate unit / personnel forms and the operator
account payload; response serializers render ``Unit`` and ``Personnel``
instances.  No business logic lives here.
"""

from __future__ import annotations

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import Personnel, Unit


# ═══════════════════════════════════════════════════════════════════
#  Units
# ═══════════════════════════════════════════════════════════════════


class UnitSerializer(serializers.ModelSerializer):
    personnel_count = serializers.SerializerMethodField()

    class Meta:
        model = Unit
        fields = ["id", "name", "personnel_count", "created_at", "updated_at"]
        read_only_fields = ["id", "personnel_count", "created_at", "updated_at"]

    def get_personnel_count(self, obj: Unit) -> int:
        return obj.personnel.count()

    def validate_name(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Nama unit wajib diisi.")
        return value


# ═══════════════════════════════════════════════════════════════════
#  Personnel
# ═══════════════════════════════════════════════════════════════════


class PersonnelWriteSerializer(serializers.ModelSerializer):
    unit = serializers.PrimaryKeyRelatedField(queryset=Unit.objects.all())

    class Meta:
        model = Personnel
        fields = ["name", "rank", "unit"]

    def validate_name(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Nama personil wajib diisi.")
        return value


class PersonnelSerializer(serializers.ModelSerializer):
    unit_name = serializers.CharField(source="unit.name", read_only=True)
    display_name = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True, allow_null=True)
    has_account = serializers.SerializerMethodField()

    class Meta:
        model = Personnel
        fields = [
            "id",
            "name",
            "rank",
            "display_name",
            "unit",
            "unit_name",
            "user",
            "email",
            "has_account",
        ]
        read_only_fields = fields

    def get_has_account(self, obj: Personnel) -> bool:
        return obj.user_id is not None


class PersonnelFilterSerializer(serializers.Serializer):
    unit = serializers.IntegerField(required=False, min_value=1)


class CreateAccountSerializer(serializers.Serializer):
    """Email and password of the Operator account to create."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, style={"input_type": "password"})

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value
