"""
Organization Service Layer.

Business logic for units and personnel.  All writes are admin-only;
operators may read their own unit and its officers (used when picking
personnel for a report).

Architecture
------------
- ``UnitService``       — CRUD with reference-checked deletion.
- ``PersonnelService``  — CRUD; deleting an officer removes the linked
  login account.
- ``OperatorAccountService`` — turns an officer into an Operator by
  creating a login account bound to the officer's home unit.

Every mutation bumps the report snapshot version because unit and
personnel names are part of the snapshot.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.db.models import QuerySet

from accounts.services import AccountProvisioningService
from core.domain.access import ADMIN, apply_role_filter, require_role
from core.domain.exceptions import Conflict, NotFound
from reports.cache import invalidates_snapshots
from reports.models import Report

from .models import Personnel, Unit

logger = logging.getLogger(__name__)

ADMIN_ONLY_MESSAGE = "Hanya admin yang dapat mengelola unit dan personil."

UNIT_SCOPE = {
    "admin": lambda qs, u: qs,
    "operator": lambda qs, u: qs.filter(pk=u.unit_id),
}

PERSONNEL_SCOPE = {
    "admin": lambda qs, u: qs,
    "operator": lambda qs, u: qs.filter(unit_id=u.unit_id),
}


# ═══════════════════════════════════════════════════════════════════
#  Units
# ═══════════════════════════════════════════════════════════════════


class UnitService:

    @staticmethod
    def list_units(user) -> QuerySet[Unit]:
        return apply_role_filter(Unit.objects.all(), user, scope_config=UNIT_SCOPE)

    @staticmethod
    def get_unit(user, unit_id: int) -> Unit:
        try:
            return UnitService.list_units(user).get(pk=unit_id)
        except Unit.DoesNotExist:
            raise NotFound(f"Unit #{unit_id} tidak ditemukan.")

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def create_unit(validated_data: dict[str, Any], actor) -> Unit:
        require_role(actor, ADMIN, message=ADMIN_ONLY_MESSAGE)
        unit = Unit.objects.create(**validated_data)
        logger.info("Unit %s created by %s", unit, actor)
        return unit

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def update_unit(unit_id: int, validated_data: dict[str, Any], actor) -> Unit:
        require_role(actor, ADMIN, message=ADMIN_ONLY_MESSAGE)
        unit = UnitService.get_unit(actor, unit_id)
        for field, value in validated_data.items():
            setattr(unit, field, value)
        unit.save()
        logger.info("Unit %s updated by %s", unit, actor)
        return unit

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def delete_unit(unit_id: int, actor) -> None:
        """
        Delete a unit that nothing references any more.

        Raises
        ------
        Conflict
            While officers or reports still point at the unit.
        """
        require_role(actor, ADMIN, message=ADMIN_ONLY_MESSAGE)
        unit = UnitService.get_unit(actor, unit_id)

        if Personnel.objects.filter(unit=unit).exists():
            raise Conflict(
                "Gagal menghapus: Unit ini masih memiliki personil terdaftar. "
                "Pindahkan personil terlebih dahulu."
            )
        if Report.objects.filter(assigned_unit=unit).exists():
            raise Conflict(
                "Gagal menghapus: Unit ini masih memiliki laporan yang ditugaskan. "
                "Pindahkan laporan terlebih dahulu."
            )

        unit.delete()
        logger.info("Unit #%d deleted by %s", unit_id, actor)


# ═══════════════════════════════════════════════════════════════════
#  Personnel
# ═══════════════════════════════════════════════════════════════════


class PersonnelService:

    @staticmethod
    def list_personnel(user, unit_id: int | None = None) -> QuerySet[Personnel]:
        qs = apply_role_filter(
            Personnel.objects.select_related("unit", "user"),
            user,
            scope_config=PERSONNEL_SCOPE,
        )
        if unit_id is not None:
            qs = qs.filter(unit_id=unit_id)
        return qs

    @staticmethod
    def get_personnel(user, personnel_id: int) -> Personnel:
        try:
            return PersonnelService.list_personnel(user).get(pk=personnel_id)
        except Personnel.DoesNotExist:
            raise NotFound(f"Personil #{personnel_id} tidak ditemukan.")

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def create_personnel(validated_data: dict[str, Any], actor) -> Personnel:
        require_role(actor, ADMIN, message=ADMIN_ONLY_MESSAGE)
        personnel = Personnel.objects.create(**validated_data)
        logger.info("Personnel %s created in %s by %s", personnel, personnel.unit, actor)
        return personnel

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def update_personnel(personnel_id: int, validated_data: dict[str, Any], actor) -> Personnel:
        """
        Update an officer.  Moving the officer to another unit moves the
        linked Operator account along with it.
        """
        require_role(actor, ADMIN, message=ADMIN_ONLY_MESSAGE)
        personnel = PersonnelService.get_personnel(actor, personnel_id)
        for field, value in validated_data.items():
            setattr(personnel, field, value)
        personnel.save()

        if personnel.user_id and "unit" in validated_data:
            account = personnel.user
            account.unit = personnel.unit
            account.save(update_fields=["unit"])

        logger.info("Personnel %s updated by %s", personnel, actor)
        return personnel

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def delete_personnel(personnel_id: int, actor) -> None:
        """Delete an officer, their report assignments and their login account."""
        require_role(actor, ADMIN, message=ADMIN_ONLY_MESSAGE)
        personnel = PersonnelService.get_personnel(actor, personnel_id)
        user_id = personnel.user_id

        personnel.report_assignments.all().delete()
        personnel.delete()
        AccountProvisioningService.delete_account(user_id)
        logger.info("Personnel #%d deleted by %s", personnel_id, actor)


# ═══════════════════════════════════════════════════════════════════
#  Operator accounts
# ═══════════════════════════════════════════════════════════════════


class OperatorAccountService:

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def create_account(personnel_id: int, *, email: str, password: str, actor) -> Personnel:
        """
        Create an Operator login for an officer.

        The account's home unit is the officer's unit.

        Raises
        ------
        NotFound
            Unknown officer.
        Conflict
            The officer already has an account, or the email is taken.
        """
        require_role(actor, ADMIN, message="Hanya admin yang dapat membuat akun operator.")
        personnel = PersonnelService.get_personnel(actor, personnel_id)
        if personnel.user_id:
            raise Conflict(f"{personnel.display_name} sudah memiliki akun login.")

        user = AccountProvisioningService.create_operator(
            email=email, password=password, unit=personnel.unit,
        )
        personnel.user = user
        personnel.save(update_fields=["user", "updated_at"])
        logger.info("Operator account created for %s by %s", personnel, actor)
        return personnel
