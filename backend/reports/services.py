"""
Reports Service Layer.

This module is the **single source of truth** for report business logic.
Views stay thin: they validate input through serializers, call a service
method, and wrap the result in a DRF ``Response``.

Architecture
------------
- ``ReportSnapshotService`` — builds / caches the per-user
  ``AggregateSnapshot`` through the ``ReportAggregator``.
- ``ReportQueryService``    — role-scoped listing, search, sorting and
  detail over the snapshot.
- ``VehicleQueryService``   — admin stolen-vehicle listing.
- ``ReportService``         — every mutation (create, edit, assign,
  status update, soft delete, purge).

Role matrix
-----------
==========================  =======  =============================
Operation                   Admin    Operator
==========================  =======  =============================
create / edit / purge       yes      no
assign unit                 yes      no
soft delete                 yes      no
assign personnel            no       reports of own unit only
update status               no       reports of own unit only
==========================  =======  =============================

Every mutation runs inside ``transaction.atomic`` and bumps the snapshot
version only after it returned successfully.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from asgiref.sync import async_to_sync
from django.db import transaction

from core.constants import SOFT_DELETE_HISTORY_NOTE
from core.domain.access import ADMIN, OPERATOR, get_report_scope, require_role
from core.domain.exceptions import DomainError, InvalidTransition, NotFound, PermissionDenied
from organization.models import Personnel, Unit

from .aggregation import AggregatedReport, AggregateSnapshot, ReportAggregator, is_visible_to_unit
from .cache import ReportSnapshotCache, invalidates_snapshots
from .models import (
    PersonnelAssignment,
    Report,
    ReportStatus,
    ReportType,
    StatusDetail,
    StatusUpdate,
    StolenVehicle,
    is_allowed_detail,
)
from .store import OrmReportStore

logger = logging.getLogger(__name__)


def _actor_label(user) -> str:
    role = "Admin" if user.is_superuser else user.role
    return f"{role} ({user.get_username()})"


# ═══════════════════════════════════════════════════════════════════
#  Snapshot
# ═══════════════════════════════════════════════════════════════════


class ReportSnapshotService:
    """
    Returns the requesting user's ``AggregateSnapshot``.

    The snapshot is served from ``ReportSnapshotCache`` when fresh and
    rebuilt through the async ``ReportAggregator`` otherwise.
    """

    aggregator_factory: Callable[[], ReportAggregator] = staticmethod(
        lambda: ReportAggregator(OrmReportStore())
    )

    @classmethod
    def get_snapshot(cls, user, *, refresh: bool = False) -> AggregateSnapshot:
        if not refresh:
            cached = ReportSnapshotCache.get(user.pk)
            if cached is not None:
                return cached

        version = ReportSnapshotCache.current_version()
        snapshot = async_to_sync(cls.aggregator_factory().aggregate)()
        ReportSnapshotCache.store(user.pk, snapshot, version)
        return snapshot


# ═══════════════════════════════════════════════════════════════════
#  Queries
# ═══════════════════════════════════════════════════════════════════


def _number_key(value: str) -> tuple[int, int, str]:
    digits = value.strip()
    if digits.isdigit():
        return (0, int(digits), "")
    return (1, 0, digits)


class ReportQueryService:
    """Role-scoped reads over the aggregated report collection."""

    SORT_KEYS: dict[str, Callable[[AggregatedReport, AggregateSnapshot], Any]] = {
        "report_number": lambda r, s: _number_key(r.report_number),
        "report_date": lambda r, s: r.report_date,
        "incident_date": lambda r, s: (r.incident_date is None, r.incident_date),
        "reporter_name": lambda r, s: r.reporter_name.lower(),
        "case_type": lambda r, s: r.case_type.lower(),
        "status": lambda r, s: r.status,
        "status_detail": lambda r, s: r.status_detail,
        "loss_amount": lambda r, s: r.loss_amount,
        "assigned_unit": lambda r, s: (s.unit_name(r.assigned_unit_id) or "").lower(),
    }
    DEFAULT_ORDERING = "-report_date"

    @staticmethod
    def visible_reports(user, snapshot: AggregateSnapshot) -> list[AggregatedReport]:
        """
        Reports the user may see in the report list.

        Admins see everything; operators see reports assigned to their unit
        or handled by an officer of their unit.
        """
        scope = get_report_scope(user)
        if scope.is_admin:
            return list(snapshot.reports)
        personnel_units = snapshot.personnel_units()
        return [
            report for report in snapshot.reports
            if is_visible_to_unit(report.assignment, scope.unit_id, personnel_units)
        ]

    @staticmethod
    def matches_search(report: AggregatedReport, term: str) -> bool:
        term = term.strip().lower()
        if not term:
            return True
        haystack = (
            report.reporter_name,
            report.case_type,
            report.report_number,
            report.short_number,
            report.display_number,
        )
        return any(term in value.lower() for value in haystack)

    @classmethod
    def sort_reports(
        cls,
        reports: list[AggregatedReport],
        snapshot: AggregateSnapshot,
        ordering: str | None,
    ) -> list[AggregatedReport]:
        ordering = ordering or cls.DEFAULT_ORDERING
        descending = ordering.startswith("-")
        field_name = ordering.lstrip("-")
        key_fn = cls.SORT_KEYS.get(field_name)
        if key_fn is None:
            raise DomainError(f"Tidak dapat mengurutkan berdasarkan '{field_name}'.")
        return sorted(reports, key=lambda r: key_fn(r, snapshot), reverse=descending)

    @classmethod
    def list_reports(cls, user, filters: dict[str, Any]) -> tuple[list[AggregatedReport], AggregateSnapshot]:
        """
        Filtered and sorted reports for the list endpoint.

        ``filters`` keys (all optional): ``status`` (``all`` / ``Proses``
        / ``Selesai``), ``report_type``, ``search``, ``ordering``.
        """
        snapshot = ReportSnapshotService.get_snapshot(user)
        reports = cls.visible_reports(user, snapshot)

        status_filter = filters.get("status") or "all"
        if status_filter != "all":
            reports = [r for r in reports if r.status == status_filter]

        report_type = filters.get("report_type")
        if report_type:
            reports = [r for r in reports if r.report_type == report_type]

        search = filters.get("search") or ""
        if search:
            reports = [r for r in reports if cls.matches_search(r, search)]

        return cls.sort_reports(reports, snapshot, filters.get("ordering")), snapshot

    @classmethod
    def get_report(cls, user, report_id: int) -> tuple[AggregatedReport, AggregateSnapshot]:
        snapshot = ReportSnapshotService.get_snapshot(user)
        for report in cls.visible_reports(user, snapshot):
            if report.id == report_id:
                return report, snapshot
        raise NotFound(f"Laporan #{report_id} tidak ditemukan.")


class VehicleQueryService:
    """Flattened stolen-vehicle listing (admin only)."""

    SORT_KEYS: dict[str, Callable[[dict[str, Any]], Any]] = {
        "report_number": lambda v: v["report_number"].lower(),
        "vehicle_type": lambda v: v["vehicle_type"].lower(),
        "frame_number": lambda v: v["frame_number"].lower(),
        "engine_number": lambda v: v["engine_number"].lower(),
        "report_date": lambda v: v["report_date"],
        "unit": lambda v: (v["unit_name"] or "").lower(),
    }
    SEARCH_FIELDS = ("vehicle_type", "frame_number", "engine_number", "report_number", "reporter_name")

    @staticmethod
    def flatten(snapshot: AggregateSnapshot) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for report in snapshot.reports:
            for vehicle in report.stolen_vehicles:
                rows.append({
                    "id": vehicle.get("id"),
                    "vehicle_type": vehicle.get("vehicle_type") or "",
                    "frame_number": vehicle.get("frame_number") or "",
                    "engine_number": vehicle.get("engine_number") or "",
                    "report_id": report.id,
                    "report_number": report.display_number,
                    "report_date": report.report_date,
                    "reporter_name": report.reporter_name,
                    "case_type": report.case_type,
                    "unit_name": snapshot.unit_name(report.assigned_unit_id),
                })
        rows.sort(key=lambda v: v["report_date"], reverse=True)
        return rows

    @classmethod
    def list_vehicles(cls, user, filters: dict[str, Any]) -> list[dict[str, Any]]:
        require_role(user, ADMIN, message="Hanya admin yang dapat melihat data kendaraan.")
        rows = cls.flatten(ReportSnapshotService.get_snapshot(user))

        term = (filters.get("search") or "").strip().lower()
        if term:
            rows = [
                row for row in rows
                if any(term in str(row[f]).lower() for f in cls.SEARCH_FIELDS)
            ]

        ordering = filters.get("ordering")
        if ordering:
            field_name = ordering.lstrip("-")
            key_fn = cls.SORT_KEYS.get(field_name)
            if key_fn is None:
                raise DomainError(f"Tidak dapat mengurutkan berdasarkan '{field_name}'.")
            rows.sort(key=key_fn, reverse=ordering.startswith("-"))
        return rows


# ═══════════════════════════════════════════════════════════════════
#  Mutations
# ═══════════════════════════════════════════════════════════════════


class ReportService:
    """Create / update / workflow operations on reports."""

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _get_active_report(report_id: int, *, for_update: bool = False) -> Report:
        qs = Report.objects.exclude(status=ReportStatus.DIHAPUS)
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=report_id)
        except Report.DoesNotExist:
            raise NotFound(f"Laporan #{report_id} tidak ditemukan.")

    @staticmethod
    def get_for_edit(report_id: int, actor) -> Report:
        require_role(actor, ADMIN, message="Hanya admin yang dapat mengubah laporan.")
        return ReportService._get_active_report(report_id)

    @staticmethod
    def _require_own_unit(report: Report, actor) -> None:
        scope = get_report_scope(actor)
        if scope.is_admin:
            return
        if scope.unit_id is None or report.assigned_unit_id != scope.unit_id:
            raise NotFound(f"Laporan #{report.pk} tidak ditemukan.")

    @staticmethod
    def _replace_vehicles(report: Report, vehicles: list[dict[str, Any]]) -> None:
        report.stolen_vehicles.all().delete()
        StolenVehicle.objects.bulk_create([
            StolenVehicle(
                report=report,
                vehicle_type=v["vehicle_type"],
                frame_number=v.get("frame_number", ""),
                engine_number=v.get("engine_number", ""),
            )
            for v in vehicles
        ])

    @staticmethod
    def _normalize_fields(data: dict[str, Any]) -> dict[str, Any]:
        data = dict(data)
        if data.get("report_type") == ReportType.PENGADUAN_MASYARAKAT:
            data["police_model"] = None
        return data

    # ── Admin operations ─────────────────────────────────────────────

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def create_report(validated_data: dict[str, Any], actor) -> Report:
        """
        Create a report in ``Proses``/``Lidik`` with its stolen vehicles
        and an initial history entry.
        """
        require_role(actor, ADMIN, message="Hanya admin yang dapat menambah laporan.")

        data = ReportService._normalize_fields(validated_data)
        vehicles = data.pop("stolen_vehicles", [])
        data.pop("status", None)
        data.pop("status_detail", None)

        report = Report.objects.create(
            status=ReportStatus.PROSES,
            status_detail=StatusDetail.LIDIK,
            **data,
        )
        ReportService._replace_vehicles(report, vehicles)
        StatusUpdate.objects.create(
            report=report,
            status=report.status,
            status_detail=report.status_detail,
            description="Laporan dibuat oleh Admin.",
            updated_by=_actor_label(actor),
            author=actor,
        )

        logger.info("Report #%d (%s) created by %s", report.pk, report.display_number, actor)
        return report

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def update_report(report_id: int, validated_data: dict[str, Any], actor) -> Report:
        """
        Edit report fields.  When ``stolen_vehicles`` is present the
        vehicle list is replaced wholesale.
        """
        require_role(actor, ADMIN, message="Hanya admin yang dapat mengubah laporan.")
        report = ReportService._get_active_report(report_id, for_update=True)

        data = dict(validated_data)
        vehicles = data.pop("stolen_vehicles", None)
        if data.get("report_type", report.report_type) == ReportType.PENGADUAN_MASYARAKAT:
            data["police_model"] = None

        for key, value in data.items():
            setattr(report, key, value)
        report.save()

        if vehicles is not None:
            ReportService._replace_vehicles(report, vehicles)

        logger.info(
            "Report #%d updated by %s (fields: %s)",
            report.pk,
            actor,
            ", ".join(sorted(validated_data.keys())),
        )
        return report

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def assign_unit(report_id: int, unit_id: int, actor) -> Report:
        """
        Route a report to a unit.  Officers assigned earlier who do not
        belong to the new unit are unassigned.
        """
        require_role(actor, ADMIN, message="Hanya admin yang dapat menugaskan unit.")
        report = ReportService._get_active_report(report_id, for_update=True)
        try:
            unit = Unit.objects.get(pk=unit_id)
        except Unit.DoesNotExist:
            raise NotFound(f"Unit #{unit_id} tidak ditemukan.")

        report.assigned_unit = unit
        report.save(update_fields=["assigned_unit", "updated_at"])
        removed, _ = (
            PersonnelAssignment.objects
            .filter(report=report)
            .exclude(personnel__unit=unit)
            .delete()
        )

        logger.info(
            "Report #%d assigned to unit %s by %s (%d stale assignments removed)",
            report.pk,
            unit,
            actor,
            removed,
        )
        return report

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def soft_delete(report_id: int, actor) -> Report:
        """Mark a report ``Dihapus`` and append the audit entry."""
        require_role(actor, ADMIN, message="Hanya admin yang dapat menghapus laporan.")
        report = ReportService._get_active_report(report_id, for_update=True)

        report.status = ReportStatus.DIHAPUS
        report.status_detail = StatusDetail.DATA_DIHAPUS
        report.save(update_fields=["status", "status_detail", "updated_at"])
        StatusUpdate.objects.create(
            report=report,
            status=report.status,
            status_detail=report.status_detail,
            description=SOFT_DELETE_HISTORY_NOTE,
            updated_by=_actor_label(actor),
            author=actor,
        )

        logger.info("Report #%d soft-deleted by %s", report.pk, actor)
        return report

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def purge(report_id: int, actor) -> None:
        """
        Permanently delete a report with its vehicles, history and
        assignments.  Soft-deleted reports can be purged too.
        """
        require_role(actor, ADMIN, message="Hanya admin yang dapat menghapus laporan secara permanen.")
        deleted, _ = Report.objects.filter(pk=report_id).delete()
        if not deleted:
            raise NotFound(f"Laporan #{report_id} tidak ditemukan.")
        logger.info("Report #%d purged by %s", report_id, actor)

    # ── Operator operations ──────────────────────────────────────────

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def assign_personnel(report_id: int, personnel_ids: list[int], actor) -> Report:
        """
        Replace the officers handling a report.

        The report must already be assigned to the operator's unit and
        every officer must belong to that unit.
        """
        require_role(actor, OPERATOR, message="Hanya operator yang dapat menugaskan personil.")
        report = ReportService._get_active_report(report_id, for_update=True)
        ReportService._require_own_unit(report, actor)

        if report.assigned_unit_id is None:
            raise DomainError("Laporan belum ditugaskan ke unit.")

        personnel_ids = list(dict.fromkeys(personnel_ids))
        personnel = list(Personnel.objects.filter(pk__in=personnel_ids))
        if len(personnel) != len(personnel_ids):
            found = {p.pk for p in personnel}
            missing = [pid for pid in personnel_ids if pid not in found]
            raise NotFound(f"Personil tidak ditemukan: {missing}.")
        outsiders = [p for p in personnel if p.unit_id != report.assigned_unit_id]
        if outsiders:
            raise PermissionDenied(
                "Personil berikut bukan anggota unit laporan: "
                + ", ".join(p.display_name for p in outsiders)
            )

        PersonnelAssignment.objects.filter(report=report).delete()
        PersonnelAssignment.objects.bulk_create([
            PersonnelAssignment(report=report, personnel_id=pid) for pid in personnel_ids
        ])

        logger.info(
            "Report #%d personnel set to %s by %s",
            report.pk,
            personnel_ids,
            actor,
        )
        return report

    @staticmethod
    @invalidates_snapshots
    @transaction.atomic
    def update_status(
        report_id: int,
        *,
        status: str,
        status_detail: str,
        description: str,
        actor,
    ) -> StatusUpdate:
        """
        Move a report to ``status``/``status_detail`` and append the
        history entry.

        Raises
        ------
        InvalidTransition
            Target status is ``Dihapus`` (use soft delete instead).
        DomainError
            ``status_detail`` does not belong to ``status``.
        """
        require_role(actor, OPERATOR, message="Hanya operator yang dapat memperbarui status.")
        report = ReportService._get_active_report(report_id, for_update=True)
        ReportService._require_own_unit(report, actor)

        if status == ReportStatus.DIHAPUS:
            raise InvalidTransition(
                current=report.status,
                target=status,
                reason="gunakan hapus laporan",
            )
        if not is_allowed_detail(status, status_detail):
            raise DomainError(
                f"Detail status '{status_detail}' tidak valid untuk status '{status}'."
            )

        report.status = status
        report.status_detail = status_detail
        report.save(update_fields=["status", "status_detail", "updated_at"])

        entry = StatusUpdate.objects.create(
            report=report,
            status=status,
            status_detail=status_detail,
            description=description,
            updated_by=_actor_label(actor),
            author=actor,
        )

        logger.info(
            "Report #%d status → %s/%s by %s",
            report.pk,
            status,
            status_detail,
            actor,
        )
        return entry
