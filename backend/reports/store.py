"""
reports.store — Async read access to the normalized report tables.

The aggregator never touches the ORM directly; it talks to an object
that fulfils the ``ReportStore`` protocol:

================================  =========================================
``fetch_units()``                 ``[{"id", "name"}]``
``fetch_personnel()``             ``[{"id", "name", "rank", "unit_id", "user_id"}]``
``fetch_reports()``               flat report rows, newest ``report_date``
                                  first, each with nested
                                  ``stolen_vehicles`` / ``status_history``
``fetch_assigned_personnel_ids``  personnel ids linked to one report
================================  =========================================

``OrmReportStore`` is the production implementation.  Every query runs
through ``asgiref.sync.sync_to_async`` so the aggregator can await the
independent fetches concurrently.
"""

from __future__ import annotations

from typing import Any, Protocol

from asgiref.sync import sync_to_async
from django.db.models import Prefetch

from organization.models import Personnel, Unit

from .models import PersonnelAssignment, Report, StatusUpdate, StolenVehicle

Row = dict[str, Any]

REPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "report_type",
    "report_year",
    "report_number",
    "police_model",
    "spkt",
    "report_date",
    "reporter_name",
    "case_type",
    "incident_date",
    "incident_time",
    "incident_location",
    "location_type",
    "district",
    "sub_district",
    "loss_amount",
    "status",
    "status_detail",
    "assigned_unit_id",
)
VEHICLE_COLUMNS: tuple[str, ...] = ("id", "report_id", "vehicle_type", "frame_number", "engine_number")
HISTORY_COLUMNS: tuple[str, ...] = ("id", "status", "status_detail", "description", "updated_at", "updated_by")


class ReportStore(Protocol):
    async def fetch_units(self) -> list[Row]: ...

    async def fetch_personnel(self) -> list[Row]: ...

    async def fetch_reports(self) -> list[Row]: ...

    async def fetch_assigned_personnel_ids(self, report_id: int) -> list[int]: ...


def _row(instance, columns: tuple[str, ...]) -> Row:
    return {column: getattr(instance, column) for column in columns}


class OrmReportStore:
    """``ReportStore`` backed by the Django ORM."""

    async def fetch_units(self) -> list[Row]:
        return await sync_to_async(self._units)()

    async def fetch_personnel(self) -> list[Row]:
        return await sync_to_async(self._personnel)()

    async def fetch_reports(self) -> list[Row]:
        return await sync_to_async(self._reports)()

    async def fetch_assigned_personnel_ids(self, report_id: int) -> list[int]:
        return await sync_to_async(self._assigned_personnel_ids)(report_id)

    # ── Blocking queries ─────────────────────────────────────────────

    @staticmethod
    def _units() -> list[Row]:
        return list(Unit.objects.order_by("name").values("id", "name"))

    @staticmethod
    def _personnel() -> list[Row]:
        return list(
            Personnel.objects.order_by("name").values("id", "name", "rank", "unit_id", "user_id")
        )

    @staticmethod
    def _reports() -> list[Row]:
        queryset = (
            Report.objects
            .prefetch_related(
                Prefetch("stolen_vehicles", queryset=StolenVehicle.objects.order_by("id")),
                Prefetch("status_history", queryset=StatusUpdate.objects.order_by("id")),
            )
            .order_by("-report_date", "-id")
        )
        rows = []
        for report in queryset:
            row = _row(report, REPORT_COLUMNS)
            row["stolen_vehicles"] = [_row(v, VEHICLE_COLUMNS) for v in report.stolen_vehicles.all()]
            row["status_history"] = [_row(h, HISTORY_COLUMNS) for h in report.status_history.all()]
            rows.append(row)
        return rows

    @staticmethod
    def _assigned_personnel_ids(report_id: int) -> list[int]:
        return list(
            PersonnelAssignment.objects
            .filter(report_id=report_id)
            .order_by("id")
            .values_list("personnel_id", flat=True)
        )
