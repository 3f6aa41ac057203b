"""
Analytics Service Layer.

Binds the pure functions of ``analytics.summary`` to a requesting user:
the user's report snapshot is loaded once, narrowed to the user's
``ReportScope`` (operators only see their unit's reports), and fed to the
summarizer.

Architecture
------------
- ``AnalyticsService.dashboard``      — per report-type tabs.
- ``AnalyticsService.crime_summary``  — category tallies for a date range.
- ``AnalyticsService.crime_trend``    — three month trend.
- ``AnalyticsService.export_*``       — the same tables as ``.xlsx``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from django.utils import timezone

from core.domain.access import get_report_scope
from reports.models import ReportType
from reports.services import ReportSnapshotService

from . import exports
from .summary import (
    dashboard_section,
    filter_by_date_range,
    scope_reports,
    tally_by_category,
    three_month_trend,
)

logger = logging.getLogger(__name__)

SECTION_KEYS: dict[str, str] = {
    ReportType.LAPORAN_POLISI: "laporan_polisi",
    ReportType.PENGADUAN_MASYARAKAT: "pengaduan_masyarakat",
}


class AnalyticsService:
    """
    Role-aware analytics for one user.

    ``now`` is injectable for tests; it defaults to the current time in
    ``settings.TIME_ZONE``.
    """

    def __init__(self, user, now: datetime | None = None) -> None:
        self.user = user
        self.now = timezone.localtime(now or timezone.now())
        self.scope = get_report_scope(user)
        self.snapshot = ReportSnapshotService.get_snapshot(user)
        self.reports = scope_reports(self.snapshot.reports, self.scope)

    # ── Dashboard ───────────────────────────────────────────────────

    def dashboard(self, year: int | None = None) -> dict[str, Any]:
        year = year or self.now.year
        sections = {}
        for report_type, key in SECTION_KEYS.items():
            reports = [r for r in self.reports if r.report_type == report_type]
            sections[key] = dashboard_section(
                reports,
                units=self.snapshot.units,
                personnel=self.snapshot.personnel,
                include_rankings=self.scope.is_admin,
                year=year,
            )
        return {
            "scope": {
                "is_admin": self.scope.is_admin,
                "unit_id": self.scope.unit_id,
                "unit_name": self.snapshot.unit_name(self.scope.unit_id),
            },
            "year": year,
            "sections": sections,
        }

    # ── Crime data ──────────────────────────────────────────────────

    def crime_summary(self, start: date | None = None, end: date | None = None) -> dict[str, Any]:
        table = tally_by_category(filter_by_date_range(self.reports, start, end))
        return {
            "period": exports.period_label(start, end),
            "start_date": start,
            "end_date": end,
            "has_data": table.has_data,
            "rows": table.as_rows(),
            "totals": table.totals.as_dict(),
        }

    def crime_trend(self) -> dict[str, Any]:
        table = three_month_trend(self.reports, self.now)
        return {
            "months": table.months,
            "has_data": table.has_data,
            "rows": table.as_rows(),
            "totals": [c.as_dict() for c in table.totals],
        }

    # ── Exports ─────────────────────────────────────────────────────

    def export_summary(self, start: date | None = None, end: date | None = None) -> tuple[str, bytes]:
        table = tally_by_category(filter_by_date_range(self.reports, start, end))
        content = exports.workbook_bytes(exports.build_summary_workbook(table, start, end))
        filename = exports.summary_filename(start, end)
        logger.info("Summary export %s (%d categories) for %s", filename, len(table.rows), self.user)
        return filename, content

    def export_trend(self) -> tuple[str, bytes]:
        table = three_month_trend(self.reports, self.now)
        content = exports.workbook_bytes(exports.build_trend_workbook(table))
        logger.info("Trend export (%d categories) for %s", len(table.rows), self.user)
        return exports.TREND_FILENAME, content
