"""
analytics.summary — Analytics Summarizer.

Pure functions over a sequence of ``AggregatedReport`` objects.  Nothing
here touches the database or the request; the service layer passes in the
role-scoped report list, the unit / personnel lookups and ``now``.

═══════════════════════════════════════════════════════════════════
 Conventions
═══════════════════════════════════════════════════════════════════

* **Top-N** rankings sort descending by count; equal counts keep the
  order in which the key was first seen (``sorted`` is stable).
* **Dangling references** (a unit or personnel id that no longer
  resolves) are dropped from rankings rather than shown as a
  placeholder name.
* **Empty input** never raises: every builder returns its normal shape
  with zero counts and ``has_data = False``.
* **Denominators** used for proportional widths are ``max(x, 1)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Mapping, Sequence

from django.utils import timezone

from core.constants import (
    NO_DATA_MESSAGE,
    TOP_CATEGORY_LIMIT,
    TOP_RANKING_LIMIT,
    UNKNOWN_VEHICLE_TYPE,
)
from core.domain.access import ReportScope
from reports.aggregation import AggregatedReport, PersonnelRef, UnitRef
from reports.models import ReportStatus, StatusDetail

MONTH_NAMES_LONG: tuple[str, ...] = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)
MONTH_NAMES_SHORT: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
)

# Sub-stages tallied per category, in column order.
SUB_STAGES: tuple[StatusDetail, ...] = (
    StatusDetail.LIDIK,
    StatusDetail.SIDIK,
    StatusDetail.P21,
    StatusDetail.DIVERSI,
    StatusDetail.RESTORATIVE_JUSTICE,
    StatusDetail.SP3,
)
SUB_STAGE_COLUMNS: dict[StatusDetail, str] = {
    StatusDetail.LIDIK: "lidik",
    StatusDetail.SIDIK: "sidik",
    StatusDetail.P21: "p21",
    StatusDetail.DIVERSI: "diversi",
    StatusDetail.RESTORATIVE_JUSTICE: "rj",
    StatusDetail.SP3: "sp3",
}
TALLY_COLUMNS: tuple[str, ...] = ("total", "selesai") + tuple(SUB_STAGE_COLUMNS[s] for s in SUB_STAGES)


# ═══════════════════════════════════════════════════════════════════
#  Scoping and filtering
# ═══════════════════════════════════════════════════════════════════


def scope_reports(reports: Iterable[AggregatedReport], scope: ReportScope) -> list[AggregatedReport]:
    """Reports assigned to the scope's unit; everything for an admin."""
    if scope.is_admin:
        return list(reports)
    if scope.unit_id is None:
        return []
    return [r for r in reports if r.assigned_unit_id == scope.unit_id]


def _local_midnight(day: date) -> datetime:
    return timezone.make_aware(datetime.combine(day, time.min))


def filter_by_date_range(
    reports: Iterable[AggregatedReport],
    start: date | None,
    end: date | None,
) -> list[AggregatedReport]:
    """
    Keep reports filed between ``start`` and the end of ``end``.

    The upper bound is ``end`` + 24h so every report of the end day is
    included.  Without both bounds the input is returned unchanged.
    """
    if not start or not end:
        return list(reports)
    lower = _local_midnight(start)
    upper = _local_midnight(end) + timedelta(days=1)
    return [r for r in reports if lower <= r.report_date <= upper]


# ═══════════════════════════════════════════════════════════════════
#  Category tallies
# ═══════════════════════════════════════════════════════════════════


def _empty_stages() -> dict[StatusDetail, int]:
    return {stage: 0 for stage in SUB_STAGES}


@dataclass
class Tally:
    total: int = 0
    selesai: int = 0
    stages: dict[StatusDetail, int] = field(default_factory=_empty_stages)

    def add(self, report: AggregatedReport) -> None:
        self.total += 1
        if report.status == ReportStatus.SELESAI:
            self.selesai += 1
        if report.status_detail in StatusDetail.values:
            stage = StatusDetail(report.status_detail)
            if stage in self.stages:
                self.stages[stage] += 1

    def merge(self, other: Tally) -> None:
        self.total += other.total
        self.selesai += other.selesai
        for stage in SUB_STAGES:
            self.stages[stage] += other.stages[stage]

    def as_dict(self) -> dict[str, int]:
        row = {"total": self.total, "selesai": self.selesai}
        for stage in SUB_STAGES:
            row[SUB_STAGE_COLUMNS[stage]] = self.stages[stage]
        return row

    def values(self) -> list[int]:
        row = self.as_dict()
        return [row[column] for column in TALLY_COLUMNS]


@dataclass
class CategoryTable:
    rows: dict[str, Tally] = field(default_factory=dict)
    totals: Tally = field(default_factory=Tally)

    @property
    def has_data(self) -> bool:
        return bool(self.rows)

    def as_rows(self) -> list[dict[str, Any]]:
        return [{"case_type": case_type, **tally.as_dict()} for case_type, tally in self.rows.items()]


def tally_by_category(reports: Iterable[AggregatedReport]) -> CategoryTable:
    """
    Cross-tabulate reports by case type.

    Rows appear in order of first occurrence; ``totals`` is the
    column-wise sum of all rows.
    """
    table = CategoryTable()
    for report in reports:
        table.rows.setdefault(report.case_type, Tally()).add(report)
    for tally in table.rows.values():
        table.totals.merge(tally)
    return table


# ═══════════════════════════════════════════════════════════════════
#  Rankings
# ═══════════════════════════════════════════════════════════════════


def _rank(counts: Mapping[Any, int], limit: int) -> list[tuple[Any, int]]:
    return sorted(counts.items(), key=lambda item: -item[1])[:limit]


def stat_cards(reports: Sequence[AggregatedReport]) -> dict[str, int]:
    return {
        "total": len(reports),
        "proses": sum(1 for r in reports if r.status == ReportStatus.PROSES),
        "selesai": sum(1 for r in reports if r.status == ReportStatus.SELESAI),
        "stolen_vehicles": sum(len(r.stolen_vehicles) for r in reports),
    }


def top_categories(reports: Iterable[AggregatedReport], limit: int = TOP_CATEGORY_LIMIT) -> list[dict[str, Any]]:
    counts: dict[str, int] = {}
    for report in reports:
        counts[report.case_type] = counts.get(report.case_type, 0) + 1
    return [{"label": label, "count": count} for label, count in _rank(counts, limit)]


def top_units(
    reports: Iterable[AggregatedReport],
    units: Mapping[int, UnitRef],
    limit: int = TOP_RANKING_LIMIT,
) -> list[dict[str, Any]]:
    """Units by number of assigned reports; unknown unit ids are skipped."""
    counts: dict[int, int] = {}
    for report in reports:
        unit_id = report.assigned_unit_id
        if unit_id is None or unit_id not in units:
            continue
        counts[unit_id] = counts.get(unit_id, 0) + 1
    return [
        {"id": unit_id, "label": units[unit_id].name, "count": count}
        for unit_id, count in _rank(counts, limit)
    ]


def top_personnel(
    reports: Iterable[AggregatedReport],
    personnel: Mapping[int, PersonnelRef],
    limit: int = TOP_RANKING_LIMIT,
) -> list[dict[str, Any]]:
    """
    Officers by number of assigned reports that reached ``P21``;
    unknown personnel ids are skipped.
    """
    counts: dict[int, int] = {}
    for report in reports:
        if report.status_detail != StatusDetail.P21:
            continue
        for pid in report.assigned_personnel_ids:
            if pid in personnel:
                counts[pid] = counts.get(pid, 0) + 1
    return [
        {"id": pid, "label": personnel[pid].display_name, "count": count}
        for pid, count in _rank(counts, limit)
    ]


def top_vehicle_types(vehicles: Iterable[Mapping[str, Any]], limit: int = TOP_RANKING_LIMIT) -> list[dict[str, Any]]:
    counts: dict[str, int] = {}
    for vehicle in vehicles:
        label = (vehicle.get("vehicle_type") or "").strip() or UNKNOWN_VEHICLE_TYPE
        counts[label] = counts.get(label, 0) + 1
    return [{"label": label, "count": count} for label, count in _rank(counts, limit)]


def bar_width(value: int, peak: int) -> float:
    """Width of a bar as a percentage of ``peak``."""
    return round(100.0 * value / max(peak, 1), 1)


def with_widths(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    peak = max((e["count"] for e in entries), default=0)
    return [{**e, "width": bar_width(e["count"], peak)} for e in entries]


# ═══════════════════════════════════════════════════════════════════
#  Trends
# ═══════════════════════════════════════════════════════════════════


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES_LONG[month - 1]} {year}"


@dataclass
class MonthCount:
    total: int = 0
    selesai: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"total": self.total, "selesai": self.selesai}


@dataclass
class TrendTable:
    months: list[str]
    rows: dict[str, list[MonthCount]] = field(default_factory=dict)
    totals: list[MonthCount] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.rows)

    def as_rows(self) -> list[dict[str, Any]]:
        return [
            {"case_type": case_type, "months": [c.as_dict() for c in counts]}
            for case_type, counts in self.rows.items()
        ]


def three_month_trend(reports: Iterable[AggregatedReport], now: datetime) -> TrendTable:
    """
    Per-category totals for the month containing ``now`` and the two
    calendar months before it.

    Reports dated on or after the current month start fall in the last
    bucket.  Categories with no activity in the window are dropped.
    """
    now = timezone.localtime(now)
    months = [_shift_month(now.year, now.month, delta) for delta in (-2, -1, 0)]
    starts = [_local_midnight(date(y, m, 1)) for y, m in months]

    counts: dict[str, list[MonthCount]] = {}
    for report in reports:
        if report.report_date >= starts[2]:
            bucket = 2
        elif report.report_date >= starts[1]:
            bucket = 1
        elif report.report_date >= starts[0]:
            bucket = 0
        else:
            continue
        row = counts.setdefault(report.case_type, [MonthCount(), MonthCount(), MonthCount()])
        row[bucket].total += 1
        if report.status == ReportStatus.SELESAI:
            row[bucket].selesai += 1

    table = TrendTable(months=[month_label(y, m) for y, m in months])
    table.rows = {k: v for k, v in counts.items() if any(c.total for c in v)}
    table.totals = [
        MonthCount(
            total=sum(row[i].total for row in table.rows.values()),
            selesai=sum(row[i].selesai for row in table.rows.values()),
        )
        for i in range(3)
    ]
    return table


def yearly_trend(reports: Iterable[AggregatedReport], year: int) -> dict[str, Any]:
    """Monthly total / completed counts for one calendar year."""
    months = [MonthCount() for _ in range(12)]
    for report in reports:
        local = timezone.localtime(report.report_date)
        if local.year != year:
            continue
        months[local.month - 1].total += 1
        if report.status == ReportStatus.SELESAI:
            months[local.month - 1].selesai += 1

    peak = max(max(m.total for m in months), 1)
    return {
        "year": year,
        "has_data": any(m.total for m in months),
        "peak": peak,
        "months": [
            {
                "label": MONTH_NAMES_SHORT[i],
                "total": m.total,
                "selesai": m.selesai,
                "width": bar_width(m.total, peak),
            }
            for i, m in enumerate(months)
        ],
    }


# ═══════════════════════════════════════════════════════════════════
#  Dashboard
# ═══════════════════════════════════════════════════════════════════


def dashboard_section(
    reports: Sequence[AggregatedReport],
    *,
    units: Mapping[int, UnitRef],
    personnel: Mapping[int, PersonnelRef],
    include_rankings: bool,
    year: int,
) -> dict[str, Any]:
    """
    One dashboard tab (police reports or public complaints).

    Unit and personnel rankings are only computed for an admin viewer.
    """
    if not reports:
        return {
            "has_data": False,
            "message": NO_DATA_MESSAGE,
            "stats": stat_cards(reports),
            "yearly_trend": yearly_trend(reports, year),
            "top_case_types": [],
            "top_units": [],
            "top_personnel": [],
        }
    return {
        "has_data": True,
        "message": "",
        "stats": stat_cards(reports),
        "yearly_trend": yearly_trend(reports, year),
        "top_case_types": with_widths(top_categories(reports)),
        "top_units": with_widths(top_units(reports, units)) if include_rankings else [],
        "top_personnel": with_widths(top_personnel(reports, personnel)) if include_rankings else [],
    }
