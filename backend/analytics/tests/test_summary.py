"""
Tests for ``analytics.summary``.

Plain pytest functions over hand-built ``AggregatedReport`` lists; no
database access.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest
from django.utils import timezone

from analytics.summary import (
    bar_width,
    dashboard_section,
    filter_by_date_range,
    scope_reports,
    stat_cards,
    tally_by_category,
    three_month_trend,
    top_categories,
    top_personnel,
    top_units,
    top_vehicle_types,
    with_widths,
    yearly_trend,
)
from core.constants import NO_DATA_MESSAGE
from core.domain.access import ReportScope
from reports.aggregation import AggregatedReport, PersonnelRef, UnitRef

_next_id = iter(range(1, 10_000))


def local(*args) -> datetime:
    return timezone.make_aware(datetime(*args))


def make_report(
    case_type: str = "Curanmor",
    status: str = "Proses",
    detail: str = "Lidik",
    *,
    when: datetime | None = None,
    unit_id: int | None = 1,
    personnel_ids: list[int] | None = None,
    vehicles: int = 0,
    report_type: str = "Laporan Polisi",
) -> AggregatedReport:
    report_id = next(_next_id)
    return AggregatedReport(
        id=report_id,
        report_type=report_type,
        report_year=2025,
        report_number=str(report_id),
        police_model="B" if report_type == "Laporan Polisi" else None,
        spkt="Polresta Sorong Kota",
        report_date=when or local(2025, 3, 10, 9, 0),
        reporter_name="Pelapor",
        case_type=case_type,
        incident_date=date(2025, 3, 9),
        incident_time=None,
        incident_location="Jl. Ahmad Yani",
        location_type="Jalan Raya",
        district="Sorong",
        sub_district="Remu",
        loss_amount=0,
        status=status,
        status_detail=detail,
        assigned_unit_id=unit_id,
        assigned_personnel_ids=list(personnel_ids or []),
        stolen_vehicles=[{"id": i, "vehicle_type": "Honda Beat"} for i in range(vehicles)],
    )


# ════════════════════════════════════════════════════════════════════
#  Category tallies
# ════════════════════════════════════════════════════════════════════


def test_category_tally_cross_tabulates_sub_stages():
    table = tally_by_category([
        make_report("Curanmor", "Selesai", "P21"),
        make_report("Curanmor", "Proses", "Lidik"),
        make_report("Penipuan", "Selesai", "SP3"),
    ])

    curanmor = table.rows["Curanmor"].as_dict()
    penipuan = table.rows["Penipuan"].as_dict()
    assert curanmor == {"total": 2, "selesai": 1, "lidik": 1, "sidik": 0, "p21": 1, "diversi": 0, "rj": 0, "sp3": 0}
    assert penipuan == {"total": 1, "selesai": 1, "lidik": 0, "sidik": 0, "p21": 0, "diversi": 0, "rj": 0, "sp3": 1}

    totals = table.totals.as_dict()
    for column, value in totals.items():
        assert value == curanmor[column] + penipuan[column]


def test_category_rows_keep_first_occurrence_order():
    table = tally_by_category([make_report("Penganiayaan"), make_report("Curanmor"), make_report("Penganiayaan")])
    assert list(table.rows) == ["Penganiayaan", "Curanmor"]


def test_restorative_justice_counts_in_rj_column():
    table = tally_by_category([make_report("Penganiayaan", "Selesai", "Restorative Justice")])
    assert table.rows["Penganiayaan"].as_dict()["rj"] == 1


def test_empty_tally_has_no_data():
    table = tally_by_category([])
    assert table.has_data is False
    assert table.as_rows() == []
    assert table.totals.as_dict()["total"] == 0


# ════════════════════════════════════════════════════════════════════
#  Date range
# ════════════════════════════════════════════════════════════════════


def test_same_day_range_includes_whole_day():
    day = date(2025, 3, 10)
    inside = [make_report(when=local(2025, 3, 10, 0, 0)), make_report(when=local(2025, 3, 10, 23, 59, 59))]
    outside = [make_report(when=local(2025, 3, 9, 23, 59, 59)), make_report(when=local(2025, 3, 11, 0, 0, 1))]

    kept = filter_by_date_range(inside + outside, day, day)
    assert [r.id for r in kept] == [r.id for r in inside]


def test_missing_bound_returns_everything():
    reports = [make_report(when=local(2020, 1, 1)), make_report()]
    assert len(filter_by_date_range(reports, date(2025, 3, 1), None)) == 2
    assert len(filter_by_date_range(reports, None, None)) == 2


# ════════════════════════════════════════════════════════════════════
#  Scope
# ════════════════════════════════════════════════════════════════════


def test_unit_scope_only_sees_assigned_unit():
    mine, other, unassigned = make_report(unit_id=1), make_report(unit_id=2), make_report(unit_id=None)
    assert scope_reports([mine, other, unassigned], ReportScope.for_unit(1)) == [mine]
    assert len(scope_reports([mine, other, unassigned], ReportScope.everything())) == 3
    assert scope_reports([mine], ReportScope.for_unit(None)) == []


# ════════════════════════════════════════════════════════════════════
#  Rankings
# ════════════════════════════════════════════════════════════════════


def test_top_units_skip_dangling_references_and_keep_tie_order():
    units = {1: UnitRef(1, "Unit Ranmor"), 2: UnitRef(2, "Unit Jatanras")}
    reports = [
        make_report(unit_id=2),
        make_report(unit_id=1),
        make_report(unit_id=99),
        make_report(unit_id=99),
        make_report(unit_id=None),
    ]
    ranking = top_units(reports, units)
    assert [(e["label"], e["count"]) for e in ranking] == [("Unit Jatanras", 1), ("Unit Ranmor", 1)]


def test_top_personnel_counts_only_p21():
    personnel = {
        10: PersonnelRef(10, "Andi", "BRIPKA", 1),
        11: PersonnelRef(11, "Budi", "BRIGPOL", 1),
    }
    reports = [
        make_report(status="Selesai", detail="P21", personnel_ids=[10, 11]),
        make_report(status="Selesai", detail="P21", personnel_ids=[11, 404]),
        make_report(status="Proses", detail="Sidik", personnel_ids=[10]),
    ]
    ranking = top_personnel(reports, personnel)
    assert [(e["label"], e["count"]) for e in ranking] == [("BRIGPOL Budi", 2), ("BRIPKA Andi", 1)]


def test_top_categories_limit():
    reports = [make_report(f"Kasus {i}") for i in range(10)]
    assert len(top_categories(reports)) == 7
    assert len(top_categories(reports, limit=3)) == 3


def test_top_vehicle_types_label_unknown():
    rows = [{"vehicle_type": "Honda Beat"}, {"vehicle_type": ""}, {"vehicle_type": "Honda Beat"}]
    assert top_vehicle_types(rows) == [
        {"label": "Honda Beat", "count": 2},
        {"label": "Tidak Diketahui", "count": 1},
    ]


def test_widths_guard_zero_denominator():
    assert bar_width(0, 0) == 0.0
    assert with_widths([{"label": "x", "count": 0}]) == [{"label": "x", "count": 0, "width": 0.0}]
    assert [e["width"] for e in with_widths([{"count": 4}, {"count": 2}])] == [100.0, 50.0]


def test_stat_cards():
    reports = [make_report(vehicles=2), make_report(status="Selesai", detail="P21", vehicles=1)]
    assert stat_cards(reports) == {"total": 2, "proses": 1, "selesai": 1, "stolen_vehicles": 3}


# ════════════════════════════════════════════════════════════════════
#  Trends
# ════════════════════════════════════════════════════════════════════


def test_three_month_trend_buckets_and_drops_inactive_categories():
    now = local(2025, 3, 15, 12, 0)
    reports = [
        make_report("Curanmor", when=local(2025, 1, 1, 0, 0)),
        make_report("Curanmor", "Selesai", "P21", when=local(2025, 2, 20, 8, 0)),
        make_report("Curanmor", when=local(2025, 3, 1, 0, 0)),
        make_report("Penipuan", when=local(2024, 12, 31, 23, 59)),
    ]
    table = three_month_trend(reports, now)

    assert table.months == ["Januari 2025", "Februari 2025", "Maret 2025"]
    assert list(table.rows) == ["Curanmor"]
    assert [c.as_dict() for c in table.rows["Curanmor"]] == [
        {"total": 1, "selesai": 0},
        {"total": 1, "selesai": 1},
        {"total": 1, "selesai": 0},
    ]
    assert [c.total for c in table.totals] == [1, 1, 1]


def test_three_month_trend_crosses_year_boundary():
    table = three_month_trend([], local(2025, 1, 5, 8, 0))
    assert table.months == ["November 2024", "Desember 2024", "Januari 2025"]
    assert table.has_data is False


def test_yearly_trend():
    reports = [
        make_report(when=local(2025, 2, 1, 10, 0)),
        make_report(status="Selesai", detail="SP3", when=local(2025, 2, 28, 10, 0)),
        make_report(when=local(2024, 2, 1, 10, 0)),
    ]
    trend = yearly_trend(reports, 2025)
    february = trend["months"][1]
    assert february == {"label": "Feb", "total": 2, "selesai": 1, "width": 100.0}
    assert trend["peak"] == 2
    assert trend["has_data"] is True
    assert len(trend["months"]) == 12


def test_yearly_trend_empty_year():
    trend = yearly_trend([], 2025)
    assert trend["has_data"] is False
    assert trend["peak"] == 1
    assert all(m["width"] == 0.0 for m in trend["months"])


# ════════════════════════════════════════════════════════════════════
#  Dashboard
# ════════════════════════════════════════════════════════════════════


def test_dashboard_section_no_data_shape():
    section = dashboard_section([], units={}, personnel={}, include_rankings=True, year=2025)
    assert section["has_data"] is False
    assert section["message"] == NO_DATA_MESSAGE
    assert section["stats"]["total"] == 0
    assert section["top_case_types"] == []


@pytest.mark.parametrize("include_rankings", [True, False])
def test_dashboard_section_rankings_are_admin_only(include_rankings):
    units = {1: UnitRef(1, "Unit Ranmor")}
    personnel = {10: PersonnelRef(10, "Andi", "BRIPKA", 1)}
    reports = [make_report(status="Selesai", detail="P21", personnel_ids=[10])]

    section = dashboard_section(reports, units=units, personnel=personnel, include_rankings=include_rankings, year=2025)

    assert section["has_data"] is True
    assert section["top_case_types"] == [{"label": "Curanmor", "count": 1, "width": 100.0}]
    if include_rankings:
        assert section["top_units"][0]["label"] == "Unit Ranmor"
        assert section["top_personnel"][0]["label"] == "BRIPKA Andi"
    else:
        assert section["top_units"] == []
        assert section["top_personnel"] == []
