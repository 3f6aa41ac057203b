"""
reports.aggregation — Report Aggregator.

Turns the independently fetched, normalized rows of a ``ReportStore``
into one denormalized ``AggregatedReport`` per case.

═══════════════════════════════════════════════════════════════════
 Flow
═══════════════════════════════════════════════════════════════════

1. **Primary batch** — units, personnel and reports (with vehicle and
   history sub-rows) are fetched concurrently.  All three are awaited;
   if any of them failed the whole aggregation raises
   ``AggregationError``.
2. **Assignment lookups** — one personnel-id lookup per report, issued
   concurrently and collected into a ``BatchResult``.  A failed lookup
   is logged and that report gets an empty id list.
3. **Mapping** — each row becomes an ``AggregatedReport``; history is
   sorted ascending by timestamp, absent sub-collections become ``[]``.
4. **Post-filter** — soft-deleted reports are dropped and report ids are
   de-duplicated (first occurrence wins).

The result is an ``AggregateSnapshot`` that the analytics and list
endpoints read from.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Awaitable, Callable, Generic, Hashable, Iterable, Mapping, TypeVar, Union

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime, parse_time

from core.domain.exceptions import AggregationError

from .models import ReportStatus, format_report_number, format_short_number
from .store import ReportStore, Row

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


# ═══════════════════════════════════════════════════════════════════
#  Batch results
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Success(Generic[K, T]):
    key: K
    value: T


@dataclass(frozen=True)
class Failure(Generic[K]):
    key: K
    error: BaseException


@dataclass
class BatchResult(Generic[K, T]):
    """
    Outcome of a set of independent lookups, one item per key.

    Every key has exactly one ``Success`` or ``Failure``; a failure never
    hides the other keys' results.
    """

    items: list[Union[Success[K, T], Failure[K]]] = field(default_factory=list)

    @classmethod
    async def collect(
        cls,
        keys: Iterable[K],
        lookup: Callable[[K], Awaitable[T]],
    ) -> BatchResult[K, T]:
        keys = list(keys)
        outcomes = await asyncio.gather(*(lookup(key) for key in keys), return_exceptions=True)
        items: list[Union[Success[K, T], Failure[K]]] = []
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                items.append(Failure(key, outcome))
            else:
                items.append(Success(key, outcome))
        return cls(items)

    @property
    def failures(self) -> list[Failure[K]]:
        return [item for item in self.items if isinstance(item, Failure)]

    def as_dict(self, default: Callable[[], T]) -> dict[K, T]:
        """Map every key to its value, or to ``default()`` when it failed."""
        return {
            item.key: item.value if isinstance(item, Success) else default()
            for item in self.items
        }


# ═══════════════════════════════════════════════════════════════════
#  Assignment state
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Unassigned:
    pass


@dataclass(frozen=True)
class AssignedToUnit:
    unit_id: int


@dataclass(frozen=True)
class AssignedToUnitAndPersonnel:
    unit_id: int
    personnel_ids: tuple[int, ...]


Assignment = Union[Unassigned, AssignedToUnit, AssignedToUnitAndPersonnel]


def assignment_state(unit_id: int | None, personnel_ids: Iterable[int]) -> Assignment:
    if unit_id is None:
        return Unassigned()
    personnel_ids = tuple(personnel_ids)
    if personnel_ids:
        return AssignedToUnitAndPersonnel(unit_id, personnel_ids)
    return AssignedToUnit(unit_id)


def is_visible_to_unit(
    assignment: Assignment,
    unit_id: int | None,
    personnel_units: Mapping[int, int | None],
) -> bool:
    """
    Operator list-visibility rule.

    A report is visible to a unit when it is assigned to that unit, or
    when any assigned officer's home unit is that unit.
    """
    if unit_id is None:
        return False
    if isinstance(assignment, Unassigned):
        return False
    if isinstance(assignment, AssignedToUnit):
        return assignment.unit_id == unit_id
    if isinstance(assignment, AssignedToUnitAndPersonnel):
        return assignment.unit_id == unit_id or any(
            personnel_units.get(pid) == unit_id for pid in assignment.personnel_ids
        )
    raise TypeError(f"Unknown assignment state: {assignment!r}")


# ═══════════════════════════════════════════════════════════════════
#  Aggregated entities
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class UnitRef:
    id: int
    name: str


@dataclass(frozen=True)
class PersonnelRef:
    id: int
    name: str
    rank: str
    unit_id: int | None
    user_id: int | None = None

    @property
    def display_name(self) -> str:
        return f"{self.rank} {self.name}".strip()


@dataclass(frozen=True)
class HistoryEntry:
    status: str
    status_detail: str
    description: str
    updated_at: datetime
    updated_by: str


@dataclass
class AggregatedReport:
    id: int
    report_type: str
    report_year: int
    report_number: str
    police_model: str | None
    spkt: str
    report_date: datetime
    reporter_name: str
    case_type: str
    incident_date: date | None
    incident_time: time | None
    incident_location: str
    location_type: str
    district: str
    sub_district: str
    loss_amount: int
    status: str
    status_detail: str
    assigned_unit_id: int | None
    assigned_personnel_ids: list[int] = field(default_factory=list)
    stolen_vehicles: list[Row] = field(default_factory=list)
    status_history: list[HistoryEntry] = field(default_factory=list)

    @property
    def assignment(self) -> Assignment:
        return assignment_state(self.assigned_unit_id, self.assigned_personnel_ids)

    @property
    def display_number(self) -> str:
        return format_report_number(
            self.report_type, self.report_number, self.report_year, self.police_model,
        )

    @property
    def short_number(self) -> str:
        return format_short_number(self.report_type, self.report_number)


@dataclass
class AggregateSnapshot:
    units: dict[int, UnitRef]
    personnel: dict[int, PersonnelRef]
    reports: list[AggregatedReport]
    lookup_failures: int = 0
    built_at: datetime = field(default_factory=timezone.now)

    def personnel_units(self) -> dict[int, int | None]:
        return {p.id: p.unit_id for p in self.personnel.values()}

    def unit_name(self, unit_id: int | None) -> str | None:
        unit = self.units.get(unit_id) if unit_id is not None else None
        return unit.name if unit else None

    def get_report(self, report_id: int) -> AggregatedReport | None:
        for report in self.reports:
            if report.id == report_id:
                return report
        return None


# ═══════════════════════════════════════════════════════════════════
#  Row mapping
# ═══════════════════════════════════════════════════════════════════


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            parsed_date = parse_date(value)
            if parsed_date is None:
                raise ValueError(f"Invalid timestamp: {value!r}")
            parsed = datetime.combine(parsed_date, time.min)
        value = parsed
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def _as_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return parse_date(value)
    return value


def _as_time(value: Any) -> time | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return parse_time(value)
    return value


def map_history_row(row: Row) -> HistoryEntry:
    return HistoryEntry(
        status=row.get("status") or "",
        status_detail=row.get("status_detail") or "",
        description=row.get("description") or "",
        updated_at=_as_datetime(row["updated_at"]),
        updated_by=row.get("updated_by") or "",
    )


def map_report_row(row: Row, personnel_ids: list[int]) -> AggregatedReport:
    """Convert one remote report row (with nested sub-rows) to an ``AggregatedReport``."""
    history = [map_history_row(h) for h in row.get("status_history") or []]
    history.sort(key=lambda entry: entry.updated_at)

    return AggregatedReport(
        id=row["id"],
        report_type=row["report_type"],
        report_year=int(row["report_year"]),
        report_number=str(row["report_number"]),
        police_model=row.get("police_model") or None,
        spkt=row.get("spkt") or "",
        report_date=_as_datetime(row["report_date"]),
        reporter_name=row.get("reporter_name") or "",
        case_type=row.get("case_type") or "",
        incident_date=_as_date(row.get("incident_date")),
        incident_time=_as_time(row.get("incident_time")),
        incident_location=row.get("incident_location") or "",
        location_type=row.get("location_type") or "",
        district=row.get("district") or "",
        sub_district=row.get("sub_district") or "",
        loss_amount=int(row.get("loss_amount") or 0),
        status=row["status"],
        status_detail=row.get("status_detail") or "",
        assigned_unit_id=row.get("assigned_unit_id"),
        assigned_personnel_ids=list(personnel_ids),
        stolen_vehicles=list(row.get("stolen_vehicles") or []),
        status_history=history,
    )


# ═══════════════════════════════════════════════════════════════════
#  Aggregator
# ═══════════════════════════════════════════════════════════════════


class ReportAggregator:
    """
    Builds an ``AggregateSnapshot`` from a ``ReportStore``.

    Usage::

        snapshot = await ReportAggregator(OrmReportStore()).aggregate()
    """

    def __init__(self, store: ReportStore) -> None:
        self.store = store

    async def aggregate(self) -> AggregateSnapshot:
        unit_rows, personnel_rows, report_rows = await self._fetch_primary_batch()

        lookups = await BatchResult.collect(
            [row["id"] for row in report_rows],
            self.store.fetch_assigned_personnel_ids,
        )
        for failure in lookups.failures:
            logger.warning(
                "Assigned personnel lookup failed for report #%s: %s",
                failure.key,
                failure.error,
            )
        personnel_ids = lookups.as_dict(default=list)

        reports: list[AggregatedReport] = []
        seen: set[int] = set()
        for row in report_rows:
            if row["id"] in seen or row.get("status") == ReportStatus.DIHAPUS:
                continue
            seen.add(row["id"])
            reports.append(map_report_row(row, personnel_ids.get(row["id"], [])))

        snapshot = AggregateSnapshot(
            units={row["id"]: UnitRef(row["id"], row["name"]) for row in unit_rows},
            personnel={
                row["id"]: PersonnelRef(
                    id=row["id"],
                    name=row["name"],
                    rank=row.get("rank") or "",
                    unit_id=row.get("unit_id"),
                    user_id=row.get("user_id"),
                )
                for row in personnel_rows
            },
            reports=reports,
            lookup_failures=len(lookups.failures),
        )
        logger.info(
            "Aggregated %d reports (%d rows fetched, %d lookup failures)",
            len(reports),
            len(report_rows),
            snapshot.lookup_failures,
        )
        return snapshot

    async def _fetch_primary_batch(self) -> tuple[list[Row], list[Row], list[Row]]:
        sources = ("units", "personnel", "reports")
        outcomes = await asyncio.gather(
            self.store.fetch_units(),
            self.store.fetch_personnel(),
            self.store.fetch_reports(),
            return_exceptions=True,
        )
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Primary %s query failed: %s", source, outcome)
                raise AggregationError(source=source) from outcome
        return outcomes[0], outcomes[1], outcomes[2]
