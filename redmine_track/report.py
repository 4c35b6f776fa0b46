"""
Reporting engine for time entries.

A Report is built once from a list of time entries and answers two kinds
of queries: the entries and total of a single day, and a week grid of
projects by weekday with row and column totals.
"""

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .models import TimeEntry, parse_spent_on
from .week_utils import monday_of, sunday_of, week_dates


NORMAL_HOURS_LIMIT = 8.0
WARNING_HOURS_LIMIT = 10.0


class Severity(Enum):
    """Classification of a day's total hours."""
    NORMAL = 'normal'
    WARNING = 'warning'
    OVERTIME = 'overtime'

    @classmethod
    def classify(cls, hours: float) -> 'Severity':
        """
        Classify a day total.

        Examples:
            >>> Severity.classify(8.0)
            <Severity.NORMAL: 'normal'>
            >>> Severity.classify(9.0)
            <Severity.WARNING: 'warning'>
            >>> Severity.classify(12.0)
            <Severity.OVERTIME: 'overtime'>
        """
        if hours > WARNING_HOURS_LIMIT:
            return cls.OVERTIME
        if hours > NORMAL_HOURS_LIMIT:
            return cls.WARNING
        return cls.NORMAL


@dataclass(frozen=True)
class GridCell:
    """
    A numeric grid cell with its display hints.

    Attributes:
        hours: Cell value
        blank: Whether the renderer should leave the cell empty (zero value)
        severity: Day total classification, only set on the totals row
    """
    hours: float
    blank: bool
    severity: Optional[Severity] = None

    @classmethod
    def of(cls, hours: float, severity: Optional[Severity] = None) -> 'GridCell':
        return cls(hours=hours, blank=hours == 0, severity=severity)


@dataclass(frozen=True)
class GridRow:
    """One project row of a weekly grid."""
    project_id: int
    name: str
    cells: Tuple[GridCell, ...]
    total: GridCell


@dataclass(frozen=True)
class TotalRow:
    """The trailing totals row of a weekly grid."""
    cells: Tuple[GridCell, ...]
    grand_total: GridCell

    @property
    def day_totals(self) -> Tuple[float, ...]:
        return tuple(cell.hours for cell in self.cells)


@dataclass(frozen=True)
class WeeklyGrid:
    """
    Projects by weekday matrix for one week.

    Attributes:
        monday: First day of the week
        sunday: Last day of the week
        days: The seven dates Monday..Sunday
        rows: Project rows ordered by name, then id
        totals: Per-day totals and the grand total
    """
    monday: date
    sunday: date
    days: Tuple[date, ...]
    rows: Tuple[GridRow, ...]
    totals: TotalRow

    @property
    def grand_total(self) -> float:
        return self.totals.grand_total.hours

    def is_consistent(self) -> bool:
        """Check that the row totals and the day totals add up to the same value."""
        by_rows = math.fsum(row.total.hours for row in self.rows)
        by_days = math.fsum(self.totals.day_totals)
        return math.isclose(by_rows, by_days, abs_tol=1e-9) and math.isclose(
            by_rows, self.grand_total, abs_tol=1e-9
        )


@dataclass(frozen=True)
class DailyReport:
    """
    The entries of a single day.

    Attributes:
        date: The reported day
        entries: Entries of that day in the order they were supplied
        total_hours: Sum of the entries' hours
    """
    date: date
    entries: Tuple[TimeEntry, ...] = ()
    total_hours: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.entries


@dataclass(frozen=True)
class IssueSummaryRow:
    """Hours booked on one issue (or directly on a project) in a date range."""
    project_id: int
    project_name: str
    issue_id: Optional[int]
    hours: float


class _ReportBuilder:
    """Accumulates entries into the maps a Report is made of."""

    def __init__(self):
        self.projects: Dict[int, str] = {}
        self.cumulative_hours: Dict[Tuple[date, int], float] = {}
        self.entries_per_day: Dict[date, List[TimeEntry]] = {}
        self.hours_per_project: Dict[int, float] = {}
        self.hours_at: Dict[date, float] = {}

    def add(self, entry: TimeEntry):
        spent_on = parse_spent_on(entry.spent_on)
        project_id = entry.project.id

        key = (spent_on, project_id)
        self.cumulative_hours[key] = self.cumulative_hours.get(key, 0.0) + entry.hours
        self.entries_per_day.setdefault(spent_on, []).append(entry)
        self.hours_per_project[project_id] = (
            self.hours_per_project.get(project_id, 0.0) + entry.hours
        )
        self.hours_at[spent_on] = self.hours_at.get(spent_on, 0.0) + entry.hours

        # First non-empty name wins
        if entry.project.name and project_id not in self.projects:
            self.projects[project_id] = entry.project.name

    def build(self) -> 'Report':
        seen = set(self.hours_per_project)
        return Report(
            projects={pid: self.projects.get(pid) for pid in seen},
            cumulative_hours=dict(self.cumulative_hours),
            entries_per_day={day: tuple(items) for day, items in self.entries_per_day.items()},
            hours_per_project=dict(self.hours_per_project),
            hours_at=dict(self.hours_at),
        )


class Report:
    """
    The result of cumulating a list of time entries.

    Build it with ``Report.from_entries``; it is never modified afterwards,
    so the same instance can answer any number of queries.
    """

    def __init__(
        self,
        projects: Dict[int, Optional[str]],
        cumulative_hours: Dict[Tuple[date, int], float],
        entries_per_day: Dict[date, Tuple[TimeEntry, ...]],
        hours_per_project: Dict[int, float],
        hours_at: Dict[date, float],
    ):
        self._projects = MappingProxyType(projects)
        self._cumulative_hours = MappingProxyType(cumulative_hours)
        self._entries_per_day = MappingProxyType(entries_per_day)
        self._hours_per_project = MappingProxyType(hours_per_project)
        self._hours_at = MappingProxyType(hours_at)

    @classmethod
    def from_entries(cls, time_entries: Iterable[TimeEntry]) -> 'Report':
        """
        Create a Report from time entries.

        Every entry is recorded, including zero-hour entries and entries
        sharing an id or a date. An empty input gives an empty report.

        Args:
            time_entries: Entries in display order

        Returns:
            The finished Report

        Raises:
            MalformedDate: If any entry has an unparseable ``spent_on``
        """
        builder = _ReportBuilder()
        for time_entry in time_entries:
            builder.add(time_entry)
        return builder.build()

    @property
    def projects(self) -> Mapping[int, Optional[str]]:
        """Project id to display name (None when no entry carried a name)."""
        return self._projects

    @property
    def cumulative_hours(self) -> Mapping[Tuple[date, int], float]:
        return self._cumulative_hours

    @property
    def hours_per_project(self) -> Mapping[int, float]:
        return self._hours_per_project

    @property
    def hours_per_day(self) -> Mapping[date, float]:
        return self._hours_at

    def entries_on(self, day: date) -> Tuple[TimeEntry, ...]:
        return self._entries_per_day.get(day, ())

    def project_name(self, project_id: int) -> str:
        """Display name of a project, ``#<id>`` when none is known."""
        return self._projects.get(project_id) or f"#{project_id}"

    def get_report_for_date(self, needle: date) -> DailyReport:
        """
        Return the DailyReport for ``needle``.

        A day without entries gives an empty report with a total of 0.0.
        """
        return DailyReport(
            date=needle,
            entries=self.entries_on(needle),
            total_hours=self._hours_at.get(needle, 0.0),
        )

    def get_weekly_grid(self, day: date) -> WeeklyGrid:
        """
        Build the weekly grid for the week containing ``day``.

        Every project of the report gets a row, even when it has no hours
        in this week.

        Args:
            day: Any date inside the wanted week

        Returns:
            The WeeklyGrid
        """
        days = tuple(week_dates(day))
        project_ids = sorted(
            self._projects,
            key=lambda pid: (self.project_name(pid), pid),
        )

        rows = []
        for project_id in project_ids:
            hours = [self._cumulative_hours.get((d, project_id), 0.0) for d in days]
            rows.append(GridRow(
                project_id=project_id,
                name=self.project_name(project_id),
                cells=tuple(GridCell.of(h) for h in hours),
                total=GridCell.of(math.fsum(hours)),
            ))

        day_cells = []
        for d in days:
            total = self._hours_at.get(d, 0.0)
            day_cells.append(GridCell.of(total, Severity.classify(total)))

        grand_total = math.fsum(row.total.hours for row in rows)

        return WeeklyGrid(
            monday=monday_of(day),
            sunday=sunday_of(day),
            days=days,
            rows=tuple(rows),
            totals=TotalRow(cells=tuple(day_cells), grand_total=GridCell.of(grand_total)),
        )

    def get_issue_summary(self, start: date, end: date) -> List[IssueSummaryRow]:
        """
        Sum hours per issue for the days from ``start`` to ``end`` inclusive.

        Entries without an issue are grouped per project with
        ``issue_id=None``. Rows are ordered by project name, then issue id
        (project-level rows first).
        """
        totals: Dict[Tuple[int, Optional[int]], float] = {}
        for day, entries in self._entries_per_day.items():
            if not start <= day <= end:
                continue
            for entry in entries:
                issue_id = entry.issue.id if entry.issue is not None else None
                key = (entry.project.id, issue_id)
                totals[key] = totals.get(key, 0.0) + entry.hours

        rows = [
            IssueSummaryRow(
                project_id=project_id,
                project_name=self.project_name(project_id),
                issue_id=issue_id,
                hours=hours,
            )
            for (project_id, issue_id), hours in totals.items()
        ]
        rows.sort(key=lambda r: (
            r.project_name,
            r.project_id,
            -1 if r.issue_id is None else r.issue_id,
        ))
        return rows
