"""
Terminal rendering of reports.

This module turns DailyReport, WeeklyGrid and related results into
``rich`` tables. It only formats; all numbers come from the report.
"""

from typing import Dict, Optional, Sequence

from rich import box
from rich.table import Table
from rich.text import Text

from .models import Issue, SearchResult, entry_label
from .report import DailyReport, GridCell, IssueSummaryRow, Severity, WeeklyGrid
from .week_utils import WEEKDAY_NAMES, format_week_label


SEVERITY_STYLES = {
    Severity.NORMAL: "green",
    Severity.WARNING: "yellow",
    Severity.OVERTIME: "bold red",
}

COMMENT_STYLE = "rgb(230,230,230)"


def format_hours(hours: float) -> str:
    return f"{hours:.2f}"


def _cell_text(cell: GridCell, style: str = "") -> Text:
    """Render a grid cell, leaving zero cells empty."""
    if cell.blank:
        return Text("")
    if cell.severity is not None:
        style = SEVERITY_STYLES[cell.severity]
    return Text(format_hours(cell.hours), style=style)


def daily_report_table(report: DailyReport) -> Table:
    """
    Build the table for a single day.

    +-----------+--------+-----------------+-------------------+
    | Project   | Issue  | Hours (∑ 12.00) | Comment           |
    +-----------+--------+-----------------+-------------------+
    | Project A | #1234  |            9.00 | Worked on issue A |
    | Project B |        |            3.00 |                   |
    +-----------+--------+-----------------+-------------------+
    """
    table = Table(
        title=report.date.strftime('%A, %d.%m.%Y'),
        title_style="bold",
        box=box.ROUNDED,
    )
    table.add_column("Project", style="bold")
    table.add_column("Issue", justify="right", style="cyan")
    table.add_column(f"Hours (∑ {format_hours(report.total_hours)})", justify="right")
    table.add_column("Comment", style=COMMENT_STYLE)

    for entry in report.entries:
        project, issue = entry_label(entry)
        table.add_row(project, issue, format_hours(entry.hours), entry.comments or "")

    return table


def weekly_grid_table(grid: WeeklyGrid) -> Table:
    """
    Build the week-at-a-glance table: one row per project, one column per
    weekday, a ∑ column and a totals row coloured by severity.
    """
    title = (
        f"{format_week_label(grid.monday)} "
        f"({grid.monday.strftime('%d.%m.')} - {grid.sunday.strftime('%d.%m.%Y')})"
    )
    table = Table(title=title, title_style="bold", box=box.ROUNDED, show_footer=False)
    table.add_column("Project", style="bold", no_wrap=True)
    for name, day in zip(WEEKDAY_NAMES, grid.days):
        table.add_column(f"{name}\n{day.strftime('%d.%m.')}", justify="right")
    table.add_column("∑", justify="right", style="bold")

    for row in grid.rows:
        table.add_row(
            row.name,
            *[_cell_text(cell) for cell in row.cells],
            _cell_text(row.total),
        )

    table.add_section()
    table.add_row(
        Text("∑", style="bold"),
        *[_cell_text(cell) for cell in grid.totals.cells],
        _cell_text(grid.totals.grand_total, style="bold"),
    )
    return table


def issue_summary_table(rows: Sequence[IssueSummaryRow],
                        issues: Optional[Dict[int, Issue]] = None) -> Table:
    """Build the per-issue breakdown shown with ``list --week --issues``."""
    issues = issues or {}
    table = Table(title="Issues", title_style="bold", box=box.ROUNDED)
    table.add_column("Project", style="bold")
    table.add_column("Issue", justify="right", style="cyan")
    table.add_column("Subject")
    table.add_column("Hours", justify="right")

    for row in rows:
        if row.issue_id is None:
            issue, subject = "", Text("(project)", style="dim")
        else:
            issue = f"#{row.issue_id}"
            known = issues.get(row.issue_id)
            subject = known.subject if known else ""
        table.add_row(row.project_name, issue, subject, format_hours(row.hours))

    return table


def search_results_table(results: Sequence[SearchResult]) -> Table:
    table = Table(title=f"Search results ({len(results)})", title_style="bold", box=box.ROUNDED)
    table.add_column("Issue", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("URL", style="dim")
    for result in results:
        table.add_row(f"#{result.id}", result.title, result.url)
    return table
