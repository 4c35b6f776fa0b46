"""
Tracking workflows.

This module glues the Redmine client, the prompts, the reporting engine
and the views together into the three things a user does: book time,
list booked time and search for issues.
"""

from datetime import date, timedelta
from typing import Optional, Tuple

from rich.console import Console

from . import prompts
from .logging_utils import get_logger, log_step, log_success, log_warning
from .models import NewTimeEntry
from .redmine_client import RedmineClient
from .report import DailyReport, Report, WeeklyGrid
from .view import (
    daily_report_table,
    issue_summary_table,
    search_results_table,
    weekly_grid_table,
)
from .week_utils import monday_of, reference_date, sunday_of


def fetch_daily_report(client: RedmineClient, day: date) -> DailyReport:
    """Fetch one day's entries and build its DailyReport."""
    entries = client.get_time_entries(day)
    return Report.from_entries(entries).get_report_for_date(day)


def fetch_week(client: RedmineClient, day: date) -> Tuple[Report, WeeklyGrid]:
    """Fetch the entries of the week containing ``day`` and build its grid."""
    monday, sunday = monday_of(day), sunday_of(day)
    entries = client.get_time_entries(monday, sunday)
    get_logger().debug(f"Fetched {len(entries)} entries for {monday} - {sunday}")
    report = Report.from_entries(entries)
    return report, report.get_weekly_grid(day)


def show_day(client: RedmineClient, day: date, console: Console) -> DailyReport:
    daily_report = fetch_daily_report(client, day)
    console.print(daily_report_table(daily_report))
    if daily_report.is_empty:
        log_warning(f"No time booked on {day.isoformat()}")
    return daily_report


def track(
    client: RedmineClient,
    yesterday: bool = False,
    issue_id: Optional[int] = None,
    console: Optional[Console] = None,
    today: Optional[date] = None,
) -> bool:
    """
    Interactively book time and show the resulting day.

    Args:
        client: Redmine client
        yesterday: Book on yesterday instead of today
        issue_id: Issue to book on; asks for project and issue when None
        console: Console for prompts and tables
        today: Current date (defaults to ``date.today()``)

    Returns:
        True if an entry was created, False if the user cancelled

    Raises:
        RedmineError: If a request fails
        UnsupportedFieldFormat: If a required custom field cannot be asked for
    """
    console = console or Console()
    today = today or date.today()
    spent_on = today - timedelta(days=1) if yesterday else today

    project_id = None
    if issue_id is None:
        project = prompts.select_project(client.get_projects(), console=console)
        if project is None:
            log_warning("No project selected, nothing booked")
            return False
        project_id = project.id
        issue_id = prompts.ask_for_issue(console=console)
        if issue_id is not None:
            project_id = None
    else:
        issue = client.get_issue(issue_id)
        log_step(f"Tracking time on #{issue.id}: {issue.subject}")

    activity = prompts.select_activity(client.get_activities(), console=console)

    custom_values = [
        prompts.ask_for_custom_field(field, console=console)
        for field in client.get_custom_fields()
        if field.is_for_time_entry() and field.required
    ]

    comment = prompts.ask_for_comment(console=console)
    span = prompts.analyze_comments(comment)
    default_hours = prompts.hours_between(*span) if span else None
    hours = prompts.ask_for_hours(default_hours, console=console)

    entry = NewTimeEntry(
        spent_on=spent_on,
        hours=hours,
        activity_id=activity.id,
        comments=comment,
        issue_id=issue_id,
        project_id=project_id,
        custom_fields=custom_values,
    )
    client.create_time_entry(entry)
    log_success(f"Booked {hours:.2f}h on {spent_on.isoformat()}")

    show_day(client, spent_on, console)
    return True


def list_entries(
    client: RedmineClient,
    with_issues: bool = False,
    previous: bool = False,
    week: bool = False,
    console: Optional[Console] = None,
    today: Optional[date] = None,
):
    """
    Show booked time for a day or a week.

    Args:
        client: Redmine client
        with_issues: Add the per-issue breakdown to the weekly view
        previous: Show the previous day/week
        week: Show the weekly grid instead of a single day
        console: Console for the tables
        today: Current date (defaults to ``date.today()``)
    """
    console = console or Console()
    day = reference_date(today or date.today(), previous=previous, week=week)

    if not week:
        if with_issues:
            log_warning("--issues only applies to the weekly view")
        show_day(client, day, console)
        return

    report, grid = fetch_week(client, day)
    console.print(weekly_grid_table(grid))

    if with_issues:
        rows = report.get_issue_summary(grid.monday, grid.sunday)
        issue_ids = sorted({row.issue_id for row in rows if row.issue_id is not None})
        issues = {issue.id: issue for issue in client.get_issues(issue_ids)}
        console.print(issue_summary_table(rows, issues))


def search(
    client: RedmineClient,
    query: str,
    direct_track: bool = False,
    console: Optional[Console] = None,
    today: Optional[date] = None,
) -> bool:
    """
    Search issues by title and optionally start booking on a single hit.

    Returns:
        True if something was found
    """
    console = console or Console()
    results = client.search_tickets(query)
    if not results:
        log_warning(f"No issues found for '{query}'")
        return False

    console.print(search_results_table(results))

    if direct_track and len(results) == 1:
        track(client, issue_id=results[0].id, console=console, today=today)
    return True
