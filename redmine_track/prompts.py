"""
Interactive prompts for booking time.

Every question needed to create a time entry is asked here, using
``rich.prompt`` for input and ``rich.table`` for choice lists.
"""

import re
from datetime import datetime, time
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table

from .models import Activity, CustomField, CustomValue, Project


_TIME_RANGE_PATTERN = re.compile(r'\s*(\d\d?:\d{2})\s*-\s*(\d\d?:\d{2})')


class UnsupportedFieldFormat(ValueError):
    """Raised for custom field formats that cannot be asked for."""
    pass


def _choice_table(names: Sequence[str]) -> Table:
    table = Table(show_header=False, show_edge=False, pad_edge=False)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Name")
    for i, name in enumerate(names, 1):
        table.add_row(str(i), name)
    return table


def select_project(projects: Sequence[Project], console: Optional[Console] = None) -> Optional[Project]:
    """
    Let the user pick a project.

    The answer is either a number from the list or text that narrows the
    list down (case-insensitive substring match). A single remaining match
    is selected directly; an empty answer cancels.

    Returns:
        The chosen project or None when cancelled
    """
    console = console or Console()
    candidates: List[Project] = list(projects)

    while candidates:
        console.print(_choice_table([p.name for p in candidates]))
        answer = Prompt.ask(
            "Please choose the project (number or filter, empty to cancel)",
            console=console,
            default="",
            show_default=False,
        ).strip()

        if not answer:
            return None

        if answer.isdigit():
            index = int(answer)
            if 1 <= index <= len(candidates):
                return candidates[index - 1]
            console.print(f"[red]Please choose a number between 1 and {len(candidates)}[/red]")
            continue

        narrowed = [p for p in candidates if answer.lower() in p.name.lower()]
        if len(narrowed) == 1:
            return narrowed[0]
        if not narrowed:
            console.print(f"[yellow]No project matches '{answer}'[/yellow]")
            continue
        candidates = narrowed

    return None


def select_activity(activities: Sequence[Activity], console: Optional[Console] = None) -> Activity:
    """
    Let the user pick an activity, preselecting the default activity.

    Raises:
        ValueError: If there are no activities to choose from
    """
    if not activities:
        raise ValueError("Redmine returned no time entry activities")

    console = console or Console()
    default = next((i for i, a in enumerate(activities) if a.is_default), 0)

    console.print(_choice_table([a.name for a in activities]))
    selection = IntPrompt.ask(
        "Activity",
        console=console,
        choices=[str(i) for i in range(1, len(activities) + 1)],
        default=default + 1,
        show_choices=False,
    )
    return activities[selection - 1]


def ask_for_issue(console: Optional[Console] = None) -> Optional[int]:
    """Ask for an issue number; an empty answer means project only."""
    while True:
        answer = Prompt.ask(
            "Issue (leave empty for project only)",
            console=console,
            default="",
            show_default=False,
        ).strip().lstrip('#')

        if not answer:
            return None
        if answer.isdigit():
            return int(answer)
        (console or Console()).print("[red]Please insert a valid issue number.[/red]")


def ask_for_comment(console: Optional[Console] = None) -> str:
    return Prompt.ask("Comment", console=console, default="", show_default=False)


def ask_for_hours(default: Optional[float] = None, console: Optional[Console] = None) -> float:
    """Ask for the hours to book, offering ``default`` when given."""
    while True:
        if default is None:
            hours = FloatPrompt.ask("Hours", console=console)
        else:
            hours = FloatPrompt.ask("Hours", console=console, default=round(default, 2))
        if hours >= 0:
            return hours
        (console or Console()).print("[red]Hours cannot be negative.[/red]")


def ask_for_custom_field(field: CustomField, console: Optional[Console] = None) -> CustomValue:
    """
    Ask for the value of a custom field.

    Raises:
        UnsupportedFieldFormat: For formats other than ``bool`` and ``string``
    """
    if field.field_format == 'bool':
        result = Confirm.ask(field.name, console=console)
        return CustomValue(id=field.id, value='1' if result else '0')

    if field.field_format == 'string':
        result = Prompt.ask(field.name, console=console)
        return CustomValue(id=field.id, value=result)

    raise UnsupportedFieldFormat(f"The format {field.field_format} is unknown, sorry.")


def analyze_comments(text: str) -> Optional[Tuple[time, time]]:
    """
    Find a ``HH:MM-HH:MM`` time range in a comment.

    Returns:
        ``(start, end)`` or None when the comment holds no valid range

    Examples:
        >>> analyze_comments("Meeting 9:30 - 11:00")
        (datetime.time(9, 30), datetime.time(11, 0))
    """
    match = _TIME_RANGE_PATTERN.search(text or '')
    if not match:
        return None

    try:
        start = datetime.strptime(match.group(1), '%H:%M').time()
        end = datetime.strptime(match.group(2), '%H:%M').time()
    except ValueError:
        return None
    return start, end


def hours_between(start: time, end: time) -> float:
    """
    Hours from ``start`` to ``end``; a range past midnight wraps around.

    Examples:
        >>> hours_between(time(9, 30), time(11, 0))
        1.5
    """
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if minutes < 0:
        minutes += 24 * 60
    return minutes / 60
