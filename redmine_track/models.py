"""
Data models for the Redmine time tracking client.

This module defines the records exchanged with the Redmine REST API,
most importantly the time entries consumed by the reporting engine.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple


SPENT_ON_FORMAT = '%Y-%m-%d'
_SPENT_ON_PATTERN = re.compile(r'([0-9]{4})-([0-9]{2})-([0-9]{2})')


class MalformedDate(ValueError):
    """Raised when a date string does not match YYYY-MM-DD."""
    pass


def parse_spent_on(value: str) -> date:
    """
    Parse a Redmine ``spent_on`` value into a calendar date.

    Args:
        value: Date string in ``YYYY-MM-DD`` form

    Returns:
        The parsed date

    Raises:
        MalformedDate: If the string has another shape or is not a real date

    Examples:
        >>> parse_spent_on("2023-02-16")
        datetime.date(2023, 2, 16)
    """
    match = _SPENT_ON_PATTERN.fullmatch(value or '')
    if not match:
        raise MalformedDate(f"Invalid date '{value}' (expected YYYY-MM-DD)")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise MalformedDate(f"Invalid date '{value}': {e}")


def format_spent_on(value: date) -> str:
    """Format a date the way Redmine expects it."""
    return value.strftime(SPENT_ON_FORMAT)


@dataclass(frozen=True)
class Named:
    """
    Reference to another Redmine object.

    Attributes:
        id: Object id
        name: Display name (Redmine omits it in some responses)
    """
    id: int
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Named':
        return cls(id=int(data['id']), name=data.get('name'))


def _optional_named(data: Optional[Dict[str, Any]]) -> Optional[Named]:
    return Named.from_dict(data) if data else None


@dataclass(frozen=True)
class TimeEntry:
    """
    A single booking of hours as returned by ``time_entries.json``.

    Entries order by ``id`` so listings are stable; equality compares
    every field.

    Attributes:
        id: Entry id, unique within one fetch
        project: Project the hours were booked on
        hours: Booked hours (non-negative)
        spent_on: Day of the booking as ``YYYY-MM-DD``
        issue: Issue the hours were booked on, if any
        comments: Free text comment
        user: User who booked the hours
    """
    id: int
    project: Named
    hours: float
    spent_on: str
    issue: Optional[Named] = None
    comments: Optional[str] = None
    user: Optional[Named] = None

    def __lt__(self, other: 'TimeEntry') -> bool:
        if not isinstance(other, TimeEntry):
            return NotImplemented
        return self.id < other.id

    @property
    def spent_date(self) -> date:
        """The ``spent_on`` value as a date (raises MalformedDate)."""
        return parse_spent_on(self.spent_on)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimeEntry':
        return cls(
            id=int(data['id']),
            project=Named.from_dict(data['project']),
            hours=float(data.get('hours') or 0.0),
            spent_on=data['spent_on'],
            issue=_optional_named(data.get('issue')),
            comments=data.get('comments'),
            user=_optional_named(data.get('user')),
        )


@dataclass(frozen=True)
class Project:
    """A project the current user may book time on."""
    id: int
    name: str
    identifier: str = ""
    parent: Optional[Named] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        return cls(
            id=int(data['id']),
            name=data['name'],
            identifier=data.get('identifier', ''),
            parent=_optional_named(data.get('parent')),
        )


@dataclass(frozen=True)
class Activity:
    """A time entry activity (Development, Design, ...)."""
    id: int
    name: str
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Activity':
        return cls(
            id=int(data['id']),
            name=data['name'],
            is_default=bool(data.get('is_default', False)),
        )


@dataclass(frozen=True)
class CustomField:
    """
    A custom field definition.

    Only fields with ``customized_type == "time_entry"`` are asked for
    when booking time.
    """
    id: int
    name: str
    field_format: str
    customized_type: str
    is_required: Optional[bool] = None

    def is_for_time_entry(self) -> bool:
        return self.customized_type == 'time_entry'

    @property
    def required(self) -> bool:
        return bool(self.is_required)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CustomField':
        return cls(
            id=int(data['id']),
            name=data['name'],
            field_format=data.get('field_format', ''),
            customized_type=data.get('customized_type', ''),
            is_required=data.get('is_required'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'field_format': self.field_format,
            'customized_type': self.customized_type,
            'is_required': self.is_required,
        }


@dataclass(frozen=True)
class CustomValue:
    """Value submitted for a custom field."""
    id: int
    value: str


@dataclass(frozen=True)
class Issue:
    """An issue as returned by ``issues.json``."""
    id: int
    subject: str
    project: Optional[Named] = None
    status: Optional[Named] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Issue':
        return cls(
            id=int(data['id']),
            subject=data.get('subject', ''),
            project=_optional_named(data.get('project')),
            status=_optional_named(data.get('status')),
        )


@dataclass(frozen=True)
class SearchResult:
    """A hit from ``search.json``."""
    id: int
    title: str
    type: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchResult':
        return cls(
            id=int(data['id']),
            title=data.get('title', ''),
            type=data.get('type', ''),
            url=data.get('url', ''),
        )


@dataclass(frozen=True)
class User:
    """The authenticated Redmine user."""
    id: int
    login: str
    firstname: str = ""
    lastname: str = ""
    mail: str = ""
    api_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=int(data['id']),
            login=data['login'],
            firstname=data.get('firstname', ''),
            lastname=data.get('lastname', ''),
            mail=data.get('mail', ''),
            api_key=data.get('api_key'),
        )


@dataclass
class NewTimeEntry:
    """
    A time entry about to be created.

    Either ``issue_id`` or ``project_id`` identifies what the hours are
    booked on; Redmine derives the project from the issue.

    Attributes:
        spent_on: Day of the booking
        hours: Hours to book
        activity_id: Activity id
        comments: Comment text
        issue_id: Issue to book on
        project_id: Project to book on (when no issue is given)
        custom_fields: Values for required custom fields
    """
    spent_on: date
    hours: float
    activity_id: int
    comments: str = ""
    issue_id: Optional[int] = None
    project_id: Optional[int] = None
    custom_fields: List[CustomValue] = field(default_factory=list)

    def __post_init__(self):
        """Validate that the entry can be submitted."""
        if self.issue_id is None and self.project_id is None:
            raise ValueError("Either an issue or a project is required")
        if self.hours < 0:
            raise ValueError(f"Hours value cannot be negative: {self.hours}")

    def to_payload(self) -> Dict[str, Any]:
        """Build the request body for ``POST time_entries.json``."""
        entry: Dict[str, Any] = {
            'spent_on': format_spent_on(self.spent_on),
            'hours': self.hours,
            'activity_id': self.activity_id,
            'comments': self.comments,
            'custom_fields': [
                {'id': value.id, 'value': value.value}
                for value in self.custom_fields
            ],
        }
        if self.issue_id is not None:
            entry['issue_id'] = self.issue_id
        if self.project_id is not None:
            entry['project_id'] = self.project_id
        return {'time_entry': entry}


def entry_label(entry: TimeEntry) -> Tuple[str, str]:
    """Return ``(project name, "#issue")`` for display, empty when unset."""
    project = entry.project.name or ""
    issue = f"#{entry.issue.id}" if entry.issue is not None else ""
    return project, issue
