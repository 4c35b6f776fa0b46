"""
Redmine Track - Book and review working hours in Redmine.

This package provides a command-line client for recording time entries
against a Redmine server and a reporting engine that summarises booked
time per day and per week.
"""

__version__ = '1.0.0'

from .models import TimeEntry, Named, MalformedDate, parse_spent_on
from .report import Report, DailyReport, WeeklyGrid, Severity
from .week_utils import monday_of, sunday_of
from .config import Config, ConfigError
from .redmine_client import RedmineClient, RedmineError

__all__ = [
    'TimeEntry',
    'Named',
    'MalformedDate',
    'parse_spent_on',
    'Report',
    'DailyReport',
    'WeeklyGrid',
    'Severity',
    'monday_of',
    'sunday_of',
    'Config',
    'ConfigError',
    'RedmineClient',
    'RedmineError',
]
