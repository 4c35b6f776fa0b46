"""
Client for the Redmine REST API.

This module fetches time entries, projects, activities, issues and custom
fields and creates new time entries. Requests are plain JSON over
``urllib.request`` authenticated with the user's API key.
"""

import base64
import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import Config, normalize_base_url
from .logging_utils import get_logger
from .models import (
    Activity,
    CustomField,
    Issue,
    NewTimeEntry,
    Project,
    SearchResult,
    TimeEntry,
    User,
    format_spent_on,
)
from .network_utils import describe_url_error, format_connectivity_error


PAGE_SIZE = 100
USER_AGENT = 'redmine-track/1.0'
API_KEY_HEADER = 'X-Redmine-API-Key'

Query = List[Tuple[str, str]]


class RedmineError(Exception):
    """Raised when a request to Redmine fails."""
    pass


def _open_json(request: urllib.request.Request, base_url: str, timeout: float) -> Any:
    """
    Send a request and decode the JSON reply.

    Raises:
        RedmineError: On HTTP errors, transport errors or invalid JSON
    """
    logger = get_logger()
    logger.debug(f"{request.get_method()} {request.full_url}")

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            body = response.read()
    except urllib.error.HTTPError as e:
        details = e.read().decode('utf-8', errors='replace') if e.fp else ''
        message = f"HTTP {e.code}: {e.reason}"
        if details:
            message = f"{message}\n\n{details}"
        raise RedmineError(message)
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise RedmineError(format_connectivity_error(base_url, describe_url_error(e, timeout)))

    if not body:
        return None

    try:
        return json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RedmineError(f"Invalid JSON response from {request.full_url}: {e}")


class RedmineClient:
    """
    Redmine API client bound to one configuration.

    Example:
        >>> client = RedmineClient(config)
        >>> entries = client.get_time_entries(date.today())
    """

    def __init__(self, config: Config, timeout: float = 30):
        """
        Initialize the client.

        Args:
            config: Connection settings (API key, base URL, user id)
            timeout: Request timeout in seconds
        """
        self.config = config
        self.timeout = timeout

    def get_time_entries(self, start: date, end: Optional[date] = None) -> List[TimeEntry]:
        """
        Fetch the user's time entries for a day or a date range.

        All pages are fetched; entries keep the order Redmine returns them in.

        Args:
            start: The day (or first day of the range)
            end: Last day of the range, inclusive

        Returns:
            List of TimeEntry objects
        """
        query: Query = [('user_id', str(self.config.user_id))]
        if end is None:
            query.append(('spent_on', format_spent_on(start)))
        else:
            query.append(('from', format_spent_on(start)))
            query.append(('to', format_spent_on(end)))

        return [TimeEntry.from_dict(d) for d in self._get_all('time_entries.json', query, 'time_entries')]

    def get_issues(self, issue_ids: Sequence[int]) -> List[Issue]:
        """Fetch issues by id, regardless of their status."""
        if not issue_ids:
            return []
        query: Query = [
            ('issue_id', ','.join(str(i) for i in issue_ids)),
            ('status_id', '*'),
        ]
        return [Issue.from_dict(d) for d in self._get_all('issues.json', query, 'issues')]

    def get_issue(self, issue_id: int) -> Issue:
        data = self._get(f'issues/{issue_id}.json')
        return Issue.from_dict(data['issue'])

    def search_tickets(self, query: str) -> List[SearchResult]:
        """Search issue titles."""
        params: Query = [
            ('q', f" {query} "),
            ('limit', str(PAGE_SIZE)),
            ('issues', '1'),
            ('titles_only', '1'),
        ]
        data = self._get('search.json', params)
        return [SearchResult.from_dict(d) for d in data.get('results', [])]

    def get_projects(self) -> List[Project]:
        query: Query = [('user_id', str(self.config.user_id))]
        return [Project.from_dict(d) for d in self._get_all('projects.json', query, 'projects')]

    def get_activities(self) -> List[Activity]:
        data = self._get('enumerations/time_entry_activities.json')
        return [Activity.from_dict(d) for d in data.get('time_entry_activities', [])]

    def get_custom_fields(self) -> List[CustomField]:
        """
        Return the custom field definitions.

        Fields stored in the configuration take precedence, since reading
        ``custom_fields.json`` requires admin rights on most servers.
        """
        if self.config.custom_fields:
            return list(self.config.custom_fields)
        data = self._get('custom_fields.json')
        return [CustomField.from_dict(d) for d in data.get('custom_fields', [])]

    def create_time_entry(self, entry: NewTimeEntry):
        """
        Create a time entry.

        Raises:
            RedmineError: If Redmine rejects the entry
        """
        payload = json.dumps(entry.to_payload()).encode('utf-8')
        request = self._request('time_entries.json', method='POST', data=payload)
        request.add_header('Content-Type', 'application/json')
        _open_json(request, self.config.base_url, self.timeout)
        get_logger().debug(f"Created time entry: {entry.to_payload()}")

    def _request(self, path: str, query: Optional[Query] = None,
                 method: str = 'GET', data: Optional[bytes] = None) -> urllib.request.Request:
        url = urllib.parse.urljoin(self.config.base_url, path)
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"
        request = urllib.request.Request(url, data=data, method=method)
        request.add_header(API_KEY_HEADER, self.config.key)
        request.add_header('Accept', 'application/json')
        request.add_header('User-Agent', USER_AGENT)
        return request

    def _get(self, path: str, query: Optional[Query] = None) -> Dict[str, Any]:
        data = _open_json(self._request(path, query), self.config.base_url, self.timeout)
        if not isinstance(data, dict):
            raise RedmineError(f"Unexpected response for {path}")
        return data

    def _get_all(self, path: str, query: Query, key: str) -> List[Dict[str, Any]]:
        """Follow offset/limit paging and collect the ``key`` list of every page."""
        items: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = self._get(path, query + [('offset', str(offset)), ('limit', str(PAGE_SIZE))])
            chunk = page.get(key, [])
            items.extend(chunk)

            total = int(page.get('total_count', len(items)))
            offset += len(chunk)
            if not chunk or offset >= total:
                return items


def login(base_url: str, user: str, password: str, timeout: float = 30) -> User:
    """
    Authenticate with login and password and return the current user.

    The returned user carries the API key used for all later requests.

    Raises:
        RedmineError: If authentication or the request fails
    """
    base_url = normalize_base_url(base_url)
    url = urllib.parse.urljoin(base_url, 'users/current.json')
    credentials = base64.b64encode(f"{user}:{password}".encode('utf-8')).decode('ascii')

    request = urllib.request.Request(url, method='GET')
    request.add_header('Authorization', f"Basic {credentials}")
    request.add_header('Accept', 'application/json')
    request.add_header('User-Agent', USER_AGENT)

    data = _open_json(request, base_url, timeout)
    if not isinstance(data, dict) or 'user' not in data:
        raise RedmineError("Unexpected response for users/current.json")
    return User.from_dict(data['user'])
