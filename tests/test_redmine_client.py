"""Tests for the Redmine API client."""

import http.client
import io
import json
import socket
import urllib.error
import urllib.parse
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from redmine_track.config import Config
from redmine_track.models import CustomField, NewTimeEntry
from redmine_track.redmine_client import RedmineClient, RedmineError, login


def json_response(payload):
    """Create a urlopen() result returning ``payload`` as JSON."""
    mock_response = MagicMock()
    mock_response.status = 200
    mock_response.read.return_value = json.dumps(payload).encode('utf-8')
    mock_response.__enter__ = MagicMock(return_value=mock_response)
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


def entry_dict(id, spent_on="2023-02-16", hours=1.0):
    return {
        "id": id,
        "project": {"id": 1, "name": "Project A"},
        "hours": hours,
        "spent_on": spent_on,
    }


def sent_request(mock_urlopen, call=0):
    """Return the Request object passed to urlopen()."""
    return mock_urlopen.call_args_list[call][0][0]


def query_of(request):
    return dict(urllib.parse.parse_qsl(urllib.parse.urlparse(request.full_url).query))


@pytest.fixture
def client():
    config = Config(key="secret", base_url="https://redmine.example.com", login="jdoe", user_id=5)
    return RedmineClient(config, timeout=5)


class TestGetTimeEntries:
    """Tests for RedmineClient.get_time_entries."""

    @patch('urllib.request.urlopen')
    def test_single_day(self, mock_urlopen, client):
        """Test fetching the entries of one day."""
        mock_urlopen.return_value = json_response({
            "time_entries": [entry_dict(1), entry_dict(2)],
            "total_count": 2, "offset": 0, "limit": 100,
        })

        entries = client.get_time_entries(date(2023, 2, 16))

        assert [e.id for e in entries] == [1, 2]
        request = sent_request(mock_urlopen)
        assert request.full_url.startswith("https://redmine.example.com/time_entries.json?")
        assert request.get_header("X-redmine-api-key") == "secret"
        query = query_of(request)
        assert query["user_id"] == "5"
        assert query["spent_on"] == "2023-02-16"
        assert "from" not in query

    @patch('urllib.request.urlopen')
    def test_date_range(self, mock_urlopen, client):
        """Test fetching a date range."""
        mock_urlopen.return_value = json_response({"time_entries": [], "total_count": 0})

        client.get_time_entries(date(2023, 2, 13), date(2023, 2, 19))

        query = query_of(sent_request(mock_urlopen))
        assert query["from"] == "2023-02-13"
        assert query["to"] == "2023-02-19"
        assert "spent_on" not in query

    @patch('urllib.request.urlopen')
    def test_follows_pages(self, mock_urlopen, client):
        """Test that all pages are fetched in order."""
        first = [entry_dict(i) for i in range(100)]
        second = [entry_dict(100), entry_dict(101)]
        mock_urlopen.side_effect = [
            json_response({"time_entries": first, "total_count": 102, "offset": 0, "limit": 100}),
            json_response({"time_entries": second, "total_count": 102, "offset": 100, "limit": 100}),
        ]

        entries = client.get_time_entries(date(2023, 2, 13), date(2023, 2, 19))

        assert len(entries) == 102
        assert entries[-1].id == 101
        assert query_of(sent_request(mock_urlopen, 1))["offset"] == "100"

    @patch('urllib.request.urlopen')
    def test_http_error(self, mock_urlopen, client):
        """Test that HTTP errors become RedmineError."""
        mock_urlopen.side_effect = urllib.error.HTTPError(
            "https://redmine.example.com/time_entries.json", 401, "Unauthorized", {}, None
        )

        with pytest.raises(RedmineError, match="401"):
            client.get_time_entries(date(2023, 2, 16))

    @patch('urllib.request.urlopen')
    def test_network_error(self, mock_urlopen, client):
        """Test that transport errors become RedmineError with a hint."""
        mock_urlopen.side_effect = urllib.error.URLError(socket.gaierror(-2, "Name or service not known"))

        with pytest.raises(RedmineError, match="DNS resolution failed"):
            client.get_time_entries(date(2023, 2, 16))

    @patch('urllib.request.urlopen')
    def test_dropped_connection(self, mock_urlopen, client):
        """Test that a connection closed by the server becomes RedmineError."""
        mock_urlopen.side_effect = http.client.RemoteDisconnected("closed")

        with pytest.raises(RedmineError, match="Could not reach Redmine"):
            client.get_time_entries(date(2023, 2, 16))

    @patch('urllib.request.urlopen')
    def test_truncated_body(self, mock_urlopen, client):
        """Test that a body cut short while reading becomes RedmineError."""
        response = json_response({})
        response.read.side_effect = http.client.IncompleteRead(b'{"time_')
        mock_urlopen.return_value = response

        with pytest.raises(RedmineError):
            client.get_time_entries(date(2023, 2, 16))

    @patch('urllib.request.urlopen')
    def test_invalid_json(self, mock_urlopen, client):
        """Test that a non-JSON reply becomes RedmineError."""
        response = json_response({})
        response.read.return_value = b"<html>login</html>"
        mock_urlopen.return_value = response

        with pytest.raises(RedmineError, match="Invalid JSON"):
            client.get_time_entries(date(2023, 2, 16))


class TestOtherEndpoints:
    """Tests for the remaining read endpoints."""

    @patch('urllib.request.urlopen')
    def test_get_issues(self, mock_urlopen, client):
        """Test fetching issues by id."""
        mock_urlopen.return_value = json_response({
            "issues": [{"id": 7, "subject": "Fix login"}, {"id": 9, "subject": "Docs"}],
            "total_count": 2,
        })

        issues = client.get_issues([7, 9])

        assert [i.subject for i in issues] == ["Fix login", "Docs"]
        query = query_of(sent_request(mock_urlopen))
        assert query["issue_id"] == "7,9"
        assert query["status_id"] == "*"

    @patch('urllib.request.urlopen')
    def test_get_issues_without_ids(self, mock_urlopen, client):
        """Test that no request is made for an empty id list."""
        assert client.get_issues([]) == []
        mock_urlopen.assert_not_called()

    @patch('urllib.request.urlopen')
    def test_search_tickets(self, mock_urlopen, client):
        """Test searching issue titles."""
        mock_urlopen.return_value = json_response({
            "results": [{"id": 7, "title": "Bug #7 (New): Fix login", "type": "issue", "url": "u"}],
        })

        results = client.search_tickets("login")

        assert results[0].id == 7
        query = query_of(sent_request(mock_urlopen))
        assert query["q"] == " login "
        assert query["titles_only"] == "1"

    @patch('urllib.request.urlopen')
    def test_get_activities(self, mock_urlopen, client):
        """Test fetching activities."""
        mock_urlopen.return_value = json_response({
            "time_entry_activities": [
                {"id": 8, "name": "Design"},
                {"id": 9, "name": "Development", "is_default": True},
            ]
        })

        activities = client.get_activities()

        assert activities[1].is_default
        assert sent_request(mock_urlopen).full_url.endswith(
            "enumerations/time_entry_activities.json"
        )

    @patch('urllib.request.urlopen')
    def test_custom_fields_from_config(self, mock_urlopen, client):
        """Test that configured custom fields skip the request."""
        field = CustomField(id=3, name="Billable", field_format="bool",
                            customized_type="time_entry", is_required=True)
        client.config.custom_fields = [field]

        assert client.get_custom_fields() == [field]
        mock_urlopen.assert_not_called()

    @patch('urllib.request.urlopen')
    def test_custom_fields_from_server(self, mock_urlopen, client):
        """Test fetching custom fields from the server."""
        mock_urlopen.return_value = json_response({
            "custom_fields": [{"id": 3, "name": "Billable", "field_format": "bool",
                               "customized_type": "time_entry"}]
        })

        fields = client.get_custom_fields()

        assert fields[0].name == "Billable"


class TestCreateTimeEntry:
    """Tests for RedmineClient.create_time_entry."""

    @patch('urllib.request.urlopen')
    def test_posts_payload(self, mock_urlopen, client):
        """Test that the entry is posted as JSON."""
        mock_urlopen.return_value = json_response({"time_entry": {"id": 99}})
        entry = NewTimeEntry(spent_on=date(2023, 2, 16), hours=2.0, activity_id=9, issue_id=7)

        client.create_time_entry(entry)

        request = sent_request(mock_urlopen)
        assert request.get_method() == "POST"
        assert request.get_header("Content-type") == "application/json"
        assert json.loads(request.data) == entry.to_payload()

    @patch('urllib.request.urlopen')
    def test_rejected_entry(self, mock_urlopen, client):
        """Test that validation errors carry the response body."""
        body = io.BytesIO(b'{"errors":["Hours is invalid"]}')
        mock_urlopen.side_effect = urllib.error.HTTPError(
            "https://redmine.example.com/time_entries.json", 422, "Unprocessable Entity", {}, body
        )
        entry = NewTimeEntry(spent_on=date(2023, 2, 16), hours=2.0, activity_id=9, issue_id=7)

        with pytest.raises(RedmineError) as exc_info:
            client.create_time_entry(entry)

        assert "422" in str(exc_info.value)
        assert "Hours is invalid" in str(exc_info.value)


class TestLogin:
    """Tests for the login function."""

    @patch('urllib.request.urlopen')
    def test_login(self, mock_urlopen):
        """Test basic-auth login."""
        mock_urlopen.return_value = json_response({
            "user": {"id": 5, "login": "jdoe", "firstname": "John", "lastname": "Doe",
                     "mail": "jdoe@example.com", "api_key": "secret"}
        })

        user = login("https://redmine.example.com", "jdoe", "pw")

        assert user.api_key == "secret"
        request = sent_request(mock_urlopen)
        assert request.full_url == "https://redmine.example.com/users/current.json"
        assert request.get_header("Authorization") == "Basic amRvZTpwdw=="

    @patch('urllib.request.urlopen')
    def test_wrong_password(self, mock_urlopen):
        """Test that a 401 becomes RedmineError."""
        mock_urlopen.side_effect = urllib.error.HTTPError(
            "https://redmine.example.com/users/current.json", 401, "Unauthorized", {}, None
        )

        with pytest.raises(RedmineError, match="401"):
            login("https://redmine.example.com", "jdoe", "wrong")
