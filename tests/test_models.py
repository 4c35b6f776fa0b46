"""
Tests for the data models.
"""

from datetime import date

import pytest

from redmine_track.models import (
    CustomField,
    CustomValue,
    MalformedDate,
    NewTimeEntry,
    TimeEntry,
    entry_label,
    parse_spent_on,
)


class TestParseSpentOn:
    """Tests for parse_spent_on."""

    def test_valid_date(self):
        """Test parsing a well-formed date."""
        assert parse_spent_on("2023-02-16") == date(2023, 2, 16)

    @pytest.mark.parametrize("value", [
        "",
        "16.02.2023",
        "2023-2-16",
        "2023-02-16T10:00:00",
        "2023/02/16",
        " 2023-02-16",
        "2023-02-16\n",
        "２０２３-０２-１６",
    ])
    def test_wrong_shape(self, value):
        """Test that other formats are rejected."""
        with pytest.raises(MalformedDate, match="expected YYYY-MM-DD"):
            parse_spent_on(value)

    def test_impossible_date(self):
        """Test that a well-shaped but impossible date is rejected."""
        with pytest.raises(MalformedDate):
            parse_spent_on("2023-02-30")

    def test_is_value_error(self):
        """Test that MalformedDate can be handled as ValueError."""
        assert issubclass(MalformedDate, ValueError)


class TestTimeEntry:
    """Tests for TimeEntry."""

    SAMPLE = {
        "id": 12,
        "project": {"id": 1, "name": "Project A"},
        "issue": {"id": 1234},
        "user": {"id": 5, "name": "John Doe"},
        "activity": {"id": 9, "name": "Development"},
        "hours": 1.5,
        "comments": "Worked on issue A",
        "spent_on": "2022-01-01",
    }

    def test_from_dict(self):
        """Test decoding a Redmine time entry."""
        entry = TimeEntry.from_dict(self.SAMPLE)

        assert entry.id == 12
        assert entry.project.name == "Project A"
        assert entry.issue.id == 1234
        assert entry.issue.name is None
        assert entry.hours == 1.5
        assert entry.spent_date == date(2022, 1, 1)

    def test_from_dict_without_optional_fields(self):
        """Test decoding an entry without issue and comment."""
        data = {"id": 1, "project": {"id": 2}, "hours": 0, "spent_on": "2022-01-01"}
        entry = TimeEntry.from_dict(data)

        assert entry.issue is None
        assert entry.comments is None
        assert entry.project.name is None
        assert entry.hours == 0.0

    def test_orders_by_id(self):
        """Test that sorting uses the entry id."""
        a = TimeEntry.from_dict(dict(self.SAMPLE, id=3))
        b = TimeEntry.from_dict(dict(self.SAMPLE, id=1))

        assert [e.id for e in sorted([a, b])] == [1, 3]

    def test_entry_label(self):
        """Test project/issue labels."""
        entry = TimeEntry.from_dict(self.SAMPLE)
        assert entry_label(entry) == ("Project A", "#1234")


class TestNewTimeEntry:
    """Tests for NewTimeEntry."""

    def test_payload_for_issue(self):
        """Test the request body when booking on an issue."""
        entry = NewTimeEntry(
            spent_on=date(2023, 2, 16),
            hours=2.0,
            activity_id=9,
            comments="Review",
            issue_id=1234,
            custom_fields=[CustomValue(id=3, value="1")],
        )

        assert entry.to_payload() == {
            "time_entry": {
                "spent_on": "2023-02-16",
                "hours": 2.0,
                "activity_id": 9,
                "comments": "Review",
                "custom_fields": [{"id": 3, "value": "1"}],
                "issue_id": 1234,
            }
        }

    def test_payload_for_project(self):
        """Test the request body when booking on a project."""
        entry = NewTimeEntry(spent_on=date(2023, 2, 16), hours=1.0, activity_id=9, project_id=7)
        payload = entry.to_payload()["time_entry"]

        assert payload["project_id"] == 7
        assert "issue_id" not in payload

    def test_requires_issue_or_project(self):
        """Test that an entry needs something to book on."""
        with pytest.raises(ValueError, match="issue or a project"):
            NewTimeEntry(spent_on=date(2023, 2, 16), hours=1.0, activity_id=9)

    def test_negative_hours(self):
        """Test that negative hours are rejected."""
        with pytest.raises(ValueError, match="cannot be negative"):
            NewTimeEntry(spent_on=date(2023, 2, 16), hours=-1.0, activity_id=9, project_id=1)


class TestCustomField:
    """Tests for CustomField."""

    def test_time_entry_field(self):
        """Test the time entry and required helpers."""
        field = CustomField.from_dict({
            "id": 3,
            "name": "Billable",
            "field_format": "bool",
            "customized_type": "time_entry",
            "is_required": True,
        })

        assert field.is_for_time_entry()
        assert field.required

    def test_missing_is_required_means_optional(self):
        """Test that a missing is_required flag means optional."""
        field = CustomField(id=1, name="Ticket", field_format="string", customized_type="issue")

        assert not field.is_for_time_entry()
        assert not field.required

    def test_round_trip_through_dict(self):
        """Test that stored fields load back unchanged."""
        field = CustomField(id=3, name="Billable", field_format="bool",
                            customized_type="time_entry", is_required=True)
        assert CustomField.from_dict(field.to_dict()) == field
