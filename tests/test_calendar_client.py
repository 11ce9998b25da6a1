"""
Tests for the calendar_client module.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests
from pydantic import ValidationError

from src.meeting_fatigue.calendar_client import (
    CalendarClient,
    CalendarFetchError,
    to_calendar_event,
)
from src.meeting_fatigue.config import Settings

NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_settings():
    """Create mock settings for testing."""
    settings = MagicMock(spec=Settings)
    settings.analysis_window_days = 30
    return settings


def google_item(event_id: str, **overrides) -> dict:
    item = {
        "id": event_id,
        "summary": f"Meeting {event_id}",
        "status": "confirmed",
        "start": {"dateTime": "2024-03-04T09:00:00+01:00"},
        "end": {"dateTime": "2024-03-04T09:30:00+01:00"},
        "organizer": {"email": "owner@example.com"},
        "attendees": [{"email": "a@example.com"}, {"email": "b@example.com"}],
    }
    item.update(overrides)
    return item


class TestToCalendarEvent:
    """Tests for Google item conversion."""

    def test_timed_event(self):
        """Test a regular timed event."""
        event = to_calendar_event(google_item("e1", description="Agenda"))

        assert event.id == "e1"
        assert event.title == "Meeting e1"
        assert event.description == "Agenda"
        assert event.organizer == "owner@example.com"
        assert event.attendees == ["a@example.com", "b@example.com"]

    def test_all_day_event_is_skipped(self):
        """Test that date-only events are ignored."""
        item = google_item("e1", start={"date": "2024-03-04"}, end={"date": "2024-03-05"})
        assert to_calendar_event(item) is None

    def test_cancelled_event_is_skipped(self):
        """Test that cancelled events are ignored."""
        assert to_calendar_event(google_item("e1", status="cancelled")) is None

    def test_missing_summary(self):
        """Test that untitled events get a placeholder title."""
        item = google_item("e1")
        del item["summary"]
        assert to_calendar_event(item).title == "No Title"

    def test_missing_attendees_stays_absent(self):
        """Test that an absent attendee list is not turned into an empty one."""
        item = google_item("e1")
        del item["attendees"]
        assert to_calendar_event(item).attendees is None

    def test_malformed_timestamp_raises(self):
        """Test that unparseable instants fail validation."""
        item = google_item("e1", start={"dateTime": "yesterday morning"})
        with pytest.raises(ValidationError):
            to_calendar_event(item)


class TestGetCalendarEvents:
    """Tests for CalendarClient.get_calendar_events."""

    def test_paginates_and_filters(self, mock_settings):
        """Test that every page is read and unusable items dropped."""
        client = CalendarClient(mock_settings)
        pages = [
            {
                "items": [google_item("a"), google_item("b", status="cancelled")],
                "nextPageToken": "page-2",
            },
            {"items": [google_item("c", start={"date": "2024-03-05"})]},
        ]
        client._make_request = MagicMock(side_effect=pages)

        events = client.get_calendar_events("token", days=7, now=NOW)

        assert [e.id for e in events] == ["a"]
        assert client._make_request.call_count == 2

        first_params = client._make_request.call_args_list[0].kwargs["params"]
        assert first_params["timeMin"] == "2024-03-24T12:00:00+00:00"
        assert first_params["timeMax"] == "2024-03-31T12:00:00+00:00"
        assert first_params["singleEvents"] == "true"
        assert first_params["orderBy"] == "startTime"
        assert "pageToken" not in first_params

        second_params = client._make_request.call_args_list[1].kwargs["params"]
        assert second_params["pageToken"] == "page-2"

    def test_uses_default_window(self, mock_settings):
        """Test that the settings window is used when days is omitted."""
        client = CalendarClient(mock_settings)
        client._make_request = MagicMock(return_value={"items": []})

        assert client.get_calendar_events("token", now=NOW) == []

        params = client._make_request.call_args.kwargs["params"]
        assert params["timeMin"] == "2024-03-01T12:00:00+00:00"

    def test_http_error_is_wrapped(self, mock_settings):
        """Test that upstream failures raise CalendarFetchError."""
        client = CalendarClient(mock_settings)
        client._make_request = MagicMock(side_effect=requests.HTTPError("401"))

        with pytest.raises(CalendarFetchError, match="Failed to fetch calendar events"):
            client.get_calendar_events("token", now=NOW)


class TestMakeRequest:
    """Tests for CalendarClient._make_request."""

    def test_sends_bearer_token(self, mock_settings):
        """Test the Authorization header and JSON decoding."""
        response = MagicMock(ok=True)
        response.json.return_value = {"items": []}

        with patch(
            "src.meeting_fatigue.calendar_client.requests.request", return_value=response
        ) as mock_request:
            client = CalendarClient(mock_settings)
            result = client._make_request("GET", "https://example.test", "tok")

        assert result == {"items": []}
        headers = mock_request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer tok"

    def test_raises_on_error_status(self, mock_settings):
        """Test that non-2xx responses raise."""
        response = MagicMock(ok=False, status_code=401, text="invalid_token")
        response.raise_for_status.side_effect = requests.HTTPError("401")

        with patch(
            "src.meeting_fatigue.calendar_client.requests.request", return_value=response
        ):
            client = CalendarClient(mock_settings)
            with pytest.raises(requests.HTTPError):
                client._make_request("GET", "https://example.test", "tok")


class TestGetUserInfo:
    """Tests for CalendarClient.get_user_info."""

    def test_returns_user(self, mock_settings):
        """Test identity parsing."""
        client = CalendarClient(mock_settings)
        client._make_request = MagicMock(
            return_value={"email": "me@example.com", "name": "Me", "id": "123"}
        )

        user = client.get_user_info("token")

        assert user.email == "me@example.com"
        assert user.name == "Me"

    def test_error_is_wrapped(self, mock_settings):
        """Test that identity failures raise CalendarFetchError."""
        client = CalendarClient(mock_settings)
        client._make_request = MagicMock(side_effect=requests.ConnectionError("down"))

        with pytest.raises(CalendarFetchError, match="Failed to fetch user info"):
            client.get_user_info("token")
