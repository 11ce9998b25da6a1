"""Google Calendar API client.

Objective:
    Provide a thin wrapper around the Google REST endpoints used by this
    project. This module centralizes HTTP request construction, bearer
    headers, pagination and Pydantic validation of responses.

Responsibilities:
    - Issue authenticated HTTP requests to Google (via :mod:`requests`).
    - Fetch timed, non-cancelled events of the primary calendar for a
      trailing window of days.
    - Fetch the authenticated user's identity.

High-level call tree:
    - Public API:
        - :meth:`CalendarClient.get_calendar_events` -> returns :class:`src.meeting_fatigue.models.CalendarEvent`
        - :meth:`CalendarClient.get_user_info` -> returns :class:`src.meeting_fatigue.models.UserInfo`
    - Internal helpers:
        - :meth:`CalendarClient._make_request` (auth + error handling)
        - :func:`to_calendar_event` (Google item -> model)

Google endpoints used:
    - ``GET /calendar/v3/calendars/primary/events``
    - ``GET /oauth2/v2/userinfo``

Error handling:
    - HTTP errors are logged and raised from :meth:`_make_request`.
    - Public methods re-raise them as :class:`CalendarFetchError` with a
      generic message. Nothing is retried.
    - Events that fail validation (e.g. malformed timestamps) raise
      ``pydantic.ValidationError`` and abort the request.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

from .config import Settings
from .models import CalendarEvent, UserInfo

logger = logging.getLogger(__name__)


class CalendarFetchError(RuntimeError):
    """Raised when Google calendar or identity data cannot be fetched."""


def to_calendar_event(item: dict[str, Any]) -> Optional[CalendarEvent]:
    """Convert a Google Calendar event resource into a :class:`CalendarEvent`.

    All-day events (``date`` instead of ``dateTime``) and cancelled events are
    skipped.

    Args:
        item: Event resource from the ``events.list`` response.

    Returns:
        Optional[CalendarEvent]: Event, or None if it should be ignored.
    """
    start = (item.get("start") or {}).get("dateTime")
    end = (item.get("end") or {}).get("dateTime")
    status = item.get("status") or "confirmed"

    if not start or not end or status == "cancelled":
        return None

    attendees = item.get("attendees")
    organizer = (item.get("organizer") or {}).get("email")

    return CalendarEvent(
        id=item.get("id") or "",
        title=item.get("summary") or "No Title",
        description=item.get("description") or None,
        start=start,
        end=end,
        attendees=[a.get("email") or "" for a in attendees] if attendees is not None else None,
        organizer=organizer or None,
        status=status,
    )


class CalendarClient:
    """
    Client for the Google Calendar and userinfo APIs.

    The client is stateless: the caller passes the user's access token to
    each public method.

    Attributes:
        settings: Application settings.
    """

    CALENDAR_BASE_URL = "https://www.googleapis.com/calendar/v3"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _make_request(
        self,
        method: str,
        url: str,
        access_token: str,
        params: Optional[dict] = None,
    ) -> dict:
        """Make an authenticated request to a Google API.

        Args:
            method: HTTP method.
            url: Absolute endpoint URL.
            access_token: OAuth access token of the user.
            params: Query parameters.

        Returns:
            dict: Response JSON data.

        Raises:
            requests.HTTPError: If request fails.
        """
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

        response = requests.request(
            method=method,
            url=url,
            headers=headers,
            params=params,
            timeout=30,
        )

        if not response.ok:
            logger.error(f"Google API error: {response.status_code} - {response.text}")
            response.raise_for_status()

        return response.json()

    def get_calendar_events(
        self,
        access_token: str,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[CalendarEvent]:
        """Fetch timed meetings from the primary calendar.

        The window is ``[now - days, now]``. Recurring events are expanded
        into single instances and results are ordered by start time.

        Args:
            access_token: OAuth access token of the user.
            days: Window size (uses ``settings.analysis_window_days`` if None).
            now: End of the window (defaults to the current UTC time).

        Returns:
            list[CalendarEvent]: Non-cancelled, non-all-day events.

        Raises:
            CalendarFetchError: If Google returns an error.
        """
        window = days or self.settings.analysis_window_days
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(days=window)

        params: dict[str, Any] = {
            "timeMin": start.isoformat(),
            "timeMax": end.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": 2500,
        }
        url = f"{self.CALENDAR_BASE_URL}/calendars/primary/events"

        items: list[dict[str, Any]] = []
        try:
            while True:
                response = self._make_request("GET", url, access_token, params=params)
                items.extend(response.get("items", []))

                page_token = response.get("nextPageToken")
                if not page_token:
                    break
                params = {**params, "pageToken": page_token}
        except requests.RequestException as e:
            logger.error(f"Error fetching calendar events: {e}")
            raise CalendarFetchError("Failed to fetch calendar events") from e

        events = []
        for item in items:
            event = to_calendar_event(item)
            if event is not None:
                events.append(event)

        logger.debug(f"Fetched {len(events)} timed events ({len(items)} raw items)")
        return events

    def get_user_info(self, access_token: str) -> UserInfo:
        """Fetch the authenticated user's profile.

        Args:
            access_token: OAuth access token of the user.

        Returns:
            UserInfo: Email, name and picture.

        Raises:
            CalendarFetchError: If Google returns an error.
        """
        try:
            response = self._make_request("GET", self.USERINFO_URL, access_token)
        except requests.RequestException as e:
            logger.error(f"Error fetching user info: {e}")
            raise CalendarFetchError("Failed to fetch user info") from e

        return UserInfo.model_validate(response)
