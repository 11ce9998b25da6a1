"""Pydantic data models used across the application.

Objective:
    Centralize all strongly-typed data structures representing:
    - Calendar events returned by the Google Calendar API
    - Categorized meetings and the aggregate statistics derived from them
    - The fatigue score and weekly trend produced by the analytics engine
    - Identity and OAuth payloads returned by Google

Design notes:
    - Models use camelCase aliases matching the JSON shape returned by the API
      (e.g. ``totalMeetings`` -> :attr:`MeetingStats.total_meetings`).
    - ``model_config = ConfigDict(populate_by_name=True)`` is used to allow
      constructing models with either alias names or pythonic field names.
    - Event timestamps must be timezone-aware. Naive or malformed timestamps
      raise ``ValidationError`` so that a bad event fails the whole request.

High-level structure:
    - Calendar primitives:
        - :class:`CalendarEvent`
        - :class:`CategorizedMeeting`
    - Analytics primitives:
        - :class:`MeetingStats`
        - :class:`FatigueScore`
        - :class:`TrendPoint`
        - :class:`AnalysisResult`
    - Request-level primitives:
        - :class:`UserInfo`
        - :class:`OAuthTokens`
        - :class:`AnalysisReport`

Call tree usage:
    - :class:`src.meeting_fatigue.calendar_client.CalendarClient`:
        - validates Google responses into :class:`CalendarEvent` and :class:`UserInfo`
    - :class:`src.meeting_fatigue.categorizer.MeetingCategorizer`:
        - reads :class:`CalendarEvent`
    - :class:`src.meeting_fatigue.analytics.AnalyticsEngine`:
        - returns :class:`AnalysisResult`
    - :class:`src.meeting_fatigue.orchestrator.MeetingAnalysisOrchestrator`:
        - returns :class:`AnalysisReport`
"""

from typing import Any, Optional

from pydantic import (
    AliasChoices,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from .config import MeetingCategory


def _email_from(value: Any) -> Any:
    """Accept either a bare address or a Google ``{"email": ...}`` object."""
    if isinstance(value, dict):
        return value.get("email") or ""
    return value


class CalendarEvent(BaseModel):
    """
    Timed calendar event.

    Attributes:
        id: Event identifier, unique within one analysis request.
        title: Event title (Google ``summary``).
        description: Optional free-text or HTML description.
        start: Start instant (timezone-aware).
        end: End instant (timezone-aware, not before ``start``).
        attendees: Attendee email addresses, if the event lists any.
        organizer: Organizer email address.
        status: Google event status tag.
    """

    id: str
    title: str = Field(default="No Title", validation_alias=AliasChoices("title", "summary"))
    description: Optional[str] = None
    start: AwareDatetime
    end: AwareDatetime
    attendees: Optional[list[str]] = None
    organizer: Optional[str] = None
    status: str = "confirmed"

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("attendees", mode="before")
    @classmethod
    def _normalize_attendees(cls, value: Any) -> Any:
        if value is None:
            return None
        return [_email_from(item) for item in value]

    @field_validator("organizer", mode="before")
    @classmethod
    def _normalize_organizer(cls, value: Any) -> Any:
        return _email_from(value) or None

    @model_validator(mode="after")
    def _check_chronology(self) -> "CalendarEvent":
        if self.end < self.start:
            raise ValueError(f"Event {self.id!r} ends before it starts")
        return self


class CategorizedMeeting(CalendarEvent):
    """
    Calendar event enriched with analytics fields.

    Attributes:
        category: Assigned category tag.
        duration: Length in whole minutes.
        is_recurring: Whether the title looks like a recurring meeting.
        attendee_count: Number of attendees (1 when the list is absent).
    """

    category: MeetingCategory = MeetingCategory.OTHER
    duration: int = Field(default=0, ge=0)
    is_recurring: bool = Field(default=False, alias="isRecurring")
    attendee_count: int = Field(default=1, alias="attendeeCount")


class MeetingStats(BaseModel):
    """
    Aggregate statistics over a list of categorized meetings.

    Category hours are kept unrounded so that score thresholds see exact
    values. They are rounded to one decimal when serialized.
    """

    total_meetings: int = Field(default=0, alias="totalMeetings")
    total_hours: float = Field(default=0.0, alias="totalHours")
    average_meeting_duration: float = Field(default=0.0, alias="averageMeetingDuration")
    longest_meeting: int = Field(default=0, alias="longestMeeting")
    meetings_by_category: dict[str, float] = Field(
        default_factory=dict, alias="meetingsByCategory"
    )
    meetings_by_day: dict[str, int] = Field(default_factory=dict, alias="meetingsByDay")
    back_to_back_meetings: int = Field(default=0, alias="backToBackMeetings")
    recurring_meetings: int = Field(default=0, alias="recurringMeetings")
    external_meetings: int = Field(default=0, alias="externalMeetings")

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer("meetings_by_category")
    def _round_category_hours(self, value: dict[str, float]) -> dict[str, float]:
        return {category: round(hours, 1) for category, hours in value.items()}


class FatigueScore(BaseModel):
    """
    Meeting health score.

    Attributes:
        score: Integer between 0 and 100.
        grade: Letter grade derived from the score.
        badge: Fixed label for the grade.
        insights: Observations, in rule order.
        recommendations: Suggested actions, in rule order.
    """

    score: int = Field(ge=0, le=100)
    grade: str
    badge: str
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class TrendPoint(BaseModel):
    """Total meeting hours in the week starting on ``week`` (``YYYY-MM-DD``)."""

    week: str
    hours: float


class AnalysisResult(BaseModel):
    """Complete output of the analytics engine."""

    stats: MeetingStats
    fatigue_score: FatigueScore = Field(alias="fatigueScore")
    categorized_meetings: list[CategorizedMeeting] = Field(
        default_factory=list, alias="categorizedMeetings"
    )
    weekly_trend: list[TrendPoint] = Field(default_factory=list, alias="weeklyTrend")

    model_config = ConfigDict(populate_by_name=True)


class UserInfo(BaseModel):
    """Authenticated Google user."""

    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None


class OAuthTokens(BaseModel):
    """Token response from the Google OAuth token endpoint."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    token_type: str = "Bearer"


class AnalysisReport(BaseModel):
    """
    Result of one analysis request.

    This is the primary output type returned to the CLI and web UI.

    Attributes:
        result: Analytics output (canned when no meetings were found).
        user_info: Identity of the calendar owner, when known.
        message: Human-readable summary line.
        days: Size of the analysis window.
    """

    result: AnalysisResult
    user_info: Optional[UserInfo] = Field(default=None, alias="userInfo")
    message: str = ""
    days: int = 30

    model_config = ConfigDict(populate_by_name=True)
