"""Workflow orchestrator.

Objective:
    Coordinate one analysis request end to end:
    1) Fetch the user's identity (reference email for external meetings)
    2) Fetch timed calendar events for the requested window
    3) Short-circuit to a canned result when there are no meetings
    4) Categorize meetings (patterns first, then batched LLM calls)
    5) Compute statistics, fatigue score and weekly trend
    6) Return an :class:`src.meeting_fatigue.models.AnalysisReport`

Responsibilities:
    - Compose the core components (calendar client, categorizer, analytics
      engine).
    - Provide an imperative API (:meth:`MeetingAnalysisOrchestrator.run`) that
      can be called from the CLI, FastAPI webapp, or other scripts.

High-level call tree:
    - :class:`MeetingAnalysisOrchestrator`
        - :meth:`MeetingAnalysisOrchestrator.run`
            - :meth:`CalendarClient.get_user_info`
            - :meth:`CalendarClient.get_calendar_events`
            - :meth:`MeetingAnalysisOrchestrator.analyze_events`
                - :func:`src.meeting_fatigue.analytics.empty_analysis` (no meetings)
                - :meth:`MeetingCategorizer.categorize`
                - :meth:`AnalyticsEngine.analyze`

Operational notes:
    - The orchestrator does not persist state between runs.
    - Upstream failures (:class:`CalendarFetchError`) and invalid events
      propagate to the caller. LLM failures never do.
"""

import logging
from typing import Optional, Sequence

from .analytics import AnalyticsEngine, empty_analysis
from .calendar_client import CalendarClient
from .categorizer import MeetingCategorizer
from .config import Settings, get_settings
from .models import AnalysisReport, AnalysisResult, CalendarEvent, UserInfo

logger = logging.getLogger(__name__)

NO_MEETINGS_MESSAGE = "No meetings found in the specified period"


class MeetingAnalysisOrchestrator:
    """
    Orchestrates the calendar analysis workflow.

    This class is intentionally "glue" code: it connects the calendar client,
    categorizer, and analytics engine without embedding business rules.

    Attributes:
        settings: Application settings.
        calendar_client: Google Calendar client.
        categorizer: Meeting categorizer.
        analytics: Analytics engine.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize orchestrator with all components.

        Args:
            settings: Application settings (loads from env if None).
        """
        self.settings = settings or get_settings()

        self.calendar_client = CalendarClient(self.settings)
        self.categorizer = MeetingCategorizer(self.settings)
        self.analytics = AnalyticsEngine(first_weekday=self.settings.week_start_day)

    def analyze_events(
        self,
        events: Sequence[CalendarEvent],
        user_email: str,
        days: Optional[int] = None,
    ) -> AnalysisResult:
        """Categorize and analyze an already-fetched list of events.

        Args:
            events: Timed calendar events.
            user_email: Calendar owner's email.
            days: Window size the events were fetched for.

        Returns:
            AnalysisResult: Analysis, or the canned result when ``events`` is empty.
        """
        if not events:
            logger.info("No meetings to analyze")
            return empty_analysis()

        window = days or self.settings.analysis_window_days

        logger.info(f"Found {len(events)} meetings. Categorizing...")
        category_map = self.categorizer.categorize(events)

        logger.info("Analyzing meeting patterns...")
        return self.analytics.analyze(events, category_map, user_email, window)

    def run(self, access_token: str, days: Optional[int] = None) -> AnalysisReport:
        """Run the analysis for the owner of ``access_token``.

        Args:
            access_token: Google OAuth access token.
            days: Window size (uses settings default if None).

        Returns:
            AnalysisReport: Result, identity and summary message.

        Raises:
            CalendarFetchError: If Google identity or calendar data cannot be fetched.
            pydantic.ValidationError: If an event has malformed timestamps.
        """
        window = days or self.settings.analysis_window_days

        user_info: UserInfo = self.calendar_client.get_user_info(access_token)

        logger.info(f"Fetching calendar events for last {window} days...")
        events = self.calendar_client.get_calendar_events(access_token, days=window)

        result = self.analyze_events(events, user_info.email or "", window)
        if events:
            message = f"Analyzed {len(events)} meetings from the last {window} days"
        else:
            message = NO_MEETINGS_MESSAGE

        return AnalysisReport(
            result=result,
            user_info=user_info,
            message=message,
            days=window,
        )
