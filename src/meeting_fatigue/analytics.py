"""Meeting analytics and fatigue scoring.

Objective:
    Convert a list of calendar events plus the categorizer's mapping into an
    :class:`src.meeting_fatigue.models.AnalysisResult`: per-meeting derived
    fields, aggregate statistics, a bounded fatigue score with insights, and
    the trailing weekly-hours trend.

High-level call tree:
    - :meth:`AnalyticsEngine.analyze`
        - :meth:`AnalyticsEngine.categorize_meetings`
            - :func:`is_recurring_meeting`
        - :meth:`AnalyticsEngine.calculate_stats`
            - :func:`count_back_to_back`
        - :meth:`AnalyticsEngine.calculate_fatigue_score`
            - :func:`grade_for_score`
        - :meth:`AnalyticsEngine.calculate_weekly_trend`
    - :func:`empty_analysis` (zero-meeting result, no engine involved)

Every method is a pure function of its arguments. The engine never calls
out to the network.
"""

import logging
import re
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Mapping, Optional, Sequence

from .config import MeetingCategory
from .models import (
    AnalysisResult,
    CalendarEvent,
    CategorizedMeeting,
    FatigueScore,
    MeetingStats,
    TrendPoint,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
BACK_TO_BACK_GAP = timedelta(minutes=5)
TREND_WEEKS = 4

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

RECURRING_TITLE_RE = re.compile(
    r"daily|weekly|bi.?weekly|monthly|recurring|standup|sync", re.IGNORECASE
)

# Lowest score for each grade, best first.
GRADES: tuple[tuple[int, str, str], ...] = (
    (90, "A", "🏆 Calendar Master - You actually own your time!"),
    (80, "B", "✅ Solid - Minor tweaks needed"),
    (70, "C", "⚠️ Meeting Overload - Time to push back"),
    (60, "D", "🔥 Calendar Chaos - Your schedule owns you"),
    (0, "F", "💀 Meeting Hell - Escape while you can!"),
)

POSITIVE_INSIGHT = "You have good control over your calendar!"


def grade_for_score(score: int) -> tuple[str, str]:
    """Map a score to its letter grade and badge.

    Args:
        score: Score between 0 and 100.

    Returns:
        tuple[str, str]: ``(grade, badge)``.
    """
    for threshold, grade, badge in GRADES:
        if score >= threshold:
            return grade, badge
    return GRADES[-1][1], GRADES[-1][2]


def is_recurring_meeting(event: CalendarEvent) -> bool:
    """Guess whether a meeting recurs from its title."""
    return bool(RECURRING_TITLE_RE.search(event.title or ""))


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def count_back_to_back(meetings: Sequence[CalendarEvent]) -> int:
    """Count adjacent meetings separated by five minutes or less.

    Meetings are ordered by start time. Overlapping meetings have a negative
    gap and count as back-to-back.

    Args:
        meetings: Meetings in any order.

    Returns:
        int: Number of back-to-back transitions.
    """
    ordered = sorted(meetings, key=lambda m: m.start)
    count = 0
    for current, following in zip(ordered, ordered[1:]):
        if following.start - current.end <= BACK_TO_BACK_GAP:
            count += 1
    return count


def week_start(day: date, first_weekday: int = 0) -> date:
    """Return the first day of the week containing ``day``.

    Args:
        day: Any date.
        first_weekday: 0 for Monday through 6 for Sunday.

    Returns:
        date: Start of the week.
    """
    offset = (day.weekday() - first_weekday) % 7
    return day - timedelta(days=offset)


def _percentage(part: int, total: int) -> float:
    return (part / total) * 100 if total else 0.0


def empty_analysis() -> AnalysisResult:
    """Canned result for a calendar with no meetings.

    Returns:
        AnalysisResult: Perfect score, zeroed statistics, empty collections.
    """
    grade, badge = grade_for_score(100)
    return AnalysisResult(
        stats=MeetingStats(),
        fatigue_score=FatigueScore(
            score=100,
            grade=grade,
            badge=badge,
            insights=["No meetings found - ultimate productivity!"],
            recommendations=["Keep it this way!"],
        ),
        categorized_meetings=[],
        weekly_trend=[],
    )


class AnalyticsEngine:
    """
    Computes meeting statistics and the fatigue score.

    Attributes:
        first_weekday: First day of the weekly trend buckets (0 = Monday).
    """

    def __init__(self, first_weekday: int = 0) -> None:
        self.first_weekday = first_weekday

    def categorize_meetings(
        self,
        events: Sequence[CalendarEvent],
        category_map: Mapping[str, MeetingCategory],
    ) -> list[CategorizedMeeting]:
        """
        Merge events with their categories and derived fields.

        Args:
            events: Raw calendar events.
            category_map: Categorizer output keyed by event id.

        Returns:
            list[CategorizedMeeting]: One meeting per event, in input order.
        """
        meetings = []
        for event in events:
            meetings.append(
                CategorizedMeeting(
                    **event.model_dump(),
                    category=MeetingCategory.parse(category_map.get(event.id)),
                    duration=duration_minutes(event.start, event.end),
                    is_recurring=is_recurring_meeting(event),
                    attendee_count=len(event.attendees) if event.attendees else 1,
                )
            )
        return meetings

    def calculate_stats(
        self, meetings: Sequence[CategorizedMeeting], user_email: str
    ) -> MeetingStats:
        """
        Aggregate statistics over categorized meetings.

        Args:
            meetings: Categorized meetings.
            user_email: Calendar owner; other organizers count as external.

        Returns:
            MeetingStats: Aggregates.
        """
        total_meetings = len(meetings)
        total_minutes = sum(m.duration for m in meetings)

        by_category: dict[str, float] = defaultdict(float)
        by_day: dict[str, int] = defaultdict(int)
        for meeting in meetings:
            by_category[meeting.category.value] += meeting.duration / 60
            by_day[WEEKDAY_NAMES[meeting.start.weekday()]] += 1

        owner = (user_email or "").strip().lower()
        external = sum(
            1 for m in meetings if m.organizer and m.organizer.strip().lower() != owner
        )

        return MeetingStats(
            total_meetings=total_meetings,
            total_hours=round(total_minutes / 60, 1),
            average_meeting_duration=(
                total_minutes / total_meetings if total_meetings else 0.0
            ),
            longest_meeting=max((m.duration for m in meetings), default=0),
            meetings_by_category=dict(by_category),
            meetings_by_day=dict(by_day),
            back_to_back_meetings=count_back_to_back(meetings),
            recurring_meetings=sum(1 for m in meetings if m.is_recurring),
            external_meetings=external,
        )

    def calculate_fatigue_score(
        self,
        stats: MeetingStats,
        meetings: Sequence[CategorizedMeeting],
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> FatigueScore:
        """
        Score meeting load from 0 (burnt out) to 100 (healthy).

        Each rule is evaluated against ``stats`` independently. Rule order only
        decides the order of insights and recommendations.

        Args:
            stats: Output of :meth:`calculate_stats`.
            meetings: Categorized meetings the stats were built from.
            window_days: Number of days the meetings span.

        Returns:
            FatigueScore: Score, grade, badge, insights and recommendations.

        Raises:
            ValueError: If ``window_days`` is less than 1.
        """
        if window_days < 1:
            raise ValueError(f"window_days must be at least 1, got {window_days}")

        score = 100
        insights: list[str] = []
        recommendations: list[str] = []
        total = stats.total_meetings

        weekly_hours = stats.total_hours / window_days * 7
        if weekly_hours > 25:
            score -= 30
            insights.append(
                f"You spend {weekly_hours:.1f} hours/week in meetings - that's insane!"
            )
            recommendations.append(
                "Decline at least 30% of meetings - you really don't need to be there"
            )
        elif weekly_hours > 15:
            score -= 20
            insights.append(f"{weekly_hours:.1f} hours/week in meetings is above average")
            recommendations.append('Try "No Meeting Wednesdays" to get deep work done')
        elif weekly_hours > 10:
            score -= 10
            insights.append(
                f"{weekly_hours:.1f} hours/week in meetings - not terrible, but room to improve"
            )

        back_to_back_pct = _percentage(stats.back_to_back_meetings, total)
        if back_to_back_pct > 50:
            score -= 20
            insights.append(
                f"{back_to_back_pct:.0f}% of your meetings are back-to-back - no time to breathe!"
            )
            recommendations.append("Block 15-min buffers between meetings for sanity breaks")
        elif back_to_back_pct > 30:
            score -= 10
            insights.append(f"{back_to_back_pct:.0f}% of meetings are back-to-back")
            recommendations.append("Add calendar buffers to prevent burnout")

        avg_duration = stats.average_meeting_duration
        if avg_duration > 60:
            score -= 15
            insights.append(f"Average meeting is {avg_duration:.0f} minutes - too long!")
            recommendations.append(
                "Challenge every meeting over 45 minutes - most can be shorter"
            )
        elif avg_duration > 45:
            score -= 5
            insights.append(f"Average meeting duration: {avg_duration:.0f} minutes")

        recurring_pct = _percentage(stats.recurring_meetings, total)
        if recurring_pct > 60:
            score -= 10
            insights.append(
                f"{recurring_pct:.0f}% are recurring - some are probably dead weight"
            )
            recommendations.append("Audit recurring meetings quarterly - cancel the zombies")

        external_pct = _percentage(stats.external_meetings, total)
        if external_pct > 70:
            insights.append(
                f"{external_pct:.0f}% of meetings organized by others - "
                "you're reactive, not proactive"
            )
            recommendations.append(
                'Block 2-hour "focus time" blocks daily to own your calendar'
            )

        standup_hours = stats.meetings_by_category.get(MeetingCategory.STANDUP.value, 0.0)
        if standup_hours > 10:
            insights.append(
                f"Spending {standup_hours:.1f} hours in standups over {window_days} days - "
                "that's a lot of status updates"
            )
            recommendations.append("Try async standups in Slack/Teams instead")

        all_hands_hours = stats.meetings_by_category.get(MeetingCategory.ALL_HANDS.value, 0.0)
        if all_hands_hours > 5:
            insights.append(
                f"{all_hands_hours:.1f} hours in all-hands meetings - hope they're worth it"
            )

        score = int(round(max(0, min(100, score))))
        grade, badge = grade_for_score(score)

        if score >= 80:
            insights.append(POSITIVE_INSIGHT)

        logger.debug(
            "Fatigue score %s (%s) over %s meetings", score, grade, len(meetings)
        )
        return FatigueScore(
            score=score,
            grade=grade,
            badge=badge,
            insights=insights,
            recommendations=recommendations,
        )

    def calculate_weekly_trend(
        self, meetings: Sequence[CategorizedMeeting]
    ) -> list[TrendPoint]:
        """
        Sum meeting hours per calendar week.

        Weeks are labelled by their start date (``YYYY-MM-DD``), so sorting
        labels also sorts chronologically. Only the last four weeks are kept.

        Args:
            meetings: Categorized meetings.

        Returns:
            list[TrendPoint]: Up to four points, oldest first.
        """
        hours_by_week: dict[str, float] = defaultdict(float)
        for meeting in meetings:
            start_day = week_start(meeting.start.date(), self.first_weekday)
            hours_by_week[start_day.isoformat()] += meeting.duration / 60

        points = [
            TrendPoint(week=week, hours=round(hours, 1))
            for week, hours in sorted(hours_by_week.items())
        ]
        return points[-TREND_WEEKS:]

    def analyze(
        self,
        events: Sequence[CalendarEvent],
        category_map: Mapping[str, MeetingCategory],
        user_email: str,
        window_days: Optional[int] = None,
    ) -> AnalysisResult:
        """
        Run the full analytics pipeline.

        Args:
            events: Raw calendar events.
            category_map: Categorizer output keyed by event id.
            user_email: Calendar owner's email.
            window_days: Days covered by ``events`` (defaults to 30).

        Returns:
            AnalysisResult: Stats, score, meetings and trend.
        """
        window = window_days or DEFAULT_WINDOW_DAYS
        categorized = self.categorize_meetings(events, category_map)
        stats = self.calculate_stats(categorized, user_email)
        fatigue_score = self.calculate_fatigue_score(stats, categorized, window)
        weekly_trend = self.calculate_weekly_trend(categorized)

        logger.info(
            "Analyzed %s meetings (%.1f hours): score=%s grade=%s",
            stats.total_meetings,
            stats.total_hours,
            fatigue_score.score,
            fatigue_score.grade,
        )
        return AnalysisResult(
            stats=stats,
            fatigue_score=fatigue_score,
            categorized_meetings=categorized,
            weekly_trend=weekly_trend,
        )
