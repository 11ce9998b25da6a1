"""Command-line interface (CLI) entrypoint.

Objective:
    Provide a human-friendly CLI wrapper around
    :class:`src.meeting_fatigue.orchestrator.MeetingAnalysisOrchestrator`.

Responsibilities:
    - Parse arguments (token or events file, window, verbosity, output format).
    - Configure logging (including suppressing noisy HTTP request logs).
    - Invoke the orchestrator and print a readable report.

High-level call tree:
    - :func:`main`
        - :func:`setup_logging`
            - installs :class:`_HttpxRequestInfoToDebugFilter`
        - instantiate :class:`MeetingAnalysisOrchestrator`
        - :meth:`MeetingAnalysisOrchestrator.run` (``--token``)
          OR :func:`load_events_file` + :meth:`MeetingAnalysisOrchestrator.analyze_events`
          (``--events-file``)
        - :func:`print_report`

Operational notes:
    - This module supports being run both as a package module
      (``python -m src.meeting_fatigue.cli``) and as a script
      (``python src/meeting_fatigue/cli.py``). The import fallback handles
      the script case.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

try:
    from .calendar_client import to_calendar_event
    from .config import category_details, get_settings
    from .models import AnalysisReport, CalendarEvent
    from .orchestrator import NO_MEETINGS_MESSAGE, MeetingAnalysisOrchestrator
except ImportError:  # pragma: no cover
    src_root = Path(__file__).resolve().parents[1]
    if str(src_root) not in sys.path:
        sys.path.insert(0, str(src_root))

    from meeting_fatigue.calendar_client import to_calendar_event
    from meeting_fatigue.config import category_details, get_settings
    from meeting_fatigue.models import AnalysisReport, CalendarEvent
    from meeting_fatigue.orchestrator import NO_MEETINGS_MESSAGE, MeetingAnalysisOrchestrator


class _HttpxRequestInfoToDebugFilter(logging.Filter):
    """Hide the per-call "HTTP Request:" lines the Groq client emits via httpx.

    One line per LLM batch drowns out the analysis progress at INFO, so those
    records only pass once the root logger runs at DEBUG.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Return False for httpx request lines unless DEBUG is enabled."""
        msg = record.getMessage()
        if record.name.startswith("httpx") and msg.startswith("HTTP Request:"):
            return logging.getLogger().isEnabledFor(logging.DEBUG)
        return True


def setup_logging(level: str = "INFO") -> None:
    """Send log output to stdout at ``level`` and quiet the Groq HTTP lines.

    Args:
        level: Name of the threshold, e.g. ``"INFO"`` or ``"DEBUG"``.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    root_logger = logging.getLogger()
    httpx_filter = _HttpxRequestInfoToDebugFilter()
    for handler in root_logger.handlers:
        handler.addFilter(httpx_filter)


def load_events_file(path: Path) -> list[CalendarEvent]:
    """Load events exported to a JSON file.

    Two shapes are accepted:
        - a raw Google ``events.list`` response (``{"items": [...]}``), filtered
          the same way as live fetches;
        - a JSON list of already-normalized events; cancelled ones are dropped.

    Args:
        path: JSON file path.

    Returns:
        list[CalendarEvent]: Parsed events.

    Raises:
        ValueError: If the file has neither shape.
        pydantic.ValidationError: If an event is malformed.
    """
    payload = json.loads(path.read_text(encoding="utf-8"))

    if isinstance(payload, dict) and "items" in payload:
        events = [to_calendar_event(item) for item in payload["items"]]
        return [event for event in events if event is not None]

    if isinstance(payload, list):
        events = [CalendarEvent.model_validate(item) for item in payload]
        return [event for event in events if event.status != "cancelled"]

    raise ValueError(f"Unsupported events file format: {path}")


def print_report(report: AnalysisReport, verbose: bool = False) -> None:
    """
    Print an analysis report to console.

    Output format:
        - Score, grade and badge.
        - Headline statistics.
        - Insights and recommendations.
        - Hours per category and the weekly trend.
        - Every meeting with its category when ``verbose=True``.

    Args:
        report: Orchestrator output.
        verbose: If True, list individual meetings.
    """
    result = report.result
    stats = result.stats
    fatigue = result.fatigue_score

    print(f"\n{'='*60}")
    print(f"MEETING FATIGUE SCORE: {fatigue.score}/100 (grade {fatigue.grade})")
    print(f"{fatigue.badge}")
    print(f"{'='*60}\n")

    if report.message:
        print(report.message)

    print(
        f"Meetings: {stats.total_meetings} | Hours: {stats.total_hours} | "
        f"Avg: {stats.average_meeting_duration:.0f} min | "
        f"Back-to-back: {stats.back_to_back_meetings}"
    )

    if fatigue.insights:
        print("\nInsights")
        print("-" * 40)
        for insight in fatigue.insights:
            print(f"  • {insight}")

    if fatigue.recommendations:
        print("\nRecommendations")
        print("-" * 40)
        for recommendation in fatigue.recommendations:
            print(f"  → {recommendation}")

    if stats.meetings_by_category:
        print("\nHours by category")
        print("-" * 40)
        ordered = sorted(
            stats.meetings_by_category.items(), key=lambda item: item[1], reverse=True
        )
        for category, hours in ordered:
            print(f"  {category_details(category).name:<14} {hours:6.1f} h")

    if result.weekly_trend:
        print("\nWeekly trend")
        print("-" * 40)
        for point in result.weekly_trend:
            print(f"  {point.week}  {point.hours:6.1f} h")

    if verbose and result.categorized_meetings:
        print("\nMeetings")
        print("-" * 40)
        for meeting in result.categorized_meetings:
            title = meeting.title[:50] + "..." if len(meeting.title) > 50 else meeting.title
            print(
                f"  [{meeting.start.strftime('%m-%d %H:%M')}] {title} "
                f"({meeting.duration} min) -> {category_details(meeting.category).name}"
            )

    print()


def main(args: Optional[list[str]] = None) -> int:
    """
    Main CLI entry point.

    This function is structured to be testable: pass an explicit ``args`` list
    instead of relying on ``sys.argv``.

    It delegates all business logic to the orchestrator.

    Args:
        args: Command line arguments (uses sys.argv if None).

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    parser = argparse.ArgumentParser(
        description="Meeting Fatigue Analyzer - AI-powered calendar health check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --token ya29...               Analyze the last 30 days of a calendar
  %(prog)s --token ya29... --days 14     Analyze the last two weeks
  %(prog)s --events-file events.json     Analyze an exported event list offline
  %(prog)s --json                        Print the raw JSON result
        """,
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--token",
        "-t",
        type=str,
        default=None,
        help="Google OAuth access token (defaults to GOOGLE_ACCESS_TOKEN)",
    )
    source.add_argument(
        "--events-file",
        "-e",
        type=Path,
        default=None,
        help="JSON file with exported events to analyze without calling Google",
    )

    parser.add_argument(
        "--user-email",
        type=str,
        default="",
        help="Calendar owner's email (used with --events-file for external meetings)",
    )

    parser.add_argument(
        "--days",
        "-d",
        type=int,
        default=None,
        help="Number of days to analyze",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis as JSON",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    parsed_args = parser.parse_args(args)

    log_level = "DEBUG" if parsed_args.verbose else parsed_args.log_level
    setup_logging(log_level)

    logger = logging.getLogger(__name__)

    try:
        settings = get_settings()
        orchestrator = MeetingAnalysisOrchestrator(settings=settings)

        if parsed_args.events_file is not None:
            events = load_events_file(parsed_args.events_file)
            days = parsed_args.days or settings.analysis_window_days
            result = orchestrator.analyze_events(events, parsed_args.user_email, days)
            report = AnalysisReport(
                result=result,
                message=(
                    f"Analyzed {len(events)} meetings from {parsed_args.events_file.name}"
                    if events
                    else NO_MEETINGS_MESSAGE
                ),
                days=days,
            )
        else:
            token = parsed_args.token or os.environ.get("GOOGLE_ACCESS_TOKEN")
            if not token:
                print("\n❌ Error: an access token is required (--token or GOOGLE_ACCESS_TOKEN)\n")
                return 1
            report = orchestrator.run(token, days=parsed_args.days)

        if parsed_args.json:
            print(report.model_dump_json(by_alias=True, indent=2))
        else:
            print_report(report, verbose=parsed_args.verbose)

        return 0

    except Exception as e:
        logger.exception("Fatal error")
        print(f"\n❌ Error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
