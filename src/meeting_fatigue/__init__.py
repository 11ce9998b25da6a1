"""Meeting Fatigue Analyzer.

Scores how healthy a Google Calendar is by categorizing recent meetings
(title patterns first, then batched Groq LLM calls) and aggregating them
into statistics, a 0-100 fatigue score and a weekly trend.

Key modules:
    - :mod:`src.meeting_fatigue.calendar_client`: Google Calendar REST client
    - :mod:`src.meeting_fatigue.categorizer`: pattern + LLM categorization
    - :mod:`src.meeting_fatigue.analytics`: statistics and fatigue score
    - :mod:`src.meeting_fatigue.orchestrator`: end-to-end workflow
    - :mod:`src.meeting_fatigue.webapp`: FastAPI endpoints and dashboard
    - :mod:`src.meeting_fatigue.cli`: command-line entrypoint
"""

__version__ = "0.1.0"
