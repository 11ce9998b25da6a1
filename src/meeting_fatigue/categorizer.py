"""AI-assisted meeting categorization.

Objective:
    Map every :class:`src.meeting_fatigue.models.CalendarEvent` of a request to
    exactly one :class:`src.meeting_fatigue.config.MeetingCategory`, while
    spending as few Groq calls as possible.

Core strategy:
    1. Apply high-precision title patterns (standup, 1:1, sprint planning,
       interview). Matches never reach the LLM.
    2. Group the remaining meetings into batches and send each batch to Groq
       as a single consolidated prompt that asks for an ``{id: category}``
       JSON object.
    3. If a batch call raises or its response cannot be parsed, categorize
       that batch with broader keyword patterns over title and description.

High-level call tree:
    - :class:`MeetingCategorizer`
        - :meth:`MeetingCategorizer.categorize`
            - :meth:`MeetingCategorizer.fast_pattern_match`
            - :meth:`MeetingCategorizer._categorize_batch`
                - :meth:`MeetingCategorizer._build_user_prompt`
                    - :func:`src.meeting_fatigue.sanitizer.sanitize_description`
                - Groq chat completion
                - :func:`src.meeting_fatigue.response_parser.parse_category_mapping`
                - :meth:`MeetingCategorizer.fallback_categorization` (on failure)

Operational notes:
    - Batches are sent one after another with ``settings.batch_delay_seconds``
      between them to stay under Groq rate limits.
    - Fast-path results are computed before any LLM call is made.
"""

import json
import logging
import re
import time
from typing import Iterable, Optional, Sequence

from groq import Groq

from .config import MeetingCategory, Settings
from .models import CalendarEvent
from .response_parser import parse_category_mapping
from .sanitizer import sanitize_description

logger = logging.getLogger(__name__)

# Title-only rules, checked in order. First match wins.
FAST_PATH_RULES: tuple[tuple[re.Pattern, MeetingCategory], ...] = (
    (re.compile(r"standup|stand-up|scrum|daily sync", re.IGNORECASE), MeetingCategory.STANDUP),
    (re.compile(r"1:1|1-1|one[ -]on[ -]one", re.IGNORECASE), MeetingCategory.ONE_ON_ONE),
    (re.compile(r"sprint planning|okr planning", re.IGNORECASE), MeetingCategory.PLANNING),
    (re.compile(r"interview|screening", re.IGNORECASE), MeetingCategory.INTERVIEW),
)

# Title + description keyword rules used when the LLM is unavailable.
FALLBACK_RULES: tuple[tuple[re.Pattern, MeetingCategory], ...] = (
    (re.compile(r"standup|daily|scrum|sync", re.IGNORECASE), MeetingCategory.STANDUP),
    (re.compile(r"1:1|one on one|1-1|check.?in", re.IGNORECASE), MeetingCategory.ONE_ON_ONE),
    (re.compile(r"planning|sprint|roadmap|strategy", re.IGNORECASE), MeetingCategory.PLANNING),
    (re.compile(r"review|demo|retro|showcase", re.IGNORECASE), MeetingCategory.REVIEW),
    (re.compile(r"brainstorm|ideation|whiteboard", re.IGNORECASE), MeetingCategory.BRAINSTORM),
    (re.compile(r"training|workshop|learning|onboard", re.IGNORECASE), MeetingCategory.TRAINING),
    (re.compile(r"interview|screening|candidate", re.IGNORECASE), MeetingCategory.INTERVIEW),
    (re.compile(r"all.?hands|town.?hall|company", re.IGNORECASE), MeetingCategory.ALL_HANDS),
    (
        re.compile(r"coffee|social|lunch|happy.?hour|team.?building", re.IGNORECASE),
        MeetingCategory.SOCIAL,
    ),
)

SYSTEM_PROMPT = """You are a meeting categorization expert.
You may only use these categories: {categories}.

Rules:
- "standup" = daily sync, daily standup, scrum, status update
- "one_on_one" = 1:1, check-in, catch up, manager sync
- "planning" = sprint planning, roadmap, strategy, OKRs
- "review" = demo, sprint review, showcase, retrospective
- "brainstorm" = brainstorming, ideation, creative session
- "training" = workshop, learning, onboarding
- "interview" = candidate interview, screening
- "all_hands" = company meeting, town hall
- "social" = coffee chat, team building, happy hour, lunch
- "other" = everything else

Output a single JSON object whose keys are meeting IDs and whose values are
category names, e.g. {{"event_id_1": "standup", "event_id_2": "planning"}}.
No additional text or Markdown fences.
"""


def _batched(items: Sequence[CalendarEvent], size: int) -> Iterable[list[CalendarEvent]]:
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class MeetingCategorizer:
    """
    Hybrid pattern + Groq LLM meeting categorizer.

    A new instance can be created per request; it holds no per-request state.

    Attributes:
        settings: Application settings.
        client: Groq API client, or None when no API key is configured.
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize categorizer with settings.

        Args:
            settings: Application settings with Groq API key and batching options.
        """
        self.settings = settings
        self.client: Optional[Groq] = (
            Groq(api_key=settings.groq_api_key) if settings.groq_api_key else None
        )

    def fast_pattern_match(self, event: CalendarEvent) -> Optional[MeetingCategory]:
        """Categorize obvious meetings from their title alone.

        Args:
            event: Meeting to check.

        Returns:
            Optional[MeetingCategory]: Category, or None to defer to the LLM.
        """
        title = event.title or ""
        for pattern, category in FAST_PATH_RULES:
            if pattern.search(title):
                return category
        return None

    def fallback_categorization(self, event: CalendarEvent) -> MeetingCategory:
        """Categorize a meeting from title and description keywords.

        Always returns a category; ``other`` when nothing matches. The raw
        description is matched, so keywords inside links and markup count.

        Args:
            event: Meeting to categorize.

        Returns:
            MeetingCategory: Matched category.
        """
        combined = f"{event.title or ''} {event.description or ''}"
        for pattern, category in FALLBACK_RULES:
            if pattern.search(combined):
                return category
        return MeetingCategory.OTHER

    def _build_system_prompt(self) -> str:
        return SYSTEM_PROMPT.format(categories=", ".join(self.settings.categories_list))

    def _build_user_prompt(self, batch: Sequence[CalendarEvent]) -> str:
        """
        Build the consolidated prompt for one batch.

        Args:
            batch: Meetings to categorize in a single call.

        Returns:
            str: User prompt embedding id, title and a short description.
        """
        meetings = [
            {
                "id": event.id,
                "title": event.title,
                "desc": sanitize_description(
                    event.description, self.settings.description_max_length
                ),
            }
            for event in batch
        ]

        return f"""Categorize the following meetings:
<meetings>
{json.dumps(meetings, indent=2)}
</meetings>

Return a JSON object where keys are meeting IDs and values are category names.
"""

    def _request_categories(self, batch: Sequence[CalendarEvent]) -> str:
        """Send one batch to Groq and return the raw response text.

        Raises:
            RuntimeError: If no Groq client is configured.
        """
        if self.client is None:
            raise RuntimeError("GROQ_API_KEY is not configured")

        response = self.client.chat.completions.create(
            model=self.settings.groq_model,
            messages=[
                {"role": "system", "content": self._build_system_prompt()},
                {"role": "user", "content": self._build_user_prompt(batch)},
            ],
            temperature=0,
        )
        return (response.choices[0].message.content or "").strip()

    def _categorize_batch(
        self, batch: Sequence[CalendarEvent]
    ) -> dict[str, MeetingCategory]:
        """
        Categorize one batch with the LLM, falling back to keyword patterns.

        Any failure (API error, rate limit, unparseable output) switches the
        whole batch to :meth:`fallback_categorization`; nothing is raised.

        Args:
            batch: Meetings without a fast-path match.

        Returns:
            dict[str, MeetingCategory]: One entry per meeting in the batch.
        """
        try:
            response_text = self._request_categories(batch)
            logger.debug(f"LLM response: {response_text}")
            categories = parse_category_mapping(response_text)
        except Exception as e:
            logger.warning(
                "Batch LLM categorization failed; falling back to patterns (batch_size=%s, error=%s)",
                len(batch),
                str(e),
            )
            return {event.id: self.fallback_categorization(event) for event in batch}

        results = {}
        for event in batch:
            category = MeetingCategory.parse(categories.get(event.id))
            results[event.id] = category
        return results

    def categorize(
        self, events: Sequence[CalendarEvent]
    ) -> dict[str, MeetingCategory]:
        """
        Categorize meetings.

        This is the primary entrypoint used by the orchestrator.

        Args:
            events: Meetings to categorize.

        Returns:
            dict[str, MeetingCategory]: Exactly one category per event id.
        """
        results: dict[str, MeetingCategory] = {}
        needs_llm: list[CalendarEvent] = []

        for event in events:
            quick = self.fast_pattern_match(event)
            if quick is not None:
                results[event.id] = quick
            else:
                needs_llm.append(event)

        logger.info(
            "Fast-path categorized %s of %s meetings", len(results), len(events)
        )
        if not needs_llm:
            return results

        batch_size = self.settings.categorization_batch_size
        batches = list(_batched(needs_llm, batch_size))
        for i, batch in enumerate(batches, 1):
            logger.info(f"Categorizing batch {i}/{len(batches)} ({len(batch)} meetings)")
            results.update(self._categorize_batch(batch))

            if i < len(batches):
                time.sleep(self.settings.batch_delay_seconds)

        return results
