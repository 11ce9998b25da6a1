"""
Tests for the categorizer module.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import MagicMock, patch

from src.meeting_fatigue.categorizer import MeetingCategorizer
from src.meeting_fatigue.config import MeetingCategory, Settings
from src.meeting_fatigue.models import CalendarEvent

START = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_settings():
    """Create mock settings for testing."""
    settings = MagicMock(spec=Settings)
    settings.groq_api_key = "test-api-key"
    settings.groq_model = "openai/gpt-oss-120b"
    settings.categorization_batch_size = 25
    settings.batch_delay_seconds = 1.0
    settings.description_max_length = 100
    settings.categories_list = [cat.value for cat in MeetingCategory]
    return settings


def make_event(event_id: str, title: str, description: str = None) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        title=title,
        description=description,
        start=START,
        end=START + timedelta(minutes=30),
    )


def llm_response(content: str) -> MagicMock:
    """Build a Groq chat completion response carrying ``content``."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class TestFastPatternMatch:
    """Tests for title-only categorization."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Daily Standup", MeetingCategory.STANDUP),
            ("Team stand-up", MeetingCategory.STANDUP),
            ("Scrum of scrums", MeetingCategory.STANDUP),
            ("Alex / Sam 1:1", MeetingCategory.ONE_ON_ONE),
            ("Monthly 1-1", MeetingCategory.ONE_ON_ONE),
            ("One on one with manager", MeetingCategory.ONE_ON_ONE),
            ("Sprint Planning", MeetingCategory.PLANNING),
            ("Q3 OKR planning", MeetingCategory.PLANNING),
            ("Interview - Backend candidate", MeetingCategory.INTERVIEW),
            ("Phone screening", MeetingCategory.INTERVIEW),
        ],
    )
    def test_known_titles(self, mock_settings, title, expected):
        """Test that obvious titles are categorized without the LLM."""
        with patch("src.meeting_fatigue.categorizer.Groq"):
            categorizer = MeetingCategorizer(mock_settings)
            assert categorizer.fast_pattern_match(make_event("e1", title)) == expected

    def test_description_is_ignored(self, mock_settings):
        """Test that only the title is used on the fast path."""
        with patch("src.meeting_fatigue.categorizer.Groq"):
            categorizer = MeetingCategorizer(mock_settings)
            event = make_event("e1", "Quarterly kickoff", "Run like a daily standup")
            assert categorizer.fast_pattern_match(event) is None


class TestFallbackCategorization:
    """Tests for keyword fallback."""

    @pytest.mark.parametrize(
        "title,description,expected",
        [
            ("Weekly team sync", None, MeetingCategory.STANDUP),
            ("Manager check-in", None, MeetingCategory.ONE_ON_ONE),
            ("Roadmap review", None, MeetingCategory.PLANNING),
            ("Product demo", None, MeetingCategory.REVIEW),
            ("Whiteboard session", None, MeetingCategory.BRAINSTORM),
            ("New hire onboarding", None, MeetingCategory.TRAINING),
            ("Chat with candidate", None, MeetingCategory.INTERVIEW),
            ("Town hall", None, MeetingCategory.ALL_HANDS),
            ("Friday", "<p>Virtual <b>coffee</b> hangout</p>", MeetingCategory.SOCIAL),
            ("Budget discussion", "Numbers for next year", MeetingCategory.OTHER),
        ],
    )
    def test_keyword_rules(self, mock_settings, title, description, expected):
        """Test keyword rules over title and description, in priority order."""
        with patch("src.meeting_fatigue.categorizer.Groq"):
            categorizer = MeetingCategorizer(mock_settings)
            event = make_event("e1", title, description)
            assert categorizer.fallback_categorization(event) == expected


class TestPrompts:
    """Tests for prompt building."""

    def test_system_prompt_contains_categories(self, mock_settings):
        """Test that system prompt contains all categories."""
        with patch("src.meeting_fatigue.categorizer.Groq"):
            categorizer = MeetingCategorizer(mock_settings)
            prompt = categorizer._build_system_prompt()

            for category in mock_settings.categories_list:
                assert category in prompt
            assert '{"event_id_1": "standup"' in prompt

    def test_user_prompt_truncates_descriptions(self, mock_settings):
        """Test that descriptions are sanitized and cut to the configured length."""
        mock_settings.description_max_length = 10
        with patch("src.meeting_fatigue.categorizer.Groq"):
            categorizer = MeetingCategorizer(mock_settings)
            event = make_event("evt-9", "Budget", "<p>Discuss the annual budget numbers</p>")

            prompt = categorizer._build_user_prompt([event])

            assert '"id": "evt-9"' in prompt
            assert '"title": "Budget"' in prompt
            assert '"desc": "Discuss th"' in prompt
            assert "<p>" not in prompt


class TestCategorize:
    """Tests for the batch categorization entrypoint."""

    def test_fast_path_skips_llm(self, mock_settings):
        """Test that fully fast-path inputs never call Groq."""
        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq:
            categorizer = MeetingCategorizer(mock_settings)
            result = categorizer.categorize(
                [make_event("a", "Daily standup"), make_event("b", "Sam 1:1")]
            )

            assert result == {"a": MeetingCategory.STANDUP, "b": MeetingCategory.ONE_ON_ONE}
            mock_groq.return_value.chat.completions.create.assert_not_called()

    def test_llm_results_are_validated(self, mock_settings):
        """Test that unknown or missing categories become other."""
        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq:
            mock_groq.return_value.chat.completions.create.return_value = llm_response(
                '```json\n{"a": "brainstorm", "b": "party"}\n```'
            )
            categorizer = MeetingCategorizer(mock_settings)

            result = categorizer.categorize(
                [
                    make_event("a", "Idea jam"),
                    make_event("b", "Offsite"),
                    make_event("c", "Misc"),
                ]
            )

            assert result == {
                "a": MeetingCategory.BRAINSTORM,
                "b": MeetingCategory.OTHER,
                "c": MeetingCategory.OTHER,
            }

    def test_batches_and_delays(self, mock_settings):
        """Test batch sizing and the pause between (not after) batches."""
        mock_settings.categorization_batch_size = 2
        events = [make_event(f"e{i}", f"Topic {i}") for i in range(5)]

        def respond(model, messages, temperature):
            batch = json.loads(
                messages[1]["content"].split("<meetings>")[1].split("</meetings>")[0]
            )
            return llm_response(json.dumps({m["id"]: "review" for m in batch}))

        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq, patch(
            "src.meeting_fatigue.categorizer.time.sleep"
        ) as mock_sleep:
            mock_groq.return_value.chat.completions.create.side_effect = respond
            categorizer = MeetingCategorizer(mock_settings)

            result = categorizer.categorize(events)

            assert mock_groq.return_value.chat.completions.create.call_count == 3
            assert mock_sleep.call_count == 2
            mock_sleep.assert_called_with(1.0)
            assert set(result) == {f"e{i}" for i in range(5)}
            assert set(result.values()) == {MeetingCategory.REVIEW}

    def test_falls_back_when_llm_raises(self, mock_settings):
        """Test that API errors switch the batch to keyword rules."""
        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq:
            mock_groq.return_value.chat.completions.create.side_effect = Exception(
                "rate limited"
            )
            categorizer = MeetingCategorizer(mock_settings)

            result = categorizer.categorize(
                [make_event("a", "Product demo"), make_event("b", "Lunch & learn workshop")]
            )

            assert result == {"a": MeetingCategory.REVIEW, "b": MeetingCategory.TRAINING}

    def test_falls_back_when_response_has_no_json(self, mock_settings):
        """Test that unparseable output is treated like a failed call."""
        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq:
            mock_groq.return_value.chat.completions.create.return_value = llm_response(
                "I cannot categorize these meetings."
            )
            categorizer = MeetingCategorizer(mock_settings)

            result = categorizer.categorize([make_event("a", "Town hall")])

            assert result == {"a": MeetingCategory.ALL_HANDS}

    def test_without_api_key_uses_fallback(self, mock_settings):
        """Test that a missing key never builds a client."""
        mock_settings.groq_api_key = ""
        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq:
            categorizer = MeetingCategorizer(mock_settings)

            result = categorizer.categorize([make_event("a", "Happy hour")])

            mock_groq.assert_not_called()
            assert result == {"a": MeetingCategory.SOCIAL}

    def test_every_event_gets_a_category(self, mock_settings):
        """Test totality for a mixed input."""
        events = [
            make_event("a", "Daily standup"),
            make_event("b", "Quarterly business review"),
            make_event("c", "Dentist"),
        ]
        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq:
            mock_groq.return_value.chat.completions.create.return_value = llm_response(
                '{"b": "review"}'
            )
            categorizer = MeetingCategorizer(mock_settings)

            result = categorizer.categorize(events)

            assert set(result) == {"a", "b", "c"}
            assert all(isinstance(v, MeetingCategory) for v in result.values())

    def test_weekly_sync_depends_on_batch_outcome(self, mock_settings):
        """Test that an ambiguous title follows the LLM unless its batch falls back."""
        event = make_event("a", "Weekly Sync with Design")

        with patch("src.meeting_fatigue.categorizer.Groq") as mock_groq:
            create = mock_groq.return_value.chat.completions.create
            create.return_value = llm_response('{"a": "brainstorm"}')
            categorizer = MeetingCategorizer(mock_settings)
            assert categorizer.categorize([event]) == {"a": MeetingCategory.BRAINSTORM}

            create.side_effect = Exception("service unavailable")
            assert categorizer.categorize([event]) == {"a": MeetingCategory.STANDUP}


class TestFallbackUsesRawDescription:
    """Tests for keyword matching against the unsanitized description."""

    def test_keyword_inside_url_counts(self, mock_settings):
        """Test that a keyword only present in a link still matches."""
        mock_settings.groq_api_key = ""
        with patch("src.meeting_fatigue.categorizer.Groq"):
            categorizer = MeetingCategorizer(mock_settings)
            event = make_event(
                "a", "Misc", "Notes: https://docs.example.com/sprint-notes"
            )

            assert categorizer.fallback_categorization(event) == MeetingCategory.PLANNING
            assert categorizer.categorize([event]) == {"a": MeetingCategory.PLANNING}

    def test_keyword_inside_link_markup_counts(self, mock_settings):
        """Test that keywords in HTML attributes are matched too."""
        with patch("src.meeting_fatigue.categorizer.Groq"):
            categorizer = MeetingCategorizer(mock_settings)
            event = make_event(
                "a", "Friday", '<a href="https://wiki.example.com/retro-board">board</a>'
            )

            assert categorizer.fallback_categorization(event) == MeetingCategory.REVIEW
