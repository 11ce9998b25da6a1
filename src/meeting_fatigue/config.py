"""Application configuration and settings.

Objective:
    Provide a single source of truth for runtime configuration used across the
    application (Google OAuth, Groq, categorization batching and analytics
    windows).

Responsibilities:
    - Define the canonical set of meeting categories (:class:`MeetingCategory`).
    - Hold presentation metadata for each category (:data:`CATEGORY_DETAILS`).
    - Load environment-driven settings via :class:`Settings` (Pydantic
      BaseSettings).

High-level call tree:
    - :func:`get_settings` -> returns :class:`Settings`
    - :class:`Settings`
        - :attr:`Settings.categories_list`
        - :attr:`Settings.is_production`
    - :meth:`MeetingCategory.parse`

Operational notes:
    - ``Settings`` loads from ``.env`` by default via ``pydantic-settings``.
    - Most modules accept a ``Settings`` object explicitly to enable testing;
      the orchestrator falls back to :func:`get_settings` when not provided.
"""

from enum import Enum
from typing import Any, NamedTuple
import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class MeetingCategory(str, Enum):
    """Closed set of meeting categories.

    These values are referenced by:
    - the LLM prompt
    - the fast-path and fallback pattern matchers
    - the analytics engine (category hour totals)
    """

    STANDUP = "standup"
    ONE_ON_ONE = "one_on_one"
    PLANNING = "planning"
    REVIEW = "review"
    BRAINSTORM = "brainstorm"
    TRAINING = "training"
    INTERVIEW = "interview"
    ALL_HANDS = "all_hands"
    SOCIAL = "social"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "MeetingCategory":
        """Coerce an arbitrary value into a category.

        Anything outside the closed set (unknown names, ``None``, non-strings)
        maps to :attr:`OTHER`.

        Args:
            value: Raw category value, typically model output.

        Returns:
            MeetingCategory: Matching category or ``OTHER``.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.OTHER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


class CategoryDetails(NamedTuple):
    """Presentation metadata for a category."""

    name: str
    color: str
    description: str


CATEGORY_DETAILS: dict[MeetingCategory, CategoryDetails] = {
    MeetingCategory.STANDUP: CategoryDetails(
        "Standup", "#3b82f6", "Daily team sync-ups and status updates"
    ),
    MeetingCategory.ONE_ON_ONE: CategoryDetails(
        "1:1", "#8b5cf6", "Individual check-ins with manager or direct reports"
    ),
    MeetingCategory.PLANNING: CategoryDetails(
        "Planning", "#06b6d4", "Sprint planning, roadmap discussions, strategy sessions"
    ),
    MeetingCategory.REVIEW: CategoryDetails(
        "Review/Demo", "#10b981", "Sprint reviews, product demos, showcases"
    ),
    MeetingCategory.BRAINSTORM: CategoryDetails(
        "Brainstorm", "#f59e0b", "Creative sessions, ideation, whiteboarding"
    ),
    MeetingCategory.TRAINING: CategoryDetails(
        "Training", "#ec4899", "Learning sessions, workshops, onboarding"
    ),
    MeetingCategory.INTERVIEW: CategoryDetails(
        "Interview", "#ef4444", "Candidate interviews, screening calls"
    ),
    MeetingCategory.ALL_HANDS: CategoryDetails(
        "All-Hands", "#6366f1", "Company-wide meetings, town halls"
    ),
    MeetingCategory.SOCIAL: CategoryDetails(
        "Social", "#14b8a6", "Team building, coffee chats, virtual hangouts"
    ),
    MeetingCategory.OTHER: CategoryDetails("Other", "#64748b", "Miscellaneous meetings"),
}


def category_details(value: Any) -> CategoryDetails:
    """Look up presentation metadata for a category value.

    Args:
        value: Category enum member or raw string.

    Returns:
        CategoryDetails: Metadata, using ``Other`` for unknown values.
    """
    return CATEGORY_DETAILS[MeetingCategory.parse(value)]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The settings model is intentionally flat and human-editable via `.env`.
    Most fields map directly to environment variables.

    Attributes:
        google_client_id: Google OAuth client ID.
        google_client_secret: Google OAuth client secret.
        google_redirect_uri: OAuth callback URL registered with Google.
        groq_api_key: Groq API key for LLM access.
        groq_model: Groq model to use for categorization.
        categorization_batch_size: Meetings per consolidated LLM prompt.
        batch_delay_seconds: Pause between LLM batches.
        description_max_length: Description characters sent per meeting.
        analysis_window_days: Default look-back window in days.
        week_start_day: First weekday of trend buckets (0 = Monday).
        frontend_url: Base URL the OAuth callback redirects to.
        environment: ``development`` or ``production``.
        log_level: Logging level.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Google OAuth Configuration
    google_client_id: str = Field(default="", description="Google OAuth client ID")
    google_client_secret: str = Field(default="", description="Google OAuth client secret")
    google_redirect_uri: str = Field(
        default="http://localhost:8000/auth/google/callback",
        description="OAuth redirect URI registered with Google",
    )

    # Groq Configuration
    groq_api_key: str = Field(default="", description="Groq API key")
    groq_model: str = Field(
        default="openai/gpt-oss-120b", description="Groq model name"
    )

    # Categorization Settings
    categorization_batch_size: int = Field(
        default=25, ge=1, le=100, description="Meetings per LLM prompt"
    )
    batch_delay_seconds: float = Field(
        default=1.0, ge=0, description="Pause between LLM batches (rate limiting)"
    )
    description_max_length: int = Field(
        default=100, ge=0, description="Description characters included per meeting"
    )

    # Analytics Settings
    analysis_window_days: int = Field(
        default=30, ge=1, le=365, description="Default analysis window in days"
    )
    week_start_day: int = Field(
        default=0, ge=0, le=6, description="First day of trend weeks (0=Monday)"
    )

    # Web Settings
    frontend_url: str = Field(
        default="http://localhost:8000", description="Base URL for OAuth redirects"
    )
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("frontend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Whether error details should be hidden from API responses."""
        return self.environment.strip().lower() == "production"

    @property
    def categories_list(self) -> list[str]:
        """
        Get list of all valid category names.

        This list is used when building the prompt to constrain the model
        output to known category tags.

        Returns:
            list[str]: List of category names.
        """
        return [cat.value for cat in MeetingCategory]


def get_settings() -> Settings:
    """
    Load and return application settings.

    This helper is a convenience for production code. For tests, you typically
    construct a :class:`Settings` instance directly or pass a mocked settings
    object.

    Returns:
        Settings: Application settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    settings = Settings()
    if not settings.groq_api_key:
        logger.warning("GROQ_API_KEY is not set; LLM categorization will fall back to patterns")
    return settings
