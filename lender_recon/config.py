"""
Configuration management using Pydantic Settings.
All matching thresholds are loaded from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Subset-sum search never looks at groups larger than this, whatever the config says.
MAX_GROUP_SIZE = 5


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RECON_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Amount tolerances (percent of the larger amount)
    exact_amount_tolerance_percent: float = Field(default=0.1, ge=0)
    close_amount_tolerance_percent: float = Field(default=5.0, ge=0)
    group_amount_tolerance_percent: float = Field(default=1.0, ge=0)

    # Date windows (days)
    single_match_window_days: int = Field(default=30, ge=0)
    group_window_days: int = Field(default=3, ge=0)
    group_max_days_from_candidate: int = Field(default=14, ge=0)

    # Confidence
    min_confidence: float = Field(default=0.35, ge=0, le=1)
    grouped_search_threshold: float = Field(default=0.9, ge=0, le=1)
    single_name_boost: float = Field(default=0.15, ge=0)
    group_name_boost: float = Field(default=0.05, ge=0)
    single_score_cap: float = Field(default=0.99, ge=0, le=1)
    group_score_cap: float = Field(default=0.95, ge=0, le=1)

    # Subset-sum search
    max_group_size: int = Field(default=MAX_GROUP_SIZE, ge=1, le=MAX_GROUP_SIZE)

    # Payment split
    split_tolerance_percent: float = Field(default=5.0, ge=0)

    # Fallback suggestions
    pattern_keyword_threshold: float = Field(default=0.5, ge=0)
    expense_keyword_confidence: float = Field(default=0.65, ge=0, le=1)
    borrower_name_threshold: float = Field(default=0.5, ge=0, le=1)
    investor_name_threshold: float = Field(default=0.75, ge=0, le=1)

    # Presentation
    currency_symbol: str = Field(default="£")

    def format_cents(self, cents: int) -> str:
        """Format an amount in cents for explanations."""
        return f"{self.currency_symbol}{abs(cents) / 100:,.2f}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
