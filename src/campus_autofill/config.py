"""Configuration management for Campus Autofill."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Configuration
    debug: bool = Field(False, description="Enable debug mode")
    log_level: str = Field("INFO", description="Logging level")

    # Browser Configuration
    browser_headless: bool = Field(False, description="Run browser in headless mode")
    browser_timeout: int = Field(30, description="Browser operation timeout in seconds")
    browser_profiles_dir: str = Field("./data/browser_profiles", description="Root of per-user browser profile directories")
    viewport_width: int = Field(1366, description="Browser viewport width")
    viewport_height: int = Field(900, description="Browser viewport height")

    # Navigation Configuration
    navigation_retries: int = Field(3, description="Attempts for page loads and Next clicks")
    max_pages: int = Field(15, description="Hard cap on pages visited per run")
    transition_poll_attempts: int = Field(10, description="Polls after clicking Next")
    transition_poll_interval: float = Field(0.5, description="Seconds between transition polls")
    transition_grace_period: float = Field(2.0, description="Extra wait when a transition is not confirmed")
    fingerprint_questions: int = Field(3, description="Questions used to build a page fingerprint")
    submit_confirm_timeout: float = Field(5.0, description="Seconds to wait for a submission indicator")

    # Mapping Configuration
    fuzzy_threshold: float = Field(85.0, description="Minimum fuzzy score to accept a mapping")
    fuzzy_candidate_floor: float = Field(60.0, description="Minimum fuzzy score for the token-overlap fallback")
    min_reverse_containment: int = Field(3, description="Shortest label a keyword phrase may contain")

    # Profile store
    profiles_dir: str = Field("./data/profiles", description="Directory of <user_key>.json profiles")

    # Server Configuration
    host: str = Field("0.0.0.0", description="Server host")
    port: int = Field(8000, description="Server port")
    reload: bool = Field(False, description="Enable auto-reload")
    allowed_origins: list[str] = Field(["*"], description="CORS allowed origins")
    allowed_hosts: Optional[list[str]] = Field(None, description="Trusted hosts")


# Global settings instance
settings = Settings()
