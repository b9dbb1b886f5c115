"""Application settings and configuration.

This module defines all configuration options for the Intro Board service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from intro_board.services.validation import AdmissionPolicy

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The moderation policy (age floor, intro length cap, banned words, report
    threshold, admin allow-list) lives here so it can differ between
    deployments without code changes.
    """

    # Application metadata
    app_name: str = Field(default="Intro Board", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Security and authentication
    secret_key: str = Field(default=DEFAULT_SECRET_KEY, alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Moderators: allow-listed emails and their password hashes
    # (see `intro-board-hash-password`).
    admin_emails: list[str] = Field(default_factory=list, alias="ADMIN_EMAILS")
    admin_credentials: dict[str, str] = Field(
        default_factory=dict,
        alias="ADMIN_CREDENTIALS",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./intro_board.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Optional Redis backend for the submission throttle
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Admission rules
    min_age: int = Field(default=16, alias="MIN_AGE")
    max_intro_len: int = Field(default=200, alias="MAX_INTRO_LEN")
    require_nickname: bool = Field(default=True, alias="REQUIRE_NICKNAME")
    require_contact: bool = Field(default=False, alias="REQUIRE_CONTACT")
    banned_words: list[str] = Field(
        default=["約炮", "騷擾", "仇恨", "種族歧視", "霸凌", "毒品"],
        alias="BANNED_WORDS",
    )

    # Visibility and abuse controls
    auto_hide_threshold: int = Field(default=3, alias="AUTO_HIDE_THRESHOLD")
    submit_cooldown_seconds: int = Field(default=600, alias="SUBMIT_COOLDOWN_SECONDS")
    mutation_timeout_seconds: float = Field(default=10.0, alias="MUTATION_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def admission_policy(self) -> AdmissionPolicy:
        """Return the admission rules applied to new submissions."""
        return AdmissionPolicy(
            min_age=self.min_age,
            max_intro_len=self.max_intro_len,
            banned_words=tuple(self.banned_words),
            require_nickname=self.require_nickname,
            require_contact=self.require_contact,
        )

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == DEFAULT_SECRET_KEY


settings = Settings()
