"""Configuration management for famcal."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FAMILY_MEMBERS = ["Pappa", "Mamma", "Leo", "Molly", "Ofelia", "Aron"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Configuration
    sqlite_db_path: str = Field(default="./famcal_data/famcal.db", description="SQLite document store path")

    # Household Configuration
    family_members: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FAMILY_MEMBERS),
        description="Fixed set of members who can use the calendar",
    )
    timezone: str = Field(default="Europe/Stockholm", description="IANA timezone used for 'today' and wall-clock times")

    # Notification Configuration
    notification_permission: Literal["granted", "denied", "default"] = Field(
        default="default", description="Notification permission state, read once at startup"
    )
    notification_webhook_url: str | None = Field(default=None, description="Push webhook URL for reminders")
    notification_api_key: str | None = Field(default=None, description="API key sent with reminder pushes (optional)")

    # Session Configuration
    session_secret_key: str | None = Field(default=None, description="Secret used to sign anonymous session tokens")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    @field_validator("family_members")
    @classmethod
    def validate_family_members(cls, v: list[str]) -> list[str]:
        """Validate the member list is non-empty and free of duplicates."""
        members = [name.strip() for name in v if name.strip()]
        if not members:
            raise ValueError("At least one family member must be configured")
        if len(set(members)) != len(members):
            raise ValueError("Family member names must be unique")
        return members

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    @property
    def notifications_enabled(self) -> bool:
        """Whether reminders can be delivered at all."""
        return self.notification_permission == "granted" and bool(self.notification_webhook_url)


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # Collections
    COLLECTION_ACTIVITIES: str = "activities"
    COLLECTION_FIXED_ACTIVITIES: str = "fixed_activities"
    COLLECTION_CHECKED_TASKS: str = "checked_tasks"
    COLLECTION_MESSAGES: str = "messages"

    # Reminder Configuration
    REMINDER_TICK_SECONDS: int = 60
    NOTIFICATION_HORIZON_MINUTES: int = 60
    NOTIFICATION_TITLE: str = "Påminnelse"

    # Snapshot pushes read the whole collection
    SNAPSHOT_PAGE_LIMIT: int = 10000

    # Session tokens
    SESSION_TOKEN_SALT: str = "calendar-session"
    SESSION_TOKEN_MAX_AGE_SECONDS: int = 86400


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
