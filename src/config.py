from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "Voice Scheduler Bridge"
    APP_DESCRIPTION: str = "Bridges voice-platform tool calls to an LLM and a Google Calendar."
    DEBUG: bool = False

    # LLM
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_MAX_TOKENS: int = 1024

    # Google Calendar
    # "oauth" uses a refresh token, "service_account" uses a key file
    GOOGLE_AUTH_MODE: str = "oauth"
    GOOGLE_CALENDAR_ID: str = "primary"
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    GOOGLE_REFRESH_TOKEN: Optional[str] = None
    GOOGLE_SERVICE_ACCOUNT_FILE: Optional[str] = None
    GOOGLE_DELEGATED_USER: Optional[str] = None

    # Scheduling
    CALENDAR_TIMEZONE: str = "America/New_York"
    # Fixed civil offset (e.g. "-05:00"). When set it wins over the zone rules.
    CALENDAR_UTC_OFFSET: Optional[str] = None
    OPERATOR_EMAIL: Optional[str] = None
    DEFAULT_SYSTEM_PROMPT: Optional[str] = None
    VERIFY_BEFORE_BOOKING: bool = True

    # Sentry
    SENTRY_DSN: str = ""
    LOG_FILE: str = "app.log"

    # This config tells Pydantic to look for a .env file
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding='utf-8',
        extra='ignore' # Ignores extra variables in .env
    )

# Create a singleton instance to be used across the app
settings = Settings()
