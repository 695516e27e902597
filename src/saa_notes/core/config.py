"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Required env vars (no defaults):
        NOTION_API_KEY, NOTION_DATABASE_ID

    Optional env vars:
        NOTION_API_BASE_URL (https://api.notion.com/v1),
        NOTION_VERSION (2022-06-28), NOTION_TIMEOUT (30.0),
        NOTE_PAGE_SIZE (100), MATCH_PREFIX_LENGTH (50), LOG_LEVEL (INFO)
    """

    PROJECT_NAME: str = "SAA Notes"

    # Notion
    NOTION_API_KEY: str
    NOTION_DATABASE_ID: str
    NOTION_API_BASE_URL: str = "https://api.notion.com/v1"
    NOTION_VERSION: str = "2022-06-28"
    NOTION_TIMEOUT: float = 30.0

    # Note store
    NOTE_PAGE_SIZE: int = 100  # Notion caps page_size at 100
    MATCH_PREFIX_LENGTH: int = 50

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )


settings = Settings()  # type: ignore[call-arg]
