# chatpulse/core/config.py

import pathlib
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is 3 levels up from this file (chatpulse/core/config.py).
_PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent
_ENV_PATH_FILE = _PROJECT_ROOT / ".env.path"


def _resolve_env_file() -> str | None:
    """
    Returns the .env path named in .env.path, or None when running on
    environment variables alone (tests, containers).
    """
    if not _ENV_PATH_FILE.exists():
        return None

    env_file = pathlib.Path(_ENV_PATH_FILE.read_text().strip())
    if not env_file.exists():
        raise FileNotFoundError(
            f".env file not found at '{env_file}' (read from {_ENV_PATH_FILE}). "
            "Check that the path in .env.path is correct."
        )
    return str(env_file)


class Settings(BaseSettings):
    """
    Manages all application settings.
    Loads variables from the .env file whose path is in .env.path, if any.
    """

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8", extra="ignore"
    )

    # Monitor behaviour
    MONITOR_ENABLED: bool = True
    OVERLAY_POSITION: str = "top-right"
    OVERLAY_THEME: str = "dark"
    SAMPLE_INTERVAL_SECONDS: float = 10.0

    # History storage
    DB_URL: str = "sqlite+aiosqlite:///chatpulse.db"
    HISTORY_LIMIT: int = 100
    PERSIST_TIMEOUT_SECONDS: float = 5.0

    # Twitch Helix viewer probe (optional)
    TWITCH_CLIENT_ID: str | None = None
    TWITCH_CLIENT_SECRET: str | None = None

    # Twitch live relay (optional)
    TWITCH_BOT_TOKEN: str | None = None
    TWITCH_BOT_ID: str | None = None
    TWITCH_OWNER_ID: str | None = None
    TWITCH_CHANNEL: str | None = None

    # Observability (optional)
    SENTRY_DSN: str | None = None
    LOGS_WEBHOOK_URL: str | None = None


# Create a single, importable instance of our settings.
# This instance will be created only once when the module is first imported.
settings = Settings(_env_file=_resolve_env_file())
