"""Configuration management for Parish."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

PARISH_HOME = Path(os.environ.get("PARISH_HOME", Path.home() / "parish"))
CONFIG_FILE = PARISH_HOME / "config" / "parish.conf"
TOKEN_FILE = PARISH_HOME / "config" / ".tokens.json"
DATA_DIR = PARISH_HOME / "data"

DEFAULT_API_BASE_URL = "https://daily-parish-beta.vercel.app/api"


@dataclass
class Config:
    """Parish configuration."""

    api_base_url: str = DEFAULT_API_BASE_URL
    # Empty means device-local wall clock
    timezone: str = ""
    request_timeout: float = 15.0
    save_debounce: float = 0.5
    data_dir: str = ""
    # Reminder delivery
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)
    reminder_message: str = "Your daily prayer is ready."

    def resolve_data_dir(self) -> Path:
        """Directory holding persisted engine state."""
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR


@dataclass
class Tokens:
    """Bearer token for the Parish API."""

    access_token: str = ""

    def save(self) -> None:
        """Save tokens to file."""
        TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        TOKEN_FILE.write_text(json.dumps({"access_token": self.access_token}))
        TOKEN_FILE.chmod(0o600)

    @staticmethod
    def clear() -> None:
        """Remove the saved token."""
        TOKEN_FILE.unlink(missing_ok=True)

    @classmethod
    def load(cls) -> "Tokens":
        """Load tokens from file."""
        if not TOKEN_FILE.exists():
            return cls()
        try:
            data = json.loads(TOKEN_FILE.read_text())
            return cls(access_token=data.get("access_token", ""))
        except (json.JSONDecodeError, AttributeError):
            return cls()


def _parse_float(key: str, value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid {key.upper()} value {value!r}, using {default}")
        return default


def load_config() -> Config:
    """Load configuration from parish.conf file."""
    config = Config()

    if not CONFIG_FILE.exists():
        return config

    for line in CONFIG_FILE.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value.startswith('"') or value.startswith("'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            value = value.split("#")[0].strip()

        match key:
            case "api_base_url":
                config.api_base_url = value.rstrip("/")
            case "timezone":
                config.timezone = value
            case "request_timeout":
                config.request_timeout = _parse_float(key, value, config.request_timeout)
            case "save_debounce":
                config.save_debounce = _parse_float(key, value, config.save_debounce)
            case "data_dir":
                config.data_dir = value
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_allowed_users":
                try:
                    config.telegram_allowed_users = [int(u.strip()) for u in value.split(",") if u.strip()]
                except ValueError:
                    logger.warning(f"Invalid TELEGRAM_ALLOWED_USERS value {value!r}")
            case "reminder_message":
                config.reminder_message = value
            case _:
                logger.debug(f"Ignoring unknown config key {key!r}")

    return config
