"""Configuration management for glasstask."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

GLASSTASK_HOME = Path(os.environ.get("GLASSTASK_HOME", Path.home() / "glasstask"))
CONFIG_FILE = GLASSTASK_HOME / "config" / "glasstask.conf"
CREDENTIALS_FILE = GLASSTASK_HOME / "config" / ".credentials.json"
DATA_DIR = GLASSTASK_HOME / "data"

PLACEHOLDER_PREFIX = "YOUR_"


@dataclass
class Config:
    """glasstask configuration."""

    firebase_api_key: str = ""
    firebase_project_id: str = ""
    tasks_file: str = ""
    save_debounce_ms: int = 150
    search_debounce_ms: int = 150
    poll_interval_seconds: int = 5
    auto_sync: bool = True
    default_sort: str = "due_date"
    default_direction: str = "asc"

    @property
    def sync_enabled(self) -> bool:
        """True when real Firebase credentials are configured."""
        return bool(
            self.firebase_api_key
            and not self.firebase_api_key.startswith(PLACEHOLDER_PREFIX)
            and self.firebase_project_id
            and not self.firebase_project_id.startswith(PLACEHOLDER_PREFIX)
        )

    @property
    def tasks_path(self) -> Path:
        if self.tasks_file:
            return Path(self.tasks_file).expanduser()
        return DATA_DIR / "tasks.json"


@dataclass
class Credentials:
    """Firebase account tokens for the signed-in user."""

    id_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0
    user_id: str = ""
    email: str = ""

    @property
    def signed_in(self) -> bool:
        return bool(self.user_id and self.refresh_token)

    def save(self, path: Path = CREDENTIALS_FILE) -> None:
        """Save credentials to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(
                {
                    "id_token": self.id_token,
                    "refresh_token": self.refresh_token,
                    "expires_at": self.expires_at,
                    "user_id": self.user_id,
                    "email": self.email,
                }
            )
        )
        path.chmod(0o600)

    @classmethod
    def load(cls, path: Path = CREDENTIALS_FILE) -> "Credentials":
        """Load credentials from file."""
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
            return cls(
                id_token=data.get("id_token", ""),
                refresh_token=data.get("refresh_token", ""),
                expires_at=data.get("expires_at", 0),
                user_id=data.get("user_id", ""),
                email=data.get("email", ""),
            )
        except (json.JSONDecodeError, AttributeError):
            return cls()

    @staticmethod
    def clear(path: Path = CREDENTIALS_FILE) -> None:
        path.unlink(missing_ok=True)


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, using {default}")
        return default


def load_config(path: Path = CONFIG_FILE) -> Config:
    """Load configuration from glasstask.conf file."""
    config = Config()

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
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
        else:
            # Unquoted: strip inline comments
            if "#" in value:
                value = value.split("#")[0].strip()

        match key:
            case "firebase_api_key":
                config.firebase_api_key = value
            case "firebase_project_id":
                config.firebase_project_id = value
            case "tasks_file":
                config.tasks_file = value
            case "save_debounce_ms":
                config.save_debounce_ms = _parse_int(key, value, config.save_debounce_ms)
            case "search_debounce_ms":
                config.search_debounce_ms = _parse_int(key, value, config.search_debounce_ms)
            case "poll_interval_seconds":
                config.poll_interval_seconds = _parse_int(key, value, config.poll_interval_seconds)
            case "auto_sync":
                config.auto_sync = value.lower() in ("1", "true", "yes", "on")
            case "default_sort":
                config.default_sort = value
            case "default_direction":
                config.default_direction = value
            case _:
                logger.debug(f"Ignoring unknown config key {key!r}")

    return config
