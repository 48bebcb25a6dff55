"""
Settings for the podcast episode scraper.

Values come from environment variables, then a repo-local .env, then
~/.config/podcast-episode-scraper/.env.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

# Configuration directory
CONFIG_DIR = Path.home() / ".config" / "podcast-episode-scraper"
ENV_FILE = CONFIG_DIR / ".env"

# Local .env file (in repo directory, for development)
SERVER_DIR = Path(__file__).parent
LOCAL_ENV_FILE = SERVER_DIR / ".env"

DEFAULT_COUNTRY = "in"
DEFAULT_SEARCH_TERM = "Giva"
DEFAULT_EPISODE_LIMIT = 50
DEFAULT_PAGE_TIMEOUT_MS = 60000


@dataclass
class ScraperSettings:
    apify_token: str | None = None
    apify_dataset_id: str | None = None
    apify_key_value_store_id: str | None = None
    data_dir: str | None = None
    country: str = DEFAULT_COUNTRY
    search_term: str = DEFAULT_SEARCH_TERM
    episode_limit: int = DEFAULT_EPISODE_LIMIT
    headless: bool = True
    page_timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS

    def as_credentials(self) -> dict[str, str | None]:
        """Credentials dict passed to ScraperBase.scrape()."""
        return {
            "apify_token": self.apify_token,
            "apify_dataset_id": self.apify_dataset_id,
            "apify_key_value_store_id": self.apify_key_value_store_id,
            "data_dir": self.data_dir,
            "country": self.country,
            "headless": "true" if self.headless else "false",
            "page_timeout_ms": str(self.page_timeout_ms),
        }


def _read_env_file(env_file: Path) -> dict[str, str | None]:
    if not env_file.exists():
        return {}
    return dict(dotenv_values(env_file))


def _lookup(key: str, file_values: list[dict[str, str | None]]) -> str | None:
    value = os.getenv(key)
    if value:
        return value
    for values in file_values:
        value = values.get(key)
        if value:
            return value.strip()
    return None


def _parse_int(key: str, value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if parsed <= 0:
        raise ValueError(f"{key} must be positive, got {parsed}")
    return parsed


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


def load_settings(
    local_env_file: Path = LOCAL_ENV_FILE,
    config_env_file: Path = ENV_FILE,
) -> ScraperSettings:
    """Load settings from environment variables or .env files."""
    # Priority: environment variables > local .env > config directory .env
    file_values = [_read_env_file(local_env_file), _read_env_file(config_env_file)]

    return ScraperSettings(
        apify_token=_lookup("APIFY_API_TOKEN", file_values),
        apify_dataset_id=_lookup("APIFY_DATASET_ID", file_values),
        apify_key_value_store_id=_lookup("APIFY_KEY_VALUE_STORE_ID", file_values),
        data_dir=_lookup("DATA_DIR", file_values),
        country=(_lookup("PODCAST_COUNTRY", file_values) or DEFAULT_COUNTRY).lower(),
        search_term=_lookup("PODCAST_SEARCH_TERM", file_values) or DEFAULT_SEARCH_TERM,
        episode_limit=_parse_int(
            "PODCAST_EPISODE_LIMIT",
            _lookup("PODCAST_EPISODE_LIMIT", file_values),
            DEFAULT_EPISODE_LIMIT,
        ),
        headless=_parse_bool(_lookup("PLAYWRIGHT_HEADLESS", file_values), True),
        page_timeout_ms=_parse_int(
            "PAGE_TIMEOUT_MS",
            _lookup("PAGE_TIMEOUT_MS", file_values),
            DEFAULT_PAGE_TIMEOUT_MS,
        ),
    )


def get_data_dir(settings: ScraperSettings) -> Path:
    """Get data directory for storing scraped episodes."""
    if settings.data_dir:
        data_dir = Path(settings.data_dir).expanduser()
    else:
        data_dir = CONFIG_DIR / "scraped"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
