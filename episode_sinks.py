"""
Outputs for scraped episodes: local JSON files and Apify storages.
"""

import json
from pathlib import Path
from typing import Any

from apify_client import ApifyClient

from models import NormalizedEpisodeRecord


def save_episodes_json(data: dict[str, Any], output_path: Path) -> Path:
    """
    Save scraped episode data to a JSON file.

    Args:
        data: Normalized scrape output to save
        output_path: Path to output file

    Returns:
        The path written
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return output_path


def save_debug_file(data_dir: Path, name: str, content: bytes | str) -> Path:
    """Write a diagnostic artifact (screenshot, page HTML) under data_dir/debug."""
    path = data_dir / "debug" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    return path


class ApifySink:
    """Pushes episode lists and debug artifacts to Apify storages."""

    def __init__(
        self,
        api_token: str,
        dataset_id: str | None = None,
        key_value_store_id: str | None = None,
        client: Any = None,
    ):
        if not api_token and client is None:
            raise ValueError(
                "APIFY_API_TOKEN required. Set env var or add it to the .env file"
            )
        self._client = client if client is not None else ApifyClient(api_token)
        self.dataset_id = dataset_id
        self.key_value_store_id = key_value_store_id

    @property
    def can_store_artifacts(self) -> bool:
        return bool(self.key_value_store_id)

    def push_episodes(self, records: list[NormalizedEpisodeRecord | dict[str, Any]]) -> int:
        """Append episodes, in order, to the configured dataset."""
        if not self.dataset_id:
            raise ValueError("APIFY_DATASET_ID required to push episodes to Apify")
        items = [r.to_dict() if isinstance(r, NormalizedEpisodeRecord) else r for r in records]
        if not items:
            return 0
        self._client.dataset(self.dataset_id).push_items(items)
        return len(items)

    def save_debug_artifact(self, key: str, value: bytes | str, content_type: str) -> None:
        """Store a diagnostic artifact in the configured key-value store."""
        if not self.key_value_store_id:
            raise ValueError("APIFY_KEY_VALUE_STORE_ID required to store debug artifacts")
        self._client.key_value_store(self.key_value_store_id).set_record(
            key, value, content_type=content_type
        )


def make_apify_sink(credentials: dict[str, str | None]) -> ApifySink | None:
    """Build an ApifySink from a credentials dict, or None without a token."""
    token = credentials.get("apify_token")
    if not token:
        return None
    return ApifySink(
        token,
        dataset_id=credentials.get("apify_dataset_id"),
        key_value_store_id=credentials.get("apify_key_value_store_id"),
    )
