"""
Unit tests for episode outputs.
"""
import json
from unittest.mock import MagicMock

import pytest

from episode_sinks import ApifySink, make_apify_sink, save_debug_file, save_episodes_json
from models import NormalizedEpisodeRecord


def test_save_episodes_json(tmp_path, sample_episodes):
    output = tmp_path / "imports" / "apple_podcasts" / "episodes_giva.json"

    save_episodes_json({"episodes": sample_episodes}, output)

    assert json.loads(output.read_text(encoding="utf-8")) == {"episodes": sample_episodes}


def test_save_debug_file_text_and_bytes(tmp_path):
    html = save_debug_file(tmp_path, "page.html", "<html></html>")
    png = save_debug_file(tmp_path, "shot.png", b"\x89PNG")

    assert html.read_text(encoding="utf-8") == "<html></html>"
    assert png.read_bytes() == b"\x89PNG"
    assert html.parent == tmp_path / "debug"


class TestApifySink:
    """Tests for pushing to Apify storages."""

    def test_push_episodes_in_order(self, sample_episodes):
        client = MagicMock()
        sink = ApifySink("token", dataset_id="ds-1", client=client)
        records = [
            NormalizedEpisodeRecord("First", None, "8 January 2024", "2024-01-08", None),
            sample_episodes[1],
        ]

        pushed = sink.push_episodes(records)

        assert pushed == 2
        client.dataset.assert_called_once_with("ds-1")
        items = client.dataset.return_value.push_items.call_args.args[0]
        assert [item["title"] for item in items] == ["First", "Episode Two"]
        assert items[0]["dateISO"] == "2024-01-08"

    def test_empty_list_is_not_pushed(self):
        client = MagicMock()
        sink = ApifySink("token", dataset_id="ds-1", client=client)
        assert sink.push_episodes([]) == 0
        client.dataset.assert_not_called()

    def test_push_requires_dataset(self):
        sink = ApifySink("token", client=MagicMock())
        with pytest.raises(ValueError, match="APIFY_DATASET_ID"):
            sink.push_episodes([{"title": "x"}])

    def test_save_debug_artifact(self):
        client = MagicMock()
        sink = ApifySink("token", key_value_store_id="kv-1", client=client)

        sink.save_debug_artifact("debug_page.html", "<html/>", "text/html")

        client.key_value_store.assert_called_once_with("kv-1")
        client.key_value_store.return_value.set_record.assert_called_once_with(
            "debug_page.html", "<html/>", content_type="text/html"
        )

    def test_requires_token(self):
        with pytest.raises(ValueError, match="APIFY_API_TOKEN"):
            ApifySink("")

    def test_make_sink_without_token(self):
        assert make_apify_sink({"apify_token": None}) is None

    def test_make_sink_with_token(self):
        sink = make_apify_sink({
            "apify_token": "token",
            "apify_dataset_id": "ds",
            "apify_key_value_store_id": "kv",
        })
        assert sink.dataset_id == "ds"
        assert sink.can_store_artifacts
