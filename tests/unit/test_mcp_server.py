"""
Unit tests for the MCP tool handlers.
"""
import asyncio
import json

import pytest

import podcast_scraper_mcp_server as server
import scraper_config


def payload(result):
    assert len(result) == 1
    return json.loads(result[0].text)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.delenv("PODCAST_EPISODE_LIMIT", raising=False)
    monkeypatch.delenv("APIFY_API_TOKEN", raising=False)
    monkeypatch.setattr(
        server,
        "load_settings",
        lambda: scraper_config.load_settings(tmp_path / "none.env", tmp_path / "none-either.env"),
    )
    return tmp_path


@pytest.fixture
def fake_scrape(monkeypatch, sample_episodes):
    calls = []

    def scrape(query, limit, method="auto", credentials=None):
        calls.append((query, limit, credentials))
        return {
            "query": query,
            "url": "https://podcasts.apple.com/in/search?term=Giva",
            "episodes": sample_episodes[:limit],
            "total_episodes": min(limit, len(sample_episodes)),
            "requested_episodes": limit,
            "stop_reason": "plateau",
            "scraped_at": 1700000000,
        }

    monkeypatch.setattr(server.registry.get_default(), "scrape", scrape)
    return calls


def test_list_tools():
    tools = asyncio.run(server.list_tools())
    assert [tool.name for tool in tools] == [
        "scrape_podcast_episodes",
        "list_scraped_episodes",
        "get_scraped_episodes",
        "list_supported_sources",
    ]


def test_list_sources():
    result = payload(asyncio.run(server.handle_list_sources({})))
    assert result["total"] == 1
    assert result["sources"][0]["name"] == "apple_podcasts"
    assert result["sources"][0]["default"] is True


def test_unknown_tool():
    with pytest.raises(ValueError):
        asyncio.run(server.call_tool("nope", {}))


class TestScrapeEpisodes:
    """Tests for scrape_podcast_episodes."""

    def test_query_required(self, data_dir):
        result = payload(asyncio.run(server.handle_scrape_episodes({})))
        assert result == {"error": "query is required"}

    @pytest.mark.parametrize("limit", [-1, 0, "5", True])
    def test_invalid_limit(self, data_dir, fake_scrape, limit):
        result = payload(asyncio.run(server.handle_scrape_episodes({"query": "Giva", "limit": limit})))
        assert "limit must be a positive integer" in result["error"]
        assert fake_scrape == []

    def test_unsupported_url(self, data_dir):
        result = payload(asyncio.run(server.handle_scrape_episodes({"query": "https://example.com/x"})))
        assert result["error"].startswith("Unsupported URL")

    def test_scrape_saves_and_summarizes(self, data_dir, fake_scrape):
        result = payload(asyncio.run(
            server.handle_scrape_episodes({"query": "Giva Jewellery", "limit": 1})
        ))

        assert result["success"] is True
        assert result["content_id"] == "giva-jewellery"
        assert result["episodes_scraped"] == 1
        assert result["stop_reason"] == "plateau"
        assert result["sample_episodes"] == [
            {"title": "Episode One", "date": "14 November 2024", "dateISO": "2024-11-14"}
        ]
        saved = json.loads(
            (data_dir / "imports" / "apple_podcasts" / "episodes_giva-jewellery.json").read_text()
        )
        assert saved["episodes"][0]["title"] == "Episode One"
        query, limit, credentials = fake_scrape[0]
        assert (query, limit) == ("Giva Jewellery", 1)
        assert credentials["data_dir"] == str(data_dir)

    def test_default_limit_from_settings(self, data_dir, fake_scrape, monkeypatch):
        monkeypatch.setenv("PODCAST_EPISODE_LIMIT", "7")
        asyncio.run(server.handle_scrape_episodes({"query": "Giva"}))
        assert fake_scrape[0][1] == 7

    def test_scrape_failure_is_reported(self, data_dir, monkeypatch):
        def boom(*args, **kwargs):
            raise ValueError("Failed to scrape Apple Podcasts episodes: net::ERR")

        monkeypatch.setattr(server.registry.get_default(), "scrape", boom)
        result = payload(asyncio.run(server.handle_scrape_episodes({"query": "Giva"})))

        assert "Scraping failed" in result["error"]
        assert result["source"] == "apple_podcasts"

    def test_push_to_apify_without_token(self, data_dir, fake_scrape, monkeypatch):
        monkeypatch.delenv("APIFY_API_TOKEN", raising=False)
        result = payload(asyncio.run(
            server.handle_scrape_episodes({"query": "Giva", "push_to_apify": True})
        ))
        assert result["success"] is True
        assert "APIFY_API_TOKEN" in result["apify_error"]


class TestStoredEpisodes:
    """Tests for listing and reading stored episode lists."""

    def test_list_and_get(self, data_dir, fake_scrape):
        asyncio.run(server.handle_scrape_episodes({"query": "Giva", "limit": 2}))

        listed = payload(asyncio.run(server.handle_list_episodes({})))
        assert listed["total"] == 1
        assert listed["content"][0]["content_id"] == "giva"
        assert listed["content"][0]["total_episodes"] == 2

        fetched = payload(asyncio.run(
            server.handle_get_episodes({"source": "apple_podcasts", "content_id": "giva"})
        ))
        assert len(fetched["data"]["episodes"]) == 2

    def test_get_missing(self, data_dir):
        result = payload(asyncio.run(
            server.handle_get_episodes({"source": "apple_podcasts", "content_id": "nothing"})
        ))
        assert result["error"] == "Content not found: nothing"

    def test_get_unknown_source(self, data_dir):
        result = payload(asyncio.run(
            server.handle_get_episodes({"source": "spotify", "content_id": "x"})
        ))
        assert result["error"] == "Unknown source: spotify"
