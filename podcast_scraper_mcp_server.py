#!/usr/bin/env python3
"""
MCP Server for Podcast Episode Scraping

Finds a podcast on a directory site by search term (or URL) and returns its
episodes with normalized publish dates. Sources are plugins; Apple Podcasts
is the default for plain search terms.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

# Add current directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from episode_sinks import make_apify_sink, save_episodes_json
from plugins.apple_podcasts_scraper import ApplePodcastsScraper
from scraper_config import get_data_dir, load_settings
from scraper_registry import ScraperRegistry

# Initialize MCP server
app = Server("podcast-episode-scraper")

# Initialize scraper registry
registry = ScraperRegistry()
registry.register(ApplePodcastsScraper(), default=True)


def _text(payload: dict[str, Any]) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2, ensure_ascii=False))]


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    sources = registry.list_sources()

    return [
        Tool(
            name="scrape_podcast_episodes",
            description=(
                f"Scrape episode titles, descriptions, publish dates and share URLs "
                f"for a podcast. Currently supports: {', '.join(sources)}. "
                f"Accepts a search term or a podcast URL."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": (
                            "Podcast search term (e.g. 'Giva jewellery') or URL, e.g.\n"
                            "- Apple Podcasts: https://podcasts.apple.com/in/podcast/name/id1234567890"
                        )
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of episodes to return. Default: PODCAST_EPISODE_LIMIT or 50",
                        "minimum": 1
                    },
                    "output_path": {
                        "type": "string",
                        "description": (
                            "Optional: Custom output file path. "
                            "If not provided, saves to $DATA_DIR/imports/{source}/episodes_{id}.json"
                        )
                    },
                    "push_to_apify": {
                        "type": "boolean",
                        "description": "Also push episodes to the Apify dataset in APIFY_DATASET_ID. Default: false",
                        "default": False
                    }
                },
                "required": ["query"]
            }
        ),
        Tool(
            name="list_scraped_episodes",
            description="List previously scraped episode lists from the data directory",
            inputSchema={
                "type": "object",
                "properties": {
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of items to return. Default: 50",
                        "default": 50
                    }
                }
            }
        ),
        Tool(
            name="get_scraped_episodes",
            description="Get a previously scraped episode list",
            inputSchema={
                "type": "object",
                "properties": {
                    "source": {
                        "type": "string",
                        "enum": sources,
                        "description": f"Source type. Options: {', '.join(sources)}"
                    },
                    "content_id": {
                        "type": "string",
                        "description": "Podcast ID (e.g., 'id1200361736' or a search-term slug like 'giva-jewellery')"
                    }
                },
                "required": ["source", "content_id"]
            }
        ),
        Tool(
            name="list_supported_sources",
            description="List all supported podcast directories",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        )
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    if name == "scrape_podcast_episodes":
        return await handle_scrape_episodes(arguments)
    elif name == "list_scraped_episodes":
        return await handle_list_episodes(arguments)
    elif name == "get_scraped_episodes":
        return await handle_get_episodes(arguments)
    elif name == "list_supported_sources":
        return await handle_list_sources(arguments)

    raise ValueError(f"Unknown tool: {name}")


async def handle_scrape_episodes(args: dict) -> list[TextContent]:
    """Handle scrape_podcast_episodes tool call."""
    try:
        query = (args.get("query") or "").strip()
        output_path = args.get("output_path")
        push_to_apify = bool(args.get("push_to_apify", False))

        if not query:
            return _text({"error": "query is required"})

        settings = load_settings()
        limit = args.get("limit")
        if limit is None:
            limit = settings.episode_limit
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            return _text({"error": f"limit must be a positive integer, got {limit!r}"})

        scraper = registry.get_scraper(query)
        if not scraper:
            return _text({
                "error": f"Unsupported URL. Supported sources: {', '.join(registry.list_sources())}",
                "query": query
            })

        try:
            source_id = scraper.extract_id(query)
        except ValueError as e:
            return _text({"error": str(e)})

        data_dir = get_data_dir(settings)
        if output_path:
            output_file = Path(output_path)
        else:
            output_file = scraper.get_storage_path(source_id, data_dir)

        credentials = settings.as_credentials()
        credentials["data_dir"] = str(data_dir)

        # Scraping blocks on its own event loop; keep the server loop free
        try:
            scraped_data = await asyncio.to_thread(
                scraper.scrape, query, limit, "auto", credentials
            )
        except Exception as e:
            return _text({
                "error": f"Scraping failed: {str(e)}",
                "source": scraper.source_name
            })

        normalized_data = scraper.normalize_output(scraped_data, source_id)
        save_episodes_json(normalized_data, output_file)

        result = {
            "success": True,
            "source": scraper.source_name,
            "content_id": source_id,
            "output_path": str(output_file),
            "episodes_scraped": normalized_data["total_episodes"],
            "requested_episodes": limit,
            "stop_reason": normalized_data.get("stop_reason"),
        }

        if push_to_apify:
            sink = make_apify_sink(credentials)
            if sink is None:
                result["apify_error"] = "APIFY_API_TOKEN required to push to Apify"
            else:
                try:
                    result["apify_items_pushed"] = sink.push_episodes(normalized_data["episodes"])
                except Exception as e:
                    result["apify_error"] = str(e)

        if normalized_data.get("debug_artifacts"):
            result["debug_artifacts"] = normalized_data["debug_artifacts"]

        # Add preview of first few episodes
        result["sample_episodes"] = [
            {"title": ep.get("title"), "date": ep.get("date"), "dateISO": ep.get("dateISO")}
            for ep in normalized_data["episodes"][:3]
        ]

        return _text(result)

    except Exception as e:
        return _text({"error": f"Unexpected error: {str(e)}"})


async def handle_list_episodes(args: dict) -> list[TextContent]:
    """Handle list_scraped_episodes tool call."""
    try:
        limit = args.get("limit", 50)
        data_dir = get_data_dir(load_settings())

        all_content = []
        for source_name in registry.list_sources():
            source_dir = data_dir / "imports" / source_name
            if not source_dir.exists():
                continue

            for file_path in source_dir.glob("episodes_*.json"):
                try:
                    with open(file_path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                except (OSError, json.JSONDecodeError) as e:
                    print(f"Warning: Skipping unreadable file {file_path}: {e}", file=sys.stderr)
                    continue

                all_content.append({
                    "source": source_name,
                    "content_id": data.get("podcast_id") or file_path.stem.removeprefix("episodes_"),
                    "query": data.get("query"),
                    "total_episodes": data.get("total_episodes", 0),
                    "file_path": str(file_path),
                    "scraped_at": data.get("scraped_at", 0),
                })

        all_content.sort(key=lambda x: x.get("scraped_at", 0), reverse=True)
        limited_content = all_content[:limit]

        return _text({
            "content": limited_content,
            "total": len(all_content),
            "shown": len(limited_content)
        })

    except Exception as e:
        return _text({"error": f"Error listing content: {str(e)}"})


async def handle_get_episodes(args: dict) -> list[TextContent]:
    """Handle get_scraped_episodes tool call."""
    try:
        source = args.get("source")
        content_id = args.get("content_id")

        if not source or not content_id:
            return _text({"error": "source and content_id are required"})

        scraper = registry.get_scraper_by_name(source)
        if not scraper:
            return _text({
                "error": f"Unknown source: {source}",
                "supported_sources": registry.list_sources()
            })

        data_dir = get_data_dir(load_settings())
        file_path = scraper.get_storage_path(content_id, data_dir)

        if not file_path.exists():
            return _text({
                "error": f"Content not found: {content_id}",
                "source": source,
                "file_path": str(file_path)
            })

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return _text({
            "source": source,
            "content_id": content_id,
            "file_path": str(file_path),
            "data": data
        })

    except Exception as e:
        return _text({"error": f"Error getting content: {str(e)}"})


async def handle_list_sources(args: dict) -> list[TextContent]:
    """Handle list_supported_sources tool call."""
    source_info = []
    for source_name in registry.list_sources():
        scraper = registry.get_scraper_by_name(source_name)
        if scraper:
            source_info.append({
                "name": source_name,
                "supported_methods": scraper.supported_methods,
                "default": scraper is registry.get_default(),
                "description": f"Episode scraper for {source_name}"
            })

    return _text({
        "sources": source_info,
        "total": len(source_info)
    })


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
