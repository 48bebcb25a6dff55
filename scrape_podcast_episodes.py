#!/usr/bin/env python3
"""
Standalone script to scrape a podcast's episodes.
Can be used directly or via the MCP server.
"""

import sys
from pathlib import Path

# Add current directory to path
sys.path.insert(0, str(Path(__file__).parent))

from episode_sinks import make_apify_sink, save_episodes_json
from plugins.apple_podcasts_scraper import ApplePodcastsScraper
from scraper_config import get_data_dir, load_settings
from scraper_registry import ScraperRegistry

USAGE = "Usage: scrape_podcast_episodes.py [search_term_or_url] [limit] [output_path]"


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] in ("-h", "--help"):
        print(USAGE)
        return 0

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    query = argv[0] if argv else settings.search_term
    try:
        limit = int(argv[1]) if len(argv) > 1 else settings.episode_limit
    except ValueError:
        print(f"Error: limit must be an integer, got {argv[1]!r}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1
    output_path = argv[2] if len(argv) > 2 else None

    registry = ScraperRegistry()
    registry.register(ApplePodcastsScraper(), default=True)
    scraper = registry.get_scraper(query)
    if not scraper:
        print(f"Error: {query} is not a supported podcast URL", file=sys.stderr)
        return 1

    try:
        source_id = scraper.extract_id(query)
        data_dir = get_data_dir(settings)
        credentials = settings.as_credentials()
        credentials["data_dir"] = str(data_dir)

        scraped_data = scraper.scrape(query, limit, method="playwright", credentials=credentials)
        normalized_data = scraper.normalize_output(scraped_data, source_id)

        if output_path:
            output_file = Path(output_path)
        else:
            output_file = scraper.get_storage_path(source_id, data_dir)
        save_episodes_json(normalized_data, output_file)

        sink = make_apify_sink(credentials)
        pushed = None
        if sink is not None and sink.dataset_id:
            pushed = sink.push_episodes(normalized_data["episodes"])
    except Exception as e:
        print(f"Error scraping episodes: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1

    episodes = normalized_data["episodes"]
    print(f"\n✅ Scraped {len(episodes)} episodes for {query!r} (requested: {limit})")
    print(f"   Stopped by: {normalized_data['stop_reason']}")
    print(f"   Saved to: {output_file}")
    if pushed is not None:
        print(f"   Pushed {pushed} items to Apify dataset {sink.dataset_id}")
    for artifact in normalized_data.get("debug_artifacts", []):
        print(f"   Debug artifact: {artifact}")

    if episodes:
        print(f"\nEpisodes ({len(episodes)}):")
        for i, episode in enumerate(episodes, 1):
            print(f"  {i}. [{episode.get('dateISO') or episode.get('date') or '?'}] {episode['title']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
