"""
Registry for managing multiple scraper plugins.
"""

from scraper_base import ScraperBase


class ScraperRegistry:
    """Registry for directory-specific scrapers."""

    def __init__(self, default_source: str | None = None):
        self._scrapers: dict[str, ScraperBase] = {}
        self._default_source = default_source

    def register(self, scraper: ScraperBase, default: bool = False) -> None:
        """Register a scraper instance."""
        self._scrapers[scraper.source_name] = scraper
        if default or self._default_source is None:
            self._default_source = scraper.source_name

    def get_scraper(self, query: str) -> ScraperBase | None:
        """
        Get the appropriate scraper for a URL or search term.

        URLs go to the first scraper that claims them. Plain search terms
        go to the default source.
        """
        for scraper in self._scrapers.values():
            if scraper.can_handle(query):
                return scraper
        if "://" in query:
            return None
        return self.get_default()

    def get_default(self) -> ScraperBase | None:
        """Get the scraper used for plain search terms."""
        if self._default_source is None:
            return None
        return self._scrapers.get(self._default_source)

    def get_scraper_by_name(self, source_name: str) -> ScraperBase | None:
        """Get a scraper by source name."""
        return self._scrapers.get(source_name)

    def list_sources(self) -> list[str]:
        """List all registered source names."""
        return list(self._scrapers.keys())
