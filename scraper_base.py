"""
Base scraper interface for all directory-specific episode scrapers.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class ScraperBase(ABC):
    """Base class for all podcast-directory scrapers."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the name of the source (e.g., 'apple_podcasts')."""
        pass

    @property
    @abstractmethod
    def supported_methods(self) -> list[str]:
        """Return list of supported scraping methods (e.g., ['playwright'])."""
        pass

    @abstractmethod
    def can_handle(self, query: str) -> bool:
        """Check if this scraper can handle the given podcast URL."""
        pass

    @abstractmethod
    def extract_id(self, query: str) -> str:
        """Extract a filesystem-safe identifier from a search term or URL."""
        pass

    @abstractmethod
    def build_target_url(self, query: str, country: str | None = None) -> str:
        """Return the page to open for a search term or podcast URL."""
        pass

    @abstractmethod
    def scrape(
        self,
        query: str,
        limit: int,
        method: str = "auto",
        credentials: dict[str, str | None] | None = None,
    ) -> dict[str, Any]:
        """
        Scrape up to ``limit`` episodes for a podcast.

        Args:
            query: Search term or podcast URL
            limit: Maximum number of episodes to return
            method: Scraping method to use ('auto', 'playwright')
            credentials: Optional credentials/settings dict (e.g., {'apify_token': '...'})

        Returns:
            Dictionary with scraped data, including an ordered "episodes" list

        Raises:
            ValueError: If the query cannot be handled or scraping fails
        """
        pass

    @abstractmethod
    def normalize_output(
        self,
        scraped_data: dict[str, Any],
        source_id: str,
    ) -> dict[str, Any]:
        """
        Normalize scraped data to a common format.

        Args:
            scraped_data: Raw scraped data from scrape() method
            source_id: Identifier from extract_id()

        Returns:
            Normalized data structure
        """
        pass

    @abstractmethod
    def get_storage_path(self, source_id: str, data_dir: Path) -> Path:
        """
        Get storage path for scraped episodes.

        Args:
            source_id: Identifier from extract_id()
            data_dir: Base data directory

        Returns:
            Path where scraped episodes should be saved
        """
        pass
