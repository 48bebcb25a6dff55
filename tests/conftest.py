"""
Pytest configuration for podcast episode scraper tests.
"""
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from episode_collector import RowSource


class FakeRowSource(RowSource):
    """
    In-memory episode list that grows on a schedule.

    ``batches[i]`` is appended to the list after the i-th scroll request.
    Rows are field dicts; a row with ``"explode": True`` fails extraction.
    """

    def __init__(self, initial=None, batches=None):
        self.rows = list(initial or [])
        self.batches = list(batches or [])
        self.scroll_requests = 0
        self.row_scrolls = []
        self.viewport_scrolls = 0
        self.settle_calls = []

    async def read_rows(self):
        return list(self.rows)

    async def extract_fields(self, row):
        if row.get("explode"):
            raise RuntimeError("detached node")
        return row

    def _grow(self):
        if self.scroll_requests < len(self.batches):
            self.rows.extend(self.batches[self.scroll_requests])
        self.scroll_requests += 1

    async def scroll_into_view(self, row):
        self.row_scrolls.append(row.get("title"))
        self._grow()

    async def scroll_viewport(self):
        self.viewport_scrolls += 1
        self._grow()

    async def settle(self, delay_ms):
        self.settle_calls.append(delay_ms)


def make_rows(*titles, date="14 Nov 2024"):
    return [
        {
            "title": title,
            "description": f"About {title}",
            "date": date,
            "shareUrl": f"https://podcasts.apple.com/in/podcast/show/id1?i={i}",
        }
        for i, title in enumerate(titles)
    ]


@pytest.fixture
def fake_source_factory():
    return FakeRowSource


@pytest.fixture
def row_factory():
    return make_rows


@pytest.fixture
def reference_now():
    """Fixed reference instant for date normalization."""
    return datetime(2024, 1, 10, 12, 0, 0)


@pytest.fixture
def sample_search_term():
    return "Giva jewellery"


@pytest.fixture
def sample_podcast_url():
    """Sample Apple Podcasts show URL."""
    return "https://podcasts.apple.com/in/podcast/the-daily/id1200361736"


@pytest.fixture
def sample_episodes():
    return [
        {
            "title": "Episode One",
            "description": "First",
            "date": "14 November 2024",
            "dateISO": "2024-11-14",
            "shareUrl": "https://podcasts.apple.com/in/podcast/show/id1?i=1",
        },
        {
            "title": "Episode Two",
            "description": None,
            "date": "garbage text",
            "dateISO": None,
            "shareUrl": None,
        },
    ]
