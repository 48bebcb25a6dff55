"""
Apple Podcasts episode scraper plugin using Playwright.

Searches the directory for a podcast, opens its episode list, and scrolls
through the lazily loaded rows to collect episode metadata.
"""

import asyncio
import re
import sys
import time
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import quote

# Try to import playwright async API
PLAYWRIGHT_AVAILABLE = False
try:
    from playwright.async_api import Error as PlaywrightError
    from playwright.async_api import TimeoutError as PlaywrightTimeoutError
    from playwright.async_api import async_playwright
    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    pass

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from date_normalizer import normalize_records
from episode_collector import RowExtractionError, RowSource, collect_episodes
from episode_sinks import ApifySink, make_apify_sink, save_debug_file
from scraper_base import ScraperBase

SEARCH_URL = "https://podcasts.apple.com/{country}/search?term={term}"
DEFAULT_COUNTRY = "in"

RESULTS_SELECTOR = '[data-testid="search-results"], .header-title-wrapper'
DIALOG_SELECTOR = '[role="dialog"], .modal, .dialog-box, .popup'

EPISODE_SELECTORS = {
    "rows": 'ol[data-testid="episodes-list"] > li',
    "title": 'span.episode-details__title-text[data-testid="episode-lockup-title"]',
    "description": 'div.episode-details__summary[data-testid="episode-content__summary"]',
    "date": 'p.episode-details__published-date[data-testid="episode-details__published-date"]',
    "link": 'a[data-testid="click-action"]',
}

READ_ROWS_JS = """
(sel) => Array.from(document.querySelectorAll(sel.rows)).map((row, index) => {
    try {
        const text = (selector) => {
            const el = row.querySelector(selector);
            return el ? el.textContent.trim() : null;
        };
        const linkEl = row.querySelector(sel.link);
        return {
            index: index,
            title: text(sel.title),
            description: text(sel.description),
            date: text(sel.date),
            shareUrl: linkEl ? linkEl.href : null,
        };
    } catch (e) {
        return { index: index, error: String(e) };
    }
})
"""

SCROLL_ROW_JS = """
([rowsSelector, index]) => {
    const rows = document.querySelectorAll(rowsSelector);
    const row = rows[index];
    if (!row) {
        throw new Error(`row ${index} no longer present`);
    }
    row.scrollIntoView({ behavior: 'smooth', block: 'end' });
}
"""

SCROLL_VIEWPORT_JS = "() => window.scrollBy(0, window.innerHeight)"

OPEN_EPISODES_JS = """
() => {
    const headerWrapper = document.querySelector('.header-title-wrapper');
    if (headerWrapper) {
        const button = headerWrapper.querySelector('.title__button[role="link"]');
        if (button) {
            button.click();
            return { success: true, method: 'exact-selector' };
        }
        const anyButton = headerWrapper.querySelector('button');
        if (anyButton) {
            anyButton.click();
            return { success: true, method: 'any-button-in-wrapper' };
        }
    }
    const buttons = Array.from(document.querySelectorAll('button'));
    const episodesButton = buttons.find((btn) =>
        btn.textContent.toLowerCase().includes('episode') ||
        btn.querySelector('.dir-wrapper')?.textContent.toLowerCase().includes('episode')
    );
    if (episodesButton) {
        episodesButton.click();
        return { success: true, method: 'text-search' };
    }
    return { success: false, method: 'none' };
}
"""


def _log(message: str) -> None:
    print(message, file=sys.stderr)


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated identifier for a search term."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug


def extract_podcast_id(query: str) -> str:
    """Extract podcast identifier from an Apple Podcasts URL or search term."""
    # Support formats:
    # https://podcasts.apple.com/in/podcast/the-daily/id1200361736
    # Giva jewellery
    if "://" in query:
        match = re.search(r"podcasts\.apple\.com/.*?/id(\d+)", query)
        if match:
            return f"id{match.group(1)}"
        raise ValueError(f"Invalid Apple Podcasts URL format: {query}")

    slug = slugify(query)
    if not slug:
        raise ValueError(f"Search term has no usable characters: {query!r}")
    return slug


class PlaywrightRowSource(RowSource):
    """RowSource over the episode list of a live Apple Podcasts page."""

    def __init__(self, page: Any, selectors: Mapping[str, str] | None = None):
        self.page = page
        self.selectors = dict(selectors or EPISODE_SELECTORS)

    async def read_rows(self) -> list[dict[str, Any]]:
        return await self.page.evaluate(READ_ROWS_JS, self.selectors)

    async def extract_fields(self, row: dict[str, Any]) -> dict[str, Any]:
        if row.get("error"):
            raise RowExtractionError(f"row {row.get('index')}: {row['error']}")
        return row

    async def scroll_into_view(self, row: dict[str, Any]) -> None:
        await self.page.evaluate(SCROLL_ROW_JS, [self.selectors["rows"], row["index"]])

    async def scroll_viewport(self) -> None:
        await self.page.evaluate(SCROLL_VIEWPORT_JS)

    async def settle(self, delay_ms: int) -> None:
        await self.page.wait_for_timeout(delay_ms)


async def open_episode_list(page: Any) -> dict[str, Any]:
    """
    Click the "Episodes" header so the full episode list is shown.

    Returns the click result ({'success': bool, 'method': str}). Not finding
    the header is normal when the episodes are already listed.
    """
    try:
        clicked = await page.evaluate(OPEN_EPISODES_JS)
    except PlaywrightError as e:
        _log(f"Warning: Error clicking Episodes header: {e}")
        return {"success": False, "method": "error"}

    if not clicked.get("success"):
        _log(
            "Warning: Could not find Episodes header button to click - "
            "this may be normal if episodes are already displayed"
        )
        return clicked

    _log(f"Clicked Episodes header button (method: {clicked.get('method')})")
    await page.wait_for_timeout(2000)
    try:
        await page.wait_for_selector(DIALOG_SELECTOR, timeout=10000)
        _log("Episode dialog opened")
    except PlaywrightTimeoutError:
        _log("Warning: Dialog box selector not found, but continuing scraping")
    return clicked


async def capture_debug_artifacts(
    page: Any,
    prefix: str,
    data_dir: Path | None,
    apify_sink: ApifySink | None = None,
) -> list[str]:
    """
    Save a screenshot and the page HTML for inspection.

    Files go to data_dir/debug and, when the sink has a key-value store,
    to Apify as well. Returns where the artifacts were stored.
    """
    saved: list[str] = []
    try:
        screenshot = await page.screenshot(full_page=True)
        html = await page.content()
    except PlaywrightError as e:
        _log(f"Could not capture debug info: {e}")
        return saved

    artifacts = [
        (f"{prefix}_screenshot.png", screenshot, "image/png"),
        (f"{prefix}_page.html", html, "text/html"),
    ]
    for name, content, content_type in artifacts:
        if data_dir is not None:
            saved.append(str(save_debug_file(data_dir, name, content)))
        if apify_sink is not None and apify_sink.can_store_artifacts:
            apify_sink.save_debug_artifact(name, content, content_type)
            saved.append(f"apify:{apify_sink.key_value_store_id}/{name}")
    return saved


def _run_async(coro_factory: Any, timeout: int = 600) -> Any:
    """Run a coroutine to completion from sync code, even inside a running loop."""

    def _run_in_new_loop():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(coro_factory())
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.close()
            asyncio.set_event_loop(None)

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No event loop running - can run directly
        return _run_in_new_loop()

    import concurrent.futures
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    future = executor.submit(_run_in_new_loop)
    try:
        return future.result(timeout=timeout)
    finally:
        # On timeout the worker is abandoned rather than joined
        executor.shutdown(wait=False)


class ApplePodcastsScraper(ScraperBase):
    """Scraper for Apple Podcasts episode lists using Playwright."""

    @property
    def source_name(self) -> str:
        return "apple_podcasts"

    @property
    def supported_methods(self) -> list[str]:
        return ["playwright"]  # Playwright is required for JavaScript-rendered content

    def can_handle(self, query: str) -> bool:
        """Check if the query is an Apple Podcasts URL."""
        return "podcasts.apple.com" in query

    def extract_id(self, query: str) -> str:
        """Extract podcast ID from a URL, or a slug from a search term."""
        try:
            return extract_podcast_id(query)
        except ValueError as e:
            raise ValueError(f"Invalid Apple Podcasts query: {e}")

    def build_target_url(self, query: str, country: str | None = None) -> str:
        """Podcast URLs are opened as-is; search terms go to the search page."""
        query = query.strip()
        if not query:
            raise ValueError("Search term is required")
        if self.can_handle(query):
            return query
        return SEARCH_URL.format(
            country=(country or DEFAULT_COUNTRY).lower(),
            term=quote(query, safe=""),
        )

    def scrape(
        self,
        query: str,
        limit: int,
        method: str = "auto",
        credentials: dict[str, str | None] | None = None,
    ) -> dict[str, Any]:
        """Scrape up to ``limit`` episodes using Playwright."""
        if credentials is None:
            credentials = {}
        if method not in ("auto", "playwright"):
            raise ValueError(f"Unsupported method for {self.source_name}: {method}")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        if not PLAYWRIGHT_AVAILABLE:
            raise ImportError(
                "playwright not installed. "
                "Install with: pip install playwright && playwright install chromium"
            )

        target_url = self.build_target_url(query, credentials.get("country"))
        headless = (credentials.get("headless") or "true").lower() != "false"
        timeout = int(credentials.get("page_timeout_ms") or 60000)
        data_dir = Path(credentials["data_dir"]) if credentials.get("data_dir") else None
        apify_sink = make_apify_sink(credentials)

        _log(f"Scraping Apple Podcasts episodes for: {query!r}")
        _log(f"Target episodes to scrape: {limit}")
        _log(f"Target URL: {target_url}")

        async def _scrape_async():
            async with async_playwright() as p:
                browser = await p.chromium.launch(
                    headless=headless,
                    args=[
                        "--no-sandbox",
                        "--disable-setuid-sandbox",
                        "--disable-dev-shm-usage",
                        "--disable-gpu",
                    ],
                )
                page = None
                try:
                    page = await browser.new_page()
                    await page.goto(target_url, wait_until="networkidle", timeout=timeout)
                    _log("Page loaded")

                    # Wait extra time for JavaScript to render content
                    await page.wait_for_timeout(3000)

                    try:
                        await page.wait_for_selector(RESULTS_SELECTOR, timeout=15000)
                    except PlaywrightTimeoutError as e:
                        _log(f"Warning: Could not find search results or header wrapper: {e}")

                    clicked = await open_episode_list(page)

                    _log("Extracting episode data...")
                    result = await collect_episodes(PlaywrightRowSource(page), limit)
                    _log(f"Extracted {len(result.records)} episodes (requested: {limit})")

                    episodes = [record.to_dict() for record in normalize_records(result.records)]

                    debug_artifacts: list[str] = []
                    if not episodes:
                        _log(
                            "Warning: No episodes found - check if selectors are correct "
                            "or if content loaded properly"
                        )
                        debug_artifacts = await capture_debug_artifacts(
                            page, "debug", data_dir, apify_sink
                        )

                    return {
                        "query": query,
                        "url": target_url,
                        "episodes": episodes,
                        "total_episodes": len(episodes),
                        "requested_episodes": limit,
                        "stop_reason": result.stop_reason,
                        "scroll_passes": result.iterations,
                        "rows_seen": result.rows_seen,
                        "open_method": clicked.get("method"),
                        "debug_artifacts": debug_artifacts,
                        "scraped_at": int(time.time()),
                    }
                except Exception as e:
                    _log(f"Error during scraping: {e}")
                    if page is not None:
                        try:
                            await capture_debug_artifacts(page, "error", data_dir, apify_sink)
                        except Exception as debug_error:
                            _log(f"Could not save debug info: {debug_error}")
                    raise ValueError(f"Failed to scrape Apple Podcasts episodes: {e}") from e
                finally:
                    await browser.close()

        return _run_async(_scrape_async)

    def normalize_output(
        self,
        scraped_data: dict[str, Any],
        source_id: str,
    ) -> dict[str, Any]:
        """Normalize Apple Podcasts data to common format."""
        episodes = scraped_data.get("episodes", [])
        return {
            "source": "apple_podcasts",
            "podcast_id": source_id,
            "query": scraped_data.get("query"),
            "url": scraped_data.get("url", ""),
            "episodes": episodes,
            "total_episodes": scraped_data.get("total_episodes", len(episodes)),
            "requested_episodes": scraped_data.get("requested_episodes"),
            "stop_reason": scraped_data.get("stop_reason"),
            "debug_artifacts": scraped_data.get("debug_artifacts", []),
            "scraped_at": scraped_data.get("scraped_at", int(time.time())),
        }

    def get_storage_path(self, source_id: str, data_dir: Path) -> Path:
        """Get storage path for an episode list."""
        return data_dir / "imports" / "apple_podcasts" / f"episodes_{source_id}.json"
