"""
Incremental scroll-and-extract loop for lazily loaded episode lists.

The collector knows nothing about browsers or selectors. It drives a
RowSource, which reads the rows currently rendered in a list, pulls the
episode fields out of one row, and asks the page for more content.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from models import RawEpisodeRecord

MAX_STABLE_ATTEMPTS = 12
SETTLE_DELAY_MS = 800

STOP_LIMIT = "limit"
STOP_PLATEAU = "plateau"


class RowExtractionError(Exception):
    """A single list row could not be read."""


class RowSource(ABC):
    """Live, growing list of rows that the collector scrolls through."""

    @abstractmethod
    async def read_rows(self) -> list[Any]:
        """Return every row currently present in the list container."""
        pass

    @abstractmethod
    async def extract_fields(self, row: Any) -> Mapping[str, Any] | None:
        """
        Read episode fields from one row.

        Returns a mapping with any of the keys ``title``, ``description``,
        ``date`` and ``shareUrl``. May raise RowExtractionError.
        """
        pass

    @abstractmethod
    async def scroll_into_view(self, row: Any) -> None:
        """Scroll a row into view to trigger lazy loading."""
        pass

    @abstractmethod
    async def scroll_viewport(self) -> None:
        """Scroll the page by one screen height."""
        pass

    @abstractmethod
    async def settle(self, delay_ms: int) -> None:
        """Wait for asynchronous rendering to finish."""
        pass


@dataclass(frozen=True, slots=True)
class CollectionResult:
    """Records gathered by one collector run and why the run stopped."""

    records: list[RawEpisodeRecord]
    iterations: int
    stop_reason: str
    rows_seen: int


async def _extract_record(source: RowSource, row: Any) -> RawEpisodeRecord | None:
    try:
        fields = await source.extract_fields(row)
    except Exception:
        # A broken row never aborts the scan
        return None
    return RawEpisodeRecord.from_fields(fields)


async def _request_more(source: RowSource, rows: list[Any]) -> None:
    if not rows:
        await source.scroll_viewport()
        return
    try:
        await source.scroll_into_view(rows[-1])
    except Exception:
        await source.scroll_viewport()


async def collect_episodes(
    source: RowSource,
    limit: int,
    max_stable_attempts: int = MAX_STABLE_ATTEMPTS,
    settle_delay_ms: int = SETTLE_DELAY_MS,
) -> CollectionResult:
    """
    Scroll through a lazily loaded list until ``limit`` records are found
    or the row count stops growing.

    Each pass re-reads the rows, scans the ones not seen in earlier passes
    and appends every record whose title differs from the previously
    appended one. The run ends once ``limit`` records are held, or after
    ``max_stable_attempts`` consecutive passes in which the row count did
    not grow.

    Args:
        source: Row source over the live list
        limit: Maximum number of records to return
        max_stable_attempts: Consecutive no-growth passes before giving up
        settle_delay_ms: Wait after each scroll, in milliseconds

    Returns:
        CollectionResult with at most ``limit`` records

    Raises:
        ValueError: If limit is not a positive integer
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")

    results: list[RawEpisodeRecord] = []
    prev_row_count = 0
    stable_attempts = 0
    iterations = 0
    # Index of the first row not yet scanned; the list only grows at the end
    scanned = 0

    while len(results) < limit and stable_attempts < max_stable_attempts:
        iterations += 1
        rows = await source.read_rows()
        if len(rows) < scanned:
            # List was re-rendered from scratch
            scanned = 0

        for row in rows[scanned:]:
            if len(results) >= limit:
                break
            scanned += 1
            record = await _extract_record(source, row)
            if record is None:
                continue
            if results and results[-1].title == record.title:
                continue
            results.append(record)

        rows = await source.read_rows()
        current_row_count = len(rows)
        if current_row_count > prev_row_count:
            prev_row_count = current_row_count
            stable_attempts = 0
        else:
            stable_attempts += 1

        if len(results) >= limit:
            break

        await _request_more(source, rows)
        await source.settle(settle_delay_ms)

        if iterations % 10 == 0:
            print(
                f"  Pass {iterations}: {current_row_count} rows, {len(results)} episodes so far...",
                file=sys.stderr,
            )

    stop_reason = STOP_LIMIT if len(results) >= limit else STOP_PLATEAU
    if stop_reason == STOP_PLATEAU:
        print(
            f"  No new rows after {stable_attempts} attempts, stopping with {len(results)} episodes",
            file=sys.stderr,
        )

    return CollectionResult(
        records=results[:limit],
        iterations=iterations,
        stop_reason=stop_reason,
        rows_seen=prev_row_count,
    )
