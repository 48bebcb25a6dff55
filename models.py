"""
Shared record types for scraped podcast episodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, NamedTuple


class CanonicalDate(NamedTuple):
    """Normalized date: display form plus ISO date (None when unparsed)."""

    full: Any
    iso: str | None


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class RawEpisodeRecord:
    """Episode fields as read from one list row, before date normalization."""

    title: str
    description: str | None = None
    raw_date: str | None = None
    share_url: str | None = None

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any] | None) -> RawEpisodeRecord | None:
        """Build a record from a row's field mapping; None when there is no title."""
        if not fields:
            return None
        title = _clean(fields.get("title"))
        if not title:
            return None
        return cls(
            title=title,
            description=_clean(fields.get("description")),
            raw_date=_clean(fields.get("date")),
            share_url=_clean(fields.get("shareUrl")),
        )


@dataclass(frozen=True, slots=True)
class NormalizedEpisodeRecord:
    """Episode record with its date resolved to a canonical form."""

    title: str
    description: str | None
    date: str | None
    date_iso: str | None
    share_url: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "dateISO": self.date_iso,
            "shareUrl": self.share_url,
        }
