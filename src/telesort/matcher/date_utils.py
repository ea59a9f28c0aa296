"""Broadcast and recording date parsing.

Recording containers report dates in a handful of layouts. Parsing never
raises: anything unrecognised yields None and the date heuristic is skipped.
"""

from __future__ import annotations

import datetime as dt
import logging

LOGGER = logging.getLogger(__name__)

# Tried in order after ISO-8601 parsing fails; numeric dates are day-first
DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y%m%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%d-%m-%Y",
)

# Windows Media Center writes this when no original air date is known
UNKNOWN_BROADCAST_DATES = frozenset({"0001-01-01", "0001-01-01T00:00:00Z", "0001-01-01T00:00:00"})


def parse_broadcast_date(value: str | None) -> dt.date | None:
    """Parse a broadcast date string to a calendar date.

    Args:
        value: Raw date text from recording metadata

    Returns:
        The calendar date, ignoring any time of day, or None when the value is
        missing, a known placeholder, or unparseable
    """
    if value is None:
        return None
    text = value.strip()
    if not text or text in UNKNOWN_BROADCAST_DATES:
        return None

    try:
        parsed = dt.datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed.date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    LOGGER.debug("Unparseable broadcast date %r; skipping date match", value)
    return None


def recording_day(recorded_at: dt.datetime | None) -> dt.date | None:
    if recorded_at is None:
        return None
    return recorded_at.date()
