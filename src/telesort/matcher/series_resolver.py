"""Series resolution from recording titles.

Broadcasters either use the bare series title ("Sherlock") or combine the
series with the episode name ("Sherlock: The Blind Banker"). A title is
resolved against the configured series titles case-insensitively; when the
whole title matches nothing, the part before the first colon is tried and
the remainder becomes an extra episode probe.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ..config import SeriesConfig
from .probes import title_after_colon


def _title_key(value: str) -> str:
    return " ".join(value.split()).casefold()


@dataclass
class SeriesResolution:
    series: SeriesConfig | None = None
    title_remainder: str | None = None
    ambiguous: list[SeriesConfig] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.series is not None


def build_title_lookup(series: Sequence[SeriesConfig]) -> dict[str, list[SeriesConfig]]:
    lookup: dict[str, list[SeriesConfig]] = {}
    for entry in series:
        for title in entry.match_titles:
            bucket = lookup.setdefault(_title_key(title), [])
            if entry not in bucket:
                bucket.append(entry)
    return lookup


def _resolve_key(lookup: dict[str, list[SeriesConfig]], title: str) -> list[SeriesConfig]:
    return list(lookup.get(_title_key(title), []))


def resolve_series(title: str, series: Sequence[SeriesConfig]) -> SeriesResolution:
    """Map a recording title to one configured series.

    Args:
        title: Title field from the recording metadata
        series: Configured series

    Returns:
        SeriesResolution with the matched series, or the competing series when
        the title is claimed by more than one entry
    """
    if not title.strip():
        return SeriesResolution()

    lookup = build_title_lookup(series)

    matches = _resolve_key(lookup, title)
    if len(matches) == 1:
        return SeriesResolution(series=matches[0])
    if len(matches) > 1:
        return SeriesResolution(ambiguous=matches)

    if ":" in title:
        prefix = title.split(":", 1)[0]
        matches = _resolve_key(lookup, prefix)
        remainder = title_after_colon(title) or None
        if len(matches) == 1:
            return SeriesResolution(series=matches[0], title_remainder=remainder)
        if len(matches) > 1:
            return SeriesResolution(ambiguous=matches, title_remainder=remainder)

    return SeriesResolution()
