"""Adapter to convert TheTVDB responses to telesort dataclass models."""

from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING, Iterable

from ..models import Episode, Series

if TYPE_CHECKING:
    from .models import EpisodeResponse, SeriesResponse

LOGGER = logging.getLogger(__name__)


def _parse_aired(value: str | None) -> dt.date | None:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value.strip()[:10])
    except ValueError:
        LOGGER.debug("Ignoring unparseable air date %r", value)
        return None


class TheTVDBAdapter:
    """Converts TheTVDB API responses to telesort dataclass models."""

    def to_series(
        self,
        response: SeriesResponse,
        episodes: Iterable[EpisodeResponse],
        *,
        language: str = "eng",
    ) -> Series:
        """Build a Series with its episodes in the order the catalog returned them."""
        return Series(
            id=response.id,
            name=response.name,
            episodes=[self.to_episode(item) for item in episodes],
            language=language,
        )

    def to_episode(self, response: EpisodeResponse) -> Episode:
        """Convert one episode record.

        A missing episode number becomes 0, which marks the entry as revoked.
        """
        return Episode(
            season_number=response.season_number or 0,
            episode_number=response.number or 0,
            name=(response.name or "").strip(),
            aired=_parse_aired(response.aired),
            id=response.id,
        )
