"""Per-run episode catalog backed by TheTVDB client."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .logging_utils import render_fields_block
from .matcher.scoring import ScoringContext
from .models import Episode, Series
from .tvdb.adapter import TheTVDBAdapter
from .tvdb.client import CatalogUnavailable
from .tvdb.models import EpisodeResponse, SeriesResponse

LOGGER = logging.getLogger(__name__)


class CatalogSource(Protocol):
    def get_series(self, series_id: int) -> SeriesResponse: ...

    def get_episodes(self, series_id: int, language: str = "eng") -> list[EpisodeResponse]: ...


class EpisodeCatalog:
    """Lazily loaded mapping from series id to ``Series``.

    Series are memoized for the lifetime of the catalog, which is one
    processing run. Failed lookups are memoized too so a broken series is
    reported once rather than once per recording.
    """

    def __init__(self, client: CatalogSource, adapter: TheTVDBAdapter | None = None) -> None:
        self.client = client
        self.adapter = adapter or TheTVDBAdapter()
        self._series: dict[tuple[int, str], Series | None] = {}

    def load_series(self, series_id: int, language: str = "eng") -> Series | None:
        key = (series_id, language)
        if key in self._series:
            return self._series[key]

        try:
            response = self.client.get_series(series_id)
            episodes = self.client.get_episodes(series_id, language)
        except CatalogUnavailable as exc:
            LOGGER.error(
                render_fields_block(
                    "Catalog Unavailable",
                    {
                        "Series ID": series_id,
                        "Language": language,
                        "Error": exc,
                    },
                    pad_top=True,
                )
            )
            self._series[key] = None
            return None

        series = self.adapter.to_series(response, episodes, language=language)
        LOGGER.debug(
            "Loaded series %s (%s) with %d episodes",
            series.name,
            series_id,
            len(series.episodes),
        )
        self._series[key] = series
        return series

    def reset_scores(self, series: Series) -> ScoringContext:
        """Start a new matching session: every episode becomes unscored."""
        series.recompute_statistics()
        return ScoringContext(series)

    def all_episodes(self, series: Series) -> Sequence[Episode]:
        return tuple(series.episodes)
