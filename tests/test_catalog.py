from __future__ import annotations

import datetime as dt
import logging

from telesort.catalog import EpisodeCatalog
from telesort.models import Episode, Series
from telesort.tvdb.client import CatalogUnavailable
from telesort.tvdb.models import EpisodeResponse, SeriesResponse


class FakeCatalogClient:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.series_calls: list[int] = []
        self.episode_calls: list[tuple[int, str]] = []

    def get_series(self, series_id: int) -> SeriesResponse:
        self.series_calls.append(series_id)
        if self.fail:
            raise CatalogUnavailable("catalog offline")
        return SeriesResponse(id=series_id, name="Sherlock")

    def get_episodes(self, series_id: int, language: str = "eng") -> list[EpisodeResponse]:
        self.episode_calls.append((series_id, language))
        return [
            EpisodeResponse(id=1, season_number=1, number=1, name="A Study in Pink", aired="2010-07-25"),
            EpisodeResponse(id=2, season_number=1, number=2, name="The Blind Banker", aired="2010-08-01"),
            EpisodeResponse(id=3, season_number=1, number=3, name="The Great Game", aired="2010-08-01"),
        ]


def test_load_series_adapts_and_memoizes() -> None:
    client = FakeCatalogClient()
    catalog = EpisodeCatalog(client)

    first = catalog.load_series(176941)
    second = catalog.load_series(176941)

    assert first is second
    assert first.name == "Sherlock"
    assert [episode.episode_number for episode in first.episodes] == [1, 2, 3]
    assert client.series_calls == [176941]


def test_languages_are_loaded_separately() -> None:
    client = FakeCatalogClient()
    catalog = EpisodeCatalog(client)

    catalog.load_series(176941, "eng")
    german = catalog.load_series(176941, "deu")

    assert german.language == "deu"
    assert client.episode_calls == [(176941, "eng"), (176941, "deu")]


def test_catalog_failure_is_logged_once(caplog) -> None:
    client = FakeCatalogClient(fail=True)
    catalog = EpisodeCatalog(client)

    with caplog.at_level(logging.ERROR, logger="telesort.catalog"):
        assert catalog.load_series(176941) is None
        assert catalog.load_series(176941) is None

    assert client.series_calls == [176941]
    assert caplog.text.count("Catalog Unavailable") == 1
    assert "catalog offline" in caplog.text


def test_reset_scores_starts_unscored() -> None:
    catalog = EpisodeCatalog(FakeCatalogClient())
    series = catalog.load_series(1)

    first = catalog.reset_scores(series)
    first.accumulate("A Study in Pin")
    second = catalog.reset_scores(series)

    assert first is not second
    assert all(state.is_sentinel for _, state in second.states())
    assert series.longest_name_length == len("The Blind Banker")


def test_all_episodes_keeps_catalog_order() -> None:
    catalog = EpisodeCatalog(FakeCatalogClient())
    series = Series(
        id=1,
        name="Sample",
        episodes=[Episode(1, 1, "A", aired=dt.date(2020, 1, 1)), Episode(1, 2, "B", aired=dt.date(2020, 1, 8))],
    )

    assert [episode.name for episode in catalog.all_episodes(series)] == ["A", "B"]
