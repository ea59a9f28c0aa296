"""On-disk cache of TheTVDB series records and episode listings."""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..utils import ensure_directory
from .models import EpisodeResponse, SeriesResponse

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_EPISODE_LIST = TypeAdapter(list[EpisodeResponse])


def _cached_at(envelope: Any) -> datetime | None:
    raw = envelope.get("cached_at") if isinstance(envelope, dict) else None
    if not isinstance(raw, str):
        return None
    try:
        stamp = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return stamp if stamp.tzinfo else stamp.replace(tzinfo=UTC)


class TheTVDBCache:
    """JSON files under ``cache_dir``, one per series record or episode listing.

    Files are envelopes of the form ``{"cached_at": ..., "content": ...}``.
    An envelope older than ``ttl_hours``, unreadable, or holding content the
    response models reject counts as a miss.
    """

    def __init__(self, cache_dir: Path, ttl_hours: int = 24) -> None:
        self.cache_dir = cache_dir
        self.ttl_hours = ttl_hours
        self._ttl = timedelta(hours=ttl_hours)

    def _cache_path(self, category: str, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.cache_dir / category / f"{safe_key}.json"

    def _episodes_path(self, series_id: int, language: str) -> Path:
        return self._cache_path("episodes", f"{series_id}_{language}")

    def _read(self, path: Path) -> Any | None:
        try:
            envelope = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.debug("Ignoring unreadable cache file %s: %s", path, exc)
            return None

        stamp = _cached_at(envelope)
        if stamp is None or datetime.now(UTC) - stamp > self._ttl:
            return None
        return envelope.get("content")

    def _read_model(self, path: Path, parse: Callable[[Any], T]) -> T | None:
        content = self._read(path)
        if content is None:
            return None
        try:
            return parse(content)
        except ValidationError as exc:
            LOGGER.debug("Ignoring cache file %s with unexpected content: %s", path, exc)
            return None

    def _write(self, path: Path, content: Any) -> None:
        ensure_directory(path.parent)
        envelope = {"cached_at": datetime.now(UTC).isoformat(timespec="seconds"), "content": content}
        staging = path.with_suffix(".tmp")
        try:
            staging.write_text(json.dumps(envelope, ensure_ascii=False, indent=2), encoding="utf-8")
            staging.replace(path)
        except OSError as exc:
            LOGGER.warning("Failed to write cache file %s: %s", path, exc)

    def get_series(self, series_id: int) -> SeriesResponse | None:
        return self._read_model(self._cache_path("series", str(series_id)), SeriesResponse.model_validate)

    def save_series(self, series: SeriesResponse) -> None:
        self._write(self._cache_path("series", str(series.id)), series.model_dump(mode="json"))

    def get_episodes(self, series_id: int, language: str) -> list[EpisodeResponse] | None:
        return self._read_model(self._episodes_path(series_id, language), _EPISODE_LIST.validate_python)

    def save_episodes(self, series_id: int, language: str, episodes: list[EpisodeResponse]) -> None:
        self._write(
            self._episodes_path(series_id, language),
            [episode.model_dump(mode="json") for episode in episodes],
        )

    def invalidate_series(self, series_id: int) -> None:
        """Drop the series record and its listings in every language."""
        self._cache_path("series", str(series_id)).unlink(missing_ok=True)
        for listing in (self.cache_dir / "episodes").glob(f"{series_id}_*.json"):
            listing.unlink()

    def invalidate_all(self) -> None:
        shutil.rmtree(self.cache_dir, ignore_errors=True)
