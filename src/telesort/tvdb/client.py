"""HTTP client for TheTVDB v4 REST API."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from .cache import TheTVDBCache
from .models import Envelope, EpisodePage, EpisodeResponse, SeriesResponse

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://api4.thetvdb.com/v4"

MAX_RETRIES = 3
RETRY_BACKOFF = 1.0
MAX_BACKOFF = 30.0
MAX_PAGES = 200


class CatalogUnavailable(Exception):
    """Raised when the catalog cannot provide the requested data."""


def _retry_after(response: httpx.Response, default: float) -> float:
    try:
        return float(response.headers.get("Retry-After", default))
    except (TypeError, ValueError):
        return default


class TheTVDBClient:
    """HTTP client for TheTVDB v4 API.

    Logs in lazily with the configured API key, keeps the bearer token for the
    lifetime of the client, and caches series and episode listings on disk.
    """

    def __init__(
        self,
        cache_dir: Path,
        *,
        api_key: str | None,
        pin: str | None = None,
        base_url: str = API_BASE_URL,
        ttl_hours: int = 24,
        timeout: float = 30.0,
    ) -> None:
        """``pin`` is only needed for subscriber-funded API keys; responses are
        cached under ``cache_dir/tvdb`` for ``ttl_hours``."""
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.pin = pin
        self.cache = TheTVDBCache(cache_dir / "tvdb", ttl_hours)
        self._client = httpx.Client(timeout=timeout)
        self._token: str | None = None

    def _login(self) -> str:
        if self._token:
            return self._token
        if not self.api_key:
            raise CatalogUnavailable("No TheTVDB API key configured")

        payload: dict[str, str] = {"apikey": self.api_key}
        if self.pin:
            payload["pin"] = self.pin

        response = self._send("POST", "/login", json=payload)
        try:
            token = response.json()["data"]["token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise CatalogUnavailable("TheTVDB login response did not contain a token") from exc
        if not token:
            raise CatalogUnavailable("TheTVDB login returned an empty token")
        self._token = str(token)
        return self._token

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request with retry logic.

        Raises:
            CatalogUnavailable: On 404, or once retries are exhausted
        """
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        failure: httpx.HTTPError | None = None
        delay = RETRY_BACKOFF

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = self._client.request(method, url, **kwargs)
            except httpx.RequestError as exc:
                failure = exc
            else:
                if response.status_code == 404:
                    raise CatalogUnavailable(f"Resource not found: {path}")
                if response.status_code == 429:
                    wait = _retry_after(response, delay)
                    LOGGER.warning("TheTVDB rate limit reached; waiting %.0f seconds", wait)
                    time.sleep(wait)
                    delay = min(delay * 2, MAX_BACKOFF)
                    continue
                try:
                    response.raise_for_status()
                except httpx.HTTPStatusError as exc:
                    failure = exc
                else:
                    return response

            if attempt < MAX_RETRIES:
                LOGGER.debug("%s %s failed (attempt %d/%d): %s", method, path, attempt, MAX_RETRIES, failure)
                time.sleep(delay)
                delay = min(delay * 2, MAX_BACKOFF)

        raise CatalogUnavailable(f"Failed to fetch {path} after {MAX_RETRIES} attempts") from failure

    def _get(self, path: str, **kwargs: Any) -> httpx.Response:
        token = self._login()
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        return self._send("GET", path, headers=headers, **kwargs)

    def get_series(self, series_id: int) -> SeriesResponse:
        """Fetch the base series record.

        Raises:
            CatalogUnavailable: If the series cannot be fetched or parsed
        """
        cached = self.cache.get_series(series_id)
        if cached is not None:
            LOGGER.debug("Using cached series: %s", series_id)
            return cached

        response = self._get(f"/series/{series_id}")
        try:
            series = Envelope[SeriesResponse].model_validate(response.json()).data
        except (ValueError, ValidationError) as exc:
            raise CatalogUnavailable(f"Unparseable series response for {series_id}") from exc

        self.cache.save_series(series)
        return series

    def get_episodes(self, series_id: int, language: str = "eng") -> list[EpisodeResponse]:
        """Fetch every episode of a series in default (aired) order.

        Follows ``links.next`` until the API reports no further pages.

        Raises:
            CatalogUnavailable: If any page cannot be fetched or parsed
        """
        cached = self.cache.get_episodes(series_id, language)
        if cached is not None:
            LOGGER.debug("Using cached episodes: %s/%s", series_id, language)
            return cached

        episodes: list[EpisodeResponse] = []
        page = 0
        while page < MAX_PAGES:
            response = self._get(f"/series/{series_id}/episodes/default/{language}", params={"page": page})
            try:
                envelope = Envelope[EpisodePage].model_validate(response.json())
            except (ValueError, ValidationError) as exc:
                raise CatalogUnavailable(f"Unparseable episode page {page} for series {series_id}") from exc

            episodes.extend(envelope.data.episodes)
            if envelope.links is None or not envelope.links.next:
                break
            page += 1
        else:
            LOGGER.warning("Stopped paging episodes for series %s after %d pages", series_id, MAX_PAGES)

        LOGGER.debug("Fetched %d episodes for series %s (%s)", len(episodes), series_id, language)
        self.cache.save_episodes(series_id, language, episodes)
        return episodes

    def invalidate_cache(self, series_id: int | None = None) -> None:
        if series_id is not None:
            self.cache.invalidate_series(series_id)
        else:
            self.cache.invalidate_all()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> TheTVDBClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()
