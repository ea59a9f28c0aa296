"""TheTVDB API client package.

This package provides the catalog client used to fetch series and episode
listings from TheTVDB v4 REST API, with an on-disk TTL cache and an adapter
to the core ``Series``/``Episode`` models.
"""

from __future__ import annotations

from .adapter import TheTVDBAdapter
from .cache import TheTVDBCache
from .client import CatalogUnavailable, TheTVDBClient
from .models import EpisodeResponse, SeriesResponse

__all__ = [
    "CatalogUnavailable",
    "EpisodeResponse",
    "SeriesResponse",
    "TheTVDBAdapter",
    "TheTVDBCache",
    "TheTVDBClient",
]
