"""Pydantic models for TheTVDB v4 API responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EpisodeResponse(BaseModel):
    """API response model for an episode record."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    season_number: int | None = Field(default=None, alias="seasonNumber")
    number: int | None = None
    name: str | None = None
    aired: str | None = None


class SeriesResponse(BaseModel):
    """API response model for a series record."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    name: str
    slug: str | None = None
    first_aired: str | None = Field(default=None, alias="firstAired")


class EpisodeLinks(BaseModel):
    model_config = ConfigDict(extra="ignore")

    next: str | None = None


class EpisodePage(BaseModel):
    """One page of ``/series/{id}/episodes/default/{language}``."""

    model_config = ConfigDict(extra="ignore")

    series: SeriesResponse | None = None
    episodes: list[EpisodeResponse] = Field(default_factory=list)


class Envelope[T](BaseModel):
    """Generic ``{"status": ..., "data": ...}`` wrapper used by every endpoint."""

    model_config = ConfigDict(extra="ignore")

    status: str | None = None
    data: T
    links: EpisodeLinks | None = None
