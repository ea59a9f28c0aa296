"""Destination path building from a match decision.

Templates are rendered with ``str.format_map``; unknown placeholders are left
verbatim so a typo in a template shows up in the resulting path rather than
aborting the run. Each rendered component is sanitized, and the final path is
checked to stay inside ``destination_dir``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .config import DestinationTemplates, SeriesConfig, Settings
from .matcher.core import MatchDecision
from .models import Episode, RecordingMetadata, Series
from .utils import sanitize_component


class DestinationError(ValueError):
    """Raised when a destination cannot be rendered or leaves ``destination_dir``."""


class TemplateDict(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_template(template: str, context: dict[str, Any]) -> str:
    try:
        return template.format_map(TemplateDict(context))
    except (ValueError, IndexError, AttributeError) as exc:
        raise DestinationError(f"Cannot render template {template!r}: {exc}") from exc


def _find_episode(series: Series | None, season: int | None, number: int | None) -> Episode | None:
    if series is None or season is None or number is None:
        return None
    for episode in series.episodes:
        if episode.season_number == season and episode.episode_number == number:
            return episode
    return None


def build_match_context(
    source_path: Path,
    decision: MatchDecision,
    series_config: SeriesConfig,
    series: Series | None = None,
    metadata: RecordingMetadata | None = None,
) -> dict[str, Any]:
    """Build template context from a resolved decision.

    Args:
        source_path: Path to the recording
        decision: Resolved match decision
        series_config: Configured series the recording belongs to
        series: Catalog entry, used for air dates and the catalog series name
        metadata: Recording metadata, exposed as ``recording_*`` keys

    Returns:
        Dictionary containing all template variables for rendering
    """
    if not decision.is_resolved or decision.season is None or decision.episode is None:
        raise ValueError("Only resolved decisions have a destination")

    names = [name for name in decision.episode_names if name]
    episode_title = " & ".join(names)
    episode = _find_episode(series, decision.season, decision.episode)
    aired = episode.aired.isoformat() if episode is not None and episode.aired else ""

    context: dict[str, Any] = {
        "series_name": series_config.name,
        "series_id": series_config.id,
        "catalog_series_name": series.name if series is not None else series_config.name,
        "season_number": decision.season,
        "episode_number": decision.episode,
        "second_episode_number": decision.second_episode if decision.second_episode is not None else "",
        "episode_code": decision.episode_code,
        "episode_title": episode_title,
        "episode_aired": aired,
        "extension": source_path.suffix.lstrip("."),
        "suffix": source_path.suffix,
        "source_filename": source_path.name,
        "source_stem": source_path.stem,
        "match_method": decision.method or "",
    }
    if metadata is not None:
        context.update(
            {
                "recording_title": metadata.title,
                "recording_subtitle": metadata.subtitle,
                "recording_date": metadata.recorded_at.date().isoformat() if metadata.recorded_at else "",
            }
        )
    return context


def templates_for(series_config: SeriesConfig, settings: Settings) -> DestinationTemplates:
    return series_config.destination or settings.destination


def build_destination(context: dict[str, Any], templates: DestinationTemplates, destination_dir: Path) -> Path:
    """Build destination path from context using templates.

    Raises:
        DestinationError: If a template cannot be rendered or the destination
            path escapes the destination directory
    """
    root_component = sanitize_component(render_template(templates.root_template, context))
    season_component = sanitize_component(render_template(templates.season_dir_template, context))
    episode_component = sanitize_component(render_template(templates.episode_template, context))

    destination = destination_dir / root_component / season_component / episode_component

    base_dir = destination_dir.resolve()
    destination_resolved = destination.resolve(strict=False)
    if not destination_resolved.is_relative_to(base_dir):
        raise DestinationError(f"destination {destination_resolved} escapes destination_dir {base_dir}")

    return destination


def format_relative_destination(destination: Path, destination_dir: Path) -> str:
    try:
        relative = destination.relative_to(destination_dir)
    except ValueError:
        return str(destination)
    return str(relative)
