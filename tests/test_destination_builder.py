from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from telesort.config import DestinationTemplates, SeriesConfig, Settings
from telesort.destination_builder import (
    build_destination,
    build_match_context,
    format_relative_destination,
    render_template,
    templates_for,
)
from telesort.matcher.core import MatchDecision, MatchState
from telesort.models import Episode, RecordingMetadata, Series


def build_decision(**overrides) -> MatchDecision:
    values = {
        "state": MatchState.RESOLVED,
        "season": 1,
        "episode": 3,
        "episode_names": ["The Great Game"],
        "method": "subtitle",
    }
    values.update(overrides)
    return MatchDecision(**values)


def build_series() -> Series:
    return Series(
        id=176941,
        name="Sherlock (2010)",
        episodes=[Episode(1, 3, "The Great Game", aired=dt.date(2010, 8, 8))],
    )


def build_settings(tmp_path: Path) -> Settings:
    return Settings(source_dir=tmp_path / "in", destination_dir=tmp_path / "library", cache_dir=tmp_path / "cache")


def test_match_context_contains_episode_fields() -> None:
    metadata = RecordingMetadata(title="Sherlock", subtitle="The Great Game", recorded_at=dt.datetime(2010, 8, 8, 21))

    context = build_match_context(
        Path("/in/Sherlock_2010.wtv"),
        build_decision(),
        SeriesConfig(id=176941, name="Sherlock"),
        build_series(),
        metadata,
    )

    assert context["series_name"] == "Sherlock"
    assert context["catalog_series_name"] == "Sherlock (2010)"
    assert context["episode_code"] == "S01E03"
    assert context["episode_title"] == "The Great Game"
    assert context["episode_aired"] == "2010-08-08"
    assert context["extension"] == "wtv"
    assert context["source_stem"] == "Sherlock_2010"
    assert context["match_method"] == "subtitle"
    assert context["recording_date"] == "2010-08-08"
    assert context["second_episode_number"] == ""


def test_match_context_joins_dual_episode_names() -> None:
    decision = build_decision(second_episode=4, episode_names=["The Beginning", "The Middle"], method="dual-episode")

    context = build_match_context(Path("/in/x.ts"), decision, SeriesConfig(id=1, name="Show"))

    assert context["episode_code"] == "S01E03E04"
    assert context["episode_title"] == "The Beginning & The Middle"
    assert context["second_episode_number"] == 4
    assert context["episode_aired"] == ""
    assert "recording_title" not in context


def test_match_context_requires_resolved_decision() -> None:
    with pytest.raises(ValueError):
        build_match_context(
            Path("/in/x.ts"),
            MatchDecision(state=MatchState.RESOLVED_AMBIGUOUS),
            SeriesConfig(id=1, name="Show"),
        )


def test_build_destination_with_default_templates(tmp_path) -> None:
    settings = build_settings(tmp_path)
    context = build_match_context(Path("/in/rec.wtv"), build_decision(), SeriesConfig(id=1, name="Sherlock"))

    destination = build_destination(context, settings.destination, settings.destination_dir)

    assert destination == tmp_path / "library" / "Sherlock" / "Season 01" / "Sherlock - S01E03 - The Great Game.wtv"
    assert format_relative_destination(destination, settings.destination_dir) == (
        "Sherlock/Season 01/Sherlock - S01E03 - The Great Game.wtv"
    )


def test_components_are_sanitized(tmp_path) -> None:
    context = build_match_context(
        Path("/in/rec.wtv"),
        build_decision(episode_names=["Who/What: ../Why?"]),
        SeriesConfig(id=1, name="../Escape"),
    )

    destination = build_destination(context, DestinationTemplates(), tmp_path)

    assert destination.parent.parent.name == ".._Escape"
    assert "/" not in destination.name
    assert destination.resolve().is_relative_to(tmp_path.resolve())


def test_unknown_placeholder_is_left_verbatim() -> None:
    assert render_template("{series_name} {missing}", {"series_name": "Show"}) == "Show {missing}"


def test_bad_format_spec_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Cannot render template"):
        render_template("{season_number:%Y}", {"season_number": 1})


def test_series_templates_override_settings(tmp_path) -> None:
    settings = build_settings(tmp_path)
    custom = DestinationTemplates(episode_template="{episode_code}.{extension}")

    assert templates_for(SeriesConfig(id=1, name="A", destination=custom), settings) is custom
    assert templates_for(SeriesConfig(id=1, name="A"), settings) is settings.destination


def test_format_relative_destination_outside_root(tmp_path) -> None:
    assert format_relative_destination(Path("/elsewhere/file.ts"), tmp_path) == "/elsewhere/file.ts"
