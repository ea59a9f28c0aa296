from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from telesort.config import (
    TVDB_BASE_URL,
    AppConfig,
    ConfigurationConflict,
    DestinationTemplates,
    build_config,
    load_config,
)


def build_config_data(**settings_overrides) -> dict:
    settings = {
        "source_dir": "/recordings",
        "destination_dir": "/library",
        "cache_dir": "/cache",
    }
    settings.update(settings_overrides)
    return {
        "settings": settings,
        "series": [
            {"id": 176941, "name": "Sherlock"},
            {
                "id": 78804,
                "name": "Doctor Who",
                "titles": ["Doctor Who", " Doctor Who (2005) ", ""],
                "allow_broadcast_date_match": True,
                "destination": {"episode_template": "{episode_code}.{extension}"},
            },
        ],
    }


def test_build_config_applies_defaults() -> None:
    config = build_config(build_config_data())

    settings = config.settings
    assert settings.source_dir == Path("/recordings")
    assert settings.link_mode == "move"
    assert settings.dry_run is False
    assert settings.interactive is False
    assert settings.unmatched_dir is None
    assert ".wtv" in settings.source_extensions
    assert settings.destination == DestinationTemplates()
    assert settings.tvdb.base_url == TVDB_BASE_URL
    assert settings.tvdb.api_key is None


def test_build_config_reads_series() -> None:
    config = build_config(build_config_data())

    sherlock, doctor = config.series
    assert sherlock.match_titles == ("Sherlock",)
    assert sherlock.language == "eng"
    assert sherlock.destination is None
    assert doctor.match_titles == ("Doctor Who", "Doctor Who (2005)")
    assert doctor.allow_broadcast_date_match is True
    assert doctor.allow_recording_date_match is False
    assert doctor.destination.episode_template == "{episode_code}.{extension}"
    # Unset template fields inherit from the global destination block
    assert doctor.destination.root_template == DestinationTemplates().root_template


def test_series_inherits_accept_single_best_match() -> None:
    config = build_config(build_config_data(accept_single_best_match=False))

    assert all(entry.accept_single_best_match is False for entry in config.series)


def test_source_extensions_are_normalized() -> None:
    config = build_config(build_config_data(source_extensions=["WTV", ".Ts"]))

    assert config.settings.source_extensions == (".wtv", ".ts")


def test_interactive_and_unattended_conflict() -> None:
    with pytest.raises(ConfigurationConflict):
        build_config(build_config_data(interactive=True, unattended=True))


def test_move_unmatched_requires_directory() -> None:
    with pytest.raises(ConfigurationConflict):
        build_config(build_config_data(move_unmatched=True))


def test_duplicate_series_ids_conflict() -> None:
    data = build_config_data()
    data["series"].append({"id": 176941, "name": "Sherlock Again"})

    with pytest.raises(ConfigurationConflict, match="176941"):
        build_config(data)


def test_invalid_link_mode_rejected() -> None:
    with pytest.raises(ValueError, match="link_mode"):
        build_config(build_config_data(link_mode="teleport"))


def test_non_boolean_flag_rejected() -> None:
    with pytest.raises(ValueError, match="dry_run"):
        build_config(build_config_data(dry_run="sometimes"))


def test_series_id_must_be_numeric() -> None:
    data = build_config_data()
    data["series"][0]["id"] = "sherlock"

    with pytest.raises(ValueError, match=r"series\[0\]\.id"):
        build_config(data)


def test_invalid_tvdb_base_url_rejected() -> None:
    with pytest.raises(ValueError, match="base_url"):
        build_config(build_config_data(tvdb={"base_url": "ftp://example.com"}))


def test_with_overrides_switches_modes() -> None:
    config = build_config(build_config_data(interactive=True))

    overridden = config.with_overrides(dry_run=True, interactive=False)

    assert isinstance(overridden, AppConfig)
    assert overridden.settings.dry_run is True
    assert overridden.settings.interactive is False
    assert overridden.settings.unattended is True
    assert config.settings.prompts_operator is True
    assert overridden.settings.prompts_operator is False
    assert config.settings.dry_run is False


def test_load_config_expands_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TVDB_API_KEY", "secret-key")
    monkeypatch.delenv("TVDB_PIN", raising=False)
    path = tmp_path / "telesort.yaml"
    path.write_text(
        textwrap.dedent(
            """
            settings:
              source_dir: /recordings
              destination_dir: /library
              tvdb:
                api_key: ${TVDB_API_KEY}
                pin: ${TVDB_PIN}
            series:
              - id: 1
                name: Sherlock
            """
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.settings.tvdb.api_key == "secret-key"
    # An unset variable stays unexpanded and counts as missing
    assert config.settings.tvdb.pin is None


def test_sample_configuration_loads() -> None:
    sample_path = Path(__file__).resolve().parents[1] / "config" / "telesort.sample.yaml"
    if not sample_path.exists():
        pytest.skip("Sample configuration not present in repository checkout")

    config = load_config(sample_path)

    assert [entry.name for entry in config.series] == ["Sherlock", "Doctor Who", "Top Gear"]
