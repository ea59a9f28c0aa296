from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .utils import TRANSFER_MODES, load_yaml_file, validate_url

DEFAULT_SOURCE_EXTENSIONS = [".wtv", ".ts", ".mkv", ".mp4", ".m4v"]
TVDB_BASE_URL = "https://api4.thetvdb.com/v4"


class ConfigurationConflict(ValueError):
    """Raised when configuration options cannot be honoured together."""


@dataclass(frozen=True)
class DestinationTemplates:
    root_template: str = "{series_name}"
    season_dir_template: str = "Season {season_number:02d}"
    episode_template: str = "{series_name} - {episode_code} - {episode_title}.{extension}"


@dataclass(frozen=True)
class TVDBSettings:
    api_key: str | None = None
    pin: str | None = None
    base_url: str = TVDB_BASE_URL
    ttl_hours: int = 24
    timeout: float = 30.0


@dataclass(frozen=True)
class SeriesConfig:
    id: int
    name: str
    titles: tuple[str, ...] = ()
    language: str = "eng"
    allow_broadcast_date_match: bool = False
    allow_recording_date_match: bool = False
    accept_single_best_match: bool = True
    destination: DestinationTemplates | None = None

    @property
    def match_titles(self) -> tuple[str, ...]:
        return self.titles or (self.name,)


@dataclass(frozen=True)
class Settings:
    source_dir: Path
    destination_dir: Path
    cache_dir: Path
    unmatched_dir: Path | None = None
    move_unmatched: bool = False
    dry_run: bool = False
    link_mode: str = "move"
    interactive: bool = False
    unattended: bool = False
    accept_single_best_match: bool = True
    source_extensions: tuple[str, ...] = tuple(DEFAULT_SOURCE_EXTENSIONS)
    destination: DestinationTemplates = field(default_factory=DestinationTemplates)
    tvdb: TVDBSettings = field(default_factory=TVDBSettings)

    @property
    def prompts_operator(self) -> bool:
        """True when ambiguous recordings should be put to an operator."""
        return self.interactive and not self.unattended


@dataclass(frozen=True)
class AppConfig:
    settings: Settings
    series: tuple[SeriesConfig, ...] = ()

    def with_overrides(self, *, dry_run: bool | None = None, interactive: bool | None = None) -> AppConfig:
        settings = self.settings
        if dry_run is not None:
            settings = replace(settings, dry_run=dry_run)
        if interactive is not None:
            settings = replace(settings, interactive=interactive, unattended=not interactive)
        return replace(self, settings=settings)


def _as_bool(value: Any, *, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"'{field_name}' must be true or false")


def _ensure_string_list(value: Any, *, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be provided as a list of strings")
    result: list[str] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, str):
            raise ValueError(f"'{field_name}[{index}]' must be a string")
        cleaned = entry.strip()
        if cleaned:
            result.append(cleaned)
    return result


def _build_destination_templates(data: dict[str, Any] | None, defaults: DestinationTemplates) -> DestinationTemplates:
    if not data:
        return defaults
    if not isinstance(data, dict):
        raise ValueError("'destination' must be provided as a mapping when specified")

    return DestinationTemplates(
        root_template=data.get("root_template", defaults.root_template),
        season_dir_template=data.get("season_dir_template", defaults.season_dir_template),
        episode_template=data.get("episode_template", defaults.episode_template),
    )


def _optional_secret(value: Any) -> str | None:
    if value is None:
        return None
    cleaned = str(value).strip()
    # An unset environment variable is left as "${NAME}" by expandvars
    if not cleaned or cleaned.startswith("${"):
        return None
    return cleaned


def _build_tvdb_settings(data: dict[str, Any]) -> TVDBSettings:
    if not data:
        return TVDBSettings()
    if not isinstance(data, dict):
        raise ValueError("'tvdb' must be provided as a mapping when specified")

    try:
        ttl_hours = int(data.get("ttl_hours", 24))
    except (TypeError, ValueError) as exc:  # noqa: PERF203
        raise ValueError("'tvdb.ttl_hours' must be an integer") from exc

    try:
        timeout = float(data.get("timeout", 30.0))
    except (TypeError, ValueError) as exc:  # noqa: PERF203
        raise ValueError("'tvdb.timeout' must be a number") from exc

    base_url = str(data.get("base_url") or TVDB_BASE_URL).rstrip("/")
    if not validate_url(base_url):
        raise ValueError(f"'tvdb.base_url' must be a valid http/https URL, got: {base_url}")

    return TVDBSettings(
        api_key=_optional_secret(data.get("api_key")),
        pin=_optional_secret(data.get("pin")),
        base_url=base_url,
        ttl_hours=ttl_hours,
        timeout=timeout,
    )


def _build_settings(data: dict[str, Any]) -> Settings:
    if not isinstance(data, dict):
        raise ValueError("'settings' must be provided as a mapping")

    link_mode = str(data.get("link_mode", "move")).strip().lower()
    if link_mode not in TRANSFER_MODES:
        raise ValueError(f"'settings.link_mode' must be one of {', '.join(TRANSFER_MODES)}, got: {link_mode}")

    interactive = _as_bool(data.get("interactive"), field_name="settings.interactive", default=False)
    unattended = _as_bool(data.get("unattended"), field_name="settings.unattended", default=False)
    if interactive and unattended:
        raise ConfigurationConflict(
            "'settings.interactive' and 'settings.unattended' cannot both be enabled; "
            "choose whether ambiguous recordings prompt an operator or are reported"
        )

    unmatched_raw = data.get("unmatched_dir")
    unmatched_dir = Path(unmatched_raw).expanduser() if unmatched_raw else None
    move_unmatched = _as_bool(data.get("move_unmatched"), field_name="settings.move_unmatched", default=False)
    if move_unmatched and unmatched_dir is None:
        raise ConfigurationConflict("'settings.move_unmatched' requires 'settings.unmatched_dir' to be set")

    extensions = _ensure_string_list(data.get("source_extensions"), field_name="settings.source_extensions")
    normalized_extensions = tuple(
        ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions or DEFAULT_SOURCE_EXTENSIONS
    )

    return Settings(
        source_dir=Path(data.get("source_dir", "/data/recordings")).expanduser(),
        destination_dir=Path(data.get("destination_dir", "/data/library")).expanduser(),
        cache_dir=Path(data.get("cache_dir", "/data/cache")).expanduser(),
        unmatched_dir=unmatched_dir,
        move_unmatched=move_unmatched,
        dry_run=_as_bool(data.get("dry_run"), field_name="settings.dry_run", default=False),
        link_mode=link_mode,
        interactive=interactive,
        unattended=unattended,
        accept_single_best_match=_as_bool(
            data.get("accept_single_best_match"),
            field_name="settings.accept_single_best_match",
            default=True,
        ),
        source_extensions=normalized_extensions,
        destination=_build_destination_templates(data.get("destination"), DestinationTemplates()),
        tvdb=_build_tvdb_settings(data.get("tvdb", {}) or {}),
    )


def _build_series_config(data: dict[str, Any], index: int, settings: Settings) -> SeriesConfig:
    if not isinstance(data, dict):
        raise ValueError(f"'series[{index}]' must be a mapping")

    raw_id = data.get("id")
    try:
        series_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'series[{index}].id' must be a numeric catalog id, got: {raw_id!r}") from exc

    name = str(data.get("name") or "").strip()
    if not name:
        raise ValueError(f"'series[{index}].name' is required")

    prefix = f"series[{index}]"
    destination = None
    if data.get("destination"):
        destination = _build_destination_templates(data["destination"], settings.destination)

    return SeriesConfig(
        id=series_id,
        name=name,
        titles=tuple(_ensure_string_list(data.get("titles"), field_name=f"{prefix}.titles")),
        language=str(data.get("language", "eng")).strip() or "eng",
        allow_broadcast_date_match=_as_bool(
            data.get("allow_broadcast_date_match"),
            field_name=f"{prefix}.allow_broadcast_date_match",
            default=False,
        ),
        allow_recording_date_match=_as_bool(
            data.get("allow_recording_date_match"),
            field_name=f"{prefix}.allow_recording_date_match",
            default=False,
        ),
        accept_single_best_match=_as_bool(
            data.get("accept_single_best_match"),
            field_name=f"{prefix}.accept_single_best_match",
            default=settings.accept_single_best_match,
        ),
        destination=destination,
    )


def _check_series_conflicts(series: Iterable[SeriesConfig]) -> None:
    seen_ids: dict[int, str] = {}
    for entry in series:
        if entry.id in seen_ids:
            raise ConfigurationConflict(
                f"Series id {entry.id} is configured twice ('{seen_ids[entry.id]}' and '{entry.name}')"
            )
        seen_ids[entry.id] = entry.name


def build_config(data: dict[str, Any]) -> AppConfig:
    settings = _build_settings(data.get("settings", {}) or {})

    series_raw = data.get("series", []) or []
    if not isinstance(series_raw, list):
        raise ValueError("'series' must be provided as a list")
    series = tuple(_build_series_config(entry, index, settings) for index, entry in enumerate(series_raw))
    _check_series_conflicts(series)

    return AppConfig(settings=settings, series=series)


def load_config(path: Path) -> AppConfig:
    return build_config(load_yaml_file(path))
