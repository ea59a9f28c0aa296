"""Recording metadata extraction.

Metadata comes from a sidecar file next to the recording when one exists
(``Show.wtv`` + ``Show.json``/``Show.yaml``/``Show.yml``), otherwise from the
container tags reported by ``ffprobe``. Windows Media Center recordings carry
their guide data in ``WM/*`` tags; other recorders use the plain
``title``/``description`` tags.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import subprocess
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml

from .models import RecordingMetadata

LOGGER = logging.getLogger(__name__)

SIDECAR_SUFFIXES = (".json", ".yaml", ".yml")
FFPROBE_TIMEOUT = 30

TAG_ALIASES: Dict[str, Sequence[str]] = {
    "title": ("title", "wm/title"),
    "subtitle": ("wm/subtitle", "subtitle"),
    "description": ("wm/subtitledescription", "description", "comment"),
    "broadcast_date": ("wm/mediaoriginalbroadcastdatetime", "date", "aired"),
    "recorded_at": ("wm/encodingtime", "creation_time"),
}


class MetadataUnavailable(Exception):
    """Raised when no usable metadata can be read for a recording."""


def find_sidecar(path: Path) -> Optional[Path]:
    for suffix in SIDECAR_SUFFIXES:
        candidate = path.with_suffix(suffix)
        if candidate != path and candidate.is_file():
            return candidate
    return None


def _load_sidecar(sidecar: Path) -> Dict[str, Any]:
    try:
        with sidecar.open("r", encoding="utf-8") as handle:
            if sidecar.suffix == ".json":
                data = json.load(handle)
            else:
                data = yaml.safe_load(handle)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise MetadataUnavailable(f"Unreadable sidecar {sidecar.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise MetadataUnavailable(f"Sidecar {sidecar.name} must contain a mapping")
    return data


def run_ffprobe(path: Path, *, binary: str = "ffprobe") -> Dict[str, str]:
    """Return the container tags of ``path`` with lower-cased keys."""
    command = [binary, "-v", "error", "-show_entries", "format_tags", "-of", "json", str(path)]
    try:
        result = subprocess.run(
            command, capture_output=True, text=True, errors="replace", check=True, timeout=FFPROBE_TIMEOUT
        )
    except FileNotFoundError as exc:
        raise MetadataUnavailable(f"{binary} is not installed") from exc
    except OSError as exc:
        raise MetadataUnavailable(f"Could not run {binary}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        raise MetadataUnavailable(f"{binary} failed: {(exc.stderr or '').strip() or exc}") from exc
    except subprocess.TimeoutExpired as exc:
        raise MetadataUnavailable(f"{binary} timed out after {FFPROBE_TIMEOUT}s") from exc

    try:
        payload = json.loads(result.stdout or "{}")
    except json.JSONDecodeError as exc:
        raise MetadataUnavailable(f"{binary} returned invalid JSON") from exc

    tags = (payload.get("format") or {}).get("tags") or {}
    return {str(key).lower(): str(value) for key, value in tags.items()}


def tags_to_mapping(tags: Mapping[str, str]) -> Dict[str, Any]:
    lowered = {key.lower(): value for key, value in tags.items()}
    mapping: Dict[str, Any] = {}
    for field_name, aliases in TAG_ALIASES.items():
        for alias in aliases:
            value = lowered.get(alias)
            if value not in (None, ""):
                mapping[field_name] = value
                break
    return mapping


def _mtime(path: Path) -> Optional[dt.datetime]:
    try:
        return dt.datetime.fromtimestamp(path.stat().st_mtime)
    except OSError:
        return None


def read_recording_metadata(path: Path, *, ffprobe: str = "ffprobe") -> RecordingMetadata:
    """Read title, subtitle, description and dates for one recording.

    Raises:
        MetadataUnavailable: When neither a sidecar nor ffprobe yields a title
    """
    sidecar = find_sidecar(path)
    if sidecar is not None:
        LOGGER.debug("Reading metadata for %s from %s", path.name, sidecar.name)
        data = _load_sidecar(sidecar)
    else:
        data = tags_to_mapping(run_ffprobe(path, binary=ffprobe))

    metadata = RecordingMetadata.from_mapping(data)
    if not metadata.title:
        raise MetadataUnavailable(f"No title found in metadata for {path.name}")

    if metadata.recorded_at is None:
        fallback = _mtime(path)
        if fallback is not None:
            metadata = replace(metadata, recorded_at=fallback)
    return metadata
