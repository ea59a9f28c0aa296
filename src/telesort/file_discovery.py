"""Finding the recordings to process below ``source_dir``."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path

from .logging_utils import render_fields_block
from .models import ProcessingStats

LOGGER = logging.getLogger(__name__)

# Read together with their recording, never processed on their own
SIDECAR_SUFFIXES = frozenset({".json", ".yaml", ".yml"})


def skip_reason_for_source_file(path: Path, extensions: Sequence[str]) -> str | None:
    """Return why ``path`` should not be processed, or None to process it."""
    if path.name.startswith("._") and path.name != "._":
        return "macOS resource fork (._ prefix)"
    suffix = path.suffix.lower()
    if extensions and suffix not in extensions:
        return f"extension {suffix or '(none)'} not in source_extensions"
    return None


def _candidate_files(source_dir: Path, exclude: Path | None) -> Iterator[Path]:
    for path in sorted(source_dir.rglob("*")):
        if path.is_symlink() or not path.is_file():
            continue
        if exclude is not None and path.is_relative_to(exclude):
            continue
        if path.suffix.lower() not in SIDECAR_SUFFIXES:
            yield path


def gather_source_files(
    source_dir: Path,
    extensions: Sequence[str],
    stats: ProcessingStats | None = None,
    *,
    exclude: Path | None = None,
) -> Iterator[Path]:
    """Yield recordings below ``source_dir`` in sorted path order.

    ``extensions`` holds lower-case suffixes; an empty sequence accepts every
    file. ``exclude`` names a directory to leave alone, normally the
    unmatched folder when it lives inside the source tree. A missing
    ``source_dir`` yields nothing and is registered as a warning on ``stats``.
    """
    if not source_dir.is_dir():
        LOGGER.warning(render_fields_block("Source Directory Missing", {"Path": source_dir}))
        if stats is not None:
            stats.register_warning(f"Source directory missing: {source_dir}")
        return

    for path in _candidate_files(source_dir, exclude):
        reason = skip_reason_for_source_file(path, extensions)
        if reason is None:
            yield path
        else:
            LOGGER.debug(render_fields_block("Skipping Source File", {"Source": path, "Reason": reason}))
