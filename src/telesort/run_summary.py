"""Run recaps and end-of-run summaries."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, List, Optional

from .logging_utils import LogBlockBuilder

if TYPE_CHECKING:
    from pathlib import Path

    from .models import ProcessingStats

LOGGER = logging.getLogger(__name__)


def has_detailed_activity(stats: ProcessingStats) -> bool:
    return bool(stats.errors or stats.warnings or stats.unmatched_details)


def summarize_messages(entries: List[str], *, limit: int = 5) -> List[str]:
    """Collapse repeated messages into ``N× message`` lines, most frequent first."""
    grouped = sorted(Counter(entries).items(), key=lambda pair: (-pair[1], pair[0]))
    lines = [text if count == 1 else f"{count}× {text}" for text, count in grouped[:limit]]
    hidden = len(grouped) - len(lines)
    if hidden:
        lines.append(f"... {hidden} more (use --verbose for full list)")
    return lines


def log_detailed_summary(stats: ProcessingStats, *, level: int = logging.INFO, verbose: bool = False) -> None:
    builder = LogBlockBuilder("Detailed Summary")
    if verbose:
        builder.add_section("Errors", stats.errors)
        builder.add_section("Warnings", stats.warnings)
        builder.add_section("Unmatched", stats.unmatched_details)
    else:
        builder.add_section("Errors", summarize_messages(stats.errors))
        builder.add_section("Warnings", summarize_messages(stats.warnings))
        builder.add_section("Unmatched", summarize_messages(stats.unmatched_details, limit=10))
    LOGGER.log(level, builder.render())


def log_run_recap(
    stats: ProcessingStats,
    duration: float,
    *,
    dry_run: bool = False,
    undo_log: Optional[Path] = None,
) -> None:
    fields = {
        "Duration": f"{duration:.2f}s",
        "Processed": stats.processed,
        "Matched": stats.matched,
        "Ambiguous": stats.ambiguous,
        "Unmatched": stats.unmatched,
        "Failed": stats.failed,
        "Warnings": len(stats.warnings),
    }
    if dry_run:
        fields["Mode"] = "dry-run (no files changed)"
    if undo_log is not None:
        fields["Undo Log"] = undo_log

    builder = LogBlockBuilder("Run Recap")
    builder.add_fields(fields)
    if stats.moved_destinations:
        builder.add_section(
            "Destinations",
            [str(path) for path in stats.moved_destinations[:10]],
        )
        if len(stats.moved_destinations) > 10:
            builder.add_fields({"More": f"{len(stats.moved_destinations) - 10} additional destination(s)"})
    LOGGER.info(builder.render())
