"""Append-only JSON-lines log of file operations and its reverse replay.

Each processed recording that was moved, copied or linked appends one record::

    {"action": "move", "source": "...", "destination": "...", "timestamp": "..."}

``replay_undo_log`` walks the records newest first: moved files are moved
back to their source, copies and links are removed.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .logging_utils import render_fields_block
from .utils import ensure_directory

LOGGER = logging.getLogger(__name__)

UNDO_DIRNAME = "undo"


def undo_directory(cache_dir: Path) -> Path:
    return cache_dir / UNDO_DIRNAME


class UndoLog:
    """Writer for one run's undo log. The file is created on first append."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.entries = 0

    @classmethod
    def for_run(cls, cache_dir: Path, started_at: datetime | None = None) -> UndoLog:
        started_at = started_at or datetime.now(UTC)
        return cls(undo_directory(cache_dir) / f"{started_at.strftime('%Y%m%dT%H%M%S%fZ')}.jsonl")

    def record(self, action: str, source: Path, destination: Path) -> None:
        ensure_directory(self.path.parent)
        entry = {
            "action": action,
            "source": str(source),
            "destination": str(destination),
            "timestamp": datetime.now(UTC).isoformat(timespec="seconds"),
        }
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, ensure_ascii=False) + "\n")
        self.entries += 1


def latest_undo_log(cache_dir: Path) -> Path | None:
    directory = undo_directory(cache_dir)
    if not directory.exists():
        return None
    logs = sorted(directory.glob("*.jsonl"))
    return logs[-1] if logs else None


def read_undo_log(path: Path) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                LOGGER.warning("Ignoring malformed undo record at %s:%d", path, line_number)
                continue
            if isinstance(record, dict):
                records.append(record)
    return records


@dataclass
class UndoSummary:
    reverted: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def _revert(record: dict[str, Any], *, dry_run: bool) -> str | None:
    """Revert one record. Returns a skip reason, or None when reverted."""
    action = record.get("action")
    source = Path(str(record.get("source", "")))
    destination = Path(str(record.get("destination", "")))
    if not record.get("source") or not record.get("destination"):
        return "incomplete record"

    if action == "move":
        if not destination.exists():
            return "destination no longer exists"
        if source.exists():
            return "source path is occupied"
        if not dry_run:
            ensure_directory(source.parent)
            shutil.move(str(destination), str(source))
        return None

    if action in {"copy", "hardlink", "symlink"}:
        if not destination.exists() and not destination.is_symlink():
            return "destination no longer exists"
        if not dry_run:
            destination.unlink()
        return None

    return f"unknown action {action!r}"


def replay_undo_log(path: Path, *, dry_run: bool = False) -> UndoSummary:
    """Revert the operations in ``path`` in reverse order.

    Failures are logged and the replay continues with the next record.
    """
    summary = UndoSummary()
    records = read_undo_log(path)
    LOGGER.info("Loaded %d undo record(s) from %s", len(records), path)

    for record in reversed(records):
        try:
            reason = _revert(record, dry_run=dry_run)
        except OSError as exc:
            message = f"{record.get('destination')}: {exc}"
            LOGGER.error(
                render_fields_block(
                    "Undo Failed",
                    {
                        "Action": record.get("action"),
                        "Destination": record.get("destination"),
                        "Error": exc,
                    },
                    pad_top=True,
                )
            )
            summary.errors.append(message)
            continue

        if reason is None:
            summary.reverted += 1
            LOGGER.info(
                "%s %s %s -> %s",
                "[dry-run] Would revert" if dry_run else "Reverted",
                record.get("action"),
                record.get("destination"),
                record.get("source"),
            )
        else:
            summary.skipped += 1
            LOGGER.warning(
                render_fields_block(
                    "Undo Skipped",
                    {
                        "Action": record.get("action"),
                        "Destination": record.get("destination"),
                        "Reason": reason,
                    },
                    pad_top=True,
                )
            )
    return summary
