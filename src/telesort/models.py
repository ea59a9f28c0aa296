from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence


@dataclass(slots=True)
class Episode:
    season_number: int
    episode_number: int
    name: str
    aired: Optional[dt.date] = None
    id: Optional[int] = None

    @property
    def is_revoked(self) -> bool:
        """Episode number 0 marks an entry the catalog has withdrawn."""
        return self.episode_number == 0

    @property
    def code(self) -> str:
        return f"S{self.season_number:02d}E{self.episode_number:02d}"


@dataclass(slots=True)
class Series:
    id: int
    name: str
    episodes: List[Episode] = field(default_factory=list)
    language: str = "eng"
    longest_name_length: int = 0

    def __post_init__(self) -> None:
        self.recompute_statistics()

    def recompute_statistics(self) -> None:
        self.longest_name_length = max((len(episode.name) for episode in self.episodes), default=0)

    def replace_episodes(self, episodes: Sequence[Episode]) -> None:
        self.episodes = list(episodes)
        self.recompute_statistics()


@dataclass(frozen=True, slots=True)
class RecordingMetadata:
    """Broadcaster metadata extracted from a single recording.

    Every text field is normalized to a plain string at the boundary so the
    matcher never has to deal with missing values.
    """

    title: str = ""
    subtitle: str = ""
    description: str = ""
    broadcast_date: Optional[str] = None
    recorded_at: Optional[dt.datetime] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, object]) -> "RecordingMetadata":
        def text(key: str) -> str:
            value = data.get(key)
            if value is None:
                return ""
            return str(value).strip()

        broadcast_raw = data.get("broadcast_date")
        broadcast = str(broadcast_raw).strip() if broadcast_raw not in (None, "") else None

        recorded_raw = data.get("recorded_at")
        recorded: Optional[dt.datetime] = None
        if isinstance(recorded_raw, dt.datetime):
            recorded = recorded_raw
        elif isinstance(recorded_raw, dt.date):
            recorded = dt.datetime.combine(recorded_raw, dt.time())
        elif isinstance(recorded_raw, str) and recorded_raw.strip():
            try:
                recorded = dt.datetime.fromisoformat(recorded_raw.strip().replace("Z", "+00:00"))
            except ValueError:
                recorded = None

        return cls(
            title=text("title"),
            subtitle=text("subtitle"),
            description=text("description"),
            broadcast_date=broadcast,
            recorded_at=recorded,
        )


@dataclass(slots=True)
class ProcessingStats:
    processed: int = 0
    matched: int = 0
    ambiguous: int = 0
    unmatched: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    unmatched_details: List[str] = field(default_factory=list)
    moved_destinations: List[Path] = field(default_factory=list)

    def register_matched(self, destination: Optional[Path] = None) -> None:
        self.processed += 1
        self.matched += 1
        if destination is not None:
            self.moved_destinations.append(destination)

    def register_ambiguous(self, detail: str) -> None:
        self.processed += 1
        self.ambiguous += 1
        self.unmatched_details.append(detail)

    def register_unmatched(self, detail: str) -> None:
        self.processed += 1
        self.unmatched += 1
        self.unmatched_details.append(detail)

    def register_failed(self, message: str) -> None:
        self.processed += 1
        self.failed += 1
        self.errors.append(message)

    def register_warning(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)
