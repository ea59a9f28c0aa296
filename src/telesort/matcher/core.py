"""Core matcher types shared across the matcher package.

Match outcomes are small frozen dataclasses forming a tagged union:
``NoMatch``, ``UniqueMatch`` and ``AmbiguousMatch``. ``MatchDecision`` is the
single result the orchestrator hands back for each recording.
"""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence, Union

from ..models import Episode

LEGACY_SENTINEL = -1


@dataclass(frozen=True, slots=True)
class Candidate:
    season: int
    episode: int
    name: str
    aired: Optional[dt.date] = None

    @classmethod
    def from_episode(cls, episode: Episode) -> "Candidate":
        return cls(
            season=episode.season_number,
            episode=episode.episode_number,
            name=episode.name,
            aired=episode.aired,
        )

    def describe(self) -> str:
        label = f"S{self.season:02d}E{self.episode:02d} {self.name}".rstrip()
        if self.aired is not None:
            label += f" (aired {self.aired.isoformat()})"
        return label


@dataclass(frozen=True, slots=True)
class NoMatch:
    revoked: bool = False


@dataclass(frozen=True, slots=True)
class UniqueMatch:
    season: int
    episode: int
    matched: Episode


@dataclass(frozen=True, slots=True)
class AmbiguousMatch:
    candidates: tuple[Candidate, ...]


MatchOutcome = Union[NoMatch, UniqueMatch, AmbiguousMatch]


class ScoreKind(enum.Enum):
    UNSCORED = "unscored"
    REJECTED = "rejected"
    SCORED = "scored"


@dataclass(frozen=True, slots=True)
class ScoreState:
    """Best edit distance seen for one episode during one file's session."""

    kind: ScoreKind
    value: int = LEGACY_SENTINEL

    @property
    def is_sentinel(self) -> bool:
        return self.kind is not ScoreKind.SCORED

    @property
    def legacy_value(self) -> int:
        # Unscored and rejected both collapse to -1
        return self.value if self.kind is ScoreKind.SCORED else LEGACY_SENTINEL

    @classmethod
    def scored(cls, value: int) -> "ScoreState":
        return cls(ScoreKind.SCORED, value)


UNSCORED = ScoreState(ScoreKind.UNSCORED)
REJECTED = ScoreState(ScoreKind.REJECTED)


class MatchState(enum.Enum):
    SEARCHING = "searching"
    RESOLVED = "resolved"
    RESOLVED_AMBIGUOUS = "resolved-ambiguous"
    EXHAUSTED = "exhausted"


@dataclass(slots=True)
class MatchDecision:
    state: MatchState
    season: Optional[int] = None
    episode: Optional[int] = None
    second_episode: Optional[int] = None
    episode_names: list[str] = field(default_factory=list)
    candidates: list[Candidate] = field(default_factory=list)
    method: Optional[str] = None
    reason: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.state is MatchState.RESOLVED

    @property
    def episode_code(self) -> str:
        if self.season is None or self.episode is None:
            return ""
        code = f"S{self.season:02d}E{self.episode:02d}"
        if self.second_episode is not None:
            code += f"E{self.second_episode:02d}"
        return code


class Disambiguator(Protocol):
    """Operator input channel for choosing between candidates.

    Implementations receive a label describing the recording and the ordered
    candidate list, and return a 1-based selection or ``None`` to skip.
    """

    def __call__(self, label: str, candidates: Sequence[Candidate]) -> Optional[int]: ...
