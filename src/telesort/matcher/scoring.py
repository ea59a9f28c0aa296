"""Best-match accumulation over a series for one recording.

A ``ScoringContext`` holds the scratch score of every episode of a series
while a single file is being identified. Probes are fed in the order the
heuristics produce them; each episode's recorded distance can only go down.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..models import Episode, Series
from .core import LEGACY_SENTINEL, REJECTED, UNSCORED, Candidate, ScoreKind, ScoreState
from .similarity import distance

LOGGER = logging.getLogger(__name__)


@dataclass
class BestMatchResult:
    """Episodes sharing the lowest recorded score.

    Attributes:
        candidates: Non-revoked episodes at the minimum, in catalog order
        score: The minimum legacy score (-1 for the degenerate fallback)
        degenerate: True when no episode had a real score and the minimum was
            taken over sentinel values
    """

    candidates: list[Episode] = field(default_factory=list)
    score: int | None = None
    degenerate: bool = False

    def as_candidates(self) -> list[Candidate]:
        return [Candidate.from_episode(episode) for episode in self.candidates]


class ScoringContext:
    def __init__(self, series: Series) -> None:
        self.series = series
        self._states: list[ScoreState] = [UNSCORED] * len(series.episodes)
        self.probes_scored = 0

    def state_of(self, episode: Episode) -> ScoreState:
        for index, candidate in enumerate(self.series.episodes):
            if candidate is episode:
                return self._states[index]
        raise KeyError(f"Episode {episode.code} {episode.name!r} is not part of {self.series.name!r}")

    def states(self) -> list[tuple[Episode, ScoreState]]:
        return list(zip(self.series.episodes, self._states))

    def legacy_scores(self) -> list[int]:
        return [state.legacy_value for state in self._states]

    def accumulate(self, probe_text: str) -> bool:
        """Score ``probe_text`` against every episode name.

        Returns:
            True if the probe was scored, False if a guard skipped it
        """
        probe_length = len(probe_text)
        if probe_length == 0:
            return False
        if probe_length > 2 * self.series.longest_name_length:
            LOGGER.debug(
                "Skipping best-match scoring for %r: %d chars exceeds twice the longest episode name (%d)",
                probe_text[:60],
                probe_length,
                self.series.longest_name_length,
            )
            return False

        threshold = probe_length // 2
        for index, episode in enumerate(self.series.episodes):
            score = distance(episode.name, probe_text, case_insensitive=True)
            current = self._states[index]
            if score > threshold:
                if current.kind is ScoreKind.UNSCORED:
                    self._states[index] = REJECTED
                continue
            if current.is_sentinel or score < current.value:
                self._states[index] = ScoreState.scored(score)

        self.probes_scored += 1
        return True

    def best_matches(self) -> BestMatchResult:
        eligible = [
            (episode, state) for episode, state in self.states() if not episode.is_revoked
        ]
        scored = [state.value for _, state in eligible if not state.is_sentinel]
        if scored:
            minimum = min(scored)
            winners = [episode for episode, state in eligible if not state.is_sentinel and state.value == minimum]
            return BestMatchResult(candidates=winners, score=minimum)

        if not eligible:
            return BestMatchResult()

        # Nothing scored: the minimum over what is present is the sentinel itself
        winners = [episode for episode, _ in eligible]
        return BestMatchResult(candidates=winners, score=LEGACY_SENTINEL, degenerate=True)
