"""Episode identification for a single recording.

``EpisodeMatcher.identify`` walks the probe heuristics in a fixed order:

1. subtitle, description before ": ", title after the series colon,
   description before ". ", BBC "N/M. Name" descriptions (precise matches)
2. broadcast date and recording date lookups, when the series allows them
3. "First; Second" subtitles naming two consecutive episodes
4. punctuation-insensitive subtitle and description matches

Every precise probe that finds nothing is scored for edit distance in the
recording's ``ScoringContext``. When no step resolves the episode outright,
the lowest-scoring episodes decide the outcome.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from ..config import SeriesConfig
from ..models import Episode, RecordingMetadata, Series
from .core import (
    AmbiguousMatch,
    Candidate,
    Disambiguator,
    MatchDecision,
    MatchOutcome,
    MatchState,
    UniqueMatch,
)
from .date_utils import parse_broadcast_date, recording_day
from .exact import match_air_date, match_exact
from .probes import Probe, build_probe_plan, split_dual_episode
from .scoring import ScoringContext

LOGGER = logging.getLogger(__name__)


@dataclass
class _Session:
    label: str
    metadata: RecordingMetadata
    series_config: SeriesConfig
    series: Series
    scoring: ScoringContext
    trace: dict[str, Any] | None

    def record(self, method: str, probe: str | None, status: str, **extra: Any) -> None:
        LOGGER.debug("%s: %s %r -> %s", self.label, method, probe, status)
        if self.trace is None:
            return
        entry: dict[str, Any] = {"method": method, "probe": probe, "status": status}
        entry.update(extra)
        self.trace.setdefault("attempts", []).append(entry)


class EpisodeMatcher:
    def __init__(self, *, interactive: bool = False, disambiguator: Disambiguator | None = None) -> None:
        self.interactive = interactive and disambiguator is not None
        self.disambiguator = disambiguator

    def identify(
        self,
        metadata: RecordingMetadata,
        series_config: SeriesConfig,
        series: Series | None,
        *,
        title_remainder: str | None = None,
        scoring: ScoringContext | None = None,
        label: str = "",
        trace: dict[str, Any] | None = None,
    ) -> MatchDecision:
        """Identify the episode a recording belongs to.

        Args:
            metadata: Recording metadata
            series_config: Configuration of the series the title resolved to
            series: Catalog entry for the series, or None when the catalog
                could not provide it
            title_remainder: Episode part of a ``Series: Episode`` title
            scoring: Scratch scores for this recording; created when omitted
            label: Name used in prompts and log messages
            trace: Optional dict collecting the attempted steps

        Returns:
            MatchDecision describing the outcome
        """
        label = label or metadata.title or "recording"
        if series is None or not series.episodes:
            decision = MatchDecision(
                state=MatchState.EXHAUSTED,
                reason=f"No episode data available for '{series_config.name}'",
            )
            return self._finish(trace, decision)

        session = _Session(
            label=label,
            metadata=metadata,
            series_config=series_config,
            series=series,
            scoring=scoring or ScoringContext(series),
            trace=trace,
        )
        plan = build_probe_plan(metadata, title_remainder)

        for probe in plan.leading:
            decision = self._try_probe(session, probe)
            if decision is not None:
                return self._finish(trace, decision)

        for method, day in self._date_probes(session):
            outcome = match_air_date(series, day)
            decision = self._decide_direct(session, outcome, method, day.isoformat())
            if decision is not None:
                return self._finish(trace, decision)

        decision = self._try_dual_episode(session)
        if decision is not None:
            return self._finish(trace, decision)

        for probe in plan.fallback:
            decision = self._try_probe(session, probe)
            if decision is not None:
                return self._finish(trace, decision)

        return self._finish(trace, self._resolve_best_match(session))

    @staticmethod
    def _finish(trace: dict[str, Any] | None, decision: MatchDecision) -> MatchDecision:
        if trace is not None:
            trace["state"] = decision.state.value
            trace["method"] = decision.method
            trace["reason"] = decision.reason
        return decision

    def _try_probe(self, session: _Session, probe: Probe) -> MatchDecision | None:
        outcome = match_exact(session.series, probe.text, precise=probe.precise)
        decision = self._decide_direct(session, outcome, probe.label, probe.text)
        if decision is not None:
            return decision

        scored = session.scoring.accumulate(probe.text)
        session.record(probe.label, probe.text, "scored" if scored else "score-skipped")
        return None

    def _decide_direct(
        self,
        session: _Session,
        outcome: MatchOutcome,
        method: str,
        probe: str,
    ) -> MatchDecision | None:
        if isinstance(outcome, UniqueMatch):
            session.record(method, probe, "unique", season=outcome.season, episode=outcome.episode)
            return self._resolved(outcome.matched, method, f"{method} matched '{outcome.matched.name}'")

        if isinstance(outcome, AmbiguousMatch):
            session.record(method, probe, "ambiguous", candidates=len(outcome.candidates))
            return self._disambiguate(
                session,
                list(outcome.candidates),
                method,
                f"{method} matched {len(outcome.candidates)} episodes equally",
                unresolved_state=MatchState.RESOLVED_AMBIGUOUS,
            )

        session.record(method, probe, "revoked" if outcome.revoked else "no-match")
        return None

    def _date_probes(self, session: _Session) -> Iterator[tuple[str, dt.date]]:
        config = session.series_config
        if config.allow_broadcast_date_match:
            broadcast = parse_broadcast_date(session.metadata.broadcast_date)
            if broadcast is not None:
                yield "broadcast-date", broadcast
            elif session.metadata.broadcast_date:
                session.record("broadcast-date", session.metadata.broadcast_date, "unparseable")
        if config.allow_recording_date_match:
            recorded = recording_day(session.metadata.recorded_at)
            if recorded is not None:
                yield "recording-date", recorded

    def _try_dual_episode(self, session: _Session) -> MatchDecision | None:
        parts = split_dual_episode(session.metadata.subtitle)
        if parts is None:
            return None

        first, second = (match_exact(session.series, part, precise=True) for part in parts)
        if not (isinstance(first, UniqueMatch) and isinstance(second, UniqueMatch)):
            session.record("dual-episode", session.metadata.subtitle, "no-match")
            return None
        if first.season != second.season or second.episode != first.episode + 1:
            session.record(
                "dual-episode",
                session.metadata.subtitle,
                "not-consecutive",
                first=f"S{first.season}E{first.episode}",
                second=f"S{second.season}E{second.episode}",
            )
            return None

        session.record("dual-episode", session.metadata.subtitle, "unique")
        return MatchDecision(
            state=MatchState.RESOLVED,
            season=first.season,
            episode=first.episode,
            second_episode=second.episode,
            episode_names=[first.matched.name, second.matched.name],
            method="dual-episode",
            reason=f"subtitle names consecutive episodes '{first.matched.name}' and '{second.matched.name}'",
        )

    def _resolve_best_match(self, session: _Session) -> MatchDecision:
        result = session.scoring.best_matches()
        candidates = result.as_candidates()
        session.record(
            "best-match",
            None,
            f"{len(candidates)} candidate(s)",
            score=result.score,
            degenerate=result.degenerate,
        )

        if not candidates:
            return MatchDecision(
                state=MatchState.EXHAUSTED,
                method="best-match",
                reason="No episode scored close enough to any probe",
            )

        if len(candidates) == 1 and session.series_config.accept_single_best_match:
            if result.degenerate:
                reason = "only episode left after every probe failed to score"
            else:
                reason = f"closest episode name at edit distance {result.score}"
            return self._resolved(result.candidates[0], "best-match", reason)

        if result.degenerate:
            reason = "No probe scored against the episode list; every episode is a candidate"
        elif len(candidates) == 1:
            reason = f"Single best match at edit distance {result.score} needs confirmation"
        else:
            reason = f"{len(candidates)} episodes tie at edit distance {result.score}"
        return self._disambiguate(
            session,
            candidates,
            "best-match",
            reason,
            unresolved_state=MatchState.EXHAUSTED,
        )

    def _disambiguate(
        self,
        session: _Session,
        candidates: Sequence[Candidate],
        method: str,
        reason: str,
        *,
        unresolved_state: MatchState,
    ) -> MatchDecision:
        if not self.interactive or self.disambiguator is None:
            return MatchDecision(
                state=unresolved_state,
                candidates=list(candidates),
                method=method,
                reason=reason,
            )

        selection = self.disambiguator(session.label, candidates)
        if selection is None:
            session.record(method, None, "operator-skipped")
            return MatchDecision(
                state=MatchState.RESOLVED_AMBIGUOUS,
                candidates=list(candidates),
                method=method,
                reason=f"{reason}; skipped by operator",
            )
        if not 1 <= selection <= len(candidates):
            LOGGER.warning("%s: ignoring out-of-range selection %s", session.label, selection)
            return MatchDecision(
                state=MatchState.RESOLVED_AMBIGUOUS,
                candidates=list(candidates),
                method=method,
                reason=f"{reason}; invalid operator selection {selection}",
            )

        chosen = candidates[selection - 1]
        session.record(method, None, "operator-selected", selection=selection)
        return MatchDecision(
            state=MatchState.RESOLVED,
            season=chosen.season,
            episode=chosen.episode,
            episode_names=[chosen.name],
            candidates=list(candidates),
            method=f"{method}+operator",
            reason=f"{reason}; operator chose {chosen.describe()}",
        )

    @staticmethod
    def _resolved(episode: Episode, method: str, reason: str) -> MatchDecision:
        return MatchDecision(
            state=MatchState.RESOLVED,
            season=episode.season_number,
            episode=episode.episode_number,
            episode_names=[episode.name],
            method=method,
            reason=reason,
        )
