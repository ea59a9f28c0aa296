"""Matcher package for identifying episodes from broadcaster metadata.

This package holds the identification engine:
- Edit-distance scoring (``similarity``)
- Exact, punctuation-insensitive and air-date lookups (``exact``)
- Per-recording best-match accumulation (``scoring``)
- Probe text extraction from title/subtitle/description (``probes``)
- Series resolution from recording titles (``series_resolver``)
- The heuristic cascade and decision policy (``orchestrator``)

Example:
    from telesort.matcher import EpisodeMatcher, resolve_series

    resolution = resolve_series(metadata.title, config.series)
    decision = EpisodeMatcher().identify(metadata, resolution.series, series)
    if decision.is_resolved:
        print(decision.episode_code)
"""

from .core import (
    AmbiguousMatch,
    Candidate,
    Disambiguator,
    MatchDecision,
    MatchOutcome,
    MatchState,
    NoMatch,
    ScoreKind,
    ScoreState,
    UniqueMatch,
)
from .exact import match_air_date, match_exact
from .orchestrator import EpisodeMatcher
from .probes import build_probe_plan
from .scoring import BestMatchResult, ScoringContext
from .series_resolver import SeriesResolution, resolve_series
from .similarity import distance

__all__ = [
    "AmbiguousMatch",
    "BestMatchResult",
    "Candidate",
    "Disambiguator",
    "EpisodeMatcher",
    "MatchDecision",
    "MatchOutcome",
    "MatchState",
    "NoMatch",
    "ScoreKind",
    "ScoreState",
    "ScoringContext",
    "SeriesResolution",
    "UniqueMatch",
    "build_probe_plan",
    "distance",
    "match_air_date",
    "match_exact",
    "resolve_series",
]
