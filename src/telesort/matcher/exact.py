"""Exact, punctuation-insensitive and air-date lookups against a series."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable

from ..models import Episode, Series
from .core import AmbiguousMatch, Candidate, MatchOutcome, NoMatch, UniqueMatch

LOGGER = logging.getLogger(__name__)

IMPRECISE_STRIP_CHARS = frozenset("',!?-. ")


def strip_punctuation(value: str) -> str:
    return "".join(ch for ch in value if ch not in IMPRECISE_STRIP_CHARS)


def outcome_for_episodes(episodes: Iterable[Episode], *, context: str = "") -> MatchOutcome:
    """Apply the zero/one/many rule shared by every direct lookup."""
    matches = list(episodes)
    if not matches:
        return NoMatch()

    if len(matches) == 1:
        episode = matches[0]
        if episode.is_revoked:
            LOGGER.debug("Ignoring revoked episode %r matched by %s", episode.name, context or "lookup")
            return NoMatch(revoked=True)
        return UniqueMatch(season=episode.season_number, episode=episode.episode_number, matched=episode)

    valid = [episode for episode in matches if not episode.is_revoked]
    if not valid:
        return NoMatch(revoked=True)
    if len(valid) == 1:
        episode = valid[0]
        return UniqueMatch(season=episode.season_number, episode=episode.episode_number, matched=episode)
    return AmbiguousMatch(candidates=tuple(Candidate.from_episode(episode) for episode in valid))


def match_exact(series: Series, text: str, *, precise: bool = True) -> MatchOutcome:
    """Match ``text`` against episode names.

    Precise matching compares names verbatim and case-sensitively. Imprecise
    matching drops apostrophes, commas, exclamation and question marks,
    hyphens, periods and spaces from both sides first, and never matches an
    episode whose stripped name is empty.
    """
    if not text:
        return NoMatch()

    if precise:
        found = [episode for episode in series.episodes if episode.name == text]
    else:
        target = strip_punctuation(text)
        if not target:
            return NoMatch()
        found = []
        for episode in series.episodes:
            stripped = strip_punctuation(episode.name)
            if stripped and stripped == target:
                found.append(episode)

    return outcome_for_episodes(found, context=f"{'precise' if precise else 'imprecise'} name {text!r}")


def match_air_date(series: Series, day: dt.date) -> MatchOutcome:
    found = [episode for episode in series.episodes if episode.aired == day]
    return outcome_for_episodes(found, context=f"air date {day.isoformat()}")
