"""Probe text extraction from broadcaster metadata.

Each helper derives one candidate episode name from the raw title, subtitle
or description fields. ``build_probe_plan`` lists the text probes in the
order the orchestrator tries them; the date and dual-episode steps are
driven directly by the orchestrator because they do not produce a single
probe string.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import RecordingMetadata

COLON_DELIMITER = ": "
FULL_STOP_DELIMITER = ". "


@dataclass(frozen=True, slots=True)
class Probe:
    label: str
    text: str
    precise: bool = True


def text_before(value: str, delimiter: str) -> str | None:
    """Return the text preceding the first ``delimiter``, or None if absent."""
    index = value.find(delimiter)
    if index < 0:
        return None
    return value[:index]


def description_before_colon(description: str) -> str | None:
    return text_before(description, COLON_DELIMITER)


def description_before_full_stop(description: str) -> str | None:
    return text_before(description, FULL_STOP_DELIMITER)


def title_after_colon(title: str) -> str | None:
    if ":" not in title:
        return None
    return title.split(":", 1)[1].lstrip()


def bbc_numbered_title(description: str) -> str | None:
    """Extract the episode name from BBC style ``1/6. Name: synopsis`` text.

    The description must contain an ``N/M`` episode counter before the first
    full stop. The name runs from after that full stop to the first colon or
    period, whichever comes first.
    """
    stop = description.find(FULL_STOP_DELIMITER)
    if stop < 0:
        return None
    if "/" not in description[:stop]:
        return None

    remainder = description[stop + len(FULL_STOP_DELIMITER):]
    cut_points = [index for index in (remainder.find(":"), remainder.find(".")) if index >= 0]
    if cut_points:
        remainder = remainder[: min(cut_points)]
    return remainder


def split_dual_episode(subtitle: str) -> tuple[str, str] | None:
    """Split ``First; Second`` subtitles naming two consecutive episodes."""
    parts = subtitle.split(";")
    if len(parts) != 2:
        return None
    first, second = (part.strip() for part in parts)
    if not first or not second:
        return None
    return first, second


@dataclass(frozen=True, slots=True)
class ProbePlan:
    """Ordered text probes for one recording, grouped around the date steps."""

    leading: tuple[Probe, ...]
    fallback: tuple[Probe, ...]


def build_probe_plan(metadata: RecordingMetadata, title_remainder: str | None = None) -> ProbePlan:
    """Build the text probes tried for one recording.

    Args:
        metadata: Recording metadata
        title_remainder: Episode part of a ``Series: Episode`` title, present
            only when the part before the colon identified the series

    Returns:
        ProbePlan whose ``leading`` probes run before the date lookups and
        whose ``fallback`` probes form the final imprecise pass
    """
    leading: list[Probe] = []

    if metadata.subtitle:
        leading.append(Probe("subtitle", metadata.subtitle))

    colon_text = description_before_colon(metadata.description)
    if colon_text:
        leading.append(Probe("description-colon", colon_text))

    if title_remainder:
        leading.append(Probe("title-after-colon", title_remainder))

    stop_text = description_before_full_stop(metadata.description)
    if stop_text:
        leading.append(Probe("description-full-stop", stop_text))

    bbc_text = bbc_numbered_title(metadata.description)
    if bbc_text:
        leading.append(Probe("bbc-numbered", bbc_text))

    fallback: list[Probe] = []
    if metadata.subtitle:
        fallback.append(Probe("subtitle-imprecise", metadata.subtitle, precise=False))
    if metadata.description:
        fallback.append(Probe("description-imprecise", metadata.description, precise=False))

    return ProbePlan(leading=tuple(leading), fallback=tuple(fallback))
