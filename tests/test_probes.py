from __future__ import annotations

from telesort.matcher.probes import (
    bbc_numbered_title,
    build_probe_plan,
    description_before_colon,
    description_before_full_stop,
    split_dual_episode,
    title_after_colon,
)
from telesort.models import RecordingMetadata


def test_full_stop_probe() -> None:
    assert (
        description_before_full_stop("Sherlock investigates a murder. More happens here.")
        == "Sherlock investigates a murder"
    )


def test_full_stop_probe_requires_delimiter() -> None:
    assert description_before_full_stop("No sentence break here.") is None


def test_colon_probe() -> None:
    assert description_before_colon("The Hounds of Baskerville: Henry Knight asks for help") == (
        "The Hounds of Baskerville"
    )
    assert description_before_colon("Time 10:30 without space") is None


def test_title_after_colon_strips_leading_whitespace() -> None:
    assert title_after_colon("Sherlock:   The Reichenbach Fall") == "The Reichenbach Fall"
    assert title_after_colon("Sherlock") is None


class TestBbcNumberedTitle:
    def test_cuts_at_colon(self) -> None:
        assert bbc_numbered_title("2/3. The Blind Banker: A cryptic message.") == "The Blind Banker"

    def test_cuts_at_period_when_earlier(self) -> None:
        assert bbc_numbered_title("1/3. A Study in Pink. Then: more") == "A Study in Pink"

    def test_uses_whole_remainder_without_cut_point(self) -> None:
        assert bbc_numbered_title("3/3. The Great Game") == "The Great Game"

    def test_requires_counter_before_full_stop(self) -> None:
        assert bbc_numbered_title("Drama. The Great Game: a bomb") is None

    def test_requires_full_stop(self) -> None:
        assert bbc_numbered_title("1/3 The Great Game") is None


class TestSplitDualEpisode:
    def test_two_parts(self) -> None:
        assert split_dual_episode("The Beginning; The Middle") == ("The Beginning", "The Middle")

    def test_three_parts_rejected(self) -> None:
        assert split_dual_episode("One; Two; Three") is None

    def test_empty_part_rejected(self) -> None:
        assert split_dual_episode("Only;  ") is None

    def test_no_delimiter(self) -> None:
        assert split_dual_episode("Single") is None


def test_probe_plan_order() -> None:
    metadata = RecordingMetadata(
        title="Sherlock: The Great Game",
        subtitle="Great Game",
        description="3/3. The Great Game: Sherlock is challenged. A bomb explodes.",
    )

    plan = build_probe_plan(metadata, title_remainder="The Great Game")

    assert [(probe.label, probe.text) for probe in plan.leading] == [
        ("subtitle", "Great Game"),
        ("description-colon", "3/3. The Great Game"),
        ("title-after-colon", "The Great Game"),
        ("description-full-stop", "3/3"),
        ("bbc-numbered", "The Great Game"),
    ]
    assert all(probe.precise for probe in plan.leading)
    assert [probe.label for probe in plan.fallback] == ["subtitle-imprecise", "description-imprecise"]
    assert not any(probe.precise for probe in plan.fallback)


def test_probe_plan_skips_missing_fields() -> None:
    plan = build_probe_plan(RecordingMetadata(title="Sherlock"))

    assert plan.leading == ()
    assert plan.fallback == ()
