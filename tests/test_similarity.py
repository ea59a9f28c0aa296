from __future__ import annotations

import pytest

from telesort.matcher.similarity import distance, normalize_case


def test_distance_to_itself_is_zero() -> None:
    assert distance("The Blind Banker", "The Blind Banker") == 0


@pytest.mark.parametrize(
    ("a", "b"),
    [
        ("kitten", "sitting"),
        ("Pilot", "The Pilot"),
        ("", "abc"),
        ("flaw", "lawn"),
    ],
)
def test_distance_is_symmetric(a: str, b: str) -> None:
    assert distance(a, b) == distance(b, a)


def test_distance_from_empty_string_is_length() -> None:
    assert distance("", "Sherlock") == len("Sherlock")
    assert distance("Sherlock", "") == len("Sherlock")
    assert distance("", "") == 0


def test_classic_kitten_sitting() -> None:
    assert distance("kitten", "sitting") == 3


def test_case_sensitive_by_default() -> None:
    assert distance("Pilot", "pilot") == 1


def test_case_insensitive_lowercases_both_sides() -> None:
    assert distance("PILOT", "pilot", case_insensitive=True) == 0
    assert distance("The Great Game", "the great gme", case_insensitive=True) == 1


def test_normalize_case_is_plain_lower() -> None:
    assert normalize_case("ÉCOLE Street") == "école street"
