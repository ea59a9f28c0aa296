from __future__ import annotations

import datetime as dt
from unittest.mock import patch

import pytest
from rich.console import Console

from telesort.matcher.core import Candidate
from telesort.prompt import ConsoleDisambiguator, build_candidate_table, parse_selection


def build_candidates() -> list[Candidate]:
    return [
        Candidate(1, 2, "Holiday Special", dt.date(2010, 8, 1)),
        Candidate(2, 1, "Holiday Special [Extended]", None),
    ]


class TestParseSelection:
    @pytest.mark.parametrize("answer", ["", "  ", "s", "SKIP"])
    def test_skip_answers(self, answer: str) -> None:
        assert parse_selection(answer, 2) is None

    def test_valid_selection(self) -> None:
        assert parse_selection(" 2 ", 2) == 2

    @pytest.mark.parametrize("answer", ["0", "3", "two"])
    def test_invalid_selection(self, answer: str) -> None:
        with pytest.raises(ValueError):
            parse_selection(answer, 2)


def test_candidate_table_escapes_markup() -> None:
    console = Console(record=True, width=120)

    console.print(build_candidate_table("rec[1].wtv", build_candidates()))

    output = console.export_text()
    assert "S01E02" in output
    assert "2010-08-01" in output
    assert "Holiday Special [Extended]" in output


@patch("telesort.prompt.Prompt.ask")
def test_disambiguator_retries_invalid_answers(mock_ask) -> None:
    mock_ask.side_effect = ["7", "2"]
    chooser = ConsoleDisambiguator(Console(record=True, width=120))

    assert chooser("rec.wtv", build_candidates()) == 2
    assert mock_ask.call_count == 2


@patch("telesort.prompt.Prompt.ask")
def test_disambiguator_gives_up(mock_ask) -> None:
    mock_ask.return_value = "nope"
    chooser = ConsoleDisambiguator(Console(record=True, width=120), max_attempts=2)

    assert chooser("rec.wtv", build_candidates()) is None
    assert mock_ask.call_count == 2


def test_disambiguator_without_candidates() -> None:
    assert ConsoleDisambiguator(Console(record=True))("rec.wtv", []) is None
