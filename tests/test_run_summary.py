from __future__ import annotations

import logging
from pathlib import Path

from telesort.models import ProcessingStats
from telesort.run_summary import (
    has_detailed_activity,
    log_detailed_summary,
    log_run_recap,
    summarize_messages,
)


class TestHasDetailedActivity:
    def test_returns_false_for_empty_stats(self) -> None:
        stats = ProcessingStats()
        assert has_detailed_activity(stats) is False

    def test_processed_files_alone_are_not_detailed(self) -> None:
        stats = ProcessingStats(processed=2)
        assert has_detailed_activity(stats) is False

    def test_unmatched_details_are_detailed_activity(self) -> None:
        stats = ProcessingStats()
        stats.register_unmatched("rec.wtv: no match")
        assert has_detailed_activity(stats) is True


class TestSummarizeMessages:
    def test_empty(self) -> None:
        assert summarize_messages([]) == []

    def test_groups_duplicates_by_frequency(self) -> None:
        lines = summarize_messages(["b", "a", "b", "c", "b", "a"])

        assert lines == ["3× b", "2× a", "c"]

    def test_limit_adds_hint(self) -> None:
        lines = summarize_messages([f"msg {index}" for index in range(7)], limit=5)

        assert len(lines) == 6
        assert lines[-1] == "... 2 more (use --verbose for full list)"


def test_detailed_summary_lists_sections(caplog) -> None:
    stats = ProcessingStats()
    stats.register_failed("rec1.wtv: boom")
    stats.register_warning("Source directory missing: /x")
    stats.register_ambiguous("rec2.wtv: two candidates")

    with caplog.at_level(logging.INFO, logger="telesort.run_summary"):
        log_detailed_summary(stats, verbose=True)

    assert "Detailed Summary" in caplog.text
    assert "- rec1.wtv: boom" in caplog.text
    assert "- rec2.wtv: two candidates" in caplog.text


def test_run_recap_reports_counts(caplog) -> None:
    stats = ProcessingStats()
    stats.register_matched(Path("/library/Show/Season 01/ep.wtv"))
    stats.register_unmatched("x")

    with caplog.at_level(logging.INFO, logger="telesort.run_summary"):
        log_run_recap(stats, 1.234, dry_run=True, undo_log=Path("/cache/undo/run.jsonl"))

    text = caplog.text
    assert "Run Recap" in text
    assert "1.23s" in text
    assert "dry-run" in text
    assert "/cache/undo/run.jsonl" in text
    assert "/library/Show/Season 01/ep.wtv" in text
    record = caplog.records[-1]
    assert "Matched" in record.getMessage()
