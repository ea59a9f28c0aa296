"""Operator prompt for choosing between candidate episodes."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from .matcher.core import Candidate

LOGGER = logging.getLogger(__name__)

SKIP_ANSWERS = {"", "s", "skip"}


def build_candidate_table(label: str, candidates: Sequence[Candidate]) -> Table:
    table = Table(title=f"Candidates for {escape(label)}", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Episode", no_wrap=True)
    table.add_column("Name")
    table.add_column("Aired", no_wrap=True)
    for index, candidate in enumerate(candidates, start=1):
        table.add_row(
            str(index),
            f"S{candidate.season:02d}E{candidate.episode:02d}",
            escape(candidate.name) or "(untitled)",
            candidate.aired.isoformat() if candidate.aired else "",
        )
    return table


def parse_selection(answer: str, count: int) -> Optional[int]:
    """Turn an operator answer into a 1-based selection.

    Blank, ``s`` and ``skip`` skip the recording. Anything that is not a
    number in ``1..count`` raises ValueError.
    """
    cleaned = answer.strip().lower()
    if cleaned in SKIP_ANSWERS:
        return None
    selection = int(cleaned)
    if not 1 <= selection <= count:
        raise ValueError(f"selection must be between 1 and {count}")
    return selection


class ConsoleDisambiguator:
    """Asks the operator on the console which candidate a recording is."""

    def __init__(self, console: Console | None = None, *, max_attempts: int = 3) -> None:
        self.console = console or Console()
        self.max_attempts = max_attempts

    def __call__(self, label: str, candidates: Sequence[Candidate]) -> Optional[int]:
        if not candidates:
            return None
        self.console.print(build_candidate_table(label, candidates))

        for _ in range(self.max_attempts):
            answer = Prompt.ask(
                f"Select 1-{len(candidates)} or press Enter to skip",
                console=self.console,
                default="",
                show_default=False,
            )
            try:
                return parse_selection(answer, len(candidates))
            except ValueError:
                self.console.print(f"[red]Invalid selection {escape(repr(answer))}[/red]")

        LOGGER.warning("No valid selection for %s after %d attempts; skipping", label, self.max_attempts)
        return None
