"""Plain-text log blocks and handler setup.

Every multi-line log event is a titled block of aligned fields, optionally
followed by bulleted sections::

    Recording Matched
    -----------------
        Source     : Sherlock_2010-07-25.wtv
        Episode    : S01E01

Blocks carry no markup so the console and the log file read the same.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from textwrap import TextWrapper
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

INDENT = "    "
BLOCK_WIDTH = 110
MAX_LABEL_WIDTH = 22
MIN_LABEL_WIDTH = 8
LOG_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

Fields = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, enum.Enum):
        return _stringify(value.value)
    if isinstance(value, dt.date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


def _wrap_text(text: str, width: int) -> list[str]:
    if not text:
        return [""]
    # Paths and episode codes read badly when split at hyphens
    wrapper = TextWrapper(width=width, break_on_hyphens=False)
    return [line for raw in text.splitlines() for line in (wrapper.wrap(raw) or [""])]


@dataclass
class LogBlockBuilder:
    """Accumulates the body of one log block; the header is added on render."""

    title: str
    pad_top: bool = True
    wrap_width: int = BLOCK_WIDTH
    max_label_width: int = MAX_LABEL_WIDTH
    indent: str = INDENT
    _body: list[str] = field(default_factory=list, init=False, repr=False)

    def _hang(self, lead: str, gutter: str, text: str, width: int) -> None:
        first, *rest = _wrap_text(text, width)
        self._body.append(lead + first)
        self._body.extend(gutter + line for line in rest)

    def add_fields(self, fields: Fields | None) -> LogBlockBuilder:
        items = list(fields.items()) if isinstance(fields, Mapping) else list(fields or ())
        if not items:
            return self

        longest = max(len(str(label)) for label, _ in items)
        label_width = max(MIN_LABEL_WIDTH, min(longest, self.max_label_width))
        value_width = max(self.wrap_width - len(self.indent) - label_width - 4, 32)
        gutter = self.indent + " " * (label_width + 2)
        for label, value in items:
            lead = f"{self.indent}{str(label).ljust(label_width)}: "
            self._hang(lead, gutter, _stringify(value), value_width)
        return self

    def add_section(self, heading: str, items: Iterable[object], *, empty_label: str = "(none)") -> LogBlockBuilder:
        if not self._body or self._body[-1]:
            self._body.append("")
        self._body.append(f"{heading}:")

        entries = [_stringify(item) for item in items if item is not None]
        if not entries:
            self._body.append(self.indent + empty_label)
            return self

        width = max(self.wrap_width - len(self.indent) - 2, 24)
        for entry in entries:
            self._hang(self.indent + "- ", self.indent + "  ", entry, width)
        return self

    def render(self) -> str:
        header = ["", self.title] if self.pad_top else [self.title]
        return "\n".join([*header, "-" * len(self.title), *self._body]).rstrip()


def render_fields_block(title: str, fields: Fields, *, pad_top: bool = True) -> str:
    return LogBlockBuilder(title, pad_top=pad_top).add_fields(fields).render()


def render_section_block(
    title: str,
    sections: Sequence[tuple[str, Sequence[object]]],
    *,
    pad_top: bool = True,
) -> str:
    builder = LogBlockBuilder(title, pad_top=pad_top)
    for heading, items in sections:
        builder.add_section(heading, items)
    return builder.render()


def _console_handler(level: int, console: Console | None) -> logging.Handler:
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT))
    return handler


def configure_logging(
    level: int = logging.INFO,
    *,
    console_level: int | None = None,
    log_file: Path | None = None,
    console: Console | None = None,
) -> None:
    """Route log records to a rich console handler and, optionally, a file.

    Handlers installed by an earlier call are removed first, so the CLI can
    call this once per command.
    """
    root = logging.getLogger()
    for stale in list(root.handlers):
        root.removeHandler(stale)
        stale.close()

    handlers = [_console_handler(level if console_level is None else console_level, console)]
    if log_file is not None:
        handlers.append(_file_handler(log_file, level))
    for handler in handlers:
        root.addHandler(handler)

    root.setLevel(min(handler.level for handler in handlers))
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
