from __future__ import annotations

import logging

from rich.logging import RichHandler

from telesort.logging_utils import (
    LogBlockBuilder,
    _stringify,
    _wrap_text,
    configure_logging,
    render_fields_block,
    render_section_block,
)


class TestHelpers:
    def test_stringify(self) -> None:
        assert _stringify(None) == ""
        assert _stringify("  padded ") == "padded"
        assert _stringify(["a", 1, None]) == "a, 1, "
        assert _stringify(3) == "3"

    def test_wrap_text(self) -> None:
        assert _wrap_text("", 10) == [""]
        assert _wrap_text("one two three four", 9) == ["one two", "three", "four"]


class TestLogBlockBuilder:
    def test_title_and_underline(self) -> None:
        builder = LogBlockBuilder("Recording Matched", pad_top=False)

        assert builder.render() == "Recording Matched\n-----------------"

    def test_pad_top_adds_blank_line(self) -> None:
        assert LogBlockBuilder("Title").render().startswith("\nTitle")

    def test_fields_are_aligned(self) -> None:
        block = render_fields_block("Event", {"Source": "a.wtv", "Destination": "b"}, pad_top=False)

        lines = block.splitlines()
        assert lines[2] == "    Source     : a.wtv"
        assert lines[3] == "    Destination: b"

    def test_long_values_wrap(self) -> None:
        builder = LogBlockBuilder("Event", wrap_width=50, pad_top=False)
        builder.add_fields({"Reason": "word " * 20})

        lines = builder.render().splitlines()
        assert len(lines) > 3
        assert lines[3].startswith("    " + " " * 8 + "  ")

    def test_empty_section(self) -> None:
        block = render_section_block("Summary", [("Errors", [])], pad_top=False)

        assert block.splitlines()[-2:] == ["Errors:", "    (none)"]

    def test_section_bullets(self) -> None:
        builder = LogBlockBuilder("Summary", pad_top=False)
        builder.add_section("Warnings", ["first", None, "second"])

        assert builder.render().splitlines()[-2:] == ["    - first", "    - second"]


def test_configure_logging_installs_handlers(tmp_path) -> None:
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    log_file = tmp_path / "logs" / "telesort.log"
    try:
        configure_logging(logging.DEBUG, console_level=logging.WARNING, log_file=log_file)

        handlers = root.handlers
        assert isinstance(handlers[0], RichHandler)
        assert handlers[0].level == logging.WARNING
        assert isinstance(handlers[1], logging.FileHandler)
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

        logging.getLogger("telesort.test").debug("written to file")
        handlers[1].flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
