from __future__ import annotations

import errno
import os

import pytest

from telesort.utils import expand_env, load_yaml_file, sanitize_component, transfer_file, validate_url


def test_sanitize_component_replaces_disallowed_characters() -> None:
    assert sanitize_component("  Who/What: Why?.wtv  ") == "Who_What_ Why_.wtv"
    assert sanitize_component("???") == "untitled"
    assert sanitize_component("Tom & Jerry's (1990) [HD]") == "Tom & Jerry's (1990) [HD]"


def test_sanitize_component_rejects_dot_segments() -> None:
    assert sanitize_component(".") == "untitled"
    assert sanitize_component("..") == "untitled"
    assert sanitize_component("   ") == "untitled"


def test_transfer_file_never_overwrites(tmp_path) -> None:
    source = tmp_path / "source.wtv"
    source.write_text("payload", encoding="utf-8")
    destination = tmp_path / "nested" / "destination.wtv"

    result = transfer_file(source, destination, "copy")
    assert result.created is True
    assert destination.read_text(encoding="utf-8") == "payload"

    second = transfer_file(source, destination, "move")
    assert second.created is False
    assert second.reason == "destination-exists"
    assert source.exists()


@pytest.mark.parametrize("mode", ["move", "hardlink", "symlink"])
def test_transfer_modes(tmp_path, mode: str) -> None:
    source = tmp_path / "source.wtv"
    source.write_text("payload", encoding="utf-8")
    destination = tmp_path / "out" / "dest.wtv"

    result = transfer_file(source, destination, mode)

    assert result.created is True
    assert destination.read_text(encoding="utf-8") == "payload"
    assert source.exists() is (mode != "move")
    assert destination.is_symlink() is (mode == "symlink")


def test_hardlink_falls_back_to_copy_across_devices(tmp_path, monkeypatch) -> None:
    source = tmp_path / "source.wtv"
    source.write_text("payload", encoding="utf-8")

    def cross_device(src, dst):
        raise OSError(errno.EXDEV, os.strerror(errno.EXDEV))

    monkeypatch.setattr("telesort.utils.os.link", cross_device)

    result = transfer_file(source, tmp_path / "dest.wtv", "hardlink")

    assert result.created is True
    assert result.mode == "copy"


def test_transfer_file_rejects_unknown_mode(tmp_path) -> None:
    with pytest.raises(ValueError):
        transfer_file(tmp_path / "a", tmp_path / "b", "teleport")


def test_expand_env_recurses(monkeypatch) -> None:
    monkeypatch.setenv("TELESORT_ROOT", "/srv")

    assert expand_env({"a": ["$TELESORT_ROOT/x", 1], "b": "${TELESORT_ROOT}"}) == {"a": ["/srv/x", 1], "b": "/srv"}


def test_load_yaml_file_handles_empty_documents(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_yaml_file(path) == {}


def test_validate_url() -> None:
    assert validate_url("https://api4.thetvdb.com/v4") is True
    assert validate_url("ftp://example.com") is False
    assert validate_url("") is False
    assert validate_url(None) is False
