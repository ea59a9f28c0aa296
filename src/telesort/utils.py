from __future__ import annotations

import errno
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import yaml

_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9\-_. ()\[\]&',!]+")


def sanitize_component(component: str, replacement: str = "_") -> str:
    """Make one path component safe; never returns ``.``, ``..`` or an empty string."""
    cleaned = _UNSAFE_RUN.sub(replacement, component.strip())
    if replacement:
        cleaned = re.sub(f"(?:{re.escape(replacement)}){{2,}}", replacement, cleaned)
        cleaned = cleaned.strip(replacement)
    cleaned = cleaned.strip()
    return "untitled" if cleaned in {"", ".", ".."} else cleaned


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def expand_env(value: Any) -> Any:
    """Expand ``$VAR`` and ``${VAR}`` in every string of a loaded YAML tree."""
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return list(map(expand_env, value))
    return os.path.expandvars(value) if isinstance(value, str) else value


def load_yaml_file(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    return expand_env(yaml.safe_load(text) or {})


@dataclass
class TransferResult:
    created: bool
    mode: str
    reason: Optional[str] = None


def _move(source: Path, destination: Path) -> None:
    shutil.move(str(source), str(destination))


def _hardlink(source: Path, destination: Path) -> None:
    os.link(source, destination)


def _symlink(source: Path, destination: Path) -> None:
    destination.symlink_to(source)


_TRANSFERS: Dict[str, Callable[[Path, Path], Any]] = {
    "move": _move,
    "copy": shutil.copy2,
    "hardlink": _hardlink,
    "symlink": _symlink,
}

TRANSFER_MODES = tuple(_TRANSFERS)


def transfer_file(source: Path, destination: Path, mode: str = "move") -> TransferResult:
    """Place ``source`` at ``destination`` without ever overwriting an existing file.

    A hardlink across file systems (or where links are forbidden) degrades
    to a copy; the returned ``mode`` reports what actually happened.
    """
    operation = _TRANSFERS.get(mode)
    if operation is None:
        raise ValueError(f"Unsupported transfer mode: {mode}")

    ensure_directory(destination.parent)
    if destination.exists() or destination.is_symlink():
        return TransferResult(created=False, mode=mode, reason="destination-exists")

    try:
        operation(source, destination)
    except OSError as exc:
        if mode != "hardlink" or exc.errno not in {errno.EXDEV, errno.EPERM}:
            return TransferResult(created=False, mode=mode, reason=str(exc))
        return transfer_file(source, destination, "copy")
    return TransferResult(created=True, mode=mode)


def validate_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
