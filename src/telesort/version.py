"""Version detection for installed and source checkouts."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# Fallback version when running from an uninstalled source tree
_FALLBACK_VERSION = "0.4.0"


def get_version() -> str:
    try:
        return version("telesort")
    except PackageNotFoundError:
        return _FALLBACK_VERSION


__version__ = get_version()
