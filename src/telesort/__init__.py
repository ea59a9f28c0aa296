"""Telesort core package.

The telesort package is organized into focused modules:

- **matcher**: The episode-identification engine (probes, exact matching,
  edit-distance scoring, and the decision policy)
- **catalog** / **tvdb**: Episode listings from TheTVDB with an on-disk cache
- **metadata_reader**: Recording metadata from sidecars or ffprobe tags
- **processor**: Batch orchestration: discover, identify, transfer, report
- **destination_builder**: Destination paths from templates
- **undo**: Per-run log of file operations and its reverse replay
- **run_summary**: Run recaps and detailed summaries

The main entry point for file processing is the ``Processor`` class.
"""

from .processor import Processor
from .version import __version__

__all__ = [
    "__version__",
    "Processor",
]
