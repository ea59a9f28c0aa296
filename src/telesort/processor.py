from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.progress import Progress

from .catalog import EpisodeCatalog
from .config import AppConfig, SeriesConfig
from .destination_builder import (
    DestinationError,
    build_destination,
    build_match_context,
    format_relative_destination,
    templates_for,
)
from .file_discovery import gather_source_files
from .logging_utils import render_fields_block
from .matcher import EpisodeMatcher, MatchDecision, MatchState, SeriesResolution, resolve_series
from .matcher.core import Disambiguator
from .metadata_reader import MetadataUnavailable, read_recording_metadata
from .models import ProcessingStats, RecordingMetadata, Series
from .run_summary import has_detailed_activity, log_detailed_summary, log_run_recap
from .tvdb.client import TheTVDBClient
from .undo import UndoLog
from .utils import ensure_directory, transfer_file

LOGGER = logging.getLogger(__name__)

MetadataReader = Callable[[Path], RecordingMetadata]


@dataclass
class FileIdentification:
    source: Path
    metadata: RecordingMetadata
    resolution: SeriesResolution
    decision: MatchDecision
    series: Series | None = None
    destination: Path | None = None


class Processor:
    def __init__(
        self,
        config: AppConfig,
        *,
        catalog: EpisodeCatalog | None = None,
        disambiguator: Disambiguator | None = None,
        metadata_reader: MetadataReader = read_recording_metadata,
    ) -> None:
        self.config = config
        settings = config.settings
        if not settings.dry_run:
            ensure_directory(settings.cache_dir)

        self._client: TheTVDBClient | None = None
        if catalog is None:
            if not settings.tvdb.api_key:
                LOGGER.warning(
                    self._format_log(
                        "TheTVDB API Key Missing",
                        {"Setting": "settings.tvdb.api_key", "Effect": "every recording will be unmatched"},
                    )
                )
            self._client = TheTVDBClient(
                settings.cache_dir,
                api_key=settings.tvdb.api_key,
                pin=settings.tvdb.pin,
                base_url=settings.tvdb.base_url,
                ttl_hours=settings.tvdb.ttl_hours,
                timeout=settings.tvdb.timeout,
            )
            catalog = EpisodeCatalog(self._client)
        self.catalog = catalog

        if settings.prompts_operator and disambiguator is None:
            from .prompt import ConsoleDisambiguator

            disambiguator = ConsoleDisambiguator()
        self.matcher = EpisodeMatcher(
            interactive=settings.prompts_operator,
            disambiguator=disambiguator if settings.prompts_operator else None,
        )
        self.metadata_reader = metadata_reader

    @staticmethod
    def _format_log(event: str, fields: Mapping[str, object] | None = None) -> str:
        return render_fields_block(event, fields or {}, pad_top=True)

    @staticmethod
    def _format_inline_log(event: str, fields: Mapping[str, object] | None = None) -> str:
        return render_fields_block(event, fields or {}, pad_top=False)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> Processor:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _gather_source_files(self, stats: ProcessingStats | None = None) -> Iterable[Path]:
        settings = self.config.settings
        return gather_source_files(
            settings.source_dir,
            settings.source_extensions,
            stats,
            exclude=settings.unmatched_dir,
        )

    def process_all(self) -> ProcessingStats:
        settings = self.config.settings
        stats = ProcessingStats()
        run_started = time.perf_counter()
        undo_log = None if settings.dry_run else UndoLog.for_run(settings.cache_dir)

        source_files = list(self._gather_source_files(stats))
        LOGGER.debug(self._format_log("Discovered Recordings", {"Total": len(source_files)}))

        # Prompts and the progress bar would fight over the terminal; unattended runs have none
        show_progress = LOGGER.isEnabledFor(logging.INFO) and not (self.matcher.interactive or settings.unattended)
        with Progress(disable=not show_progress) as progress:
            task_id = progress.add_task("Processing", total=len(source_files))
            for source_path in source_files:
                self._process_single_file(source_path, stats, undo_log)
                progress.advance(task_id, 1)

        if stats.errors:
            for error in stats.errors:
                LOGGER.error(self._format_log("Processing Error", {"Detail": error}))

        if has_detailed_activity(stats) and (stats.errors or LOGGER.isEnabledFor(logging.DEBUG)):
            log_detailed_summary(stats, verbose=LOGGER.isEnabledFor(logging.DEBUG))

        duration = time.perf_counter() - run_started
        log_run_recap(
            stats,
            duration,
            dry_run=settings.dry_run,
            undo_log=undo_log.path if undo_log is not None and undo_log.entries else None,
        )
        return stats

    def identify_file(self, source_path: Path, *, trace: dict[str, Any] | None = None) -> FileIdentification:
        """Identify one recording without touching the file system.

        Raises:
            MetadataUnavailable: If the recording's metadata cannot be read
            DestinationError: If the destination cannot be rendered or escapes
                ``destination_dir``
        """
        metadata = self.metadata_reader(source_path)
        resolution = resolve_series(metadata.title, self.config.series)
        if trace is not None:
            trace.update(
                {
                    "source": str(source_path),
                    "title": metadata.title,
                    "subtitle": metadata.subtitle,
                    "description": metadata.description,
                }
            )

        if not resolution.resolved:
            decision = self._series_decision(metadata, resolution)
            if trace is not None:
                trace.update({"state": decision.state.value, "method": decision.method, "reason": decision.reason})
            return FileIdentification(source_path, metadata, resolution, decision)

        series_config = resolution.series
        if series_config is None:
            return FileIdentification(source_path, metadata, resolution, self._series_decision(metadata, resolution))
        series = self.catalog.load_series(series_config.id, series_config.language)
        scoring = None
        episode_count = 0
        if series is not None:
            scoring = self.catalog.reset_scores(series)
            episode_count = len(self.catalog.all_episodes(series))
            LOGGER.debug(
                self._format_inline_log(
                    "Series Loaded", {"Source": source_path.name, "Series": series.name, "Episodes": episode_count}
                )
            )
        if trace is not None:
            trace["series"] = {"id": series_config.id, "name": series_config.name, "episodes": episode_count}

        decision = self.matcher.identify(
            metadata,
            series_config,
            series,
            title_remainder=resolution.title_remainder,
            scoring=scoring,
            label=source_path.name,
            trace=trace,
        )

        destination = None
        if decision.is_resolved:
            destination = self._build_destination(source_path, decision, series_config, series, metadata)
        return FileIdentification(source_path, metadata, resolution, decision, series, destination)

    @staticmethod
    def _series_decision(metadata: RecordingMetadata, resolution: SeriesResolution) -> MatchDecision:
        if resolution.ambiguous:
            names = ", ".join(f"{entry.name} ({entry.id})" for entry in resolution.ambiguous)
            return MatchDecision(
                state=MatchState.RESOLVED_AMBIGUOUS,
                method="series",
                reason=f"Title '{metadata.title}' matches several configured series: {names}",
            )
        return MatchDecision(
            state=MatchState.EXHAUSTED,
            method="series",
            reason=f"Title '{metadata.title}' does not match any configured series",
        )

    def _build_destination(
        self,
        source_path: Path,
        decision: MatchDecision,
        series_config: SeriesConfig,
        series: Series | None,
        metadata: RecordingMetadata,
    ) -> Path:
        settings = self.config.settings
        context = build_match_context(source_path, decision, series_config, series, metadata)
        return build_destination(context, templates_for(series_config, settings), settings.destination_dir)

    def _process_single_file(self, source_path: Path, stats: ProcessingStats, undo_log: UndoLog | None) -> None:
        try:
            identification = self.identify_file(source_path)
        except MetadataUnavailable as exc:
            LOGGER.warning(self._format_log("Metadata Unavailable", {"Source": source_path, "Error": exc}))
            stats.register_failed(f"{source_path.name}: metadata unavailable - {exc}")
            return
        except DestinationError as exc:
            LOGGER.error(self._format_log("Unsafe Destination", {"Source": source_path, "Error": exc}))
            stats.register_failed(f"{source_path.name}: unsafe destination - {exc}")
            return
        except OSError as exc:
            LOGGER.error(self._format_log("Recording Unreadable", {"Source": source_path, "Error": exc}))
            stats.register_failed(f"{source_path.name}: {exc}")
            return

        decision = identification.decision
        try:
            if decision.is_resolved and identification.destination is not None:
                self._handle_match(identification, stats, undo_log)
            elif decision.state is MatchState.RESOLVED_AMBIGUOUS:
                self._log_unresolved("Recording Ambiguous", identification)
                self._relocate_unmatched(source_path, undo_log)
                stats.register_ambiguous(f"{source_path.name}: {decision.reason}")
            else:
                self._log_unresolved("Recording Unmatched", identification)
                self._relocate_unmatched(source_path, undo_log)
                stats.register_unmatched(f"{source_path.name}: {decision.reason}")
        except OSError as exc:
            LOGGER.error(self._format_log("File Operation Failed", {"Source": source_path, "Error": exc}))
            stats.register_failed(f"{source_path.name}: {exc}")

    def _handle_match(
        self,
        identification: FileIdentification,
        stats: ProcessingStats,
        undo_log: UndoLog | None,
    ) -> None:
        settings = self.config.settings
        source_path = identification.source
        destination = identification.destination
        if destination is None:
            return
        decision = identification.decision
        fields = {
            "Source": source_path.name,
            "Series": identification.resolution.series.name if identification.resolution.series else "",
            "Episode": decision.episode_code,
            "Title": " & ".join(decision.episode_names),
            "Method": decision.method,
            "Destination": format_relative_destination(destination, settings.destination_dir),
        }

        if settings.dry_run:
            LOGGER.info(self._format_log("Dry-Run: Recording Matched", {**fields, "Action": settings.link_mode}))
            stats.register_matched(destination)
            return

        result = transfer_file(source_path, destination, settings.link_mode)
        if not result.created:
            LOGGER.warning(self._format_log("Transfer Skipped", {**fields, "Reason": result.reason}))
            stats.register_failed(f"{source_path.name}: {result.reason} ({destination})")
            return

        if undo_log is not None:
            undo_log.record(result.mode, source_path, destination)
        LOGGER.info(self._format_log("Recording Matched", {**fields, "Action": result.mode}))
        stats.register_matched(destination)

    def _log_unresolved(self, event: str, identification: FileIdentification) -> None:
        decision = identification.decision
        fields: dict[str, object] = {
            "Source": identification.source.name,
            "Title": identification.metadata.title,
            "Subtitle": identification.metadata.subtitle or "(none)",
            "Method": decision.method or "(none)",
            "Reason": decision.reason,
        }
        if decision.candidates:
            fields["Candidates"] = [candidate.describe() for candidate in decision.candidates]
        LOGGER.warning(self._format_log(event, fields))

    def _relocate_unmatched(self, source_path: Path, undo_log: UndoLog | None) -> None:
        settings = self.config.settings
        if not settings.move_unmatched or settings.unmatched_dir is None:
            return

        destination = settings.unmatched_dir / source_path.name
        if settings.dry_run:
            LOGGER.info(self._format_inline_log("Dry-Run: Would Move Unmatched", {"Destination": destination}))
            return

        result = transfer_file(source_path, destination, "move")
        if not result.created:
            LOGGER.warning(
                self._format_log(
                    "Unmatched Move Skipped",
                    {"Source": source_path, "Destination": destination, "Reason": result.reason},
                )
            )
            return
        if undo_log is not None:
            undo_log.record("move", source_path, destination)
        LOGGER.debug(self._format_inline_log("Moved Unmatched Recording", {"Destination": destination}))
