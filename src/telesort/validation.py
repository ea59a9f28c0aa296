from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from jsonschema import Draft7Validator
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .utils import TRANSFER_MODES


@dataclass(slots=True)
class ValidationIssue:
    """Represents a single validation problem."""

    severity: str
    path: str
    message: str
    code: str
    fix_suggestion: Optional[str] = None


@dataclass(slots=True)
class ValidationReport:
    """Aggregates validation warnings and errors."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


_DESTINATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "root_template": {"type": "string"},
        "season_dir_template": {"type": "string"},
        "episode_template": {"type": "string"},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "settings": {
            "type": "object",
            "properties": {
                "source_dir": {"type": "string"},
                "destination_dir": {"type": "string"},
                "cache_dir": {"type": "string"},
                "unmatched_dir": {"type": ["string", "null"]},
                "move_unmatched": {"type": "boolean"},
                "dry_run": {"type": "boolean"},
                "link_mode": {"type": "string", "enum": list(TRANSFER_MODES)},
                "interactive": {"type": "boolean"},
                "unattended": {"type": "boolean"},
                "accept_single_best_match": {"type": "boolean"},
                "source_extensions": {"type": "array", "items": {"type": "string"}},
                "destination": _DESTINATION_SCHEMA,
                "tvdb": {
                    "type": "object",
                    "properties": {
                        "api_key": {"type": ["string", "null"]},
                        "pin": {"type": ["string", "null"]},
                        "base_url": {"type": "string"},
                        "ttl_hours": {"type": "integer", "minimum": 0},
                        "timeout": {"type": "number", "exclusiveMinimum": 0},
                    },
                    "additionalProperties": False,
                },
            },
            "required": ["source_dir", "destination_dir"],
            "additionalProperties": True,
        },
        "series": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer", "minimum": 1},
                    "name": {"type": "string", "minLength": 1},
                    "titles": {"type": "array", "items": {"type": "string"}},
                    "language": {"type": "string", "pattern": "^[a-z]{3}$"},
                    "allow_broadcast_date_match": {"type": "boolean"},
                    "allow_recording_date_match": {"type": "boolean"},
                    "accept_single_best_match": {"type": "boolean"},
                    "destination": _DESTINATION_SCHEMA,
                },
                "required": ["id", "name"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["settings"],
}


FixSuggestionGenerator = Callable[[str, str], Optional[str]]


def _suggest_schema_fix(path: str, message: str) -> Optional[str]:
    if "is a required property" in message:
        return "Add the required field to your configuration"
    if "Additional properties are not allowed" in message:
        return "Remove the unexpected key or check it for typos"
    if "is not of type" in message:
        return "Change this field to the expected type"
    if "is not one of" in message:
        return "Use one of the allowed values listed in the message"
    return "Review the configuration schema requirements for this field"


FIX_SUGGESTION_REGISTRY: Dict[str, FixSuggestionGenerator] = {
    "schema": _suggest_schema_fix,
    "duplicate-id": lambda path, message: "Each series must use a distinct TheTVDB id",
    "duplicate-title": lambda path, message: (
        "Recordings with this title will be reported as ambiguous; remove the title from all but one series"
    ),
    "interactive-unattended": lambda path, message: "Disable either 'interactive' or 'unattended'",
    "unmatched-dir": lambda path, message: "Set 'settings.unmatched_dir' or disable 'move_unmatched'",
    "tvdb-api-key": lambda path, message: "Set 'settings.tvdb.api_key', e.g. to ${TVDB_API_KEY}",
}


def get_fix_suggestion(issue: ValidationIssue) -> Optional[str]:
    generator = FIX_SUGGESTION_REGISTRY.get(issue.code)
    if generator:
        return generator(issue.path, issue.message)
    return None


def _add_issue(report: ValidationReport, severity: str, path: str, message: str, code: str) -> None:
    issue = ValidationIssue(severity=severity, path=path, message=message, code=code)
    issue.fix_suggestion = get_fix_suggestion(issue)
    if severity == "error":
        report.errors.append(issue)
    else:
        report.warnings.append(issue)


def _format_jsonschema_path(path: Sequence[Any]) -> str:
    rendered = ""
    for part in path:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}" if rendered else str(part)
    return rendered or "<root>"


def validate_config_data(data: Dict[str, Any]) -> ValidationReport:
    """Validate configuration data against the schema and semantic rules."""
    report = ValidationReport()
    if not isinstance(data, dict):
        _add_issue(report, "error", "<root>", "Configuration must be a mapping", "schema")
        return report

    validator = Draft7Validator(CONFIG_SCHEMA)
    for error in sorted(validator.iter_errors(data), key=lambda exc: list(map(str, exc.absolute_path))):
        _add_issue(report, "error", _format_jsonschema_path(error.absolute_path), error.message, "schema")

    _validate_semantics(data, report)
    return report


def _validate_semantics(data: Dict[str, Any], report: ValidationReport) -> None:
    settings = data.get("settings") or {}
    if isinstance(settings, dict):
        if settings.get("interactive") is True and settings.get("unattended") is True:
            _add_issue(
                report,
                "error",
                "settings.interactive",
                "'interactive' and 'unattended' cannot both be enabled",
                "interactive-unattended",
            )
        if settings.get("move_unmatched") is True and not settings.get("unmatched_dir"):
            _add_issue(
                report,
                "error",
                "settings.move_unmatched",
                "'move_unmatched' requires 'unmatched_dir'",
                "unmatched-dir",
            )
        tvdb = settings.get("tvdb") or {}
        if isinstance(tvdb, dict) and not tvdb.get("api_key"):
            _add_issue(
                report,
                "warning",
                "settings.tvdb.api_key",
                "No TheTVDB API key configured; episode listings cannot be fetched",
                "tvdb-api-key",
            )

    series = data.get("series") or []
    if not isinstance(series, list):
        return

    seen_ids: Dict[Any, int] = {}
    seen_titles: Dict[str, int] = {}
    for index, entry in enumerate(series):
        if not isinstance(entry, dict):
            continue
        series_id = entry.get("id")
        if series_id is not None:
            if series_id in seen_ids:
                _add_issue(
                    report,
                    "error",
                    f"series[{index}].id",
                    f"Duplicate series id {series_id} also defined at index {seen_ids[series_id]}",
                    "duplicate-id",
                )
            else:
                seen_ids[series_id] = index

        titles = entry.get("titles") or [entry.get("name")]
        if not isinstance(titles, list):
            continue
        for title in {" ".join(str(t).split()).casefold() for t in titles if isinstance(t, str) and t.strip()}:
            if title in seen_titles and seen_titles[title] != index:
                _add_issue(
                    report,
                    "warning",
                    f"series[{index}].titles",
                    f"Title '{title}' is also claimed by series at index {seen_titles[title]}",
                    "duplicate-title",
                )
            else:
                seen_titles.setdefault(title, index)


def print_validation_report(report: ValidationReport, console: Console | None = None) -> None:
    console = console or Console()
    issues = report.errors + report.warnings
    if not issues:
        console.print("[green]Configuration is valid.[/green]")
        return

    table = Table(title="Configuration Issues", show_header=True, header_style="bold")
    table.add_column("Severity", no_wrap=True)
    table.add_column("Path", style="cyan")
    table.add_column("Message")
    table.add_column("Suggestion")
    for issue in issues:
        style = "red" if issue.severity == "error" else "yellow"
        table.add_row(
            f"[{style}]{issue.severity}[/{style}]",
            escape(issue.path),
            escape(issue.message),
            escape(issue.fix_suggestion or ""),
        )
    console.print(table)
    console.print(f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)")


__all__ = [
    "CONFIG_SCHEMA",
    "FIX_SUGGESTION_REGISTRY",
    "ValidationIssue",
    "ValidationReport",
    "get_fix_suggestion",
    "print_validation_report",
    "validate_config_data",
]
