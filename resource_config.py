import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple


DEFAULT_OPTIONS: Dict[str, Any] = {
    "logExtension": "gz",
    "report": "report.csv",
    "logSource": "",
    "fiterByVerb": ["GET", "POST"],
    "ignoreResource": [],
}

KNOWN_OPTIONS = {"logs", *DEFAULT_OPTIONS}


class ResourceReportError(Exception):
    """Base class for every error the report pipeline raises."""


class InvalidConfiguration(ResourceReportError):
    pass


class SourceNotFound(ResourceReportError):
    pass


class CorruptArchive(ResourceReportError):
    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot read {self.path}: {reason}")


class ReportWriteFailed(ResourceReportError):
    pass


@dataclass(frozen=True)
class ReportConfig:
    logs: str
    log_extension: str
    report: str
    log_source: str
    verbs: Tuple[str, ...]
    ignore: Tuple[str, ...]


def has_extension(name: str, ext: str) -> bool:
    """True when the text after the last dot of ``name`` equals ``ext``."""
    base = Path(name).name
    return "." in base and base[base.rfind(".") + 1:] == ext


def _string_list(options: Dict[str, Any], key: str, allow_empty: bool) -> Tuple[str, ...]:
    value = options[key]
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise InvalidConfiguration(f'"{key}" must be a list of strings')
    if not allow_empty and not value:
        raise InvalidConfiguration(f'"{key}" must contain at least one entry')
    if any(not item.strip() for item in value):
        raise InvalidConfiguration(f'"{key}" must not contain blank entries')
    return tuple(value)


def build_config(options: Dict[str, Any]) -> ReportConfig:
    unknown = set(options) - KNOWN_OPTIONS
    if unknown:
        raise InvalidConfiguration(f"Unknown option(s): {', '.join(sorted(unknown))}")

    merged = {**DEFAULT_OPTIONS, **options}

    logs = merged.get("logs")
    if not isinstance(logs, (str, Path)) or str(logs).strip() == "":
        raise InvalidConfiguration('Options missing "logs" parameter')

    report = merged["report"]
    if not isinstance(report, (str, Path)) or not has_extension(str(report), "csv"):
        raise InvalidConfiguration('Report must be of type "csv"')

    for key in ("logExtension", "logSource"):
        if not isinstance(merged[key], str):
            raise InvalidConfiguration(f'"{key}" must be a string')

    return ReportConfig(
        logs=str(logs),
        log_extension=merged["logExtension"].lstrip("."),
        report=str(report),
        log_source=merged["logSource"],
        verbs=_string_list(merged, "fiterByVerb", allow_empty=False),
        ignore=_string_list(merged, "ignoreResource", allow_empty=True),
    )


def load_options_file(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise InvalidConfiguration(f"Cannot load config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"Config file must contain a JSON object: {path}")
    return data


def add_option_arguments(parser) -> None:
    parser.add_argument("--logs", help="Directory holding the access log files.")
    parser.add_argument("--log-extension", dest="logExtension", help='Only read files with this extension ("" for all).')
    parser.add_argument("--report", help="Where to write the CSV report (must end in .csv).")
    parser.add_argument("--log-source", dest="logSource", help="Prefix prepended to every reported resource.")
    parser.add_argument("--verb", dest="fiterByVerb", action="append", help="HTTP verb to count (repeatable).")
    parser.add_argument("--ignore", dest="ignoreResource", action="append", help="Resource prefix to skip (repeatable).")
    parser.add_argument("--config", type=Path, help="JSON file of options; command-line flags override it.")


def collect_options(args) -> Dict[str, Any]:
    """Options from ``--config`` overlaid with the flags actually given."""
    options = load_options_file(args.config) if args.config else {}
    for key in sorted(KNOWN_OPTIONS):
        value = getattr(args, key, None)
        if value is not None:
            options[key] = value
    return options
