import gzip
import logging
import re
import zlib
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from resource_config import CorruptArchive, InvalidConfiguration, SourceNotFound, has_extension

logger = logging.getLogger(__name__)

# Request part of the common log format: %h %l %u %t "%r" %>s %b
REQUEST_TEMPLATE = r'"(?:{verbs}) {guard}(?P<resource>.+) HTTP.+"'


def compile_filter(verbs: Sequence[str], ignore: Sequence[str] = ()) -> "re.Pattern[str]":
    """Build the resource-extraction pattern shared by every file of a run.

    Verbs match exactly and case-sensitively. Resources starting with any
    ``ignore`` entry are rejected by a negative lookahead. Both lists are
    embedded as escaped literals, never as pattern syntax.
    """
    if not verbs:
        raise InvalidConfiguration("Verb filter is empty, no request line could ever match")
    if any(not verb.strip() for verb in verbs):
        raise InvalidConfiguration("Verb filter must not contain blank verbs")
    if any(not entry for entry in ignore):
        raise InvalidConfiguration("Ignore list must not contain empty entries, they would exclude every resource")

    verb_group = "|".join(re.escape(verb) for verb in verbs)
    guard = ""
    if ignore:
        guard = "(?!" + "|".join(re.escape(entry) for entry in ignore) + ")"
    return re.compile(REQUEST_TEMPLATE.format(verbs=verb_group, guard=guard))


def list_log_files(directory, extension: str = "") -> List[Path]:
    root = Path(directory)
    if not root.is_dir():
        raise SourceNotFound(f'Source directory not found, "{directory}" not found')
    try:
        entries = sorted(root.iterdir())
    except OSError as exc:
        raise SourceNotFound(f'Source directory "{directory}" is not readable: {exc}') from exc

    return [
        entry
        for entry in entries
        if entry.is_file() and (not extension or has_extension(entry.name, extension))
    ]


def _open_binary(path: Path):
    if has_extension(path.name, "gz"):
        return gzip.open(path, "rb")
    return open(path, "rb")


def iter_raw_lines(path) -> Iterator[bytes]:
    """Yield raw lines of one file without their line terminators.

    Gzip files are decompressed on the fly. Any read or decompression
    fault is raised as ``CorruptArchive`` naming the file.
    """
    path = Path(path)
    try:
        with _open_binary(path) as handle:
            for raw in handle:
                yield raw.rstrip(b"\r\n")
    except (OSError, EOFError, zlib.error) as exc:
        raise CorruptArchive(path, exc) from exc


def decode_line(raw: bytes) -> Optional[str]:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def iter_log_lines(path, on_skip: Optional[Callable[[bytes], None]] = None) -> Iterator[str]:
    # undecodable lines are dropped: they can never yield a resource
    for raw in iter_raw_lines(path):
        line = decode_line(raw)
        if line is None:
            if on_skip is not None:
                on_skip(raw)
            continue
        yield line


def extract_resource(line: str, pattern: "re.Pattern[str]") -> Optional[str]:
    match = pattern.search(line)
    if not match:
        return None
    return match.group("resource")


def new_stats() -> Dict[str, Any]:
    return {
        "files": 0,
        "lines": 0,
        "matched": 0,
        "skipped": 0,
        "resources": Counter(),
        "failures": [],
    }


def update_stats(stats: Dict[str, Any], resource: str) -> None:
    stats["matched"] += 1
    stats["resources"][resource] += 1


def merge_stats(target: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("files", "lines", "matched", "skipped"):
        target[key] += incoming[key]

    target["resources"].update(incoming["resources"])
    target["failures"].extend(incoming["failures"])
    return target


def drain_stats(stats: Dict[str, Any]) -> Tuple[Tuple[str, int], ...]:
    """Snapshot of the tally as (resource, count) pairs in insertion order.

    Call once every file has been merged; the tally is not touched again.
    """
    return tuple(stats["resources"].items())


def analyze_file(path, pattern: "re.Pattern[str]") -> Dict[str, Any]:
    """Tally one file into its own stats.

    A read fault ends this file only: the counts gathered so far are kept
    and the fault is recorded under ``failures``.
    """
    stats = new_stats()
    stats["files"] = 1

    def skip(raw):
        stats["lines"] += 1
        stats["skipped"] += 1

    try:
        for line in iter_log_lines(path, on_skip=skip):
            stats["lines"] += 1
            resource = extract_resource(line, pattern)
            if resource is None:
                continue
            update_stats(stats, resource)
    except CorruptArchive as exc:
        logger.warning("%s (kept %d matched lines)", exc, stats["matched"])
        stats["failures"].append((exc.path, str(exc.reason)))

    logger.debug("Parsed %s: %d lines, %d matched", path, stats["lines"], stats["matched"])
    return stats


def merge_all(results: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    merged = new_stats()
    for stats in results:
        merge_stats(merged, stats)
    return merged


def partition_files(files: Sequence[Path], shards: int) -> List[List[Path]]:
    """Deal files round-robin into ``shards`` lists."""
    if shards < 1:
        raise ValueError(f"shards must be >= 1 (got {shards})")
    return [list(files[index::shards]) for index in range(shards)]
