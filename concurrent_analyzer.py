import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from resource_config import ReportConfig, ResourceReportError, add_option_arguments, build_config, collect_options
from resource_core import analyze_file, compile_filter, drain_stats, list_log_files, merge_all, new_stats
from resource_report import build_plot, rank_resources, write_report

logger = logging.getLogger(__name__)


def analyze_files(files: Sequence[Path], pattern, workers: Optional[int] = None) -> Dict[str, Any]:
    """Run one unit per file concurrently and merge their stats once all are done."""
    if not files:
        return new_stats()

    max_workers = min(workers, len(files)) if workers else len(files)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(analyze_file, path, pattern) for path in files]
        # merge in discovery order so ties in the report are stable between runs
        results = [future.result() for future in futures]
    return merge_all(results)


def summarize_run(stats: Dict[str, Any], report_path: Path, plot_path: Optional[Path]) -> Dict[str, Any]:
    return {
        "report": report_path,
        "plot": plot_path,
        "files": stats["files"],
        "lines": stats["lines"],
        "matched": stats["matched"],
        "skipped": stats["skipped"],
        "resources": len(stats["resources"]),
        "failures": list(stats["failures"]),
    }


def run(config: ReportConfig, workers: Optional[int] = None, plot: Optional[Path] = None, top_k: int = 10):
    pattern = compile_filter(config.verbs, config.ignore)
    files = list_log_files(config.logs, config.log_extension)

    logger.info("Processing %d file%s", len(files), "" if len(files) == 1 else "s")
    stats = analyze_files(files, pattern, workers)
    logger.info(
        "Parsed %d lines, %d matched, %d distinct resources",
        stats["lines"],
        stats["matched"],
        len(stats["resources"]),
    )

    rows = rank_resources(drain_stats(stats), config.log_source)
    logger.info("Done! writing stats to %s", config.report)
    report_path = write_report(config.report, rows)

    plot_path = None
    if plot:
        plot_path = build_plot(rows, Path(plot), top_k)

    return summarize_run(stats, report_path, plot_path)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1 (got {number})")
    return number


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Count requested resources across a directory of access logs.")
    add_option_arguments(parser)
    parser.add_argument("--workers", type=positive_int, help="Cap on concurrently processed files (default: all).")
    parser.add_argument("--plot", type=Path, help="Optional path to write a top-resources chart (PNG).")
    parser.add_argument("--top", type=positive_int, default=10, help="Resources shown in the chart.")
    parser.add_argument("--verbose", action="store_true", help="Log per-file progress.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(collect_options(args))
        summary = run(config, workers=args.workers, plot=args.plot, top_k=args.top)
    except ResourceReportError as exc:
        raise SystemExit(f"Error: {exc}")

    print("Resource report complete:")
    print(f"- CSV report: {summary['report']} ({summary['resources']} resources from {summary['files']} files)")
    if summary["plot"]:
        print(f"- Plot: {summary['plot']}")
    for path, reason in summary["failures"]:
        print(f"- Skipped rest of {path}: {reason}")


if __name__ == "__main__":
    main()
