import csv
import io
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from resource_config import ReportWriteFailed

# Trailing space kept so existing consumers of the report keep parsing it.
REPORT_HEADER = "Resource,Access Count \n"


def rank_resources(snapshot: Iterable[Tuple[str, int]], log_source: str = "") -> List[Tuple[str, int]]:
    """Prefix each resource and order rows by count, highest first.

    The sort is stable, so equal counts keep the snapshot's order.
    """
    rows = [(f"{log_source}{resource}", count) for resource, count in snapshot]
    return sorted(rows, key=lambda row: -row[1])


def render_csv(rows: Sequence[Tuple[str, int]]) -> str:
    buffer = io.StringIO()
    buffer.write(REPORT_HEADER)
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for resource, count in rows:
        writer.writerow([resource, int(count)])
    return buffer.getvalue()


def write_report(path, rows: Sequence[Tuple[str, int]]) -> Path:
    output_path = Path(path)
    content = render_csv(rows)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise ReportWriteFailed(f"Cannot write report {output_path}: {exc}") from exc
    return output_path


def build_plot(rows: Sequence[Tuple[str, int]], output_path: Path, top_k: int = 10) -> Path:
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as exc:
        raise ReportWriteFailed(f"Cannot draw plot, matplotlib is unavailable: {exc}") from exc

    top = list(rows[:top_k])
    names = [resource for resource, _ in reversed(top)]
    counts = [count for _, count in reversed(top)]

    fig, ax = plt.subplots(figsize=(10, max(2.5, 0.4 * len(top) + 1)))
    ax.barh(names, counts, color="#4f81bd")
    ax.set_title(f"Top {len(top)} requested resources")
    ax.set_xlabel("Access count")

    fig.tight_layout()
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150)
    except OSError as exc:
        raise ReportWriteFailed(f"Cannot write plot {output_path}: {exc}") from exc
    finally:
        plt.close(fig)
    return output_path
