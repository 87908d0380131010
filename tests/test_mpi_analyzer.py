from pathlib import Path

import pytest

import concurrent_analyzer
from conftest import request_line

try:
    import mpi_analyzer
except (ImportError, RuntimeError) as exc:
    pytest.skip(f"MPI runtime unavailable: {exc}", allow_module_level=True)


@pytest.fixture
def mixed_logs(tmp_path: Path, write_log):
    logs = tmp_path / "logs"
    logs.mkdir()
    write_log(logs / "b.log", [request_line("/z"), request_line("/a"), request_line("/y")])
    write_log(logs / "a.log.gz", [request_line("/y"), request_line("/z"), request_line("/admin/x")], compress=True)
    write_log(logs / "c.log", [request_line("/a"), request_line("/z", verb="POST")])
    (logs / "d.gz").write_bytes(b"not gzip")
    return logs


def test_single_rank_report_matches_thread_driver(tmp_path: Path, mixed_logs: Path):
    options = ["--logs", str(mixed_logs), "--log-extension", "", "--ignore", "/admin", "--log-source", "site"]
    threaded = tmp_path / "threaded.csv"
    single_rank = tmp_path / "mpi.csv"

    concurrent_analyzer.main(options + ["--report", str(threaded)])
    mpi_analyzer.main(options + ["--report", str(single_rank)])

    assert single_rank.read_bytes() == threaded.read_bytes()
    assert single_rank.read_text(encoding="utf-8").splitlines()[1:] == [
        '"site/z",3',
        '"site/y",2',
        '"site/a",2',
    ]


@pytest.mark.parametrize("bad", [["--report", "out.txt"], ["--logs", "missing-dir"]])
def test_head_rank_exits_with_a_message(tmp_path: Path, bad):
    argv = ["--logs", str(tmp_path), "--report", str(tmp_path / "out.csv")]
    if bad[0] == "--logs":
        argv[1] = str(tmp_path / bad[1])
    else:
        argv[3] = str(tmp_path / bad[1])

    with pytest.raises(SystemExit) as excinfo:
        mpi_analyzer.main(argv)

    assert str(excinfo.value).startswith("Error: ")
    assert not (tmp_path / "out.csv").exists()
