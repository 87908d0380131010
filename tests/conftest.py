import gzip
from pathlib import Path

import pytest


def request_line(resource: str, verb: str = "GET", status: int = 200, size: int = 10) -> str:
    return f'1.1.1.1 - - [10/Oct/2024:13:55:36 +0000] "{verb} {resource} HTTP/1.1" {status} {size}'


@pytest.fixture
def write_log():
    def _write(path: Path, lines, compress: bool = False) -> Path:
        text = "".join(f"{line}\n" for line in lines)
        if compress:
            with gzip.open(path, "wt", encoding="utf-8") as handle:
                handle.write(text)
        else:
            path.write_text(text, encoding="utf-8")
        return path

    return _write
