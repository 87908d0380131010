import json
from pathlib import Path

import pytest

from concurrent_analyzer import parse_args
from resource_config import InvalidConfiguration, build_config, collect_options, has_extension, load_options_file


def test_defaults_are_applied_once():
    config = build_config({"logs": "logs"})
    assert config.logs == "logs"
    assert config.log_extension == "gz"
    assert config.report == "report.csv"
    assert config.log_source == ""
    assert config.verbs == ("GET", "POST")
    assert config.ignore == ()


def test_options_override_defaults():
    config = build_config(
        {
            "logs": "var/log",
            "logExtension": ".log",
            "report": "out/hits.csv",
            "logSource": "https://example.com",
            "fiterByVerb": ["HEAD"],
            "ignoreResource": ["/admin"],
        }
    )
    assert config.log_extension == "log"
    assert config.verbs == ("HEAD",)
    assert config.ignore == ("/admin",)


@pytest.mark.parametrize(
    "options",
    [
        {},
        {"logs": "   "},
        {"logs": "logs", "report": "report.json"},
        {"logs": "logs", "report": "report.CSV"},
        {"logs": "logs", "fiterByVerb": "GET"},
        {"logs": "logs", "fiterByVerb": []},
        {"logs": "logs", "fiterByVerb": ["GET", 1]},
        {"logs": "logs", "fiterByVerb": ["GET", " "]},
        {"logs": "logs", "ignoreResource": "/admin"},
        {"logs": "logs", "ignoreResource": [""]},
        {"logs": "logs", "logSource": None},
        {"logs": "logs", "filterByVerb": ["GET"]},
    ],
)
def test_invalid_options_are_rejected(options):
    with pytest.raises(InvalidConfiguration):
        build_config(options)


def test_has_extension_uses_text_after_last_dot():
    assert has_extension("access.log", "log")
    assert has_extension("dir.d/access.log.gz", "gz")
    assert not has_extension("access.log.gz", "log")
    assert not has_extension("access.gz", "log")
    assert not has_extension("csv", "csv")


def test_load_options_file(tmp_path: Path):
    path = tmp_path / "options.json"
    path.write_text(json.dumps({"logs": "logs", "ignoreResource": ["/admin"]}), encoding="utf-8")
    assert load_options_file(path) == {"logs": "logs", "ignoreResource": ["/admin"]}

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InvalidConfiguration):
        load_options_file(path)

    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidConfiguration):
        load_options_file(path)

    with pytest.raises(InvalidConfiguration):
        load_options_file(tmp_path / "missing.json")


def test_command_line_flags_override_config_file(tmp_path: Path):
    path = tmp_path / "options.json"
    path.write_text(json.dumps({"logs": "from-file", "report": "file.csv", "logSource": "site"}), encoding="utf-8")

    args = parse_args(["--config", str(path), "--logs", "from-cli", "--verb", "GET", "--verb", "HEAD"])
    options = collect_options(args)

    assert options == {
        "logs": "from-cli",
        "report": "file.csv",
        "logSource": "site",
        "fiterByVerb": ["GET", "HEAD"],
    }
