from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from cda.cli import build_arg_parser, create_runner, main
from cda.config import CliOverrides

SWIFT_BODY = "\n".join(
    [
        "func total(items: [Int]) -> Int {",
        "    var sum = 0",
        "    for item in items {",
        "        if item > 10 {",
        "            sum += item * 2",
        "        } else {",
        "            sum += item",
        "        }",
        "    }",
        "    return sum",
        "}",
        "",
    ]
)


def _make_trees(root: Path) -> None:
    (root / "app").mkdir()
    (root / "legacy").mkdir()
    (root / "app" / "Total.swift").write_text(SWIFT_BODY, encoding="utf-8")
    (root / "app" / "Tiny.swift").write_text("let x = 1\n", encoding="utf-8")
    (root / "legacy" / "OldTotal.swift").write_text(
        "// legacy copy\n" + SWIFT_BODY, encoding="utf-8"
    )


def _events(root: Path) -> list[dict[str, object]]:
    path = root / ".cda" / "events.jsonl"
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def _run(argv: list[str]) -> tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    code = main(argv, out_stream=out, err_stream=err)
    return code, out.getvalue(), err.getvalue()


def test_cli_reports_duplicate_and_writes_report_and_events(tmp_path: Path) -> None:
    _make_trees(tmp_path)

    code, out, err = _run(
        ["-r", str(tmp_path), "-s", "app", "-d", "legacy", "-l", "swift", "--workers", "1"]
    )

    assert code == 0
    assert err == ""
    lines = out.splitlines()
    assert lines[0] == "Found 1 results:"
    assert lines[1].startswith("Total.swift OldTotal.swift\t11\t\t100.00%\t\t11\t\t100.00%")
    assert lines[2] == "    lines 1-11 ~ 2-12 (100.00%)"
    assert lines[-2] == "Total rate: 100.00%"
    assert lines[-1] == "Total rate of self: 50.00%"
    assert (tmp_path / "report.txt").read_text(encoding="utf-8") == out

    events = _events(tmp_path)
    assert [event["event"] for event in events] == ["run_started", "run_completed"]
    assert len({event["run_id"] for event in events}) == 1
    assert events[0]["metadata"]["config"]["scan"]["languages"] == ["swift"]
    assert events[1]["metadata"]["results"] == 1
    assert events[1]["metadata"]["stats"]["new_files"] == 2


def test_cli_without_duplicates_prints_all_clear(tmp_path: Path) -> None:
    _make_trees(tmp_path)
    (tmp_path / "legacy" / "OldTotal.swift").write_text("let other = 2\n", encoding="utf-8")

    code, out, _ = _run(["-r", str(tmp_path), "-s", "app", "-d", "legacy", "--workers", "1"])

    assert code == 0
    assert out == "Everything is fine, no code duplications found.\n"


def test_cli_json_format_and_custom_output(tmp_path: Path) -> None:
    _make_trees(tmp_path)
    target = tmp_path / "out" / "dups.json"

    code, out, _ = _run(
        [
            "-r",
            str(tmp_path),
            "-s",
            "app",
            "-d",
            "legacy",
            "--format",
            "json",
            "--output",
            str(target),
            "--workers",
            "1",
        ]
    )

    assert code == 0
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload == json.loads(out)
    assert payload["results"] == 1
    assert payload["pairs"][0]["new_path"] == "Total.swift"
    assert not (tmp_path / "report.txt").exists()


def test_cli_minimum_tokens_suppresses_short_duplicates(tmp_path: Path) -> None:
    _make_trees(tmp_path)

    code, out, _ = _run(
        [
            "-r",
            str(tmp_path),
            "-s",
            "app",
            "-d",
            "legacy",
            "--minimum-tokens",
            "500",
            "--workers",
            "1",
        ]
    )

    assert code == 0
    assert out.startswith("Everything is fine")


def test_cli_missing_tree_exits_with_usage_code(tmp_path: Path) -> None:
    _make_trees(tmp_path)

    code, out, err = _run(["-r", str(tmp_path), "-s", "app", "-d", "missing"])

    assert code == 2
    assert out == ""
    assert "Tree is not a directory: missing" in err
    events = _events(tmp_path)
    assert events[-1]["event"] == "run_failed"
    assert events[-1]["error_code"] == "PATH_INVALID"
    assert events[-1]["ok"] is False


def test_cli_empty_tree_exits_with_usage_code(tmp_path: Path) -> None:
    _make_trees(tmp_path)
    (tmp_path / "empty").mkdir()

    code, _, err = _run(["-r", str(tmp_path), "-s", "empty", "-d", "legacy", "--workers", "1"])

    assert code == 2
    assert "The new tree contains no source files." in err
    assert _events(tmp_path)[-1]["error_code"] == "EMPTY_TREE"


def test_cli_invalid_config_exits_before_any_work(tmp_path: Path) -> None:
    _make_trees(tmp_path)

    code, _, err = _run(["-r", str(tmp_path), "-s", "app", "-d", "legacy", "--window", "0"])

    assert code == 2
    assert "overrides.window_size" in err
    assert not (tmp_path / ".cda").exists()
    assert not (tmp_path / "report.txt").exists()


def test_skipped_files_are_logged_before_completion(tmp_path: Path) -> None:
    _make_trees(tmp_path)
    (tmp_path / "legacy" / "Broken.swift").write_bytes(b"let a = \xff\xfe 1\n" * 3 + b"x" * 5000)

    code, _, _ = _run(["-r", str(tmp_path), "-s", "app", "-d", "legacy", "--workers", "1"])

    assert code == 0
    events = _events(tmp_path)
    assert [event["event"] for event in events] == [
        "run_started",
        "file_skipped",
        "run_completed",
    ]
    assert events[1]["metadata"]["path"] == "Broken.swift"
    assert events[1]["metadata"]["side"] == "old"


def test_language_flag_rejects_unknown_language() -> None:
    parser = build_arg_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["-r", ".", "-s", "a", "-d", "b", "-l", "cobol"])


def test_create_runner_applies_overrides(tmp_path: Path) -> None:
    runner = create_runner(
        root=str(tmp_path),
        source="app",
        destination="legacy",
        cli_overrides=CliOverrides(workers=2, merge_gap=3),
    )

    assert runner.config.detector.workers == 2
    assert runner.config.detector.merge_gap == 3
    assert runner.run_id.startswith("run-")


def test_exclude_flag_skips_matching_paths(tmp_path: Path) -> None:
    _make_trees(tmp_path)
    (tmp_path / "app" / "generated").mkdir()
    (tmp_path / "app" / "generated" / "Copy.swift").write_text(SWIFT_BODY, encoding="utf-8")
    argv = ["-r", str(tmp_path), "-s", "app", "-d", "legacy", "--workers", "1"]

    _, included, _ = _run(argv)
    code, excluded, _ = _run([*argv, "--exclude", "**/generated/**"])

    assert included.splitlines()[0] == "Found 2 results:"
    assert code == 0
    assert excluded.splitlines()[0] == "Found 1 results:"
    assert "generated" not in excluded


def test_events_mode_prints_recent_run_events(tmp_path: Path) -> None:
    _make_trees(tmp_path)
    _run(["-r", str(tmp_path), "-s", "app", "-d", "legacy", "--workers", "1"])
    _run(["-r", str(tmp_path), "-s", "app", "-d", "missing"])

    code, out, err = _run(["-r", str(tmp_path), "--events", "--limit", "2"])

    assert code == 0
    assert err == ""
    records = [json.loads(line) for line in out.splitlines()]
    assert [record["event"] for record in records] == ["run_started", "run_failed"]
    first_run = _events(tmp_path)[0]["run_id"]

    _, only_first, _ = _run(["-r", str(tmp_path), "--events", "--run-id", first_run])

    assert [json.loads(line)["event"] for line in only_first.splitlines()] == [
        "run_started",
        "run_completed",
    ]


def test_events_mode_without_log_prints_nothing(tmp_path: Path) -> None:
    code, out, _ = _run(["-r", str(tmp_path), "--events"])

    assert code == 0
    assert out == ""
    assert not (tmp_path / ".cda").exists()


def test_comparison_requires_both_trees(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as error:
        _run(["-r", str(tmp_path), "-s", "app"])

    assert error.value.code == 2
