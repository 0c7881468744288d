from __future__ import annotations

from pathlib import Path

from cda.config import DEFAULT_EXCLUDE_GLOBS, CliOverrides, load_effective_config
from cda.engine import NormalizationLevel


def test_defaults_when_no_config_file(tmp_path: Path) -> None:
    config = load_effective_config(tmp_path, "src", "dst")

    assert config.root == tmp_path.resolve()
    assert config.data_dir == tmp_path.resolve() / ".cda"
    assert config.output == tmp_path.resolve() / "report.txt"
    assert config.output_format == "text"
    assert config.detector.normalization is NormalizationLevel.IDENTIFIER_FOLD
    assert config.detector.window_size == 15
    assert config.detector.guarantee_window == 15
    assert config.detector.merge_gap == 0
    assert config.detector.effective_min_span_tokens == 15
    assert config.scan.exclude_globs == DEFAULT_EXCLUDE_GLOBS
    assert "swift" in config.scan.languages


def test_merge_order_defaults_then_file_then_cli(tmp_path: Path) -> None:
    (tmp_path / "cda.toml").write_text(
        "\n".join(
            [
                "[detector]",
                "window_size = 20",
                "guarantee_window = 30",
                "merge_gap = 4",
                "",
                "[scan]",
                'languages = ["Java", "kotlin"]',
                "max_file_bytes = 2048",
            ]
        ),
        encoding="utf-8",
    )
    overrides = CliOverrides(guarantee_window=40, languages=("rust",), normalization="exact")

    config = load_effective_config(tmp_path, "src", "dst", overrides)

    assert config.detector.window_size == 20
    assert config.detector.guarantee_window == 40
    assert config.detector.merge_gap == 4
    assert config.detector.normalization is NormalizationLevel.EXACT
    assert config.detector.effective_min_span_tokens == 20
    assert config.scan.languages == ("rust",)
    assert config.scan.max_file_bytes == 2048


def test_file_languages_are_lowercased_and_deduplicated(tmp_path: Path) -> None:
    (tmp_path / "cda.toml").write_text(
        '[scan]\nlanguages = ["Java", "kotlin", "java"]\n', encoding="utf-8"
    )

    config = load_effective_config(tmp_path, "src", "dst")

    assert config.scan.languages == ("java", "kotlin")


def test_output_and_data_dir_overrides_have_highest_precedence(tmp_path: Path) -> None:
    custom_data_dir = tmp_path / "state"
    custom_output = tmp_path / "out" / "dups.json"

    config = load_effective_config(
        tmp_path,
        "src",
        "dst",
        CliOverrides(data_dir=custom_data_dir, output=custom_output, output_format="json"),
    )

    assert config.data_dir == custom_data_dir.resolve()
    assert config.output == custom_output.resolve()
    assert config.output_format == "json"


def test_extra_exclude_globs_are_appended(tmp_path: Path) -> None:
    config = load_effective_config(
        tmp_path, "src", "dst", CliOverrides(exclude_globs=("**/generated/**",))
    )

    assert config.scan.exclude_globs[-1] == "**/generated/**"
    assert config.scan.exclude_globs[:-1] == DEFAULT_EXCLUDE_GLOBS


def test_public_snapshot_resolves_defaults(tmp_path: Path) -> None:
    config = load_effective_config(tmp_path, "src", "dst", CliOverrides(workers=3))

    snapshot = config.to_public_dict()

    assert snapshot["source"] == "src"
    assert snapshot["destination"] == "dst"
    assert snapshot["detector"] == {
        "normalization": "identifier_fold",
        "window_size": 15,
        "guarantee_window": 15,
        "merge_gap": 0,
        "min_span_tokens": 15,
        "workers": 3,
        "max_hash_occurrences": 256,
    }
