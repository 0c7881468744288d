"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from cda.engine.settings import MAX_WINDOW_SIZE, MAX_WORKERS, ConfigurationInvalidError, DetectorConfig
from cda.engine.tokenizer import NormalizationLevel
from cda.languages import BUILTIN_LANGUAGE_NAMES

CONFIG_FILE_NAME = "cda.toml"
DEFAULT_DATA_DIR_NAME = ".cda"
DEFAULT_REPORT_NAME = "report.txt"
DEFAULT_MAX_FILE_BYTES = 1024 * 1024
MAX_FILE_BYTES_CAP = 16 * 1024 * 1024
OUTPUT_FORMATS = ("text", "json")

DEFAULT_EXCLUDE_GLOBS = (
    "**/.git/**",
    "**/.hg/**",
    "**/.svn/**",
    "**/.cda/**",
    "**/node_modules/**",
    "**/__pycache__/**",
    "**/.venv/**",
)


@dataclass(slots=True, frozen=True)
class ScanConfig:
    """Deterministic file-enumeration settings."""

    languages: tuple[str, ...] = BUILTIN_LANGUAGE_NAMES
    exclude_globs: tuple[str, ...] = DEFAULT_EXCLUDE_GLOBS
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES


@dataclass(slots=True, frozen=True)
class RunConfig:
    """Fully merged configuration for one comparison run."""

    root: Path
    source: str
    destination: str
    data_dir: Path
    output: Path
    output_format: str
    detector: DetectorConfig
    scan: ScanConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for logs and reports."""
        return {
            "root": str(self.root),
            "source": self.source,
            "destination": self.destination,
            "data_dir": str(self.data_dir),
            "output": str(self.output),
            "output_format": self.output_format,
            "detector": self.detector.to_public_dict(),
            "scan": {
                "languages": list(self.scan.languages),
                "exclude_globs": list(self.scan.exclude_globs),
                "max_file_bytes": self.scan.max_file_bytes,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    output: Path | None = None
    output_format: str | None = None
    languages: tuple[str, ...] | None = None
    normalization: str | None = None
    window_size: int | None = None
    guarantee_window: int | None = None
    merge_gap: int | None = None
    min_span_tokens: int | None = None
    workers: int | None = None
    max_hash_occurrences: int | None = None
    exclude_globs: tuple[str, ...] = field(default_factory=tuple)


def default_config(root: Path, source: str, destination: str) -> RunConfig:
    """Build default config for a given comparison root."""
    resolved_root = root.resolve()
    return RunConfig(
        root=resolved_root,
        source=source,
        destination=destination,
        data_dir=resolved_root / DEFAULT_DATA_DIR_NAME,
        output=resolved_root / DEFAULT_REPORT_NAME,
        output_format="text",
        detector=DetectorConfig(),
        scan=ScanConfig(),
    )


def load_config_file(root: Path) -> dict[str, object]:
    """Load optional cda.toml from the comparison root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    try:
        with config_path.open("rb") as handle:
            payload = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationInvalidError(f"{CONFIG_FILE_NAME} is not valid TOML: {exc}") from exc
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ConfigurationInvalidError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigurationInvalidError(f"Config field '{section}.{name}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigurationInvalidError(
                f"Config field '{section}.{name}' must contain only strings."
            )
        output.append(item)
    return tuple(output)


def merge_config(base: RunConfig, payload: dict[str, object], overrides: CliOverrides) -> RunConfig:
    """Merge defaults, cda.toml, then CLI/startup overrides."""
    for key in sorted(payload):
        if key not in {"detector", "scan"}:
            raise ConfigurationInvalidError(f"Unknown config section '{key}'.")
    detector_payload = _get_table(payload, "detector")
    scan_payload = _get_table(payload, "scan")

    detector = DetectorConfig(
        normalization=_optional_normalization(
            detector_payload.get("normalization"),
            "detector.normalization",
            base.detector.normalization,
        ),
        window_size=_optional_int(
            detector_payload.get("window_size"),
            "detector.window_size",
            base.detector.window_size,
            minimum=1,
            cap=MAX_WINDOW_SIZE,
        ),
        guarantee_window=_optional_int(
            detector_payload.get("guarantee_window"),
            "detector.guarantee_window",
            base.detector.guarantee_window,
            minimum=1,
            cap=MAX_WINDOW_SIZE,
        ),
        merge_gap=_optional_int(
            detector_payload.get("merge_gap"),
            "detector.merge_gap",
            base.detector.merge_gap,
            minimum=0,
            cap=None,
        ),
        min_span_tokens=_optional_int(
            detector_payload.get("min_span_tokens"),
            "detector.min_span_tokens",
            base.detector.min_span_tokens,
            minimum=1,
            cap=None,
        ),
        workers=_optional_int(
            detector_payload.get("workers"),
            "detector.workers",
            base.detector.workers,
            minimum=1,
            cap=MAX_WORKERS,
        ),
        max_hash_occurrences=_optional_int(
            detector_payload.get("max_hash_occurrences"),
            "detector.max_hash_occurrences",
            base.detector.max_hash_occurrences,
            minimum=1,
            cap=None,
        ),
    )

    languages = base.scan.languages
    if "languages" in scan_payload:
        languages = _validate_languages(
            _tuple_of_strings(scan_payload["languages"], "scan", "languages"), "scan.languages"
        )
    exclude_globs = base.scan.exclude_globs
    if "exclude_globs" in scan_payload:
        exclude_globs = _tuple_of_strings(scan_payload["exclude_globs"], "scan", "exclude_globs")
    max_file_bytes = _optional_int(
        scan_payload.get("max_file_bytes"),
        "scan.max_file_bytes",
        base.scan.max_file_bytes,
        minimum=1,
        cap=MAX_FILE_BYTES_CAP,
    )

    merged = RunConfig(
        root=base.root,
        source=base.source,
        destination=base.destination,
        data_dir=base.data_dir,
        output=base.output,
        output_format=base.output_format,
        detector=detector,
        scan=ScanConfig(
            languages=languages,
            exclude_globs=exclude_globs,
            max_file_bytes=max_file_bytes,
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: RunConfig, overrides: CliOverrides) -> RunConfig:
    """Apply startup overrides at highest precedence, then validate the result."""
    current = config.detector
    detector = DetectorConfig(
        normalization=_optional_normalization(
            overrides.normalization, "overrides.normalization", current.normalization
        ),
        window_size=_optional_int(
            overrides.window_size,
            "overrides.window_size",
            current.window_size,
            minimum=1,
            cap=MAX_WINDOW_SIZE,
        ),
        guarantee_window=_optional_int(
            overrides.guarantee_window,
            "overrides.guarantee_window",
            current.guarantee_window,
            minimum=1,
            cap=MAX_WINDOW_SIZE,
        ),
        merge_gap=_optional_int(
            overrides.merge_gap, "overrides.merge_gap", current.merge_gap, minimum=0, cap=None
        ),
        min_span_tokens=_optional_int(
            overrides.min_span_tokens,
            "overrides.min_span_tokens",
            current.min_span_tokens,
            minimum=1,
            cap=None,
        ),
        workers=_optional_int(
            overrides.workers, "overrides.workers", current.workers, minimum=1, cap=MAX_WORKERS
        ),
        max_hash_occurrences=_optional_int(
            overrides.max_hash_occurrences,
            "overrides.max_hash_occurrences",
            current.max_hash_occurrences,
            minimum=1,
            cap=None,
        ),
    )
    detector.validate()

    languages = config.scan.languages
    if overrides.languages:
        languages = _validate_languages(overrides.languages, "overrides.languages")
    output_format = config.output_format
    if overrides.output_format is not None:
        if overrides.output_format not in OUTPUT_FORMATS:
            raise ConfigurationInvalidError(
                f"Config field 'overrides.output_format' must be one of {list(OUTPUT_FORMATS)}."
            )
        output_format = overrides.output_format

    data_dir = overrides.data_dir or config.data_dir
    output = overrides.output or config.output
    return RunConfig(
        root=config.root,
        source=config.source,
        destination=config.destination,
        data_dir=data_dir.resolve(),
        output=output.resolve(),
        output_format=output_format,
        detector=detector,
        scan=ScanConfig(
            languages=languages,
            exclude_globs=config.scan.exclude_globs + tuple(overrides.exclude_globs),
            max_file_bytes=config.scan.max_file_bytes,
        ),
    )


def load_effective_config(
    root: Path,
    source: str,
    destination: str,
    overrides: CliOverrides | None = None,
) -> RunConfig:
    """Load effective config using merge order defaults -> cda.toml -> overrides."""
    resolved_root = root.resolve()
    base = default_config(resolved_root, source, destination)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _validate_languages(names: tuple[str, ...], field_name: str) -> tuple[str, ...]:
    if not names:
        raise ConfigurationInvalidError(f"Config field '{field_name}' must not be empty.")
    lowered = tuple(name.strip().lower() for name in names)
    unknown = sorted(set(lowered) - set(BUILTIN_LANGUAGE_NAMES))
    if unknown:
        raise ConfigurationInvalidError(
            f"Config field '{field_name}' has unknown languages {unknown}; "
            f"supported: {list(BUILTIN_LANGUAGE_NAMES)}."
        )
    ordered: list[str] = []
    for name in lowered:
        if name not in ordered:
            ordered.append(name)
    return tuple(ordered)


def _optional_normalization(
    value: object, name: str, default: NormalizationLevel
) -> NormalizationLevel:
    if value is None:
        return default
    if isinstance(value, str):
        for level in NormalizationLevel:
            if value == level.value:
                return level
    raise ConfigurationInvalidError(
        f"Config field '{name}' must be one of {[level.value for level in NormalizationLevel]}."
    )


def _optional_int(
    value: object,
    name: str,
    default: int | None,
    *,
    minimum: int,
    cap: int | None,
) -> int | None:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        qualifier = "a positive integer" if minimum == 1 else f"an integer >= {minimum}"
        raise ConfigurationInvalidError(f"Config field '{name}' must be {qualifier}.")
    if cap is not None and value > cap:
        raise ConfigurationInvalidError(f"Config field '{name}' must be <= {cap}.")
    return value
