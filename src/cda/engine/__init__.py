"""Duplicate-detection engine."""

from .cluster import DiagonalRun, chain_runs, cluster_hits, extend_hits, resolve_overlaps
from .fingerprint import (
    DEFAULT_GUARANTEE_WINDOW,
    DEFAULT_WINDOW_SIZE,
    fingerprint_texts,
    fingerprint_tokens,
    token_key,
    window_hashes,
    winnow,
)
from .index import FingerprintIndex, IndexFrozenError
from .matcher import MatchOutcome, match_file
from .models import (
    DetectionResult,
    DetectionStats,
    Diagnostic,
    DuplicateSpan,
    FilePairResult,
    Fingerprint,
    Hit,
    ScannedFile,
    Side,
    SourceFile,
    Token,
    TokenKind,
)
from .pipeline import DetectionCancelledError, DuplicateDetector, EmptyTreeError, scan_source
from .settings import ConfigurationInvalidError, DetectorConfig
from .tokenizer import NormalizationLevel, Tokenizer, UnreadableSourceError, decode_source

__all__ = [
    "ConfigurationInvalidError",
    "DEFAULT_GUARANTEE_WINDOW",
    "DEFAULT_WINDOW_SIZE",
    "DetectionCancelledError",
    "DetectionResult",
    "DetectionStats",
    "DetectorConfig",
    "Diagnostic",
    "DiagonalRun",
    "DuplicateDetector",
    "DuplicateSpan",
    "EmptyTreeError",
    "FilePairResult",
    "Fingerprint",
    "FingerprintIndex",
    "Hit",
    "IndexFrozenError",
    "MatchOutcome",
    "NormalizationLevel",
    "ScannedFile",
    "Side",
    "SourceFile",
    "Token",
    "TokenKind",
    "Tokenizer",
    "UnreadableSourceError",
    "chain_runs",
    "cluster_hits",
    "decode_source",
    "extend_hits",
    "fingerprint_texts",
    "fingerprint_tokens",
    "match_file",
    "resolve_overlaps",
    "scan_source",
    "token_key",
    "window_hashes",
    "winnow",
]
