"""Source language descriptors."""

from .base import Language, LexicalRules
from .builtin import BUILTIN_LANGUAGES, GENERIC
from .registry import LanguageRegistry
from .runtime import BUILTIN_LANGUAGE_NAMES, build_language_registry

__all__ = [
    "BUILTIN_LANGUAGES",
    "BUILTIN_LANGUAGE_NAMES",
    "GENERIC",
    "Language",
    "LanguageRegistry",
    "LexicalRules",
    "build_language_registry",
]
