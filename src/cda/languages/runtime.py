"""Runtime language registry construction."""

from __future__ import annotations

from cda.languages.builtin import BUILTIN_LANGUAGES, GENERIC
from cda.languages.registry import LanguageRegistry

BUILTIN_LANGUAGE_NAMES: tuple[str, ...] = tuple(language.name for language in BUILTIN_LANGUAGES)


def build_language_registry(names: tuple[str, ...] | None = None) -> LanguageRegistry:
    """Build a registry for the selected languages, in built-in order."""
    wanted = set(BUILTIN_LANGUAGE_NAMES if names is None else names)
    unknown = sorted(wanted - set(BUILTIN_LANGUAGE_NAMES))
    if unknown:
        raise LookupError(f"Unknown languages: {unknown}.")
    registry = LanguageRegistry()
    for language in BUILTIN_LANGUAGES:
        if language.name in wanted:
            registry.register(language)
    registry.register(GENERIC, fallback=True)
    return registry
