"""Language registry with deterministic selection behavior."""

from __future__ import annotations

from dataclasses import dataclass, field

from cda.languages.base import Language


@dataclass(slots=True)
class LanguageRegistry:
    """Ordered language registry with explicit fallback language."""

    _languages: list[Language] = field(default_factory=list)
    _fallback: Language | None = None

    def register(self, language: Language, *, fallback: bool = False) -> None:
        """Register a language in deterministic insertion order."""
        if fallback:
            self._fallback = language
            return
        self._languages.append(language)

    def select(self, path: str) -> Language:
        """Select the first language that supports the path, else fallback."""
        for language in self._languages:
            if language.supports_path(path):
                return language
        if self._fallback is not None:
            return self._fallback
        raise LookupError(f"No language supports path: {path}")

    def names(self) -> tuple[str, ...]:
        """Return registered language names in deterministic order."""
        ordered = [language.name for language in self._languages]
        if self._fallback is not None:
            ordered.append(self._fallback.name)
        return tuple(ordered)

    def include_extensions(self) -> tuple[str, ...]:
        """Return every extension claimed by a non-fallback language, sorted."""
        extensions: set[str] = set()
        for language in self._languages:
            extensions.update(language.extensions)
        return tuple(sorted(extensions))
