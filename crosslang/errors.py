"""Exceptions raised across the translation pipeline."""

from __future__ import annotations


class TranslationError(Exception):
    """Base for all translation failures."""


class UnsupportedPairError(TranslationError):
    """Requested language pair is not one of the supported six."""

    def __init__(self, source: str, target: str, supported: list[str]) -> None:
        self.source = source
        self.target = target
        self.supported = supported
        super().__init__(f"unsupported language pair: {source} -> {target}")


class UnsupportedConstruct(TranslationError):
    """A single node falls outside the translatable subset.

    Raised by parsers and generators; the orchestrator recovers per node.
    """

    def __init__(self, kind: str, reason: str = "") -> None:
        self.kind = kind
        self.reason = reason
        msg = f"unsupported {kind}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class GrammarUnavailable(TranslationError):
    """The native grammar for a language could not be loaded."""

    def __init__(self, language: str, cause: Exception) -> None:
        self.language = language
        self.cause = cause
        super().__init__(f"cannot load {language} grammar: {cause}")


class LedgerConflict(TranslationError):
    """A source row was claimed by two dispatched units."""

    def __init__(self, row: int, owner: str, claimant: str) -> None:
        self.row = row
        super().__init__(f"line {row + 1} already consumed by {owner}, claimed again by {claimant}")
