"""Degraded translator used when a native grammar cannot be loaded.

Same language: the source comes back unchanged. Otherwise the result is an
empty target program whose body holds the original source as a comment.
"""

from __future__ import annotations

import logging

from .backend import GENERATORS
from .context import TranslateOptions, TranslationContext
from .orchestrator import TranslationResult

logger = logging.getLogger(__name__)


class FallbackTranslator:
    def __init__(
        self, source_language: str, target_language: str, options: TranslateOptions | None = None
    ) -> None:
        self.source_language = source_language
        self.target_language = target_language
        self.options = options or TranslateOptions()

    def translate(self, source_code: str) -> TranslationResult:
        if self.source_language == self.target_language:
            return TranslationResult(True, source_code, [], service_used="fallback")
        logger.warning("native parser unavailable; emitting %s skeleton", self.target_language)
        ctx = TranslationContext(self.source_language, self.target_language, self.options)
        generator = GENERATORS[self.target_language](self.options)
        header = f"Translation from {self.source_language} unavailable; original source:"
        body = [generator.comment(header, generator.body_depth)]
        body.append(generator.comment(source_code.rstrip("\n"), generator.body_depth))
        lines = "\n".join(body).split("\n")
        warning = f"{self.source_language} parser unavailable, source kept as a comment"
        return TranslationResult(
            True, generator.program(lines, [], ctx), [warning], service_used="fallback"
        )
