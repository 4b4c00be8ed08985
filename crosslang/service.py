"""Core entry point: translate one program and report the outcome as a dict."""

from __future__ import annotations

import logging

from .context import TranslateOptions
from .errors import GrammarUnavailable, UnsupportedPairError
from .fallback import FallbackTranslator
from .orchestrator import TranslationResult, Translator
from .typemap import SUPPORTED_PAIRS, pair_key

logger = logging.getLogger(__name__)


def supported_pairs() -> list[str]:
    return [pair_key(s, t) for s, t in SUPPORTED_PAIRS]


def check_pair(source_language: str, target_language: str) -> None:
    if (source_language, target_language) not in SUPPORTED_PAIRS:
        raise UnsupportedPairError(source_language, target_language, supported_pairs())


def translate(
    source_code: str,
    source_language: str,
    target_language: str,
    options: TranslateOptions | None = None,
) -> dict[str, object]:
    """Translate source_code between two of python, java and c.

    Returns a dict with success, translated_code, warnings, service_used,
    source_language, target_language and, on failure, error (plus
    error_code for requests rejected before parsing).
    """
    source_language = source_language.strip().lower()
    target_language = target_language.strip().lower()
    try:
        check_pair(source_language, target_language)
    except UnsupportedPairError as e:
        return _rejected(source_language, target_language, str(e), "unsupported_pair", supported=e.supported)
    if not source_code.strip():
        return _rejected(source_language, target_language, "source code is empty", "empty_source")
    try:
        translator: Translator | FallbackTranslator = Translator(source_language, target_language, options)
    except GrammarUnavailable as e:
        logger.warning("%s; using fallback translator", e)
        translator = FallbackTranslator(source_language, target_language, options)
    result: TranslationResult = translator.translate(source_code)
    response = result.to_dict()
    response["source_language"] = source_language
    response["target_language"] = target_language
    return response


def _rejected(
    source_language: str, target_language: str, error: str, code: str, **extra: object
) -> dict[str, object]:
    response: dict[str, object] = {
        "success": False,
        "translated_code": "",
        "warnings": [],
        "error": error,
        "error_code": code,
        "service_used": "core",
        "source_language": source_language,
        "target_language": target_language,
    }
    response.update(extra)
    return response
