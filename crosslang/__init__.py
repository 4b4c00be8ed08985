"""crosslang - source-to-source translation between Python, Java and C."""

from .context import TranslateOptions
from .orchestrator import TranslationResult, Translator
from .service import supported_pairs, translate

__all__ = ["TranslateOptions", "TranslationResult", "Translator", "supported_pairs", "translate"]
