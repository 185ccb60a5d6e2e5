"""Two-language text translator backed by downloadable translation models."""

from .config import AVAILABLE_LANGUAGES, LanguagePair, TranslatorConfig
from .core import TranslationService

__version__ = "0.1.0"

__all__ = ["AVAILABLE_LANGUAGES", "LanguagePair", "TranslatorConfig", "TranslationService"]
