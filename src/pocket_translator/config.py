"""Configuration and language catalog for the translator."""

from dataclasses import dataclass
from typing import NamedTuple, Optional


class LanguagePair(NamedTuple):
    """A supported language as shown in the language pickers.

    Attributes:
        display_name: Human readable name (e.g., "Spanish").
        code: Language code understood by the engines (e.g., "es").
    """
    display_name: str
    code: str


# Fixed, ordered catalog of supported languages
AVAILABLE_LANGUAGES: tuple[LanguagePair, ...] = (
    LanguagePair("English", "en"),
    LanguagePair("Spanish", "es"),
    LanguagePair("French", "fr"),
    LanguagePair("German", "de"),
    LanguagePair("Italian", "it"),
    LanguagePair("Japanese", "ja"),
    LanguagePair("Korean", "ko"),
    LanguagePair("Chinese", "zh"),
    LanguagePair("Russian", "ru"),
    LanguagePair("Indonesian", "id"),
)

LANGUAGE_NAMES = {language.code: language.display_name for language in AVAILABLE_LANGUAGES}

DEFAULT_SOURCE_LANGUAGE = "en"
DEFAULT_TARGET_LANGUAGE = "es"


def find_language(code: object) -> Optional[LanguagePair]:
    """Look up a catalog entry by language code.

    Args:
        code: Language code to look up. Any object is accepted.

    Returns:
        The matching LanguagePair, or None if the code is not supported.
    """
    for language in AVAILABLE_LANGUAGES:
        if language.code == code:
            return language
    return None


def is_supported_language(code: object) -> bool:
    """Check whether a language code is part of the catalog."""
    return find_language(code) is not None


@dataclass(frozen=True)
class DownloadConditions:
    """Conditions attached to a model acquisition request.

    Attributes:
        allow_cellular: If False, the model should only be fetched over
            an unmetered (Wi-Fi) connection.
    """
    allow_cellular: bool = True


@dataclass
class TranslatorConfig:
    """Configuration for the translation service.

    Attributes:
        source_language: Default source language code (default: "en").
        target_language: Default target language code (default: "es").
        ollama_url: URL for Ollama API.
        ollama_model: Model name for Ollama.
        use_huggingface: Whether to use HuggingFace backend instead of Ollama.
        hf_model_template: HuggingFace model name for a language pair, with
            {source} and {target} placeholders.
        hf_cache_dir: Directory holding downloaded HuggingFace models. Uses
            the hub default when not set.
        allow_cellular: Whether model downloads may use metered connections.
        download_timeout: Seconds to wait for model acquisition (None waits
            indefinitely).
        translate_timeout: Seconds to wait for a translation (None waits
            indefinitely).
        reuse_engine: Keep the engine when consecutive requests use the same
            language pair instead of recreating it every time.
        verbose: If True, print detailed output.
    """
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    target_language: str = DEFAULT_TARGET_LANGUAGE
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "translategemma:12b"
    use_huggingface: bool = False
    hf_model_template: str = "Helsinki-NLP/opus-mt-{source}-{target}"
    hf_cache_dir: Optional[str] = None
    allow_cellular: bool = True
    download_timeout: Optional[float] = None
    translate_timeout: Optional[float] = None
    reuse_engine: bool = False
    verbose: bool = False

    @property
    def download_conditions(self) -> DownloadConditions:
        """Conditions to pass with every model acquisition request."""
        return DownloadConditions(allow_cellular=self.allow_cellular)

    def get_language_name(self, code: str) -> str:
        """Get the full language name for a language code.

        Args:
            code: Language code (e.g., "de").

        Returns:
            Full language name (e.g., "German").
        """
        return LANGUAGE_NAMES.get(code, code)
