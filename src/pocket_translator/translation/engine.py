"""Translation engines bound to a single language pair."""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import requests

from ..config import AVAILABLE_LANGUAGES, LANGUAGE_NAMES, DownloadConditions, TranslatorConfig

logger = logging.getLogger(__name__)


class EngineHandle(ABC):
    """A live translation engine bound to one (source, target) pair."""

    def __init__(self, source_lang: str, target_lang: str):
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.closed = False

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier of the model backing this engine."""
        pass

    @abstractmethod
    def download_model_if_needed(self, conditions: DownloadConditions) -> None:
        """Make sure the model for this pair is available locally.

        Blocks until the model is present. Raises on failure.
        """
        pass

    @abstractmethod
    def translate(self, text: str) -> str:
        """Translate text from the source to the target language."""
        pass

    def close(self) -> None:
        """Release the resources held by this engine."""
        self.closed = True

    def _check_open(self):
        if self.closed:
            raise RuntimeError(f"Engine for {self.source_lang}->{self.target_lang} is closed")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.source_lang!r}, {self.target_lang!r}, "
            f"model={self.model_id!r}, closed={self.closed})"
        )


class TranslationBackend(ABC):
    """Abstract base class for translation backends."""

    @abstractmethod
    def create_engine(self, source_lang: str, target_lang: str) -> EngineHandle:
        """Create an engine for a language pair.

        Creating an engine must be cheap: model loading happens in
        EngineHandle.download_model_if_needed().
        """
        pass

    @abstractmethod
    def downloaded_models(self) -> set[str]:
        """Return identifiers of the models present in the local store."""
        pass

    @abstractmethod
    def model_ids_for_language(self, code: str) -> set[str]:
        """Return identifiers of the models that can serve a language."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is available and ready."""
        pass


def normalize_tag(name: str) -> str:
    """Qualify an Ollama model name with its tag (a bare name means :latest)."""
    return name if ":" in name else f"{name}:latest"


def _error_reason(response: Optional[requests.Response]) -> Optional[str]:
    """Extract the {"error": ...} message Ollama sends with failed requests."""
    if response is None:
        return None
    try:
        return response.json().get("error")
    except (ValueError, AttributeError):
        return None


def _log_conditions(conditions: DownloadConditions, model_id: str):
    if not conditions.allow_cellular:
        logger.info(
            "Wi-Fi only download requested for %s; connection type cannot be "
            "detected, downloading anyway", model_id
        )


class OllamaEngine(EngineHandle):
    """Engine using a TranslateGemma model served by Ollama."""

    def __init__(self, backend: "OllamaBackend", source_lang: str, target_lang: str):
        super().__init__(source_lang, target_lang)
        self.backend = backend

    @property
    def model_id(self) -> str:
        return self.backend.model

    def download_model_if_needed(self, conditions: DownloadConditions) -> None:
        """Pull the model through Ollama unless it is already installed."""
        self._check_open()
        if self.backend.tag in self.backend.downloaded_models():
            logger.debug("Model %s already installed", self.model_id)
            return

        _log_conditions(conditions, self.model_id)
        logger.info("Pulling model %s", self.model_id)
        result = self.backend.post(
            "/api/pull",
            {"model": self.model_id, "stream": False},
            timeout=self.backend.pull_timeout,
        )
        if "error" in result:
            raise RuntimeError(result["error"])
        status = result.get("status", "")
        if status != "success":
            raise RuntimeError(f"Unexpected pull status: {status or 'empty response'}")

    def translate(self, text: str) -> str:
        """Translate text using Ollama.

        Uses the critical prompt format for TranslateGemma which requires
        2 blank lines before the text to translate.
        """
        self._check_open()
        source_name = LANGUAGE_NAMES.get(self.source_lang, self.source_lang)
        target_name = LANGUAGE_NAMES.get(self.target_lang, self.target_lang)

        # Critical: TranslateGemma requires 2 blank lines before text
        prompt = (
            f"You are a professional {source_name} ({self.source_lang}) to "
            f"{target_name} ({self.target_lang}) translator. Translate the "
            f"following text accurately while preserving the meaning and tone. "
            f"Only output the translation, nothing else.\n\n\n{text}"
        )

        result = self.backend.post(
            "/api/generate",
            {
                "model": self.model_id,
                "prompt": prompt,
                "stream": False,
                "options": {
                    "temperature": 0.1,  # Low temperature for consistent translations
                }
            },
            timeout=self.backend.timeout,
        )
        translated = result.get("response", "").strip()
        if not translated:
            raise RuntimeError("Empty response from model")
        return translated


class OllamaBackend(TranslationBackend):
    """Ollama-based translation backend using TranslateGemma.

    A single multilingual model serves every language in the catalog.
    """

    def __init__(
        self,
        url: str = "http://localhost:11434",
        model: str = "translategemma:12b",
        timeout: float = 120,
        pull_timeout: Optional[float] = None
    ):
        """Initialize the Ollama backend.

        Args:
            url: Ollama API URL.
            model: Model name to use.
            timeout: Timeout in seconds for generate and tag requests.
            pull_timeout: Timeout in seconds for model pulls (None waits
                until the pull finishes).
        """
        self.url = url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self.pull_timeout = pull_timeout

    def create_engine(self, source_lang: str, target_lang: str) -> OllamaEngine:
        return OllamaEngine(self, source_lang, target_lang)

    def post(self, path: str, payload: dict, timeout: Optional[float]) -> dict:
        """POST a JSON payload to the Ollama API and decode the reply."""
        try:
            response = requests.post(f"{self.url}{path}", json=payload, timeout=timeout)
            response.raise_for_status()
        except requests.ConnectionError:
            raise ConnectionError(
                f"Cannot connect to Ollama at {self.url}. Is Ollama running?"
            ) from None
        except requests.Timeout:
            raise TimeoutError(f"Ollama request to {path} timed out") from None
        except requests.HTTPError as exc:
            raise RuntimeError(_error_reason(exc.response) or str(exc)) from exc
        return response.json()

    def downloaded_models(self) -> set[str]:
        """List the models installed in Ollama."""
        response = requests.get(f"{self.url}/api/tags", timeout=self.timeout)
        response.raise_for_status()
        models = response.json().get("models", [])
        return {normalize_tag(m["name"]) for m in models if m.get("name")}

    @property
    def tag(self) -> str:
        """Fully qualified tag of our model, as listed by /api/tags."""
        return normalize_tag(self.model)

    def has_model(self, model_names: set[str]) -> bool:
        """Check for exact match or base name match of our model.

        Loose enough for a readiness check only; acquisition compares tags.
        """
        base_model = self.model.split(":")[0]
        return any(
            self.model in name or base_model in name
            for name in model_names
        )

    def model_ids_for_language(self, code: str) -> set[str]:
        return {self.tag}

    def is_available(self) -> bool:
        """Check if Ollama is running and the model is available."""
        try:
            return self.has_model(self.downloaded_models())
        except (requests.RequestException, json.JSONDecodeError):
            return False


class HuggingFaceEngine(EngineHandle):
    """Engine using a per-pair HuggingFace translation model."""

    def __init__(self, backend: "HuggingFaceBackend", source_lang: str, target_lang: str):
        super().__init__(source_lang, target_lang)
        self.backend = backend
        self._model_name = backend.model_name(source_lang, target_lang)
        self._pipeline = None

    @property
    def model_id(self) -> str:
        return self._model_name

    def download_model_if_needed(self, conditions: DownloadConditions) -> None:
        """Download (or load from cache) the model and build the pipeline."""
        self._check_open()
        if self._pipeline is not None:
            return

        try:
            from transformers import AutoModelForSeq2SeqLM, AutoTokenizer, pipeline
        except ImportError:
            raise RuntimeError(
                "HuggingFace transformers not installed. "
                "Install with: pip install transformers torch"
            )

        _log_conditions(conditions, self.model_id)
        logger.info("Loading model %s", self.model_id)
        cache_dir = str(self.backend.cache_dir)
        tokenizer = AutoTokenizer.from_pretrained(self.model_id, cache_dir=cache_dir)
        model = AutoModelForSeq2SeqLM.from_pretrained(self.model_id, cache_dir=cache_dir)
        self._pipeline = pipeline("translation", model=model, tokenizer=tokenizer)

    def translate(self, text: str) -> str:
        """Translate text with the loaded pipeline."""
        self._check_open()
        if self._pipeline is None:
            raise RuntimeError(f"Model {self.model_id} is not loaded")

        result = self._pipeline(text, max_length=self.backend.max_length)
        return result[0]["translation_text"].strip()

    def close(self) -> None:
        self._pipeline = None
        super().close()


def default_hf_cache_dir() -> Path:
    """Return the HuggingFace hub cache directory."""
    if os.environ.get("HF_HUB_CACHE"):
        return Path(os.environ["HF_HUB_CACHE"])
    hf_home = os.environ.get("HF_HOME")
    if hf_home:
        return Path(hf_home) / "hub"
    return Path.home() / ".cache" / "huggingface" / "hub"


class HuggingFaceBackend(TranslationBackend):
    """HuggingFace Transformers-based translation backend.

    Each language pair has its own model, named by a template such as
    "Helsinki-NLP/opus-mt-{source}-{target}".
    """

    def __init__(
        self,
        model_template: str = "Helsinki-NLP/opus-mt-{source}-{target}",
        cache_dir: Optional[str] = None,
        max_length: int = 512
    ):
        """Initialize the HuggingFace backend.

        Args:
            model_template: Model identifier template for a language pair.
            cache_dir: Hub cache directory. Uses the hub default if not set.
            max_length: Maximum generated sequence length.
        """
        self.model_template = model_template
        self.cache_dir = Path(cache_dir) if cache_dir else default_hf_cache_dir()
        self.max_length = max_length

    def model_name(self, source_lang: str, target_lang: str) -> str:
        return self.model_template.format(source=source_lang, target=target_lang)

    def create_engine(self, source_lang: str, target_lang: str) -> HuggingFaceEngine:
        return HuggingFaceEngine(self, source_lang, target_lang)

    def downloaded_models(self) -> set[str]:
        """List models in the hub cache (folders named models--org--name)."""
        if not self.cache_dir.is_dir():
            return set()

        models = set()
        for entry in self.cache_dir.iterdir():
            if not (entry.is_dir() and entry.name.startswith("models--")):
                continue
            # Interrupted downloads leave the folder without a snapshot
            snapshots = entry / "snapshots"
            if snapshots.is_dir() and any(snapshots.iterdir()):
                models.add(entry.name[len("models--"):].replace("--", "/"))
        return models

    def model_ids_for_language(self, code: str) -> set[str]:
        """Every pair model that has the language on either side."""
        model_ids = set()
        for other in AVAILABLE_LANGUAGES:
            if other.code == code:
                continue
            model_ids.add(self.model_name(code, other.code))
            model_ids.add(self.model_name(other.code, code))
        return model_ids

    def is_available(self) -> bool:
        """Check if transformers library is available."""
        try:
            import transformers  # noqa: F401
            return True
        except ImportError:
            return False


def create_backend(config: Optional[TranslatorConfig] = None) -> TranslationBackend:
    """Create the translation backend selected by the configuration."""
    config = config or TranslatorConfig()
    if config.use_huggingface:
        return HuggingFaceBackend(config.hf_model_template, config.hf_cache_dir)
    return OllamaBackend(config.ollama_url, config.ollama_model)
