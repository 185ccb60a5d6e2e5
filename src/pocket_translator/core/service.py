"""Translation service: engine lifecycle and request sequencing."""

import asyncio
import logging
import threading
from enum import Enum
from typing import Callable, Optional, TypeVar

from ..config import (
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    TranslatorConfig,
    is_supported_language,
)
from ..translation import EngineHandle, TranslationBackend, create_backend
from ..translation.errors import (
    GeneralServiceError,
    InferenceError,
    ModelAcquisitionError,
    TranslationServiceError,
)
from .progress import (
    PROGRESS_COMPLETE,
    PROGRESS_IDLE,
    PROGRESS_STARTING,
    DownloadProgress,
    ProgressView,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CoordinatorState(Enum):
    """Phase of the request currently handled by the service."""
    IDLE = "idle"
    ACQUIRING_MODEL = "acquiring_model"
    ACQUIRED = "acquired"
    TRANSLATING = "translating"


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class TranslationService:
    """Translates text through an engine bound to the requested language pair.

    Requests are serialized: a call made while another one is running waits
    for it to finish. Blocking engine work runs on worker threads so the
    caller's event loop stays responsive.

    Failures never propagate to the caller. translate() returns a message
    prefixed with the error category instead, and the exception is kept
    in last_error.
    """

    def __init__(
        self,
        config: Optional[TranslatorConfig] = None,
        backend: Optional[TranslationBackend] = None
    ):
        """Initialize the translation service.

        Args:
            config: Translator configuration.
            backend: Translation backend. Created from the config if not given.
        """
        self.config = config or TranslatorConfig()
        self.backend = backend or create_backend(self.config)
        self.last_error: Optional[TranslationServiceError] = None

        self._engine: Optional[EngineHandle] = None
        self._engine_lock = threading.Lock()
        self._request_lock = asyncio.Lock()
        self._progress = DownloadProgress()
        self._state = CoordinatorState.IDLE

    @property
    def download_progress(self) -> ProgressView:
        """Model download progress, from 0 (idle) to 1 (complete)."""
        return self._progress.view

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def engine(self) -> Optional[EngineHandle]:
        """The engine currently held, if any."""
        return self._engine

    async def translate(
        self,
        text: str,
        source_language: str = DEFAULT_SOURCE_LANGUAGE,
        target_language: str = DEFAULT_TARGET_LANGUAGE
    ) -> str:
        """Translate text between two catalog languages.

        Empty text, or a source equal to the target, is returned unchanged.

        Args:
            text: Text to translate.
            source_language: Source language code.
            target_language: Target language code.

        Returns:
            The translated text, or an error message starting with the
            error category.
        """
        if not text or not text.strip() or source_language == target_language:
            return text

        async with self._request_lock:
            self.last_error = None
            try:
                return await self._run_request(text, source_language, target_language)
            except TranslationServiceError as exc:
                self.last_error = exc
                return exc.to_message()
            except Exception as exc:
                logger.exception("General translation service error")
                self.last_error = GeneralServiceError(_describe(exc))
                return self.last_error.to_message()
            finally:
                self._state = CoordinatorState.IDLE

    async def _run_request(self, text: str, source_language: str, target_language: str) -> str:
        logger.debug("Starting translation from %s to %s", source_language, target_language)

        if not (is_supported_language(source_language) and is_supported_language(target_language)):
            raise GeneralServiceError(
                f"unsupported language pair {source_language} -> {target_language}"
            )

        engine = self._bind_engine(source_language, target_language)
        await self._acquire_model(engine)
        self._ensure_current(engine)

        self._state = CoordinatorState.TRANSLATING
        logger.debug("Starting actual translation of: %s", text)
        try:
            result = await self._run_blocking(
                engine.translate, text,
                timeout=self.config.translate_timeout, action="Translation"
            )
        except Exception as exc:
            logger.error("Translation failed", exc_info=True)
            raise InferenceError(_describe(exc)) from exc

        self._ensure_current(engine)
        logger.debug("Translation successful: %s", result)
        return result

    def _bind_engine(self, source_language: str, target_language: str) -> EngineHandle:
        """Close the current engine and create one for the requested pair."""
        with self._engine_lock:
            current = self._engine
            if (
                self.config.reuse_engine
                and current is not None
                and not current.closed
                and (current.source_lang, current.target_lang) == (source_language, target_language)
            ):
                return current

            self._close_engine_locked()
            self._engine = self.backend.create_engine(source_language, target_language)
            return self._engine

    async def _acquire_model(self, engine: EngineHandle):
        """Download the engine's model if needed, publishing progress."""
        self._state = CoordinatorState.ACQUIRING_MODEL
        self._progress.publish(PROGRESS_IDLE)
        self._progress.publish(PROGRESS_STARTING)
        logger.debug("Starting model download if needed")

        try:
            await self._run_blocking(
                engine.download_model_if_needed, self.config.download_conditions,
                timeout=self.config.download_timeout, action="Model download"
            )
        except asyncio.CancelledError:
            logger.info("Model download cancelled")
            self._progress.publish(PROGRESS_IDLE)
            raise
        except Exception as exc:
            logger.error("Model download failed", exc_info=True)
            self._progress.publish(PROGRESS_IDLE)
            raise ModelAcquisitionError(_describe(exc)) from exc

        logger.debug("Model download completed or already available")
        self._progress.publish(PROGRESS_COMPLETE)
        self._state = CoordinatorState.ACQUIRED

    def _ensure_current(self, engine: EngineHandle):
        if self._engine is not engine:
            raise GeneralServiceError("translator was released during the request")

    async def _run_blocking(
        self,
        func: Callable[..., T],
        *args,
        timeout: Optional[float],
        action: str
    ) -> T:
        call = asyncio.to_thread(func, *args)
        if timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"{action} timed out after {timeout:g} seconds") from None

    async def is_model_available(self, language_code: str) -> bool:
        """Check whether the model for a language is already downloaded.

        Never raises: unknown codes and lookup failures report False.
        """
        if not is_supported_language(language_code):
            return False

        try:
            downloaded = await self._run_blocking(
                self.backend.downloaded_models,
                timeout=self.config.download_timeout, action="Model lookup"
            )
            return bool(self.backend.model_ids_for_language(language_code) & downloaded)
        except Exception:
            logger.error("Error checking if model is downloaded", exc_info=True)
            return False

    def release(self):
        """Close the held engine, if any. Safe to call more than once."""
        with self._engine_lock:
            self._close_engine_locked()

    def _close_engine_locked(self):
        engine, self._engine = self._engine, None
        if engine is None:
            return
        try:
            engine.close()
            logger.debug("Closed engine %r", engine)
        except Exception:
            logger.warning("Failed to close engine %r", engine, exc_info=True)

    def is_ready(self) -> tuple[bool, str]:
        """Check if the service is ready to translate.

        Returns:
            Tuple of (is_ready, message).
        """
        if not self.backend.is_available():
            if self.config.use_huggingface:
                return False, (
                    "Translation backend not available. "
                    "Install with: pip install transformers torch"
                )
            return False, (
                f"Translation backend not available. "
                f"Make sure Ollama is running with {self.config.ollama_model}"
            )
        return True, "Ready"

    async def __aenter__(self) -> "TranslationService":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.release()
