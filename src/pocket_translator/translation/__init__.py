"""Translation engines and error categories."""

from .engine import (
    EngineHandle,
    HuggingFaceBackend,
    OllamaBackend,
    TranslationBackend,
    create_backend,
)

__all__ = [
    "EngineHandle",
    "HuggingFaceBackend",
    "OllamaBackend",
    "TranslationBackend",
    "create_backend",
]
