"""Shared fixtures: an in-memory stand-in for the translation library."""

import threading
from typing import Optional

import pytest

from pocket_translator.config import DownloadConditions
from pocket_translator.translation import EngineHandle, TranslationBackend


class FakeEngine(EngineHandle):
    """Engine that prefixes text with the target language code."""

    def __init__(self, backend: "FakeBackend", source_lang: str, target_lang: str):
        super().__init__(source_lang, target_lang)
        self.backend = backend
        self.conditions: Optional[DownloadConditions] = None

    @property
    def model_id(self) -> str:
        return self.target_lang

    def download_model_if_needed(self, conditions: DownloadConditions) -> None:
        self.conditions = conditions
        self.backend.events.append(("download", self.source_lang, self.target_lang))
        self.backend.download_started.set()
        if self.backend.download_gate is not None:
            self.backend.download_gate.wait(5)
        if self.backend.download_error is not None:
            raise self.backend.download_error
        self.backend.installed.update({self.source_lang, self.target_lang})

    def translate(self, text: str) -> str:
        self.backend.events.append(("translate", self.source_lang, self.target_lang))
        if self.backend.translate_error is not None:
            raise self.backend.translate_error
        return f"[{self.source_lang}->{self.target_lang}] {text}"

    def close(self) -> None:
        self.backend.events.append(("close", self.source_lang, self.target_lang))
        super().close()


class FakeBackend(TranslationBackend):
    """Backend recording every call made by the translation service."""

    def __init__(self):
        self.engines: list[FakeEngine] = []
        self.events: list[tuple[str, str, str]] = []
        self.installed: set[str] = set()
        self.download_error: Optional[Exception] = None
        self.translate_error: Optional[Exception] = None
        self.create_error: Optional[Exception] = None
        self.store_error: Optional[Exception] = None
        self.download_started = threading.Event()
        self.download_gate: Optional[threading.Event] = None

    def create_engine(self, source_lang: str, target_lang: str) -> FakeEngine:
        if self.create_error is not None:
            raise self.create_error
        engine = FakeEngine(self, source_lang, target_lang)
        self.engines.append(engine)
        self.events.append(("create", source_lang, target_lang))
        return engine

    def downloaded_models(self) -> set[str]:
        if self.store_error is not None:
            raise self.store_error
        return set(self.installed)

    def model_ids_for_language(self, code: str) -> set[str]:
        return {code}

    def is_available(self) -> bool:
        return True


@pytest.fixture
def fake_backend():
    """Create a fake backend, releasing any blocked download afterwards."""
    backend = FakeBackend()
    yield backend
    if backend.download_gate is not None:
        backend.download_gate.set()
