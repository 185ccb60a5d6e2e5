"""Error categories reported by the translation service.

Errors never reach the presentation layer as exceptions. The service
catches them and returns ``to_message()`` in place of the translation.
"""

DOWNLOAD_ERROR_PREFIX = "Error downloading translation model"
TRANSLATION_ERROR_PREFIX = "Translation error"
SERVICE_ERROR_PREFIX = "Translation service error"


class TranslationServiceError(Exception):
    """Base class for failures during a translation request."""

    prefix = SERVICE_ERROR_PREFIX

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_message(self) -> str:
        """Format the error as the text shown in place of a translation."""
        return f"{self.prefix}: {self.reason}"


class ModelAcquisitionError(TranslationServiceError):
    """The model for a language pair could not be downloaded."""

    prefix = DOWNLOAD_ERROR_PREFIX


class InferenceError(TranslationServiceError):
    """The engine failed while translating text."""

    prefix = TRANSLATION_ERROR_PREFIX


class GeneralServiceError(TranslationServiceError):
    """Any other failure, such as engine creation or an unsupported pair."""

    prefix = SERVICE_ERROR_PREFIX
