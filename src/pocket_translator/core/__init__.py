"""Translation service and download progress."""

from .progress import DownloadProgress, ProgressView
from .service import CoordinatorState, TranslationService

__all__ = ["CoordinatorState", "DownloadProgress", "ProgressView", "TranslationService"]
