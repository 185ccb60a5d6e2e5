"""Observable model download progress."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

PROGRESS_IDLE = 0.0
PROGRESS_STARTING = 0.1
PROGRESS_COMPLETE = 1.0


class DownloadProgress:
    """A single progress value in [0, 1] with change notifications.

    0 means idle, values in between mean a download is in progress
    (coarse, not a byte count) and 1 means the download completed.
    Only the translation service publishes; everyone else reads through
    a ProgressView.
    """

    def __init__(self):
        self._value = PROGRESS_IDLE
        self._subscribers: list[ProgressCallback] = []
        self._lock = threading.Lock()
        self.view = ProgressView(self)

    @property
    def value(self) -> float:
        return self._value

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a callback invoked with every published value.

        Args:
            callback: Called with the new progress value.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, value: float):
        """Set the progress value and notify subscribers in order."""
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Progress must be within [0, 1], got {value}")

        with self._lock:
            self._value = value
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(value)
            except Exception:
                logger.exception("Progress subscriber %r failed", callback)


class ProgressView:
    """Read-only access to a DownloadProgress."""

    def __init__(self, progress: DownloadProgress):
        self._progress = progress

    @property
    def value(self) -> float:
        """Current progress value."""
        return self._progress.value

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a callback; see DownloadProgress.subscribe()."""
        return self._progress.subscribe(callback)
