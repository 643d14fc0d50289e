"""Cooperative cancellation shared between a range fetch and its caller."""
import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)


class CancellationToken:
    """Flag checked by the fetch loop; cancel() may be called from any thread."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Set the flag and run registered abort callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = self._callbacks
            self._callbacks = []

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Abort callback failed during cancellation: {e}")

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """
        Register a callback that tears down in-flight work.

        Runs immediately if the token is already cancelled.

        Args:
            callback: Zero-argument callable
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Unregister a callback once the work it guards has finished."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def callback_count(self) -> int:
        with self._lock:
            return len(self._callbacks)
