from __future__ import annotations

from contextlib import contextmanager
from typing import Callable

from PySide6.QtCore import QObject, QTimer


@contextmanager
def blocked_signals(obj):
    """Temporarily silence a widget's signals (programmatic setText etc.)."""
    if obj is None:
        yield
        return
    obj.blockSignals(True)
    try:
        yield
    finally:
        obj.blockSignals(False)


class QtDebounceTimer(QObject):
    """DebounceTimer backed by a single-shot QTimer; start() restarts it."""

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._callback: Callable[[], None] | None = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.start(int(interval_ms))

    def stop(self) -> None:
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()

    def _fire(self) -> None:
        if self._callback is not None:
            self._callback()
