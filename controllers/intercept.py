"""
controllers/intercept.py – Cancelable back-navigation capability.

While a detail page is open the navigation controller registers exactly one
handler here; a back gesture calls it instead of leaving the window. At most
one handler (one synthetic history marker) exists at any time: registering
again replaces the previous handler rather than stacking it.

BackIntercept   : platform-neutral version, triggered programmatically.
QtBackIntercept : event filter catching Esc, Alt+Left, the Back key and the
                  mouse back button aimed at one window.
"""

import logging
from typing import Callable, Optional

from PySide6.QtCore import QEvent, QObject, Qt
from PySide6.QtWidgets import QWidget

logger = logging.getLogger(__name__)

BackHandler = Callable[[], None]


class BackIntercept:
    """Holds at most one back handler."""

    def __init__(self) -> None:
        self._handler: Optional[BackHandler] = None

    @property
    def active(self) -> bool:
        return self._handler is not None

    @property
    def depth(self) -> int:
        """Number of synthetic history markers currently pushed (0 or 1)."""
        return 1 if self._handler is not None else 0

    def register(self, handler: BackHandler) -> None:
        if self._handler is not None:
            logger.debug("Replacing existing back handler.")
        self._handler = handler

    def release(self) -> None:
        self._handler = None

    def trigger(self) -> bool:
        """Invoke the handler; returns False when nothing is registered."""
        handler = self._handler
        if handler is None:
            return False
        handler()
        return True


class QtBackIntercept(QObject, BackIntercept):
    """
    Installs itself as an event filter on *target* (usually the application)
    and turns back gestures aimed at widgets of *scope*'s window into
    ``trigger()`` calls while a handler is registered.
    """

    def __init__(self, target: QObject, scope: QWidget, parent: Optional[QObject] = None) -> None:
        QObject.__init__(self, parent)
        BackIntercept.__init__(self)
        self._scope = scope
        target.installEventFilter(self)

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if not self.active or not _is_back_gesture(event):
            return False
        if not isinstance(watched, QWidget) or watched.window() is not self._scope.window():
            return False
        return self.trigger()


def _is_back_gesture(event: QEvent) -> bool:
    etype = event.type()
    if etype == QEvent.Type.KeyPress:
        key = event.key()
        if key in (Qt.Key.Key_Escape, Qt.Key.Key_Back):
            return True
        return key == Qt.Key.Key_Left and bool(event.modifiers() & Qt.KeyboardModifier.AltModifier)
    if etype == QEvent.Type.MouseButtonPress:
        return event.button() == Qt.MouseButton.BackButton
    return False
