from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import QObject, QEvent, Qt
from PyQt5.QtGui import QCursor
from PyQt5.QtWidgets import QWidget, QAbstractButton


_HAND_CURSOR_PROPERTY = "_al_hand_cursor_applied"
_ORIGINAL_CURSOR_PROPERTY = "_al_original_cursor_shape"
_FORCE_HAND_PROPERTY = "alForceHandCursor"
_PREVENT_HAND_PROPERTY = "alPreventHandCursor"
_CLICKABLE_PROPERTY = "alClickableHandCursor"


class CursorManager(QObject):
    """Application-wide filter that swaps between arrow and pointing hand cursors.

    Labels flip ``alClickableHandCursor`` while the pointer is over one of
    their active elements; buttons always count as clickable.

    Dynamic properties exposed:
        - ``alForceHandCursor``: Always show pointing hand while hovered.
        - ``alPreventHandCursor``: Never show pointing hand cursor.
        - ``alClickableHandCursor``: Treat widget as clickable when True.
    """

    _instance: Optional["CursorManager"] = None

    def __init__(self, app):
        super().__init__(app)
        self._app = app
        self._app.installEventFilter(self)

    @classmethod
    def install(cls, app) -> "CursorManager":
        if cls._instance is None:
            cls._instance = cls(app)
        return cls._instance

    @classmethod
    def instance(cls) -> Optional["CursorManager"]:
        return cls._instance

    def eventFilter(self, watched, event):
        if isinstance(watched, QWidget):
            etype = event.type()
            if etype in (QEvent.Enter, QEvent.HoverEnter):
                self._handle_hover(watched)
            elif etype in (QEvent.Leave, QEvent.HoverLeave):
                self._restore_cursor(watched)
            elif etype == QEvent.EnabledChange and not watched.isEnabled():
                self._restore_cursor(watched)
        return super().eventFilter(watched, event)

    def _handle_hover(self, widget: QWidget) -> None:
        if self._should_use_hand_cursor(widget):
            self._apply_hand_cursor(widget)
        else:
            self._restore_cursor(widget)

    def _should_use_hand_cursor(self, widget: QWidget) -> bool:
        if widget.property(_PREVENT_HAND_PROPERTY):
            return False
        if widget.property(_FORCE_HAND_PROPERTY):
            return True
        if not widget.isEnabled():
            return False
        if widget.property(_CLICKABLE_PROPERTY):
            return True
        return isinstance(widget, QAbstractButton)

    def _apply_hand_cursor(self, widget: QWidget) -> None:
        if widget.property(_HAND_CURSOR_PROPERTY):
            return
        if widget.testAttribute(Qt.WA_SetCursor):
            widget.setProperty(_ORIGINAL_CURSOR_PROPERTY, widget.cursor())
        else:
            widget.setProperty(_ORIGINAL_CURSOR_PROPERTY, None)
        widget.setCursor(Qt.PointingHandCursor)
        widget.setProperty(_HAND_CURSOR_PROPERTY, True)

    def _restore_cursor(self, widget: QWidget) -> None:
        if not widget.property(_HAND_CURSOR_PROPERTY):
            return
        original_cursor = widget.property(_ORIGINAL_CURSOR_PROPERTY)
        if isinstance(original_cursor, QCursor):
            widget.setCursor(original_cursor)
        else:
            widget.unsetCursor()
        widget.setProperty(_HAND_CURSOR_PROPERTY, False)
        widget.setProperty(_ORIGINAL_CURSOR_PROPERTY, None)

    def set_widget_clickable(self, widget: QWidget, is_clickable: bool) -> None:
        widget.setProperty(_CLICKABLE_PROPERTY, bool(is_clickable))
        if is_clickable and self._should_use_hand_cursor(widget):
            self._apply_hand_cursor(widget)
        else:
            self._restore_cursor(widget)


def install_cursor_manager(app) -> CursorManager:
    """Convenience helper mirroring :meth:`CursorManager.install`."""
    return CursorManager.install(app)


def is_dynamic_clickable(widget: QWidget) -> bool:
    return bool(widget.property(_CLICKABLE_PROPERTY))


def set_dynamic_clickable(widget: QWidget, is_clickable: bool) -> None:
    """Mark ``widget`` clickable; without an installed manager only the flag is stored."""
    manager = CursorManager.instance()
    if manager is not None:
        manager.set_widget_clickable(widget, is_clickable)
    else:
        widget.setProperty(_CLICKABLE_PROPERTY, bool(is_clickable))
