from __future__ import annotations

import enum
import logging
from typing import Optional, Tuple

from PyQt5.QtCore import QObject, QPointF, QTimer, pyqtSignal

from active_label.active_types import ActiveType, ElementSpan, TextRange
from active_label.element_index import ElementIndex
from active_label.hit_tester import HitTester
from active_label.tap_dispatch import TapDispatcher

logger = logging.getLogger(__name__)

RELEASE_FEEDBACK_MS = 250


class SelectionState(enum.Enum):
    IDLE = "idle"
    PRESSED = "pressed"
    # released over an element; highlight stays until the feedback timer fires
    RELEASED = "released"


class SelectionController(QObject):
    """Tracks the pressed element across a press / move / release / cancel cycle.

    The selection is kept as a ``(type, range)`` value and looked up again in
    the live index whenever it is used, so a rebuild can never leave it
    pointing at a span that no longer exists.
    """

    highlight_changed = pyqtSignal(object, bool)

    def __init__(
        self,
        hit_tester: HitTester,
        index: ElementIndex,
        dispatcher: TapDispatcher,
        parent: Optional[QObject] = None,
        feedback_ms: int = RELEASE_FEEDBACK_MS,
    ) -> None:
        super().__init__(parent)
        self._hit_tester = hit_tester
        self._index = index
        self._dispatcher = dispatcher
        self._state = SelectionState.IDLE
        self._selected: Optional[Tuple[ActiveType, TextRange]] = None
        self._highlighted = False

        self._release_timer = QTimer(self)
        self._release_timer.setSingleShot(True)
        self._release_timer.setInterval(feedback_ms)
        self._release_timer.timeout.connect(self._finish_release)

        self._index.changed.connect(self.reset)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def is_highlighted(self) -> bool:
        return self._highlighted

    def selected_span(self) -> Optional[ElementSpan]:
        if self._selected is None:
            return None
        return self._index.find(*self._selected)

    def is_selected(self, span: ElementSpan) -> bool:
        return self._highlighted and self._selected == (span.type, span.range)

    # ------------------------------------------------------------------
    # Pointer lifecycle
    # ------------------------------------------------------------------
    def on_press_or_move(self, point: QPointF) -> bool:
        """Update the selection for a press or drag; True when over an element."""

        self._release_timer.stop()
        span = self._hit_tester.element_at(point)
        if span is None:
            self._unhighlight()
            self._selected = None
            self._state = SelectionState.IDLE
            return False

        if self._selected == (span.type, span.range):
            if not self._highlighted:
                self._highlight(span)
            self._state = SelectionState.PRESSED
            return True

        self._unhighlight()
        self._selected = (span.type, span.range)
        self._state = SelectionState.PRESSED
        self._highlight(span)
        return True

    def on_release(self, point: QPointF) -> bool:
        """Dispatch the tap for the pressed element, if any."""

        if self._state is not SelectionState.PRESSED:
            return False
        span = self.selected_span()
        if span is None:
            logger.debug("Pressed element vanished before release; ignoring tap")
            self._unhighlight()
            self._selected = None
            self._state = SelectionState.IDLE
            return False

        self._state = SelectionState.RELEASED
        self._release_timer.start()
        self._dispatcher.dispatch(span)
        return True

    def on_cancel(self, point: Optional[QPointF] = None) -> bool:
        self._release_timer.stop()
        self._unhighlight()
        self._selected = None
        self._state = SelectionState.IDLE
        return False

    def reset(self) -> None:
        """Forget the selection without touching styling (the spans are gone)."""

        self._release_timer.stop()
        self._selected = None
        self._highlighted = False
        self._state = SelectionState.IDLE

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _finish_release(self) -> None:
        self._unhighlight()
        self._selected = None
        self._state = SelectionState.IDLE

    def _highlight(self, span: ElementSpan) -> None:
        self._highlighted = True
        self.highlight_changed.emit(span, True)

    def _unhighlight(self) -> None:
        if not self._highlighted:
            return
        self._highlighted = False
        span = self.selected_span()
        if span is not None:
            self.highlight_changed.emit(span, False)
