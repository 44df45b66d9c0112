from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional

from PyQt5.QtCore import QEvent, QPointF, QRectF, QSize, Qt, pyqtSignal
from PyQt5.QtGui import (
    QAbstractTextDocumentLayout,
    QColor,
    QFont,
    QFontMetricsF,
    QPainter,
    QPalette,
    QTextBlockFormat,
    QTextCursor,
    QTextDocument,
    QTextLine,
)
from PyQt5.QtWidgets import QWidget

from active_label.active_types import ActiveType, ElementSpan
from active_label.element_builder import ElementBuilder, FilterPredicate
from active_label.element_index import ElementIndex
from active_label.highlighter import ActiveHighlighter, ConfigureLinkAttribute, LinkStyle
from active_label.hit_tester import HitTester
from active_label.pattern_matcher import CustomMatcher
from active_label.selection_controller import SelectionController
from active_label.tap_dispatch import Delegate, TapHandler, TapDispatcher, UrlTapHandler
from util.cursor_manager import set_dynamic_clickable

logger = logging.getLogger(__name__)

DEFAULT_ENABLED_TYPES = (ActiveType.MENTION, ActiveType.HASHTAG, ActiveType.URL)


class _DocumentLayout:
    """Answers geometry queries for the hit tester from a ``QTextDocument``."""

    def __init__(self, widget: QWidget, document: QTextDocument) -> None:
        self._widget = widget
        self._document = document

    def _text_height(self) -> float:
        return self._document.documentLayout().documentSize().height()

    def bounding_rect(self) -> QRectF:
        if self._document.isEmpty():
            return QRectF()
        size = self._document.documentLayout().documentSize()
        return QRectF(0.0, 0.0, size.width(), size.height())

    def height_correction(self) -> float:
        return max(0.0, (self._widget.height() - self._text_height()) / 2.0)

    def character_offset(self, point: QPointF) -> int:
        """Offset of the character drawn under ``point`` or -1 between/after glyphs."""

        position = self._document.documentLayout().hitTest(point, Qt.FuzzyHit)
        if position < 0:
            return -1
        block = self._document.findBlock(position)
        if not block.isValid():
            return -1
        text_layout = block.layout()
        origin = text_layout.position()
        local_x = point.x() - origin.x()
        local_y = point.y() - origin.y()
        # points above or below the text resolve to the nearest line
        line = None
        for line_number in range(text_layout.lineCount()):
            line = text_layout.lineAt(line_number)
            if local_y < line.y() + line.height():
                break
        if line is None:
            return -1
        # naturalTextRect includes the alignment offset; line.x() does not
        glyphs = line.naturalTextRect()
        if local_x < glyphs.left() or local_x >= glyphs.right():
            return -1
        return block.position() + line.xToCursor(local_x, QTextLine.CursorOnCharacter)


class ActiveLabel(QWidget):
    """Read-only text widget whose mentions, hashtags, URLs and custom
    patterns are coloured and respond to taps.

    Content or category changes go through :meth:`rebuild`; purely visual
    changes go through :meth:`restyle`, which never rescans the text. Wrap
    several configuration calls in :meth:`customize` to pay for one update.
    """

    textChanged = pyqtSignal(str)

    def __init__(self, text: str = "", parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._text = ""
        self._display_text = ""
        self._enabled_types: List[ActiveType] = list(DEFAULT_ENABLED_TYPES)
        self._filters: Dict[ActiveType, FilterPredicate] = {}
        self._url_maximum_length: Optional[int] = None
        self._line_spacing = 0.0
        self._minimum_line_height = 0.0
        self._alignment = Qt.AlignLeft
        self._text_color: Optional[QColor] = None
        self._customizing = 0
        self._pending_rebuild = False
        self._pending_restyle = False
        self._hover_clickable = False

        self._builder = ElementBuilder()
        self._index = ElementIndex(parent=self)
        self._dispatcher = TapDispatcher()
        self._style = LinkStyle()

        self._document = QTextDocument(self)
        self._document.setDocumentMargin(0)
        self._document.setUndoRedoEnabled(False)
        self._layout = _DocumentLayout(self, self._document)
        self._hit_tester = HitTester(self._layout, self._index)
        self._selection = SelectionController(self._hit_tester, self._index, self._dispatcher, self)
        self._selection.highlight_changed.connect(self._on_highlight_changed)
        self._highlighter = ActiveHighlighter(self._document, self._index, self._style, self._selection.is_selected)

        self.setAttribute(Qt.WA_Hover, True)
        self.setAttribute(Qt.WA_AcceptTouchEvents, True)
        self.setMouseTracking(True)

        self._sync_style_from_widget()
        if text:
            self.setText(text)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------
    def text(self) -> str:
        """The text as given, before URL shortening."""
        return self._text

    def setText(self, text: Optional[str]) -> None:
        self._text = text or ""
        self._request_rebuild()
        self.textChanged.emit(self._text)

    def displayText(self) -> str:
        return self._display_text

    def elements(self) -> List[ElementSpan]:
        return self._index.all_spans()

    @property
    def element_index(self) -> ElementIndex:
        return self._index

    @property
    def selection_controller(self) -> SelectionController:
        return self._selection

    @property
    def hit_tester(self) -> HitTester:
        return self._hit_tester

    @property
    def link_style(self) -> LinkStyle:
        return self._style

    def document(self) -> QTextDocument:
        return self._document

    # ------------------------------------------------------------------
    # Categories and matching (rebuild)
    # ------------------------------------------------------------------
    def enabled_types(self) -> List[ActiveType]:
        return list(self._enabled_types)

    def set_enabled_types(self, types: Iterable[ActiveType]) -> None:
        self._enabled_types = list(dict.fromkeys(types))
        self._request_rebuild()

    def add_custom_type(self, active_type: ActiveType, pattern: CustomMatcher, enable: bool = True) -> None:
        """Register the matcher for a custom type and (by default) enable it."""
        self._builder.matcher.set_custom_pattern(active_type, pattern)
        if enable and active_type not in self._enabled_types:
            self._enabled_types.append(active_type)
        self._request_rebuild()

    def remove_custom_type(self, active_type: ActiveType) -> None:
        self._builder.matcher.set_custom_pattern(active_type, None)
        self._enabled_types = [t for t in self._enabled_types if t != active_type]
        self._filters.pop(active_type, None)
        self._dispatcher.remove_handler(active_type)
        self._request_rebuild()

    def url_maximum_length(self) -> Optional[int]:
        return self._url_maximum_length

    def set_url_maximum_length(self, length: Optional[int]) -> None:
        if length is not None and length < 1:
            raise ValueError("url maximum length must be positive or None")
        self._url_maximum_length = length
        self._request_rebuild()

    def filter_mention(self, predicate: Optional[FilterPredicate]) -> None:
        self._set_filter(ActiveType.MENTION, predicate)

    def filter_hashtag(self, predicate: Optional[FilterPredicate]) -> None:
        self._set_filter(ActiveType.HASHTAG, predicate)

    def filter_url(self, predicate: Optional[FilterPredicate]) -> None:
        self._set_filter(ActiveType.URL, predicate)

    def filter_custom(self, active_type: ActiveType, predicate: Optional[FilterPredicate]) -> None:
        self._set_filter(active_type, predicate)

    def _set_filter(self, active_type: ActiveType, predicate: Optional[FilterPredicate]) -> None:
        if predicate is None:
            self._filters.pop(active_type, None)
        else:
            self._filters[active_type] = predicate
        self._request_rebuild()

    # ------------------------------------------------------------------
    # Appearance (restyle)
    # ------------------------------------------------------------------
    def set_mention_color(self, color: QColor) -> None:
        self._set_color(ActiveType.MENTION, color)

    def set_mention_selected_color(self, color: Optional[QColor]) -> None:
        self._set_selected_color(ActiveType.MENTION, color)

    def set_hashtag_color(self, color: QColor) -> None:
        self._set_color(ActiveType.HASHTAG, color)

    def set_hashtag_selected_color(self, color: Optional[QColor]) -> None:
        self._set_selected_color(ActiveType.HASHTAG, color)

    def set_url_color(self, color: QColor) -> None:
        self._set_color(ActiveType.URL, color)

    def set_url_selected_color(self, color: Optional[QColor]) -> None:
        self._set_selected_color(ActiveType.URL, color)

    def set_custom_color(self, active_type: ActiveType, color: Optional[QColor]) -> None:
        self._set_color(active_type, color)

    def set_custom_selected_color(self, active_type: ActiveType, color: Optional[QColor]) -> None:
        self._set_selected_color(active_type, color)

    def _set_color(self, active_type: ActiveType, color: Optional[QColor]) -> None:
        self._style.set_color(active_type, QColor(color) if color is not None else None)
        self._request_restyle()

    def _set_selected_color(self, active_type: ActiveType, color: Optional[QColor]) -> None:
        self._style.set_selected_color(active_type, QColor(color) if color is not None else None)
        self._request_restyle()

    def set_text_color(self, color: Optional[QColor]) -> None:
        self._text_color = QColor(color) if color is not None else None
        self._request_restyle()

    def set_highlight_font(self, font: Optional[QFont]) -> None:
        self._style.highlight_font = QFont(font) if font is not None else None
        self._request_restyle()

    def set_configure_link_attribute(self, callback: Optional[ConfigureLinkAttribute]) -> None:
        self._style.configure_link_attribute = callback
        self._request_restyle()

    def set_line_spacing(self, spacing: float) -> None:
        self._line_spacing = max(0.0, float(spacing))
        self._request_restyle()

    def set_minimum_line_height(self, height: float) -> None:
        self._minimum_line_height = max(0.0, float(height))
        self._request_restyle()

    def alignment(self) -> Qt.Alignment:
        return self._alignment

    def setAlignment(self, alignment: Qt.Alignment) -> None:
        self._alignment = alignment
        self._request_restyle()

    def fuzzy_height_matching(self) -> bool:
        return self._hit_tester.fuzzy_height_matching

    def set_fuzzy_height_matching(self, enabled: bool) -> None:
        self._hit_tester.fuzzy_height_matching = bool(enabled)

    # ------------------------------------------------------------------
    # Tap handlers
    # ------------------------------------------------------------------
    # Errors raised by a handler propagate out of on_release(); releases
    # delivered as mouse or touch events log them instead.
    def handle_mention_tap(self, handler: Optional[TapHandler]) -> None:
        self._dispatcher.set_handler(ActiveType.MENTION, handler)

    def handle_hashtag_tap(self, handler: Optional[TapHandler]) -> None:
        self._dispatcher.set_handler(ActiveType.HASHTAG, handler)

    def handle_url_tap(self, handler: Optional[UrlTapHandler]) -> None:
        self._dispatcher.set_handler(ActiveType.URL, handler)

    def handle_custom_tap(self, active_type: ActiveType, handler: Optional[TapHandler]) -> None:
        self._dispatcher.set_handler(active_type, handler)

    def remove_handle(self, active_type: ActiveType) -> None:
        self._dispatcher.remove_handler(active_type)

    def set_delegate(self, delegate: Optional[Delegate]) -> None:
        self._dispatcher.delegate = delegate

    # ------------------------------------------------------------------
    # Update cycle
    # ------------------------------------------------------------------
    @contextmanager
    def customize(self) -> Iterator["ActiveLabel"]:
        """Batch configuration changes into a single rebuild or restyle."""
        self._customizing += 1
        try:
            yield self
        finally:
            self._customizing -= 1
            if self._customizing == 0:
                if self._pending_rebuild:
                    self.rebuild()
                elif self._pending_restyle:
                    self.restyle()

    def _request_rebuild(self) -> None:
        if self._customizing:
            self._pending_rebuild = True
            return
        self.rebuild()

    def _request_restyle(self) -> None:
        if self._customizing:
            self._pending_restyle = True
            return
        self.restyle()

    def rebuild(self) -> None:
        """Rescan the text and replace every element."""
        self._pending_rebuild = False
        self._pending_restyle = False
        final_text, new_index = self._builder.build(
            self._text,
            self._enabled_types,
            self._url_maximum_length,
            self._filters,
        )
        self._display_text = final_text
        self._index.rebuild(new_index)
        self._sync_style_from_widget()
        self._document.setPlainText(final_text)
        self._apply_block_format()
        self._highlighter.rehighlight()
        logger.debug("Rebuilt label: %d elements, %d characters shown", len(self._index), len(final_text))
        self.updateGeometry()
        self.update()

    def restyle(self) -> None:
        """Reapply colours and fonts to the existing elements."""
        self._pending_restyle = False
        self._sync_style_from_widget()
        self._apply_block_format()
        self._highlighter.rehighlight()
        self.updateGeometry()
        self.update()

    def _sync_style_from_widget(self) -> None:
        self._style.font = QFont(self.font())
        self._style.text_color = (
            QColor(self._text_color) if self._text_color is not None else self.palette().color(QPalette.WindowText)
        )
        self._document.setDefaultFont(self.font())

    def _apply_block_format(self) -> None:
        block_format = QTextBlockFormat()
        block_format.setAlignment(self._alignment)
        if self._minimum_line_height > 0:
            natural = QFontMetricsF(self.font()).lineSpacing() + self._line_spacing
            block_format.setLineHeight(max(self._minimum_line_height, natural), QTextBlockFormat.MinimumHeight)
        elif self._line_spacing > 0:
            block_format.setLineHeight(self._line_spacing, QTextBlockFormat.LineDistanceHeight)
        cursor = QTextCursor(self._document)
        cursor.select(QTextCursor.Document)
        cursor.setBlockFormat(block_format)

    def _on_highlight_changed(self, span: ElementSpan, is_selected: bool) -> None:
        self._highlighter.restyle_span(span)
        self.update()

    # ------------------------------------------------------------------
    # Touch lifecycle
    # ------------------------------------------------------------------
    def on_press_or_move(self, point: QPointF) -> bool:
        return self._selection.on_press_or_move(QPointF(point))

    def on_release(self, point: QPointF) -> bool:
        return self._selection.on_release(QPointF(point))

    def on_cancel(self, point: Optional[QPointF] = None) -> bool:
        return self._selection.on_cancel(QPointF(point) if point is not None else None)

    def mousePressEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.LeftButton and self.on_press_or_move(event.localPos()):
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # noqa: N802
        if event.buttons() & Qt.LeftButton:
            if self.on_press_or_move(event.localPos()):
                event.accept()
                return
        else:
            self._update_hover_clickable(event.localPos())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.LeftButton and self._release_from_event(event.localPos()):
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def leaveEvent(self, event) -> None:  # noqa: N802
        self._update_hover_clickable(None)
        super().leaveEvent(event)

    def hideEvent(self, event) -> None:  # noqa: N802
        self.on_cancel()
        super().hideEvent(event)

    def event(self, event: QEvent) -> bool:
        etype = event.type()
        if etype in (QEvent.TouchBegin, QEvent.TouchUpdate, QEvent.TouchEnd, QEvent.TouchCancel):
            points = event.touchPoints()
            point = QPointF(points[0].pos()) if points else None
            if etype == QEvent.TouchCancel or point is None:
                self.on_cancel(point)
            elif etype == QEvent.TouchEnd:
                self._release_from_event(point)
            else:
                self.on_press_or_move(point)
            event.accept()
            return True
        return super().event(event)

    def _release_from_event(self, point: QPointF) -> bool:
        # a handler error must not unwind through a Qt virtual
        try:
            return self.on_release(point)
        except Exception:
            logger.exception("Tap handler failed at (%.1f, %.1f)", point.x(), point.y())
            return True

    def changeEvent(self, event: QEvent) -> None:  # noqa: N802
        # may arrive from QWidget.__init__ before the highlighter exists
        if event.type() in (QEvent.FontChange, QEvent.PaletteChange) and hasattr(self, "_highlighter"):
            self._request_restyle()
        super().changeEvent(event)

    def _update_hover_clickable(self, point: Optional[QPointF]) -> None:
        is_clickable = point is not None and self._hit_tester.is_over_element(QPointF(point))
        if is_clickable != self._hover_clickable:
            self._hover_clickable = is_clickable
            set_dynamic_clickable(self, is_clickable)

    # ------------------------------------------------------------------
    # Geometry and painting
    # ------------------------------------------------------------------
    def resizeEvent(self, event) -> None:  # noqa: N802
        self._document.setTextWidth(self.width())
        super().resizeEvent(event)

    def hasHeightForWidth(self) -> bool:  # noqa: N802
        return True

    def heightForWidth(self, width: int) -> int:  # noqa: N802
        document = self._document.clone()
        document.setTextWidth(width)
        return math.ceil(document.size().height())

    def sizeHint(self) -> QSize:  # noqa: N802
        document = self._document.clone()
        document.setTextWidth(-1)
        size = document.size()
        return QSize(math.ceil(size.width()), math.ceil(size.height()))

    def minimumSizeHint(self) -> QSize:  # noqa: N802
        return QSize(0, math.ceil(QFontMetricsF(self.font()).lineSpacing()))

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.translate(0, self._layout.height_correction())
        context = QAbstractTextDocumentLayout.PaintContext()
        context.palette = self.palette()
        self._document.documentLayout().draw(painter, context)
        painter.end()
