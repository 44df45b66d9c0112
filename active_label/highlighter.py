from __future__ import annotations

from typing import Callable, Dict, Optional

from PyQt5.QtGui import QColor, QFont, QSyntaxHighlighter, QTextCharFormat, QTextDocument

from active_label.active_types import ActiveType, ElementSpan
from active_label.element_index import ElementIndex
from active_label.text_units import utf16_length

ConfigureLinkAttribute = Callable[[ActiveType, QTextCharFormat, bool], QTextCharFormat]

DEFAULT_LINK_COLOR = QColor("#0000ff")
DEFAULT_CUSTOM_COLOR = QColor("#000000")


class LinkStyle:
    """Colours and fonts used for active elements, normal and selected."""

    def __init__(self) -> None:
        self.text_color = QColor("#000000")
        self.font: Optional[QFont] = None
        self.highlight_font: Optional[QFont] = None
        self.configure_link_attribute: Optional[ConfigureLinkAttribute] = None
        self._colors: Dict[ActiveType, QColor] = {
            ActiveType.MENTION: QColor(DEFAULT_LINK_COLOR),
            ActiveType.HASHTAG: QColor(DEFAULT_LINK_COLOR),
            ActiveType.URL: QColor(DEFAULT_LINK_COLOR),
        }
        self._selected_colors: Dict[ActiveType, QColor] = {}

    def set_color(self, active_type: ActiveType, color: Optional[QColor]) -> None:
        if color is None:
            self._colors.pop(active_type, None)
        else:
            self._colors[active_type] = QColor(color)

    def set_selected_color(self, active_type: ActiveType, color: Optional[QColor]) -> None:
        if color is None:
            self._selected_colors.pop(active_type, None)
        else:
            self._selected_colors[active_type] = QColor(color)

    def color(self, active_type: ActiveType) -> QColor:
        fallback = DEFAULT_CUSTOM_COLOR if active_type.is_custom else DEFAULT_LINK_COLOR
        return QColor(self._colors.get(active_type, fallback))

    def selected_color(self, active_type: ActiveType) -> QColor:
        # no selected colour configured -> stay on the normal one
        selected = self._selected_colors.get(active_type)
        return QColor(selected) if selected is not None else self.color(active_type)

    def base_format(self) -> QTextCharFormat:
        fmt = QTextCharFormat()
        fmt.setForeground(self.text_color)
        if self.font is not None:
            fmt.setFont(self.font)
        return fmt

    def format_for(self, active_type: ActiveType, is_selected: bool) -> QTextCharFormat:
        fmt = self.base_format()
        fmt.setForeground(self.selected_color(active_type) if is_selected else self.color(active_type))
        if self.highlight_font is not None:
            fmt.setFont(self.highlight_font)
        if self.configure_link_attribute is not None:
            fmt = self.configure_link_attribute(active_type, QTextCharFormat(fmt), is_selected)
        return fmt


class ActiveHighlighter(QSyntaxHighlighter):
    """Paints every indexed element, and the selected one in its selected colour."""

    def __init__(
        self,
        document: QTextDocument,
        index: ElementIndex,
        style: LinkStyle,
        is_selected: Optional[Callable[[ElementSpan], bool]] = None,
    ) -> None:
        super().__init__(document)
        self._index = index
        self._style = style
        self._is_selected = is_selected or (lambda span: False)

    def highlightBlock(self, text: str) -> None:  # noqa: N802 - Qt override
        block = self.currentBlock()
        block_start = block.position()
        block_length = utf16_length(text)
        block_end = block_start + block_length
        if block_length:
            self.setFormat(0, block_length, self._style.base_format())

        for span in self._index.all_spans():
            if span.range.offset >= block_end:
                break
            overlap_start = max(block_start, span.range.offset)
            overlap_end = min(block_end, span.range.end)
            if overlap_start >= overlap_end:
                continue
            fmt = self._style.format_for(span.type, self._is_selected(span))
            self.setFormat(overlap_start - block_start, overlap_end - overlap_start, fmt)

    def restyle_span(self, span: ElementSpan) -> None:
        """Repaint only the blocks covered by ``span``."""

        document = self.document()
        if document is None:
            return
        block = document.findBlock(span.range.offset)
        while block.isValid() and block.position() < max(span.range.end, span.range.offset + 1):
            self.rehighlightBlock(block)
            block = block.next()
