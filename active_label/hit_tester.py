from __future__ import annotations

from typing import Optional, Protocol

from PyQt5.QtCore import QPointF, QRectF

from active_label.active_types import ElementSpan
from active_label.element_index import ElementIndex


class TextLayout(Protocol):
    """Geometry queries answered by whatever lays the glyphs out."""

    def bounding_rect(self) -> QRectF:
        """Area occupied by the laid-out text, in text coordinates."""

    def height_correction(self) -> float:
        """Vertical offset of the text inside its display area."""

    def character_offset(self, point: QPointF) -> int:
        """UTF-16 offset of the character nearest ``point``; -1 for none."""


class HitTester:
    """Maps a point in widget coordinates to the element drawn there."""

    def __init__(self, layout: TextLayout, index: ElementIndex, fuzzy_height_matching: bool = False) -> None:
        self._layout = layout
        self._index = index
        self.fuzzy_height_matching = fuzzy_height_matching

    def layout_contains(self, point: QPointF) -> bool:
        return self._corrected_point(point) is not None

    def element_at(self, point: QPointF) -> Optional[ElementSpan]:
        if self._index.is_empty():
            return None
        location = self._corrected_point(point)
        if location is None:
            return None
        offset = self._layout.character_offset(location)
        if offset is None or offset < 0:
            return None
        return self._index.spans_at(offset)

    def is_over_element(self, point: QPointF) -> bool:
        return self.element_at(point) is not None

    def _corrected_point(self, point: QPointF) -> Optional[QPointF]:
        """Apply the vertical centring correction and test containment.

        In fuzzy mode the bounds are grown by the correction and the raw point
        is tested, which accepts touches in the blank band above and below the
        text; the point is only shifted afterwards. Otherwise the point is
        shifted first and must land inside the tight text bounds.
        """

        bounds = QRectF(self._layout.bounding_rect())
        if bounds.isEmpty():
            return None
        correction = self._layout.height_correction()
        location = QPointF(point)

        if self.fuzzy_height_matching:
            bounds.adjust(0, -correction, 0, correction)
        else:
            location.setY(location.y() - correction)

        if not bounds.contains(location):
            return None

        if self.fuzzy_height_matching:
            location.setY(location.y() - correction)
        return location
