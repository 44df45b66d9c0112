from PyQt5.QtCore import QPointF, QRectF

from active_label.active_types import ActiveType, ElementSpan, TextRange, make_element
from active_label.element_index import ElementIndex


def span(active_type, offset, text):
    return ElementSpan(TextRange(offset, len(text)), make_element(active_type, text), active_type)


def sample_index():
    """``@jack`` at 2..7 and ``#ios`` at 10..14 on a 10px-per-character line."""
    return ElementIndex({
        ActiveType.MENTION: [span(ActiveType.MENTION, 2, "@jack")],
        ActiveType.HASHTAG: [span(ActiveType.HASHTAG, 10, "#ios")],
    })


class FakeLayout:
    """One line of 20 characters, each 10px wide and 20px tall."""

    def __init__(self, correction=0.0, width=200.0, height=20.0):
        self.correction = correction
        self.rect = QRectF(0, 0, width, height)

    def bounding_rect(self):
        return QRectF(self.rect)

    def height_correction(self):
        return self.correction

    def character_offset(self, point: QPointF):
        if point.x() < 0 or point.x() >= self.rect.width():
            return -1
        return int(point.x() // 10)
