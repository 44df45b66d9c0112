import unittest

from PyQt5.QtWidgets import QApplication

from active_label.active_types import ActiveType, TextRange
from active_label.element_index import ElementIndex

from helpers import sample_index, span


class ElementIndexTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def test_spans_at_inner_offsets(self):
        index = sample_index()
        for offset in range(2, 7):
            self.assertEqual(index.spans_at(offset).payload, "jack")
        for offset in range(10, 14):
            self.assertEqual(index.spans_at(offset).payload, "ios")

    def test_spans_at_outside(self):
        index = sample_index()
        for offset in (0, 1, 7, 9, 14, 100):
            self.assertIsNone(index.spans_at(offset))

    def test_find_by_type_and_range(self):
        index = sample_index()
        self.assertEqual(index.find(ActiveType.MENTION, TextRange(2, 5)).payload, "jack")
        self.assertIsNone(index.find(ActiveType.HASHTAG, TextRange(2, 5)))

    def test_rebuild_replaces_contents_and_notifies(self):
        index = sample_index()
        notified = []
        index.changed.connect(lambda: notified.append(True))

        url = span(ActiveType.URL, 0, "http://a.io")
        index.rebuild(ElementIndex({ActiveType.URL: [url]}))

        self.assertEqual(notified, [True])
        self.assertEqual(index.all_spans(), [url])
        self.assertIsNone(index.find(ActiveType.MENTION, TextRange(2, 5)))

    def test_clear(self):
        index = sample_index()
        notified = []
        index.changed.connect(lambda: notified.append(True))
        index.clear()
        self.assertTrue(index.is_empty())
        self.assertEqual(len(index), 0)
        self.assertEqual(notified, [True])

    def test_ordering(self):
        ticket = ActiveType.custom("ticket")
        index = ElementIndex({
            ticket: [span(ticket, 20, "AL-1")],
            ActiveType.HASHTAG: [span(ActiveType.HASHTAG, 9, "#b"), span(ActiveType.HASHTAG, 3, "#a")],
            ActiveType.URL: [span(ActiveType.URL, 30, "x.io")],
        })
        self.assertEqual(index.types(), [ActiveType.URL, ActiveType.HASHTAG, ticket])
        self.assertEqual([s.range.offset for s in index.spans(ActiveType.HASHTAG)], [3, 9])
        self.assertEqual([s.range.offset for s in index], [3, 9, 20, 30])
        self.assertEqual(len(index), 4)


if __name__ == "__main__":
    unittest.main()
