import unittest

import pytest

from active_label.active_types import ActiveType, Custom, Hashtag, Mention, TextRange, Url
from active_label.element_builder import ElementBuilder

ALL_TYPES = [ActiveType.MENTION, ActiveType.HASHTAG, ActiveType.URL]
EXAMPLE = "Hello @jack, check #ios at http://example.com/very/long/path"


class ElementBuilderTests(unittest.TestCase):
    def setUp(self):
        self.builder = ElementBuilder()

    def test_example_with_truncated_url(self):
        final_text, index = self.builder.build(EXAMPLE, ALL_TYPES, url_maximum_length=20)

        self.assertEqual(final_text, "Hello @jack, check #ios at http://ex...ong/path")
        mention, = index.spans(ActiveType.MENTION)
        hashtag, = index.spans(ActiveType.HASHTAG)
        url, = index.spans(ActiveType.URL)

        self.assertEqual(mention.element, Mention("jack"))
        self.assertEqual(mention.range, TextRange(6, 5))
        self.assertEqual(hashtag.element, Hashtag("ios"))
        self.assertEqual(hashtag.range, TextRange(19, 4))
        self.assertEqual(url.element.original_text, "http://example.com/very/long/path")
        self.assertLessEqual(len(url.element.display_text), 20)
        self.assertEqual(url.range, TextRange(27, len(url.element.display_text)))
        self.assertEqual(final_text[url.range.offset:url.range.end], url.element.display_text)
        # nothing but the URL was rewritten
        self.assertEqual(final_text[:27], EXAMPLE[:27])

    def test_disabled_hashtags(self):
        _, index = self.builder.build(EXAMPLE, [ActiveType.MENTION, ActiveType.URL], url_maximum_length=20)
        self.assertEqual(index.types(), [ActiveType.URL, ActiveType.MENTION])
        self.assertEqual(index.spans(ActiveType.HASHTAG), [])

    def test_rebuilding_final_text_is_idempotent(self):
        final_text, index = self.builder.build(EXAMPLE, ALL_TYPES)
        again_text, again = self.builder.build(final_text, ALL_TYPES)
        self.assertEqual(final_text, EXAMPLE)
        self.assertEqual(again_text, final_text)
        self.assertEqual(again.all_spans(), index.all_spans())

    def test_filters_drop_elements(self):
        filters = {
            ActiveType.MENTION: lambda handle: handle != "jack",
            ActiveType.HASHTAG: lambda tag: tag == "ios",
        }
        _, index = self.builder.build("@jack @jill #ios #android", ALL_TYPES, filters=filters)
        self.assertEqual([s.payload for s in index.spans(ActiveType.MENTION)], ["jill"])
        self.assertEqual([s.payload for s in index.spans(ActiveType.HASHTAG)], ["ios"])

    def test_filtered_url_is_not_shortened(self):
        text = "see http://example.com/very/long/path"
        final_text, index = self.builder.build(
            text, ALL_TYPES, url_maximum_length=10, filters={ActiveType.URL: lambda url: "example" not in url}
        )
        self.assertEqual(final_text, text)
        self.assertEqual(index.spans(ActiveType.URL), [])

    def test_tags_inside_urls_belong_to_the_url(self):
        text = "read https://example.com/#intro @x"
        _, index = self.builder.build(text, ALL_TYPES)
        self.assertEqual(index.spans(ActiveType.HASHTAG), [])
        self.assertEqual([s.payload for s in index.spans(ActiveType.MENTION)], ["x"])
        self.assertEqual(index.spans(ActiveType.URL)[0].payload, "https://example.com/#intro")

    def test_custom_types(self):
        ticket = ActiveType.custom("ticket")
        self.builder.matcher.set_custom_pattern(ticket, r"\bAL-\d+\b")
        _, index = self.builder.build("fixed AL-42 #done", ALL_TYPES + [ticket])
        span, = index.spans(ticket)
        self.assertEqual(span.element, Custom("AL-42"))
        self.assertEqual(span.range, TextRange(6, 5))

    def test_custom_type_without_matcher_is_skipped(self):
        _, index = self.builder.build("AL-42", [ActiveType.custom("ticket")])
        self.assertTrue(index.is_empty())

    def test_ranges_are_utf16(self):
        final_text, index = self.builder.build("\U0001F600 @bob", ALL_TYPES)
        span, = index.spans(ActiveType.MENTION)
        self.assertEqual(span.range, TextRange(3, 4))

    def test_every_url_keeps_its_original(self):
        text = "a http://one.example.com/aaaaaaaaaaaa b https://two.example.org/bbbbbbbbbbbbbbb"
        final_text, index = self.builder.build(text, ALL_TYPES, url_maximum_length=16)
        for span in index.spans(ActiveType.URL):
            self.assertIsInstance(span.element, Url)
            self.assertIn(span.element.original_text, text)
            self.assertLessEqual(len(span.element.display_text), 16)
            self.assertGreaterEqual(len(span.element.original_text), len(span.element.display_text))
            self.assertEqual(final_text[span.range.offset:span.range.end], span.element.display_text)


def test_empty_text():
    final_text, index = ElementBuilder().build("", ALL_TYPES)
    assert final_text == ""
    assert index.is_empty()


def test_url_length_must_be_positive():
    with pytest.raises(ValueError):
        ElementBuilder().build("http://example.com", ALL_TYPES, url_maximum_length=0)
