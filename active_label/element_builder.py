"""Turns raw text into display text plus an :class:`ElementIndex`.

URLs are matched first, on the original text, and may be shortened for
display; every other category is then matched on the rewritten text, so
all offsets refer to what is actually shown.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from active_label.active_types import ActiveType, ElementSpan, TextRange, Url, make_element
from active_label.element_index import ElementIndex
from active_label.pattern_matcher import PatternMatcher, RawMatch
from active_label.text_units import truncate_middle, utf16_length, utf16_offsets

logger = logging.getLogger(__name__)

FilterPredicate = Callable[[str], bool]

# (start, end, element) in code points of the rewritten text
_UrlEntry = Tuple[int, int, Url]


class ElementBuilder:
    """Runs the pattern matcher over every enabled category."""

    def __init__(self, matcher: Optional[PatternMatcher] = None) -> None:
        self.matcher = matcher or PatternMatcher()

    def build(
        self,
        text: str,
        enabled_types: Iterable[ActiveType],
        url_maximum_length: Optional[int] = None,
        filters: Optional[Mapping[ActiveType, FilterPredicate]] = None,
    ) -> Tuple[str, ElementIndex]:
        if url_maximum_length is not None and url_maximum_length < 1:
            raise ValueError("url_maximum_length must be a positive number of characters")
        filters = filters or {}
        if not text:
            return "", ElementIndex()

        enabled: List[ActiveType] = list(dict.fromkeys(enabled_types))
        final_text = text
        url_entries: List[_UrlEntry] = []
        if ActiveType.URL in enabled:
            final_text, url_entries = self._rewrite_urls(text, url_maximum_length, filters.get(ActiveType.URL))

        offsets = utf16_offsets(final_text)
        spans_by_type: Dict[ActiveType, List[ElementSpan]] = {}
        if ActiveType.URL in enabled:
            spans_by_type[ActiveType.URL] = [
                ElementSpan(_to_range(offsets, start, end), element, ActiveType.URL)
                for start, end, element in url_entries
            ]

        claimed = [(start, end) for start, end, _ in url_entries]
        for active_type in enabled:
            if active_type == ActiveType.URL:
                continue
            if not self.matcher.has_matcher(active_type):
                logger.debug("Skipping %s: no matcher configured", active_type)
                continue
            spans_by_type[active_type] = self._collect_spans(
                active_type,
                self.matcher.find(active_type, final_text),
                offsets,
                claimed,
                filters.get(active_type),
            )

        shortened = sum(1 for _, _, element in url_entries if element.is_truncated)
        logger.debug(
            "Built %d active elements across %d types (%d urls shortened)",
            sum(len(spans) for spans in spans_by_type.values()),
            len(spans_by_type),
            shortened,
        )
        return final_text, ElementIndex(spans_by_type)

    def _rewrite_urls(
        self,
        text: str,
        url_maximum_length: Optional[int],
        predicate: Optional[FilterPredicate],
    ) -> Tuple[str, List[_UrlEntry]]:
        pieces: List[str] = []
        entries: List[_UrlEntry] = []
        cursor = 0
        written = 0
        for match in self.matcher.find(ActiveType.URL, text):
            if predicate is not None and not predicate(match.text):
                continue
            display = match.text
            if url_maximum_length is not None and utf16_length(display) > url_maximum_length:
                display = truncate_middle(display, url_maximum_length)

            pieces.append(text[cursor:match.offset])
            written += match.offset - cursor
            start = written
            pieces.append(display)
            written += len(display)
            entries.append((start, written, Url(display_text=display, original_text=match.text)))
            cursor = match.end
        pieces.append(text[cursor:])
        return "".join(pieces), entries

    @staticmethod
    def _collect_spans(
        active_type: ActiveType,
        matches: Sequence[RawMatch],
        offsets: List[int],
        claimed: List[Tuple[int, int]],
        predicate: Optional[FilterPredicate],
    ) -> List[ElementSpan]:
        spans: List[ElementSpan] = []
        for match in matches:
            # characters inside a URL belong to the URL
            if any(match.offset < end and match.end > start for start, end in claimed):
                continue
            element = make_element(active_type, match.text)
            if predicate is not None and not predicate(element.payload):
                continue
            spans.append(ElementSpan(_to_range(offsets, match.offset, match.end), element, active_type))
        return spans


def _to_range(offsets: List[int], start: int, end: int) -> TextRange:
    return TextRange(offsets[start], offsets[end] - offsets[start])
