from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Union

from PyQt5.QtCore import QObject, pyqtSignal

from active_label.active_types import ActiveType, ElementSpan, TextRange

_BUILTIN_ORDER = (ActiveType.URL, ActiveType.MENTION, ActiveType.HASHTAG)


class ElementIndex(QObject):
    """Stores the active elements of one piece of text, keyed by type.

    Contents are never edited in place: :meth:`rebuild` swaps in a freshly
    built index and :meth:`clear` empties it, both emitting ``changed``.
    """

    changed = pyqtSignal()

    def __init__(
        self,
        spans_by_type: Optional[Mapping[ActiveType, Sequence[ElementSpan]]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._spans: Dict[ActiveType, List[ElementSpan]] = self._normalize(spans_by_type or {})

    @staticmethod
    def _normalize(spans_by_type: Mapping[ActiveType, Sequence[ElementSpan]]) -> Dict[ActiveType, List[ElementSpan]]:
        ordered: Dict[ActiveType, List[ElementSpan]] = {}
        keys = [t for t in _BUILTIN_ORDER if t in spans_by_type]
        keys += [t for t in spans_by_type if t not in _BUILTIN_ORDER]
        for active_type in keys:
            ordered[active_type] = sorted(spans_by_type[active_type], key=lambda span: span.range.offset)
        return ordered

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self._spans = {}
        self.changed.emit()

    def rebuild(self, new_index: Union["ElementIndex", Mapping[ActiveType, Sequence[ElementSpan]]]) -> None:
        """Replace every span with the contents of ``new_index``."""

        source = new_index.as_mapping() if isinstance(new_index, ElementIndex) else new_index
        self._spans = self._normalize(source)
        self.changed.emit()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def spans_at(self, offset: int) -> Optional[ElementSpan]:
        for spans in self._spans.values():
            for span in spans:
                if span.range.offset > offset:
                    break
                if span.range.contains(offset):
                    return span
        return None

    def find(self, active_type: ActiveType, text_range: TextRange) -> Optional[ElementSpan]:
        for span in self._spans.get(active_type, []):
            if span.range == text_range:
                return span
        return None

    def spans(self, active_type: ActiveType) -> List[ElementSpan]:
        return list(self._spans.get(active_type, []))

    def types(self) -> List[ActiveType]:
        return list(self._spans.keys())

    def all_spans(self) -> List[ElementSpan]:
        merged = [span for spans in self._spans.values() for span in spans]
        return sorted(merged, key=lambda span: (span.range.offset, span.range.length))

    def as_mapping(self) -> Dict[ActiveType, List[ElementSpan]]:
        return {active_type: list(spans) for active_type, spans in self._spans.items()}

    def is_empty(self) -> bool:
        return not any(self._spans.values())

    def __len__(self) -> int:
        return sum(len(spans) for spans in self._spans.values())

    def __iter__(self) -> Iterator[ElementSpan]:
        return iter(self.all_spans())
