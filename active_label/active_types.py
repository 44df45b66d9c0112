from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, NamedTuple, Optional, Union


MENTION = "mention"
HASHTAG = "hashtag"
URL = "url"
CUSTOM = "custom"

_BUILTIN_KINDS = (MENTION, HASHTAG, URL)
_CUSTOM_PREFIX = "custom:"


@dataclass(frozen=True)
class ActiveType:
    """Category tag for an active element.

    Built-in categories are exposed as class attributes; custom categories are
    created with :meth:`custom` and compare equal only when their ids match.
    """

    kind: str
    custom_id: Optional[str] = None

    MENTION: ClassVar["ActiveType"]
    HASHTAG: ClassVar["ActiveType"]
    URL: ClassVar["ActiveType"]

    def __post_init__(self) -> None:
        if self.kind == CUSTOM:
            if not self.custom_id:
                raise ValueError("custom active types need a non-empty id")
        elif self.kind in _BUILTIN_KINDS:
            if self.custom_id is not None:
                raise ValueError(f"{self.kind} does not take a custom id")
        else:
            raise ValueError(f"unknown active type kind: {self.kind!r}")

    @classmethod
    def custom(cls, custom_id: str) -> "ActiveType":
        return cls(CUSTOM, custom_id)

    @classmethod
    def from_key(cls, key: str) -> "ActiveType":
        """Parse a key produced by :attr:`key` (``"mention"``, ``"custom:foo"``...)."""
        key = (key or "").strip()
        if key in _BUILTIN_KINDS:
            return cls(key)
        if key.startswith(_CUSTOM_PREFIX):
            return cls.custom(key[len(_CUSTOM_PREFIX):])
        raise ValueError(f"unknown active type key: {key!r}")

    @property
    def key(self) -> str:
        if self.kind == CUSTOM:
            return f"{_CUSTOM_PREFIX}{self.custom_id}"
        return self.kind

    @property
    def is_custom(self) -> bool:
        return self.kind == CUSTOM

    def __str__(self) -> str:
        return self.key


ActiveType.MENTION = ActiveType(MENTION)
ActiveType.HASHTAG = ActiveType(HASHTAG)
ActiveType.URL = ActiveType(URL)


@dataclass(frozen=True)
class Mention:
    handle: str

    @property
    def payload(self) -> str:
        return self.handle


@dataclass(frozen=True)
class Hashtag:
    tag: str

    @property
    def payload(self) -> str:
        return self.tag


@dataclass(frozen=True)
class Url:
    """A URL element; ``original_text`` is kept even when the display is shortened."""

    display_text: str
    original_text: str

    @property
    def payload(self) -> str:
        return self.original_text

    @property
    def is_truncated(self) -> bool:
        return self.display_text != self.original_text


@dataclass(frozen=True)
class Custom:
    text: str

    @property
    def payload(self) -> str:
        return self.text


ActiveElement = Union[Mention, Hashtag, Url, Custom]


class TextRange(NamedTuple):
    """Half-open range in UTF-16 code units."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length

    def contains(self, position: int) -> bool:
        return self.offset <= position < self.offset + self.length

    def overlaps(self, other: "TextRange") -> bool:
        return self.offset < other.end and other.offset < self.end


@dataclass(frozen=True)
class ElementSpan:
    """A single active element found within the display text."""

    range: TextRange
    element: ActiveElement
    type: ActiveType

    @property
    def payload(self) -> str:
        return self.element.payload


def make_element(active_type: ActiveType, text: str) -> ActiveElement:
    """Build the element variant for a matched substring (sigils stripped)."""

    if active_type == ActiveType.MENTION:
        return Mention(text[1:] if text.startswith("@") else text)
    if active_type == ActiveType.HASHTAG:
        return Hashtag(text[1:] if text.startswith("#") else text)
    if active_type == ActiveType.URL:
        return Url(display_text=text, original_text=text)
    return Custom(text)
