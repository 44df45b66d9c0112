from __future__ import annotations

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Pattern, Union

from active_label.active_types import ActiveType

logger = logging.getLogger(__name__)


class RawMatch(NamedTuple):
    """A match in code-point units, before conversion to display offsets."""

    offset: int
    length: int
    text: str

    @property
    def end(self) -> int:
        return self.offset + self.length


# "@" / "#" followed by identifier characters, not glued to a preceding word.
_MENTION_PATTERN = re.compile(r"(?<!\w)@\w+")
_HASHTAG_PATTERN = re.compile(r"(?<!\w)#\w+")

_SCHEME = r"[a-z][a-z0-9+.\-]*://"
_HOST_LABEL = r"[^\W_](?:[\w\-]{0,61}[^\W_])?"
_TLD = r"[^\W\d_]{2,63}"
_URL_PATTERN = re.compile(
    # not the tail of a word, an e-mail address, a host or a path
    r"(?<![\w@./\-])"
    r"(?:"
    rf"{_SCHEME}[^\s<>\"]+"
    r"|"
    rf"(?P<host>(?:{_HOST_LABEL}\.)+(?P<tld>{_TLD}))(?![\w@\-])(?::\d{{2,5}})?(?:[/?#][^\s<>\"]*)?"
    r")",
    re.IGNORECASE,
)

# without a scheme these read as file names, not hosts
_FILE_EXTENSIONS = frozenset(
    "cfg conf csv exe gif htm html ini jpg js json log md pdf png py rs sh svg toml ts txt xml yaml yml zip".split()
)

_TRAILING_PUNCTUATION = ".,;:!?'\""
_BRACKET_PAIRS = {")": "(", "]": "[", "}": "{"}

CustomMatcher = Union[str, Pattern]


def _is_bare_host(host: str, tld: str, rest: str) -> bool:
    """Whether a scheme-less match names a host rather than ordinary prose.

    ``www.`` hosts always qualify. Otherwise the TLD must be lower case
    (``Mr.Smith`` is not a host) and a TLD that doubles as a file extension
    (``node.js``, ``file.txt``) needs a port or path after it.
    """

    if host.lower().startswith("www."):
        return True
    if not tld.islower():
        return False
    return bool(rest) or tld not in _FILE_EXTENSIONS


def _trim_url(candidate: str) -> str:
    """Drop sentence punctuation and unbalanced closing brackets from the end."""

    while candidate:
        last = candidate[-1]
        if last in _TRAILING_PUNCTUATION:
            candidate = candidate[:-1]
            continue
        opener = _BRACKET_PAIRS.get(last)
        if opener is not None and candidate.count(last) > candidate.count(opener):
            candidate = candidate[:-1]
            continue
        break
    return candidate


class PatternMatcher:
    """Finds raw matches for each active type.

    Built-in categories use fixed rules; custom categories are backed by a
    regex registered with :meth:`set_custom_pattern`. Matching is stateless:
    the same text always yields the same matches.
    """

    def __init__(self) -> None:
        self._custom: Dict[ActiveType, Pattern] = {}

    # ------------------------------------------------------------------
    # Custom matchers
    # ------------------------------------------------------------------
    def set_custom_pattern(self, active_type: ActiveType, pattern: Optional[CustomMatcher]) -> None:
        """Register (or with ``None`` remove) the matcher for a custom type.

        ``pattern`` is either a regex source string, compiled here, or an
        already compiled pattern object exposing ``finditer``.
        """

        if not active_type.is_custom:
            raise ValueError(f"{active_type} is not a custom type")
        if pattern is None:
            self._custom.pop(active_type, None)
            return
        if isinstance(pattern, str):
            compiled = re.compile(pattern)
        elif hasattr(pattern, "finditer"):
            compiled = pattern
        else:
            raise TypeError(f"unsupported matcher for {active_type}: {pattern!r}")
        self._custom[active_type] = compiled

    def has_matcher(self, active_type: ActiveType) -> bool:
        if active_type.is_custom:
            return active_type in self._custom
        return True

    def custom_types(self) -> List[ActiveType]:
        return list(self._custom.keys())

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def find(self, active_type: ActiveType, text: str) -> List[RawMatch]:
        if not text:
            return []
        if active_type == ActiveType.URL:
            return self._find_urls(text)
        if active_type == ActiveType.MENTION:
            return self._collect(_MENTION_PATTERN, text)
        if active_type == ActiveType.HASHTAG:
            return self._collect(_HASHTAG_PATTERN, text)

        pattern = self._custom.get(active_type)
        if pattern is None:
            logger.debug("No matcher registered for %s; skipping", active_type)
            return []
        return self._collect(pattern, text)

    @staticmethod
    def _collect(pattern: Pattern, text: str) -> List[RawMatch]:
        results: List[RawMatch] = []
        last_end = 0
        for match in pattern.finditer(text):
            start, end = match.span()
            # empty matches carry nothing to tap on
            if end <= start or start < last_end:
                continue
            results.append(RawMatch(start, end - start, match.group()))
            last_end = end
        return results

    @staticmethod
    def _find_urls(text: str) -> List[RawMatch]:
        results: List[RawMatch] = []
        for match in _URL_PATTERN.finditer(text):
            word = _trim_url(match.group())
            if not word or "." not in word and "://" not in word:
                continue
            if "://" in word and word.endswith("://"):
                continue
            host = match.group("host")
            if host is not None and not _is_bare_host(host, match.group("tld"), word[len(host):]):
                continue
            results.append(RawMatch(match.start(), len(word), word))
        return results
