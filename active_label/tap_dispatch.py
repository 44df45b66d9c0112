from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from PyQt5.QtCore import QUrl

from active_label.active_types import ActiveType, ElementSpan, TextRange

logger = logging.getLogger(__name__)

TapHandler = Callable[[str, TextRange], None]
UrlTapHandler = Callable[[QUrl, TextRange], None]
Delegate = Callable[[str, ActiveType, TextRange], None]


class TapDispatcher:
    """Routes a completed tap to the handler registered for its type.

    When no handler is registered for the exact type (or a URL payload cannot
    be parsed) the generic delegate receives the raw payload instead, so at
    most one callback fires per tap.
    """

    def __init__(self) -> None:
        self._handlers: Dict[ActiveType, Callable] = {}
        self.delegate: Optional[Delegate] = None

    def set_handler(self, active_type: ActiveType, handler: Optional[Callable]) -> None:
        if handler is None:
            self.remove_handler(active_type)
            return
        self._handlers[active_type] = handler

    def remove_handler(self, active_type: ActiveType) -> None:
        self._handlers.pop(active_type, None)

    def handler_for(self, active_type: ActiveType) -> Optional[Callable]:
        return self._handlers.get(active_type)

    def dispatch(self, span: ElementSpan) -> bool:
        """Fire one callback for ``span``; return False if nobody was listening."""

        payload = span.payload
        handler = self._handlers.get(span.type)
        if handler is not None:
            if span.type != ActiveType.URL:
                handler(payload, span.range)
                return True
            url = QUrl(payload, QUrl.StrictMode)
            if url.isValid() and not url.isEmpty():
                handler(url, span.range)
                return True
            logger.debug("URL payload %r is not a valid URL; using delegate", payload)

        if self.delegate is None:
            logger.debug("No handler or delegate for %s tap", span.type)
            return False
        self.delegate(payload, span.type, span.range)
        return True
