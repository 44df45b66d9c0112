import pytest
from PyQt5.QtCore import QUrl

from active_label.active_types import ActiveType, TextRange
from active_label.tap_dispatch import TapDispatcher

from helpers import span


def test_handler_receives_payload_and_range():
    dispatcher = TapDispatcher()
    calls = []
    dispatcher.set_handler(ActiveType.MENTION, lambda payload, rng: calls.append((payload, rng)))
    assert dispatcher.dispatch(span(ActiveType.MENTION, 2, "@jack"))
    assert calls == [("jack", TextRange(2, 5))]


def test_url_handler_receives_qurl_of_original():
    dispatcher = TapDispatcher()
    calls = []
    dispatcher.set_handler(ActiveType.URL, lambda url, rng: calls.append(url))
    dispatcher.dispatch(span(ActiveType.URL, 0, "http://example.com/path"))
    assert calls == [QUrl("http://example.com/path")]


def test_unparseable_url_goes_to_delegate():
    dispatcher = TapDispatcher()
    handled, delegated = [], []
    dispatcher.set_handler(ActiveType.URL, lambda url, rng: handled.append(url))
    dispatcher.delegate = lambda payload, active_type, rng: delegated.append((payload, active_type))
    assert dispatcher.dispatch(span(ActiveType.URL, 0, "http://[::1"))
    assert handled == []
    assert delegated == [("http://[::1", ActiveType.URL)]


def test_delegate_used_without_specific_handler():
    dispatcher = TapDispatcher()
    delegated = []
    dispatcher.delegate = lambda payload, active_type, rng: delegated.append((payload, active_type, rng))
    ticket = ActiveType.custom("ticket")
    dispatcher.dispatch(span(ticket, 4, "AL-42"))
    assert delegated == [("AL-42", ticket, TextRange(4, 5))]


def test_exactly_one_callback_per_tap():
    dispatcher = TapDispatcher()
    calls = []
    dispatcher.set_handler(ActiveType.HASHTAG, lambda payload, rng: calls.append("handler"))
    dispatcher.delegate = lambda payload, active_type, rng: calls.append("delegate")
    dispatcher.dispatch(span(ActiveType.HASHTAG, 0, "#ios"))
    assert calls == ["handler"]


def test_no_listener():
    assert not TapDispatcher().dispatch(span(ActiveType.HASHTAG, 0, "#ios"))


def test_remove_handler():
    dispatcher = TapDispatcher()
    dispatcher.set_handler(ActiveType.MENTION, lambda payload, rng: None)
    dispatcher.remove_handler(ActiveType.MENTION)
    assert dispatcher.handler_for(ActiveType.MENTION) is None
    assert not dispatcher.dispatch(span(ActiveType.MENTION, 0, "@a"))


def test_handler_errors_propagate():
    dispatcher = TapDispatcher()

    def boom(payload, rng):
        raise RuntimeError("handler failed")

    dispatcher.set_handler(ActiveType.MENTION, boom)
    with pytest.raises(RuntimeError):
        dispatcher.dispatch(span(ActiveType.MENTION, 0, "@a"))
