"""Tests for MessageFeed."""
from unittest.mock import Mock

import pytest

from asyncapi_gen.feed.listener import MessageFeed, decode_payload


class TestDecodePayload:
    """Test raw payload decoding."""

    def test_json_object(self):
        assert decode_payload('{"a": 1}') == {"a": 1}

    def test_json_scalar_wrapped(self):
        assert decode_payload("42") == {"value": 42}

    def test_non_json(self):
        assert decode_payload("ON") == {"_rawPayload": "ON"}


class TestMessageFeed:
    """Test callback dispatch and buffering."""

    def test_message_callback(self):
        feed = MessageFeed()
        callback = Mock()
        feed.on_message(callback)

        message = feed.handle_payload("a/b", b'{"x": 1}')

        callback.assert_called_once_with(message)
        assert message.topic == "a/b"
        assert message.payload == {"x": 1}

    def test_model_hint_from_payload(self):
        feed = MessageFeed()
        message = feed.handle_payload("a", '{"_model": "Sensor", "x": 1}')
        assert message.model_name == "Sensor"

    def test_non_string_model_ignored(self):
        feed = MessageFeed()
        assert feed.handle_payload("a", '{"_model": 5}').model_name is None

    def test_buffer_bounded(self):
        feed = MessageFeed(buffer_size=2)
        for i in range(3):
            feed.handle_payload("t", str(i))

        assert [m.payload["value"] for m in feed.get_messages()] == [1, 2]

    def test_default_buffer_size(self):
        assert MessageFeed().buffer_size == 1000

    def test_clear_buffer(self):
        feed = MessageFeed()
        feed.handle_payload("t", "1")
        feed.clear_buffer()
        assert feed.get_messages() == []

    def test_callback_error_routed_to_error_listeners(self):
        feed = MessageFeed()
        errors = []
        feed.on_message(Mock(side_effect=RuntimeError("boom")))
        feed.on_error(errors.append)
        second = Mock()
        feed.on_message(second)

        feed.handle_payload("t", "1")

        assert len(errors) == 1
        assert str(errors[0]) == "boom"
        second.assert_called_once()

    def test_failing_error_listener_does_not_propagate(self):
        feed = MessageFeed()
        feed.on_error(Mock(side_effect=RuntimeError("listener")))
        feed.report_error(ValueError("x"))

    def test_connection_events(self):
        feed = MessageFeed()
        connected, disconnected = Mock(), Mock()
        feed.on_connected(connected)
        feed.on_disconnected(disconnected)

        feed.mark_connected()
        assert feed.connected
        feed.mark_disconnected()
        assert not feed.connected

        connected.assert_called_once_with()
        disconnected.assert_called_once_with()

    def test_invalid_buffer_size(self):
        with pytest.raises(ValueError):
            MessageFeed(buffer_size=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
