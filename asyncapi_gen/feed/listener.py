"""
Live message feed - callback boundary between a broker client and a session.

The broker connection lives outside this package. A transport adapter calls
``handle_payload`` for every received message and ``mark_connected`` /
``mark_disconnected`` / ``report_error`` for lifecycle events; consumers
register callbacks with ``on_message`` and friends.
"""

import json
import logging
import threading
from collections import deque
from typing import Any, Callable, Dict, List, Union

from asyncapi_gen.schema.models import ExtractedMessage

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1000

MessageCallback = Callable[[ExtractedMessage], None]
EventCallback = Callable[[], None]
ErrorCallback = Callable[[Exception], None]


class MessageFeed:
    """Decodes raw payloads and dispatches them to registered listeners."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {buffer_size}")

        self._buffer = deque(maxlen=buffer_size)
        self._lock = threading.Lock()
        self._message_callbacks: List[MessageCallback] = []
        self._connected_callbacks: List[EventCallback] = []
        self._disconnected_callbacks: List[EventCallback] = []
        self._error_callbacks: List[ErrorCallback] = []
        self.connected = False

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def on_message(self, callback: MessageCallback) -> None:
        self._message_callbacks.append(callback)

    def on_connected(self, callback: EventCallback) -> None:
        self._connected_callbacks.append(callback)

    def on_disconnected(self, callback: EventCallback) -> None:
        self._disconnected_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def handle_payload(self, topic: str, raw: Union[bytes, str]) -> ExtractedMessage:
        """
        Decode one received payload and dispatch it

        Args:
            topic: Topic the payload arrived on
            raw: Payload bytes (UTF-8) or text

        Returns:
            The decoded record
        """
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        message = ExtractedMessage(topic=topic, payload=decode_payload(text))

        model = message.payload.get("_model")
        if isinstance(model, str):
            message.model_name = model

        with self._lock:
            self._buffer.append(message)

        for callback in list(self._message_callbacks):
            self._dispatch(callback, message)

        return message

    def mark_connected(self) -> None:
        self.connected = True
        logger.info("Feed connected")
        for callback in list(self._connected_callbacks):
            self._dispatch(callback)

    def mark_disconnected(self) -> None:
        self.connected = False
        logger.info("Feed disconnected")
        for callback in list(self._disconnected_callbacks):
            self._dispatch(callback)

    def report_error(self, error: Exception) -> None:
        """Hand an error to every error listener; listener failures are logged."""
        logger.warning(f"Feed error: {error}")
        for callback in list(self._error_callbacks):
            try:
                callback(error)
            except Exception as e:
                logger.error(f"Error listener failed: {e}")

    def _dispatch(self, callback: Callable, *args: Any) -> None:
        try:
            callback(*args)
        except Exception as e:
            self.report_error(e)

    # ------------------------------------------------------------------
    # Buffer
    # ------------------------------------------------------------------

    def get_messages(self) -> List[ExtractedMessage]:
        """Most recent records, oldest first."""
        with self._lock:
            return list(self._buffer)

    def clear_buffer(self) -> None:
        with self._lock:
            self._buffer.clear()

    @property
    def buffer_size(self) -> int:
        return self._buffer.maxlen


def decode_payload(text: str) -> Dict[str, Any]:
    """JSON objects pass through; other JSON is wrapped; non-JSON becomes ``_rawPayload``."""
    try:
        value = json.loads(text)
    except ValueError:
        return {"_rawPayload": text}

    if isinstance(value, dict):
        return value
    return {"value": value}
