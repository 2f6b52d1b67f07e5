"""Live socket connections and routing of inbound frames"""

import json
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from fastapi import WebSocket
import structlog

from app.streaming.messages import (
    EnvelopeMessage,
    MessageParseError,
    StreamMessage,
    error_message,
    parse_message,
)

logger = structlog.get_logger()

CONNECTION_CLOSED = "Connection closed"

StreamHandler = Callable[[StreamMessage, Optional[str]], Awaitable[None]]
MethodHandler = Callable[[EnvelopeMessage, str], Awaitable[None]]


class ConnectionRegistry:
    """
    Tracks open sockets and routes their frames.

    Envelope frames go to the handler registered under their method name,
    stream frames to the handler registered under their streamSid. Frames of
    one socket are handled in arrival order.
    """

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        # sockets whose last send failed; kept until their close is handled
        self._broken: Set[str] = set()
        self._stream_handlers: Dict[str, StreamHandler] = {}
        self._method_handlers: Dict[str, MethodHandler] = {}

    # Handler registration

    def register_stream_handler(self, stream_sid: str, handler: StreamHandler) -> None:
        self._stream_handlers[stream_sid] = handler

    def unregister_stream_handler(self, stream_sid: str) -> None:
        self._stream_handlers.pop(stream_sid, None)

    def has_stream_handler(self, stream_sid: str) -> bool:
        return stream_sid in self._stream_handlers

    def register_method_handler(self, method: str, handler: MethodHandler) -> None:
        self._method_handlers[method] = handler

    def unregister_method_handler(self, method: str) -> None:
        self._method_handlers.pop(method, None)

    # Connection lifecycle

    def connect(self, websocket: WebSocket) -> str:
        connection_id = str(uuid.uuid4())
        self.connections[connection_id] = websocket
        logger.info("WebSocket connected", connection_id=connection_id)
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """Forget a socket and tell every stream handler the connection went away"""
        self._broken.discard(connection_id)
        if self.connections.pop(connection_id, None) is None:
            return
        logger.info("WebSocket closed", connection_id=connection_id)

        # handlers may unregister themselves while being notified
        for stream_sid, handler in list(self._stream_handlers.items()):
            message = StreamMessage(type="error", stream_sid=stream_sid, error=CONNECTION_CLOSED)
            await self._call_stream_handler(handler, message, connection_id)

    def is_open(self, connection_id: str) -> bool:
        return connection_id in self.connections and connection_id not in self._broken

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Serve one socket from accept until it closes"""
        await websocket.accept()
        connection_id = self.connect(websocket)
        try:
            async for raw in websocket.iter_text():
                await self.receive(connection_id, raw)
        except Exception as e:
            logger.error("WebSocket error", connection_id=connection_id, error=str(e))
        finally:
            await self.disconnect(connection_id)

    # Inbound routing

    async def receive(self, connection_id: str, raw: str) -> None:
        try:
            message = parse_message(raw)
        except MessageParseError as e:
            logger.warning("Unparsable WebSocket frame", connection_id=connection_id, error=str(e))
            await self.send(connection_id, error_message("Invalid message format"))
            return

        if isinstance(message, EnvelopeMessage):
            await self._route_envelope(message, connection_id)
        elif isinstance(message, StreamMessage):
            await self._route_stream(message, connection_id)
        else:
            logger.warning("Unhandled message format", connection_id=connection_id)

    async def _route_envelope(self, message: EnvelopeMessage, connection_id: str) -> None:
        logger.debug("MCP method call", method=message.method, connection_id=connection_id)

        handler = self._method_handlers.get(message.method)
        if handler is None:
            logger.warning("No handler for MCP method", method=message.method)
            await self.send(
                connection_id,
                error_message(f"No handler for method: {message.method}", message.id),
            )
            return

        try:
            await handler(message, connection_id)
        except Exception as e:
            logger.error("Method handler failed", method=message.method, error=str(e))
            await self.send(connection_id, error_message("Internal server error", message.id))

    async def _route_stream(self, message: StreamMessage, connection_id: str) -> None:
        handler = self._stream_handlers.get(message.stream_sid)
        if handler is None:
            logger.warning("No handler for stream", stream_sid=message.stream_sid, type=message.type)
            return
        await self._call_stream_handler(handler, message, connection_id)

    async def _call_stream_handler(
        self,
        handler: StreamHandler,
        message: StreamMessage,
        connection_id: str,
    ) -> None:
        try:
            await handler(message, connection_id)
        except Exception as e:
            logger.error(
                "Stream handler failed",
                stream_sid=message.stream_sid,
                type=message.type,
                error=str(e),
            )
            await self.send(connection_id, error_message("Internal server error"))

    # Outbound

    async def send(self, connection_id: str, message: Dict[str, Any]) -> bool:
        websocket = self.connections.get(connection_id)
        if websocket is None or connection_id in self._broken:
            return False
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.warning("Failed to send to WebSocket", connection_id=connection_id, error=str(e))
            self._broken.add(connection_id)
            return False
        return True

    async def broadcast(self, stream_sid: str, message: Dict[str, Any]) -> int:
        """Send to every open connection, not only the ones feeding this stream"""
        payload = {**message, "streamSid": stream_sid}
        delivered = 0
        for connection_id in list(self.connections):
            if await self.send(connection_id, payload):
                delivered += 1
        return delivered

    async def close(self) -> None:
        for connection_id, websocket in list(self.connections.items()):
            try:
                await websocket.close()
            except Exception as e:
                logger.debug("WebSocket already closed", connection_id=connection_id, error=str(e))
        self.connections.clear()
        self._broken.clear()
        self._stream_handlers.clear()
        self._method_handlers.clear()
        logger.info("WebSocket registry closed")
