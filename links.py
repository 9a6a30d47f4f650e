"""
Connection wrappers for the two sides of a bridged call.

Sends are fire-and-forget: `send()` only queues the message, and a writer task
owned by the link delivers it. Session callbacks therefore never await, and
each one runs to completion before the next is dispatched.
"""
import asyncio
import json
import logging
from typing import Any, Dict

from starlette.websockets import WebSocket, WebSocketState
from websockets.protocol import State

LOGGER = logging.getLogger(__name__)

_CLOSE = object()


def _describe(message: Dict[str, Any]) -> str:
    return str(message.get("type") or message.get("event") or "message")


class QueuedLink:
    """Outbound queue plus writer coroutine around one websocket."""

    name = "link"

    def __init__(self):
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, message: Dict[str, Any]) -> None:
        if not self._open:
            LOGGER.debug("Dropping %s on closed %s link", _describe(message), self.name)
            return
        self._outbox.put_nowait(message)

    def close(self) -> None:
        """Stop accepting messages; the writer flushes what is queued, then closes."""
        if not self._open:
            return
        self._open = False
        self._outbox.put_nowait(_CLOSE)

    async def run_writer(self) -> None:
        try:
            while True:
                message = await self._outbox.get()
                if message is _CLOSE:
                    break
                try:
                    await self._transmit(message)
                except Exception:
                    # TODO: surface repeated send failures as a link error instead of logging each one
                    LOGGER.warning("Send of %s on %s link failed", _describe(message), self.name, exc_info=True)
        finally:
            self._open = False
            try:
                await self._close_transport()
            except Exception:
                LOGGER.debug("Closing %s link transport failed", self.name, exc_info=True)

    async def _transmit(self, message: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def _close_transport(self) -> None:
        raise NotImplementedError


class TelephonyLink(QueuedLink):
    """The telephony provider's media-stream websocket."""

    name = "telephony"

    def __init__(self, websocket: WebSocket):
        super().__init__()
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return self._open and self.websocket.client_state == WebSocketState.CONNECTED

    async def _transmit(self, message: Dict[str, Any]) -> None:
        await self.websocket.send_json(message)

    async def _close_transport(self) -> None:
        if (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        ):
            await self.websocket.close()


class RealtimeLink(QueuedLink):
    """The AI service's realtime websocket."""

    name = "openai"

    def __init__(self, connection):
        super().__init__()
        self.connection = connection

    @property
    def is_open(self) -> bool:
        return self._open and self.connection.state is State.OPEN

    async def _transmit(self, message: Dict[str, Any]) -> None:
        await self.connection.send(json.dumps(message))

    async def _close_transport(self) -> None:
        await self.connection.close()
