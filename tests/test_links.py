from __future__ import annotations

import asyncio
import json
import logging

from websockets.protocol import State

from links import QueuedLink, RealtimeLink


class RecordingLink(QueuedLink):
    name = "recording"

    def __init__(self, fail_on: str | None = None) -> None:
        super().__init__()
        self.delivered: list[dict] = []
        self.transport_closed = False
        self.fail_on = fail_on

    async def _transmit(self, message):
        if message.get("event") == self.fail_on:
            raise ConnectionError("peer went away")
        self.delivered.append(message)

    async def _close_transport(self):
        self.transport_closed = True


class FakeConnection:
    def __init__(self) -> None:
        self.state = State.OPEN
        self.frames: list[str] = []

    async def send(self, text: str) -> None:
        self.frames.append(text)

    async def close(self) -> None:
        self.state = State.CLOSED


def test_writer_delivers_in_order_then_closes():
    async def scenario():
        link = RecordingLink()
        link.send({"event": "media", "n": 1})
        link.send({"event": "mark", "n": 2})
        link.close()
        link.send({"event": "media", "n": 3})
        await link.run_writer()
        return link

    link = asyncio.run(scenario())
    assert [m["n"] for m in link.delivered] == [1, 2]
    assert link.transport_closed
    assert not link.is_open


def test_send_failure_is_logged_and_writer_continues(caplog):
    async def scenario():
        link = RecordingLink(fail_on="clear")
        link.send({"event": "clear"})
        link.send({"event": "media"})
        link.close()
        await link.run_writer()
        return link

    with caplog.at_level(logging.WARNING):
        link = asyncio.run(scenario())

    assert link.delivered == [{"event": "media"}]
    assert "Send of clear on recording link failed" in caplog.text


def test_close_is_idempotent():
    async def scenario():
        link = RecordingLink()
        link.close()
        link.close()
        await asyncio.wait_for(link.run_writer(), timeout=1)
        return link

    assert asyncio.run(scenario()).transport_closed


def test_realtime_link_serializes_json_and_closes_connection():
    connection = FakeConnection()

    async def scenario():
        link = RealtimeLink(connection)
        assert link.is_open
        link.send({"type": "input_audio_buffer.append", "audio": "AAAA"})
        link.close()
        await link.run_writer()
        return link

    link = asyncio.run(scenario())
    assert [json.loads(f) for f in connection.frames] == [{"type": "input_audio_buffer.append", "audio": "AAAA"}]
    assert connection.state is State.CLOSED
    assert not link.is_open
