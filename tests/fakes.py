from __future__ import annotations

import json


class FakeLink:
    """Records outbound messages instead of writing them to a socket."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.is_open = True
        self.close_calls = 0

    def send(self, message: dict) -> None:
        if self.is_open:
            self.sent.append(message)

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False

    def of_type(self, name: str) -> list[dict]:
        return [m for m in self.sent if m.get("type") == name or m.get("event") == name]


def start(stream_sid: str) -> str:
    return json.dumps({"event": "start", "start": {"streamSid": stream_sid, "callSid": "CA" + stream_sid}})


def media(timestamp: int, payload: str = "AAAA") -> str:
    return json.dumps({"event": "media", "media": {"timestamp": str(timestamp), "payload": payload, "track": "inbound"}})


def mark(name: str = "responsePart") -> str:
    return json.dumps({"event": "mark", "mark": {"name": name}})


def item_created(item_id: str, role: str = "assistant", content: list | None = None) -> str:
    return json.dumps({
        "type": "conversation.item.created",
        "item": {"id": item_id, "type": "message", "role": role, "status": "in_progress", "content": content or []},
    })


def audio_delta(item_id: str, delta: str = "//79/Q==") -> str:
    return json.dumps({"type": "response.audio.delta", "item_id": item_id, "content_index": 0, "delta": delta})


def speech_started() -> str:
    return json.dumps({"type": "input_audio_buffer.speech_started", "audio_start_ms": 0})
