"""
Data models for the realtime call bridge.

Telephony frames and realtime AI events are decoded into small closed sets of
variants so the session can dispatch on type instead of poking at raw dicts.
"""
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from errors import MalformedEventError, MalformedFrameError
from utils import decode_json_object


# =============================
# Telephony media-stream frames
# =============================
@dataclass(frozen=True)
class MediaFrame:
    timestamp: int  # ms since the media stream started
    payload: str  # base64 audio, passed through untouched


@dataclass(frozen=True)
class StartFrame:
    stream_sid: str


@dataclass(frozen=True)
class MarkFrame:
    name: Optional[str] = None


@dataclass(frozen=True)
class OtherFrame:
    event: str


TelephonyFrame = Union[MediaFrame, StartFrame, MarkFrame, OtherFrame]


def parse_telephony_frame(message: Any) -> TelephonyFrame:
    """Decode one inbound media-stream message."""
    try:
        data = decode_json_object(message)
    except ValueError as e:
        raise MalformedFrameError(f"undecodable frame: {e}") from e

    event = data.get("event")
    if not isinstance(event, str):
        raise MalformedFrameError("frame has no event name")

    if event == "media":
        media = data.get("media")
        if not isinstance(media, dict):
            raise MalformedFrameError("media frame without media body")
        payload = media.get("payload")
        if not isinstance(payload, str):
            raise MalformedFrameError("media frame without payload")
        try:
            timestamp = int(media["timestamp"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedFrameError("media frame without a valid timestamp") from e
        return MediaFrame(timestamp=timestamp, payload=payload)

    if event == "start":
        start = data.get("start")
        stream_sid = start.get("streamSid") if isinstance(start, dict) else None
        if not isinstance(stream_sid, str) or not stream_sid:
            raise MalformedFrameError("start frame without streamSid")
        return StartFrame(stream_sid=stream_sid)

    if event == "mark":
        mark = data.get("mark")
        return MarkFrame(name=mark.get("name") if isinstance(mark, dict) else None)

    return OtherFrame(event=event)


# =============================
# Realtime AI events
# =============================
class EventKind(enum.Enum):
    AUDIO_DELTA = "audio_delta"
    SPEECH_STARTED = "speech_started"
    OTHER = "other"


AUDIO_DELTA_TYPES = ("response.audio.delta", "response.output_audio.delta")
SPEECH_STARTED_TYPE = "input_audio_buffer.speech_started"


@dataclass(frozen=True)
class RealtimeEvent:
    kind: EventKind
    type: str
    data: Dict[str, Any]


def parse_realtime_event(message: Any) -> RealtimeEvent:
    """Decode one inbound realtime AI event."""
    try:
        data = decode_json_object(message)
    except ValueError as e:
        raise MalformedEventError(f"undecodable event: {e}") from e

    event_type = data.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedEventError("event has no type")

    if event_type in AUDIO_DELTA_TYPES:
        kind = EventKind.AUDIO_DELTA
    elif event_type == SPEECH_STARTED_TYPE:
        kind = EventKind.SPEECH_STARTED
    else:
        kind = EventKind.OTHER
    return RealtimeEvent(kind=kind, type=event_type, data=data)


# =============================
# Conversation transcript
# =============================
class ItemStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    TRUNCATED = "truncated"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConversationItem:
    """One entry of a call's transcript, as reported by the AI service."""

    id: str
    role: Optional[str] = None  # user | assistant | system
    kind: str = "message"
    status: ItemStatus = ItemStatus.IN_PROGRESS
    text: str = ""
    transcript: str = ""
    arguments: str = ""
    has_audio: bool = False
    audio_end_ms: Optional[int] = None
    updated_at: datetime = field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "type": self.kind,
            "status": self.status.value,
            "formatted": {
                "text": self.text,
                "transcript": self.transcript,
                "hasAudio": self.has_audio,
            },
            "arguments": self.arguments,
            "audioEndMs": self.audio_end_ms,
            "timestamp": self.updated_at.isoformat(),
        }
