"""
Conversation tracking for a single call.

Realtime AI events are folded into an ordered transcript that stays queryable
after the call ends. Items are only ever added or updated, never reordered or
removed.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from models import ConversationItem, ItemStatus, RealtimeEvent

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerResult:
    item: Optional[ConversationItem] = None
    audio_delta: Optional[str] = None


EMPTY_RESULT = TrackerResult()


def _delta_text(data: Dict[str, Any]) -> str:
    delta = data.get("delta")
    return delta if isinstance(delta, str) else ""


def _initial_content(item: ConversationItem, content: Any) -> None:
    if not isinstance(content, list):
        return
    for part in content:
        if not isinstance(part, dict):
            continue
        part_type = part.get("type")
        if part_type in ("input_text", "text") and isinstance(part.get("text"), str):
            item.text += part["text"]
        elif part_type in ("input_audio", "audio"):
            if isinstance(part.get("transcript"), str):
                item.transcript += part["transcript"]
            if part_type == "audio" or part.get("audio"):
                item.has_audio = True


class ConversationTracker:
    """Folds realtime protocol events into an ordered list of conversation items."""

    def __init__(self):
        self._items_by_id: Dict[str, ConversationItem] = {}
        self._items: List[ConversationItem] = []

    def process_event(self, event: RealtimeEvent) -> TrackerResult:
        """
        Apply one event to the transcript.
        Returns the item the event touched (if known) and, for audio deltas,
        the base64 audio payload.
        """
        handler = self._handlers.get(event.type)
        if handler is None:
            return EMPTY_RESULT
        return handler(self, event.data)

    def list_items(self) -> List[ConversationItem]:
        return list(self._items)

    def get_item(self, item_id: str) -> Optional[ConversationItem]:
        return self._items_by_id.get(item_id)

    def __len__(self) -> int:
        return len(self._items)

    # =============================
    # Event handlers
    # =============================
    def _lookup(self, data: Dict[str, Any], event_type: str) -> Optional[ConversationItem]:
        item_id = data.get("item_id")
        item = self._items_by_id.get(item_id) if isinstance(item_id, str) else None
        if item is None:
            LOGGER.debug("Ignoring %s for unknown item %s", event_type, item_id)
        return item

    def _on_item_created(self, data: Dict[str, Any]) -> TrackerResult:
        raw = data.get("item")
        if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
            return EMPTY_RESULT

        existing = self._items_by_id.get(raw["id"])
        if existing is not None:
            return TrackerResult(item=existing)

        item = ConversationItem(
            id=raw["id"],
            role=raw.get("role"),
            kind=raw.get("type") or "message",
        )
        _initial_content(item, raw.get("content"))
        if isinstance(raw.get("arguments"), str):
            item.arguments = raw["arguments"]
        self._items_by_id[item.id] = item
        self._items.append(item)
        return TrackerResult(item=item)

    def _on_text_delta(self, data: Dict[str, Any]) -> TrackerResult:
        item = self._lookup(data, "text delta")
        if item is None:
            return EMPTY_RESULT
        item.text += _delta_text(data)
        item.touch()
        return TrackerResult(item=item)

    def _on_transcript_delta(self, data: Dict[str, Any]) -> TrackerResult:
        item = self._lookup(data, "transcript delta")
        if item is None:
            return EMPTY_RESULT
        item.transcript += _delta_text(data)
        item.touch()
        return TrackerResult(item=item)

    def _on_arguments_delta(self, data: Dict[str, Any]) -> TrackerResult:
        item = self._lookup(data, "arguments delta")
        if item is None:
            return EMPTY_RESULT
        item.arguments += _delta_text(data)
        item.touch()
        return TrackerResult(item=item)

    def _on_audio_delta(self, data: Dict[str, Any]) -> TrackerResult:
        delta = data.get("delta")
        if not isinstance(delta, str) or not delta:
            delta = None
        item = self._lookup(data, "audio delta")
        if item is not None and delta is not None:
            item.has_audio = True
            item.touch()
        return TrackerResult(item=item, audio_delta=delta)

    def _on_transcription_completed(self, data: Dict[str, Any]) -> TrackerResult:
        item = self._lookup(data, "transcription")
        if item is None:
            return EMPTY_RESULT
        transcript = data.get("transcript")
        if isinstance(transcript, str) and transcript:
            item.transcript = transcript
        item.status = ItemStatus.COMPLETED
        item.touch()
        return TrackerResult(item=item)

    def _on_output_item_done(self, data: Dict[str, Any]) -> TrackerResult:
        raw = data.get("item")
        if not isinstance(raw, dict):
            return EMPTY_RESULT
        item = self._lookup({"item_id": raw.get("id")}, "item done")
        if item is None:
            return EMPTY_RESULT
        # Truncation is final.
        if item.status is not ItemStatus.TRUNCATED:
            item.status = ItemStatus.COMPLETED
        if isinstance(raw.get("arguments"), str) and raw["arguments"]:
            item.arguments = raw["arguments"]
        item.touch()
        return TrackerResult(item=item)

    def _on_item_truncated(self, data: Dict[str, Any]) -> TrackerResult:
        item = self._lookup(data, "truncation")
        if item is None:
            return EMPTY_RESULT
        item.status = ItemStatus.TRUNCATED
        audio_end_ms = data.get("audio_end_ms")
        if isinstance(audio_end_ms, int):
            item.audio_end_ms = audio_end_ms
        item.touch()
        return TrackerResult(item=item)

    def _on_item_deleted(self, data: Dict[str, Any]) -> TrackerResult:
        item = self._lookup(data, "deletion")
        if item is not None:
            LOGGER.info("AI service deleted item %s; keeping it in the transcript", item.id)
        return TrackerResult(item=item)

    _handlers = {
        "conversation.item.created": _on_item_created,
        "response.output_item.added": _on_item_created,
        "response.text.delta": _on_text_delta,
        "response.output_text.delta": _on_text_delta,
        "response.audio_transcript.delta": _on_transcript_delta,
        "response.output_audio_transcript.delta": _on_transcript_delta,
        "conversation.item.input_audio_transcription.delta": _on_transcript_delta,
        "response.function_call_arguments.delta": _on_arguments_delta,
        "response.audio.delta": _on_audio_delta,
        "response.output_audio.delta": _on_audio_delta,
        "conversation.item.input_audio_transcription.completed": _on_transcription_completed,
        "response.output_item.done": _on_output_item_done,
        "conversation.item.truncated": _on_item_truncated,
        "conversation.item.deleted": _on_item_deleted,
    }
