from __future__ import annotations

import json

from conversation import ConversationTracker
from models import ItemStatus, parse_realtime_event


def _event(**data):
    return parse_realtime_event(json.dumps(data))


def _created(item_id: str, role: str = "assistant", item_type: str = "message", **extra):
    return _event(type="conversation.item.created", item={"id": item_id, "type": item_type, "role": role, **extra})


def test_empty_conversation_lists_nothing():
    tracker = ConversationTracker()
    assert tracker.list_items() == []
    assert len(tracker) == 0


def test_transcript_deltas_are_concatenated_in_order():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1"))
    tracker.process_event(_event(type="response.audio_transcript.delta", item_id="I1", delta="Bonjour, "))
    result = tracker.process_event(_event(type="response.audio_transcript.delta", item_id="I1", delta="ça va ?"))

    items = tracker.list_items()
    assert len(items) == 1
    assert items[0].transcript == "Bonjour, ça va ?"
    assert result.item is items[0]
    assert items[0].status is ItemStatus.IN_PROGRESS


def test_items_keep_insertion_order():
    tracker = ConversationTracker()
    for item_id, role in (("I1", "system"), ("I2", "user"), ("I3", "assistant")):
        tracker.process_event(_created(item_id, role=role))

    assert [(i.id, i.role) for i in tracker.list_items()] == [("I1", "system"), ("I2", "user"), ("I3", "assistant")]


def test_output_item_added_and_created_insert_once():
    tracker = ConversationTracker()
    tracker.process_event(_event(type="response.output_item.added", item={"id": "I1", "type": "message", "role": "assistant"}))
    tracker.process_event(_created("I1"))

    assert [i.id for i in tracker.list_items()] == ["I1"]


def test_updates_for_unknown_items_are_ignored():
    tracker = ConversationTracker()
    result = tracker.process_event(_event(type="response.text.delta", item_id="missing", delta="x"))
    tracker.process_event(_event(type="conversation.item.truncated", item_id="missing", audio_end_ms=10))

    assert result.item is None
    assert tracker.list_items() == []


def test_audio_delta_returns_payload_and_flags_audio():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1"))
    result = tracker.process_event(_event(type="response.audio.delta", item_id="I1", delta="AAAA"))

    assert result.audio_delta == "AAAA"
    assert result.item.has_audio is True


def test_audio_delta_for_unknown_item_still_returns_payload():
    tracker = ConversationTracker()
    result = tracker.process_event(_event(type="response.audio.delta", item_id="I9", delta="AAAA"))

    assert result.item is None
    assert result.audio_delta == "AAAA"


def test_user_transcription_completes_item():
    tracker = ConversationTracker()
    tracker.process_event(_created("U1", role="user", content=[{"type": "input_audio", "transcript": None}]))
    tracker.process_event(_event(
        type="conversation.item.input_audio_transcription.completed",
        item_id="U1",
        content_index=0,
        transcript="I'd like to book a table.",
    ))

    item = tracker.get_item("U1")
    assert item.transcript == "I'd like to book a table."
    assert item.status is ItemStatus.COMPLETED


def test_truncated_item_stays_truncated_when_done():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1"))
    tracker.process_event(_event(type="conversation.item.truncated", item_id="I1", content_index=0, audio_end_ms=800))
    tracker.process_event(_event(type="response.output_item.done", item={"id": "I1", "status": "incomplete"}))

    item = tracker.get_item("I1")
    assert item.status is ItemStatus.TRUNCATED
    assert item.audio_end_ms == 800


def test_output_item_done_completes_function_call():
    tracker = ConversationTracker()
    tracker.process_event(_created("F1", item_type="function_call", name="lookup"))
    tracker.process_event(_event(type="response.function_call_arguments.delta", item_id="F1", delta='{"city":'))
    tracker.process_event(_event(type="response.function_call_arguments.delta", item_id="F1", delta='"Paris"}'))
    tracker.process_event(_event(type="response.output_item.done", item={"id": "F1", "type": "function_call"}))

    item = tracker.get_item("F1")
    assert item.kind == "function_call"
    assert item.arguments == '{"city":"Paris"}'
    assert item.status is ItemStatus.COMPLETED


def test_deleted_items_remain_in_transcript():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1"))
    tracker.process_event(_event(type="conversation.item.deleted", item_id="I1"))

    assert [i.id for i in tracker.list_items()] == ["I1"]


def test_mutation_refreshes_updated_at():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1"))
    item = tracker.get_item("I1")
    first = item.updated_at

    tracker.process_event(_event(type="response.text.delta", item_id="I1", delta="hi"))

    assert item.updated_at >= first
    assert item.text == "hi"


def test_list_items_returns_a_copy():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1"))
    snapshot = tracker.list_items()
    snapshot.clear()

    assert len(tracker.list_items()) == 1


def test_non_string_content_parts_are_skipped():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1", content=[
        {"type": "input_text", "text": 42},
        {"type": "input_audio", "transcript": {"partial": "hi"}},
        {"type": "text", "text": "ok"},
    ]))

    item = tracker.get_item("I1")
    assert item.text == "ok"
    assert item.transcript == ""


def test_truncation_point_is_listed_with_the_item():
    tracker = ConversationTracker()
    tracker.process_event(_created("I1"))
    tracker.process_event(_event(type="conversation.item.truncated", item_id="I1", content_index=0, audio_end_ms=800))

    assert tracker.list_items()[0].to_dict()["audioEndMs"] == 800
