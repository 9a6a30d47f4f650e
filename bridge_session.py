"""
Per-call bridge between the telephony media stream and the OpenAI Realtime API.
"""
import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from call_state import CallState
from config import LOG_EVENT_TYPES, MARK_NAME, SESSION_EVICTION_DELAY_SECONDS, SHOW_TIMING_MATH
from conversation import ConversationTracker, TrackerResult
from errors import MalformedEventError, MalformedFrameError
from interruption import InterruptionController
from models import (
    EventKind,
    MarkFrame,
    MediaFrame,
    StartFrame,
    parse_realtime_event,
    parse_telephony_frame,
)
from openai_service import OpenAIService
from registry import REGISTRY, SessionRegistry
from utils import preview

LOGGER = logging.getLogger(__name__)


class BridgingSession:
    """
    Owns both links of one call and drives its state machine.

    The session is created before the call id is known; it becomes reachable
    through the registry once the telephony side sends its start frame.
    Callbacks are synchronous and must be invoked one at a time.
    """

    def __init__(
        self,
        telephony_link,
        ai_link,
        registry: Optional[SessionRegistry] = None,
        eviction_delay: float = SESSION_EVICTION_DELAY_SECONDS,
    ):
        self.telephony_link = telephony_link
        self.ai_link = ai_link
        self.registry = registry if registry is not None else REGISTRY
        self.eviction_delay = eviction_delay
        self.state = CallState()
        self.conversation = ConversationTracker()
        self.interruption = InterruptionController(self.state, telephony_link, ai_link)
        self._closed = False

    @property
    def call_id(self) -> Optional[str]:
        return self.state.call_id

    @property
    def closed(self) -> bool:
        return self._closed

    # =============================
    # Telephony -> OpenAI
    # =============================
    def on_telephony_frame(self, message: Any) -> None:
        """Handle one inbound media-stream frame from the telephony side."""
        try:
            frame = parse_telephony_frame(message)
        except MalformedFrameError as e:
            LOGGER.warning("Dropping telephony frame (%s): %s", e.detail, preview(message))
            return

        if isinstance(frame, MediaFrame):
            self._on_media(frame)
        elif isinstance(frame, StartFrame):
            self._on_start(frame)
        elif isinstance(frame, MarkFrame):
            self.state.mark_queue.pop()
        else:
            LOGGER.info("Received non-media event: %s", frame.event)

    def _on_media(self, frame: MediaFrame) -> None:
        self.state.latest_media_timestamp = frame.timestamp
        if SHOW_TIMING_MATH:
            LOGGER.info("Received media message with timestamp: %sms", frame.timestamp)
        if self.ai_link.is_open:
            self.ai_link.send(OpenAIService.audio_append_command(frame.payload))

    def _on_start(self, frame: StartFrame) -> None:
        previous = self.state.call_id
        if previous and previous != frame.stream_sid:
            self.registry.unregister(previous)
            LOGGER.info("Stream %s restarted as %s", previous, frame.stream_sid)
        self.state.restart_stream(frame.stream_sid)
        self.registry.register(frame.stream_sid, self)
        LOGGER.info("Incoming stream has started %s", frame.stream_sid)

    # =============================
    # OpenAI -> Telephony
    # =============================
    def on_ai_event(self, message: Any) -> None:
        """Handle one inbound event from the OpenAI Realtime API."""
        try:
            event = parse_realtime_event(message)
        except MalformedEventError as e:
            LOGGER.debug("Dropping realtime event (%s)", e.detail)
            return

        if event.type in LOG_EVENT_TYPES:
            LOGGER.info("Received event: %s (call %s)", event.type, self.call_id)

        result = self.conversation.process_event(event)

        if event.kind is EventKind.AUDIO_DELTA:
            self._forward_audio(result)
        elif event.kind is EventKind.SPEECH_STARTED:
            self.interruption.on_speech_started()

    def _forward_audio(self, result: TrackerResult) -> None:
        """Re-frame an audio delta for the telephony side and track its playback."""
        if result.audio_delta is None:
            return
        try:
            payload = base64.b64encode(base64.b64decode(result.audio_delta, validate=True)).decode("ascii")
        except (binascii.Error, ValueError):
            LOGGER.debug("Dropping audio delta with invalid base64 payload")
            return

        self.telephony_link.send({
            "event": "media",
            "streamSid": self.state.call_id,
            "media": {"payload": payload},
        })

        if self.state.response_start_timestamp is None:
            self.state.response_start_timestamp = self.state.latest_media_timestamp
            if SHOW_TIMING_MATH:
                LOGGER.info("Setting start timestamp for new response: %sms", self.state.response_start_timestamp)

        if result.item is not None:
            self.state.last_assistant_item = result.item.id

        self._send_mark()

    def _send_mark(self) -> None:
        """Ask the telephony side to acknowledge playback of the last chunk."""
        if not self.state.call_id:
            return
        self.telephony_link.send({
            "event": "mark",
            "streamSid": self.state.call_id,
            "mark": {"name": MARK_NAME},
        })
        self.state.mark_queue.push(MARK_NAME)

    # =============================
    # Lifecycle
    # =============================
    def on_telephony_close(self) -> None:
        """The telephony websocket is gone; close the AI side and schedule eviction."""
        LOGGER.info("Client disconnected (call %s)", self.call_id)
        self._shutdown()

    def on_ai_close(self) -> None:
        """The AI websocket is gone; hang up the telephony side and schedule eviction."""
        LOGGER.info("Disconnected from the OpenAI Realtime API (call %s)", self.call_id)
        self._shutdown()

    def _shutdown(self) -> None:
        self.telephony_link.close()
        self.ai_link.close()
        if self._closed:
            return
        self._closed = True
        if self.state.call_id:
            self.registry.schedule_eviction(self.state.call_id, self.eviction_delay)

    # =============================
    # Queries
    # =============================
    def history(self) -> List[Dict[str, Any]]:
        """Return the ordered transcript as JSON-ready dicts."""
        return [item.to_dict() for item in self.conversation.list_items()]
