"""
Barge-in handling: stop AI playback when the caller starts talking.
"""
import logging
from typing import Optional

from call_state import CallState
from config import SHOW_TIMING_MATH
from openai_service import OpenAIService

LOGGER = logging.getLogger(__name__)


class InterruptionController:
    """
    Truncates the AI's current response at the point the caller actually heard,
    and tells the telephony side to drop audio it has queued but not played.
    """

    def __init__(self, state: CallState, telephony_link, ai_link):
        self.state = state
        self.telephony_link = telephony_link
        self.ai_link = ai_link

    def on_speech_started(self) -> Optional[int]:
        """
        Handle a speech-started signal from the AI service.
        Returns the truncation cutoff in ms, or None when nothing was playing.
        """
        state = self.state
        if not state.response_in_flight:
            return None

        elapsed = max(0, state.latest_media_timestamp - state.response_start_timestamp)
        if SHOW_TIMING_MATH:
            LOGGER.info(
                "Truncation math: %sms - %sms = %sms",
                state.latest_media_timestamp,
                state.response_start_timestamp,
                elapsed,
            )

        if state.last_assistant_item:
            truncate = OpenAIService.truncate_command(state.last_assistant_item, elapsed)
            if SHOW_TIMING_MATH:
                LOGGER.info("Sending truncation event: %s", truncate)
            self.ai_link.send(truncate)

        self.telephony_link.send({"event": "clear", "streamSid": state.call_id})
        state.reset_response()
        return elapsed
