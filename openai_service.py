"""
OpenAI service for opening realtime connections and building client commands.
"""
import asyncio
import logging
from typing import Any, Dict

import websockets

from config import (
    AUDIO_FORMAT,
    OPENAI_API_KEY,
    REALTIME_WS_URL,
    SESSION_INIT_DELAY_SECONDS,
    SYSTEM_MESSAGE,
    TEMPERATURE,
    TRANSCRIPTION_MODEL,
    VOICE,
)

LOGGER = logging.getLogger(__name__)


class OpenAIService:
    """Service for managing OpenAI realtime sessions."""

    @staticmethod
    async def connect_realtime():
        """
        Establish a websocket connection to OpenAI Realtime with the proper headers.
        Returns an *open* websockets client.
        """
        return await websockets.connect(
            REALTIME_WS_URL,
            additional_headers={
                "Authorization": f"Bearer {OPENAI_API_KEY}",
                "OpenAI-Beta": "realtime=v1",
            },
        )

    @staticmethod
    def session_update_command() -> Dict[str, Any]:
        """The fixed session configuration sent once per call."""
        return {
            "type": "session.update",
            "session": {
                "turn_detection": {"type": "server_vad"},
                "input_audio_format": AUDIO_FORMAT,
                "output_audio_format": AUDIO_FORMAT,
                "voice": VOICE,
                "instructions": SYSTEM_MESSAGE,
                "modalities": ["text", "audio"],
                "temperature": TEMPERATURE,
                "input_audio_transcription": {"model": TRANSCRIPTION_MODEL},
            },
        }

    @staticmethod
    async def initialize_session(ai_link, delay: float = SESSION_INIT_DELAY_SECONDS):
        """Send the session.update command shortly after the AI link opens."""
        await asyncio.sleep(delay)
        session_update = OpenAIService.session_update_command()
        LOGGER.info("Sending session update: voice=%s temperature=%s", VOICE, TEMPERATURE)
        ai_link.send(session_update)

    @staticmethod
    def audio_append_command(payload: str) -> Dict[str, Any]:
        return {"type": "input_audio_buffer.append", "audio": payload}

    @staticmethod
    def truncate_command(item_id: str, audio_end_ms: int) -> Dict[str, Any]:
        return {
            "type": "conversation.item.truncate",
            "item_id": item_id,
            "content_index": 0,
            "audio_end_ms": audio_end_ms,
        }
