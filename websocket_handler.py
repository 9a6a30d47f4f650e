"""
WebSocket handler for bridging a telephony media stream with OpenAI Realtime.
"""
import asyncio
import logging

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect
from websockets.exceptions import ConnectionClosed

from bridge_session import BridgingSession
from links import RealtimeLink, TelephonyLink
from openai_service import OpenAIService
from registry import REGISTRY
from utils import safe_task

LOGGER = logging.getLogger(__name__)


class WebSocketHandler:
    """Handles WebSocket connections for realtime voice communication."""

    @staticmethod
    async def handle_media_stream(websocket: WebSocket):
        """Main WebSocket handler for the telephony media stream."""
        await websocket.accept()
        LOGGER.info("Client connected")

        try:
            openai_ws = await OpenAIService.connect_realtime()
        except Exception:
            LOGGER.exception("Could not connect to the OpenAI Realtime API")
            await websocket.close()
            return
        LOGGER.info("Connected to the OpenAI Realtime API")

        telephony_link = TelephonyLink(websocket)
        ai_link = RealtimeLink(openai_ws)
        session = BridgingSession(telephony_link, ai_link, registry=REGISTRY)

        writers = [
            asyncio.create_task(telephony_link.run_writer(), name="telephony-writer"),
            asyncio.create_task(ai_link.run_writer(), name="openai-writer"),
        ]
        init_task = asyncio.create_task(
            safe_task(OpenAIService.initialize_session(ai_link), name="session-init")
        )

        try:
            await asyncio.gather(
                WebSocketHandler.receive_from_telephony(websocket, session),
                WebSocketHandler.receive_from_openai(openai_ws, session),
            )
            await asyncio.gather(*writers, return_exceptions=True)
        finally:
            init_task.cancel()
            for writer in writers:
                writer.cancel()

    @staticmethod
    async def receive_from_telephony(websocket: WebSocket, session: BridgingSession):
        """Telephony -> OpenAI. Runs until the telephony side disconnects."""
        try:
            async for message in websocket.iter_text():
                session.on_telephony_frame(message)
        except WebSocketDisconnect:
            pass
        except Exception:
            LOGGER.warning("Telephony WebSocket error (call %s)", session.call_id, exc_info=True)
        finally:
            session.on_telephony_close()

    @staticmethod
    async def receive_from_openai(openai_ws, session: BridgingSession):
        """OpenAI -> telephony. Runs until the realtime connection closes."""
        try:
            async for message in openai_ws:
                session.on_ai_event(message)
        except ConnectionClosed:
            pass
        except Exception:
            LOGGER.warning("Error in the OpenAI WebSocket (call %s)", session.call_id, exc_info=True)
        finally:
            session.on_ai_close()
