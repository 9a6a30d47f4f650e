"""
FastAPI routes for Twilio webhooks, call placement and transcript queries.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.concurrency import run_in_threadpool

from config import PUBLIC_HOST
from registry import REGISTRY, SessionRegistry
from twilio_service import TwilioNotConfiguredError, TwilioService
from websocket_handler import WebSocketHandler

LOGGER = logging.getLogger(__name__)


def _public_host(request: Request) -> str:
    if PUBLIC_HOST:
        return PUBLIC_HOST
    host = request.url.hostname
    if "ngrok" in request.headers.get("host", ""):
        host = request.headers["host"]
    return host


class Routes:
    """Contains all FastAPI route handlers."""

    def __init__(self, app: FastAPI, registry: SessionRegistry = REGISTRY):
        self.app = app
        self.registry = registry
        self._setup_routes()

    def _setup_routes(self):
        """Setup all route handlers."""
        self.app.get("/", response_class=JSONResponse)(self.index_page)
        self.app.api_route("/incoming-call", methods=["GET", "POST"])(self.handle_incoming_call)
        self.app.post("/call")(self.initiate_call)
        self.app.get("/active-calls")(self.active_calls)
        self.app.get("/conversations")(self.conversations)
        self.app.get("/conversations/{call_id}")(self.conversation)
        self.app.websocket("/media-stream")(WebSocketHandler.handle_media_stream)

    async def index_page(self):
        """Root endpoint returning status information."""
        return {"message": "Twilio Media Stream Server is running!"}

    async def handle_incoming_call(self, request: Request):
        """Handle the call webhook from Twilio by connecting its audio to our media stream."""
        host = _public_host(request)
        LOGGER.info("Incoming call, streaming to wss://%s/media-stream", host)
        return HTMLResponse(content=TwilioService.media_stream_twiml(host), media_type="application/xml")

    async def initiate_call(self, request: Request):
        """Place an outbound call that will be bridged once answered."""
        try:
            body = await request.json()
        except ValueError:
            body = None
        phone_number = body.get("phoneNumber") if isinstance(body, dict) else None
        if not phone_number:
            raise HTTPException(status_code=400, detail="Phone number is required")

        try:
            call_sid = await run_in_threadpool(TwilioService.place_call, phone_number, _public_host(request))
        except TwilioNotConfiguredError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except Exception:
            LOGGER.exception("Error initiating call")
            raise HTTPException(status_code=500, detail="Failed to initiate call")

        return {"message": "Call initiated", "callSid": call_sid}

    async def active_calls(self):
        calls = self.registry.list_active()
        return {"success": True, "totalCalls": len(calls), "calls": calls}

    async def conversations(self):
        conversations = [
            self._conversation_payload(call_id, session) for call_id, session in self.registry.items()
        ]
        return {
            "success": True,
            "totalConversations": len(conversations),
            "conversations": conversations,
        }

    async def conversation(self, call_id: str):
        session = self.registry.get(call_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Unknown call")
        return {"success": True, **self._conversation_payload(call_id, session)}

    @staticmethod
    def _conversation_payload(call_id: str, session) -> dict:
        history = session.history()
        return {"callSid": call_id, "history": history, "totalItems": len(history)}
