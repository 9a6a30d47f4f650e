"""
Twilio service for placing outbound calls and building call-control TwiML.
"""
import logging
from typing import Optional

from twilio.rest import Client
from twilio.twiml.voice_response import Connect, VoiceResponse

from config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER

LOGGER = logging.getLogger(__name__)


class TwilioNotConfiguredError(RuntimeError):
    pass


class TwilioService:
    """Thin wrapper around the Twilio REST client and TwiML builder."""

    _client: Optional[Client] = None

    @staticmethod
    def is_configured() -> bool:
        return bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER)

    @classmethod
    def get_client(cls) -> Client:
        if not cls.is_configured():
            raise TwilioNotConfiguredError(
                "Missing Twilio configuration. Please set TWILIO_ACCOUNT_SID, "
                "TWILIO_AUTH_TOKEN, and TWILIO_PHONE_NUMBER in the .env file."
            )
        if cls._client is None:
            cls._client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
        return cls._client

    @classmethod
    def place_call(cls, to_number: str, host: str) -> str:
        """
        Ask Twilio to dial `to_number`; the answered call fetches its TwiML
        from our /incoming-call webhook. Returns the new call SID.
        """
        call = cls.get_client().calls.create(
            to=to_number,
            from_=TWILIO_PHONE_NUMBER,
            url=f"https://{host}/incoming-call",
        )
        LOGGER.info("Initiated call %s to %s", call.sid, to_number)
        return str(call.sid)

    @staticmethod
    def media_stream_twiml(host: str) -> str:
        """TwiML connecting the call's audio to our /media-stream websocket."""
        response = VoiceResponse()
        connect = Connect()
        connect.stream(url=f"wss://{host}/media-stream")
        response.append(connect)
        return str(response)
