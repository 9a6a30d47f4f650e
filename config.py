"""
Configuration and constants for the realtime call bridge.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# =============================
# Server Configuration
# =============================
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5050))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Public hostname the telephony provider reaches us on (e.g. an ngrok host)
PUBLIC_HOST = os.getenv("PUBLIC_HOST")

# =============================
# OpenAI Configuration
# =============================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_REALTIME_MODEL = os.getenv("OPENAI_REALTIME_MODEL", "gpt-4o-realtime-preview-2024-10-01")
REALTIME_WS_URL = f"wss://api.openai.com/v1/realtime?model={OPENAI_REALTIME_MODEL}"
VOICE = os.getenv("VOICE", "alloy")
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.8"))
AUDIO_FORMAT = "g711_ulaw"
TRANSCRIPTION_MODEL = "whisper-1"

if not OPENAI_API_KEY:
    raise ValueError("Missing the OpenAI API key. Please set it in the .env file.")

SYSTEM_MESSAGE = os.getenv(
    "SYSTEM_MESSAGE",
    "You are a helpful, witty, and friendly AI speaking with a caller on the phone. "
    "Keep answers short and conversational, and stop talking as soon as the caller "
    "interrupts you.",
)

# =============================
# Twilio Configuration
# =============================
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

# =============================
# Session Constants
# =============================
# Delay between the AI link opening and the session.update command
SESSION_INIT_DELAY_SECONDS = 0.1
# How long a finished call stays queryable after the telephony link closes
SESSION_EVICTION_DELAY_SECONDS = float(os.getenv("SESSION_EVICTION_DELAY_SECONDS", 300))
MARK_NAME = "responsePart"

# =============================
# Logging/diagnostics
# =============================
LOG_EVENT_TYPES = [
    "error",
    "response.audio_transcript.done",
    "response.content.done",
    "rate_limits.updated",
    "response.done",
    "input_audio_buffer.committed",
    "input_audio_buffer.speech_stopped",
    "input_audio_buffer.speech_started",
    "session.created",
    "session.updated",
    "conversation.item.created",
    "conversation.item.input_audio_transcription.completed",
]
SHOW_TIMING_MATH = os.getenv("SHOW_TIMING_MATH", "false").lower() in ("1", "true", "yes")
