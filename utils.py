"""
Utility functions for the realtime call bridge.
"""
import json
import logging
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)


def decode_json_object(message: Any) -> Dict[str, Any]:
    """
    Decode a websocket message into a dictionary.
    Raises ValueError when the message is not a JSON object.
    """
    if isinstance(message, dict):
        return message
    if isinstance(message, (bytes, bytearray)):
        message = message.decode()
    if not isinstance(message, str):
        raise ValueError(f"unsupported message type: {type(message).__name__}")

    try:
        data = json.loads(message)
    except RecursionError as e:
        raise ValueError("message is nested too deeply") from e
    if not isinstance(data, dict):
        raise ValueError("message is not a JSON object")
    return data


def preview(message: Any, limit: int = 120) -> str:
    """Shorten a raw message for log output."""
    text = message if isinstance(message, str) else repr(message)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


async def safe_task(coro, name: str = "task"):
    """Execute a coroutine, logging any error instead of raising it."""
    try:
        await coro
    except Exception:
        LOGGER.exception("Task %s failed", name)
