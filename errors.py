"""
Exceptions raised while decoding frames from either side of the bridge.

The bridge never lets these escape a session callback: they mark a single
message as unusable, and the message is dropped.
"""

from typing import Optional


class BridgeError(Exception):
    default_detail: str = "Bridge error"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class MalformedFrameError(BridgeError):
    """A telephony media-stream frame could not be decoded."""

    default_detail = "Malformed telephony frame"


class MalformedEventError(BridgeError):
    """A realtime AI event could not be decoded."""

    default_detail = "Malformed realtime event"
