"""
Per-call playback bookkeeping shared by the session and the interruption logic.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional


class MarkQueue:
    """
    FIFO of marker tokens, one per audio chunk sent to the telephony side.
    A token is popped for every playback acknowledgment received back, so a
    non-empty queue means AI audio is still being played to the caller.
    """

    def __init__(self):
        self._tokens: Deque[str] = deque()

    def push(self, token: str) -> None:
        self._tokens.append(token)

    def pop(self) -> Optional[str]:
        """Acknowledge the oldest outstanding chunk. No-op when empty."""
        if not self._tokens:
            return None
        return self._tokens.popleft()

    def clear(self) -> None:
        self._tokens.clear()

    def __len__(self) -> int:
        return len(self._tokens)

    def __bool__(self) -> bool:
        return bool(self._tokens)


@dataclass
class CallState:
    """
    Mutable per-call state owned by one bridging session.
    """
    call_id: Optional[str] = None
    latest_media_timestamp: int = 0  # ms (from telephony media frames)
    response_start_timestamp: Optional[int] = None  # ms, on the same clock
    last_assistant_item: Optional[str] = None
    mark_queue: MarkQueue = field(default_factory=MarkQueue)

    def restart_stream(self, call_id: str) -> None:
        self.call_id = call_id
        self.latest_media_timestamp = 0
        self.response_start_timestamp = None

    def reset_response(self) -> None:
        self.mark_queue.clear()
        self.last_assistant_item = None
        self.response_start_timestamp = None

    @property
    def response_in_flight(self) -> bool:
        return bool(self.mark_queue) and self.response_start_timestamp is not None
