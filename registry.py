"""
In-memory registry of bridged calls, keyed by the telephony call identifier.

Note: This is a single-process registry. Entries do not survive a restart and
are not shared between workers.
"""
import asyncio
import logging
import threading
from typing import Dict, List, Optional

LOGGER = logging.getLogger(__name__)


class SessionRegistry:
    """
    Maps call id -> bridging session.

    Sessions register themselves when their media stream starts and are evicted
    a fixed delay after the call ends, so transcripts can still be fetched.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, object] = {}
        self._evictions: Dict[str, asyncio.TimerHandle] = {}

    def register(self, call_id: str, session) -> None:
        with self._lock:
            self._sessions[call_id] = session
        LOGGER.info("Registered call %s", call_id)

    def get(self, call_id: str):
        with self._lock:
            return self._sessions.get(call_id)

    def list_active(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())

    def items(self) -> List[tuple]:
        with self._lock:
            return list(self._sessions.items())

    def unregister(self, call_id: str) -> Optional[object]:
        with self._lock:
            handle = self._evictions.pop(call_id, None)
            session = self._sessions.pop(call_id, None)
        if handle is not None:
            handle.cancel()
        return session

    def schedule_eviction(self, call_id: str, delay: float) -> None:
        """Remove `call_id` once `delay` seconds have passed. Needs a running event loop."""
        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, self._evict, call_id)
        with self._lock:
            previous = self._evictions.pop(call_id, None)
            self._evictions[call_id] = handle
        if previous is not None:
            previous.cancel()
        LOGGER.info("Call %s will be evicted in %ss", call_id, delay)

    def _evict(self, call_id: str) -> None:
        with self._lock:
            self._evictions.pop(call_id, None)
            removed = self._sessions.pop(call_id, None)
        if removed is not None:
            LOGGER.info("Evicted call %s", call_id)

    def shutdown(self) -> None:
        """Cancel pending evictions (process shutdown)."""
        with self._lock:
            handles = list(self._evictions.values())
            self._evictions.clear()
        for handle in handles:
            handle.cancel()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, call_id: str) -> bool:
        with self._lock:
            return call_id in self._sessions


# Global registry for this process
REGISTRY = SessionRegistry()
