"""Short per-sender transcript passed to the fallback intent engine.

Each sender keeps at most ``max_turns`` turns. The transcript expires
``ttl_seconds`` after its last turn, matching the conversation context TTL.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Literal

from src.conversation.context_store import DEFAULT_TTL_SECONDS
from src.models import Channel, HistoryTurn

DEFAULT_MAX_TURNS = 10

_Key = tuple[Channel, str]


@dataclass
class _Transcript:
    turns: deque[HistoryTurn]
    expires_at: float = 0.0


class ConversationHistory:
    """In-memory transcripts keyed by (channel, sender id)."""

    def __init__(
        self,
        max_turns: int = DEFAULT_MAX_TURNS,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._max_turns = max_turns
        self._ttl_seconds = ttl_seconds
        self._transcripts: dict[_Key, _Transcript] = {}
        self._lock = threading.Lock()

    def get(self, channel: Channel, sender_id: str) -> tuple[HistoryTurn, ...]:
        key = (channel, sender_id)
        now = time.time()
        with self._lock:
            transcript = self._transcripts.get(key)
            if transcript is None:
                return ()
            if now > transcript.expires_at:
                del self._transcripts[key]
                return ()
            return tuple(transcript.turns)

    def add(
        self,
        channel: Channel,
        sender_id: str,
        role: Literal["user", "assistant"],
        content: str,
    ) -> None:
        key = (channel, sender_id)
        now = time.time()
        with self._lock:
            transcript = self._transcripts.get(key)
            if transcript is None or now > transcript.expires_at:
                transcript = _Transcript(turns=deque(maxlen=self._max_turns))
                self._transcripts[key] = transcript
            transcript.turns.append(HistoryTurn(role=role, content=content))
            transcript.expires_at = now + self._ttl_seconds

    def clear(self, channel: Channel, sender_id: str) -> None:
        with self._lock:
            self._transcripts.pop((channel, sender_id), None)

    def sweep(self) -> int:
        """Delete every expired transcript. Returns the number removed."""
        now = time.time()
        with self._lock:
            expired = [k for k, t in self._transcripts.items() if now > t.expires_at]
            for key in expired:
                del self._transcripts[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._transcripts)
