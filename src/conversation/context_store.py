"""Per-sender conversation context with a fixed time-to-live.

The store holds, for each (channel, sender id), the options most recently
presented to the sender and any in-progress booking draft. Expiry is a
property of the stored record, so another backend (for example a shared
key-value cache) only needs to persist and return ConversationContext
records.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence

from src.models import BookingDraft, Channel, CommandOption, ConversationContext

DEFAULT_TTL_SECONDS = 30 * 60

_Key = tuple[Channel, str]


class ContextStore(ABC):
    """Interface for conversation context storage."""

    @abstractmethod
    def get(self, channel: Channel, sender_id: str) -> ConversationContext | None:
        """Return the live context, or None if absent or expired."""

    @abstractmethod
    def set(
        self,
        channel: Channel,
        sender_id: str,
        options: Sequence[CommandOption],
        draft: BookingDraft | None = None,
    ) -> ConversationContext:
        """Replace the sender's context; the TTL restarts from now."""

    @abstractmethod
    def clear(self, channel: Channel, sender_id: str) -> None:
        """Remove the sender's context if present."""

    @abstractmethod
    def sweep(self) -> int:
        """Drop expired records. Returns the number removed."""


class InMemoryContextStore(ContextStore):
    """Single-process context store.

    Locks are striped by key: two senders only contend when they hash to the
    same stripe, and a read of one key never overlaps a delete of that key.
    Records are immutable, so a reader sees either the old record or none.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, stripes: int = 64) -> None:
        self._ttl_seconds = ttl_seconds
        self._entries: dict[_Key, ConversationContext] = {}
        self._locks = [threading.Lock() for _ in range(stripes)]

    def _lock_for(self, key: _Key) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def get(self, channel: Channel, sender_id: str) -> ConversationContext | None:
        key = (channel, sender_id)
        now = time.time()
        with self._lock_for(key):
            context = self._entries.get(key)
            if context is None:
                return None
            if context.is_expired(now):
                del self._entries[key]
                return None
            return context

    def set(
        self,
        channel: Channel,
        sender_id: str,
        options: Sequence[CommandOption],
        draft: BookingDraft | None = None,
    ) -> ConversationContext:
        key = (channel, sender_id)
        now = time.time()
        context = ConversationContext(
            channel=channel,
            sender_id=sender_id,
            pending_options=tuple(options),
            draft=draft,
            created_at=now,
            expires_at=now + self._ttl_seconds,
        )
        with self._lock_for(key):
            self._entries[key] = context
        return context

    def clear(self, channel: Channel, sender_id: str) -> None:
        key = (channel, sender_id)
        with self._lock_for(key):
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Delete every expired entry. Returns the number removed."""
        now = time.time()
        removed = 0
        for key in list(self._entries):
            with self._lock_for(key):
                context = self._entries.get(key)
                if context is not None and context.is_expired(now):
                    del self._entries[key]
                    removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._entries)
