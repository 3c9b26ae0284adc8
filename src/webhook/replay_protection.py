"""Duplicate-delivery suppression for inbound webhook messages.

Providers redeliver a message whenever they do not see a timely 2xx, so the
same message id can arrive more than once. A message is accepted only the
first time its (channel, message id) pair is seen, and only while it is
younger than the configured age window.

Uses SQLite so a file-backed database survives restarts.
"""

from __future__ import annotations

import sqlite3
import threading
import time

from src.models import InboundMessage


class ReplayProtection:
    """Remembers recently seen provider message ids."""

    def __init__(
        self,
        db_path: str = ":memory:",
        max_age_seconds: int = 300,
        retention_seconds: int = 86_400,
    ) -> None:
        self._db_path = db_path
        self._max_age_seconds = max_age_seconds
        self._retention_seconds = retention_seconds
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """CREATE TABLE IF NOT EXISTS seen_messages (
                channel TEXT NOT NULL,
                message_id TEXT NOT NULL,
                seen_at INTEGER NOT NULL,
                PRIMARY KEY (channel, message_id)
            )"""
        )
        self._conn.commit()

    def check(self, message: InboundMessage) -> bool:
        """Return True if the message is fresh and has not been seen before.

        Messages without a provider id cannot be deduplicated and are accepted.
        """
        now = int(time.time())
        if message.sent_at is not None and now - message.sent_at > self._max_age_seconds:
            return False
        if not message.message_id:
            return True

        with self._lock:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO seen_messages (channel, message_id, seen_at) "
                "VALUES (?, ?, ?)",
                (message.channel.value, message.message_id, now),
            )
            self._conn.execute(
                "DELETE FROM seen_messages WHERE seen_at < ?",
                (now - self._retention_seconds,),
            )
            self._conn.commit()
        return cursor.rowcount == 1

    def close(self) -> None:
        self._conn.close()
