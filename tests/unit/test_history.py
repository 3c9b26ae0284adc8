"""Tests for the per-sender conversation transcript."""

from __future__ import annotations

from unittest.mock import patch

from src.conversation.history import ConversationHistory
from src.models import Channel, HistoryTurn


class TestTranscript:
    def test_turns_returned_in_order(self) -> None:
        history = ConversationHistory()
        history.add(Channel.TELEGRAM, "7", "user", "/services")
        history.add(Channel.TELEGRAM, "7", "assistant", "Haircut or Color?")
        assert history.get(Channel.TELEGRAM, "7") == (
            HistoryTurn(role="user", content="/services"),
            HistoryTurn(role="assistant", content="Haircut or Color?"),
        )

    def test_keeps_only_latest_turns(self) -> None:
        history = ConversationHistory(max_turns=3)
        for i in range(5):
            history.add(Channel.WHATSAPP, "1555", "user", f"msg {i}")
        assert [t.content for t in history.get(Channel.WHATSAPP, "1555")] == [
            "msg 2", "msg 3", "msg 4",
        ]

    def test_senders_and_channels_isolated(self) -> None:
        history = ConversationHistory()
        history.add(Channel.WHATSAPP, "7", "user", "hi")
        assert history.get(Channel.TELEGRAM, "7") == ()
        assert history.get(Channel.WHATSAPP, "8") == ()

    def test_clear(self) -> None:
        history = ConversationHistory()
        history.add(Channel.TELEGRAM, "7", "user", "hi")
        history.clear(Channel.TELEGRAM, "7")
        assert history.get(Channel.TELEGRAM, "7") == ()
        assert len(history) == 0


class TestExpiry:
    def test_transcript_expires_after_ttl(self) -> None:
        history = ConversationHistory(ttl_seconds=100)
        with patch("src.conversation.history.time") as mock_time:
            mock_time.time.return_value = 0.0
            history.add(Channel.TELEGRAM, "7", "user", "hi")
            mock_time.time.return_value = 100.0
            assert len(history.get(Channel.TELEGRAM, "7")) == 1
            mock_time.time.return_value = 100.5
            assert history.get(Channel.TELEGRAM, "7") == ()
        assert len(history) == 0

    def test_new_turn_restarts_ttl(self) -> None:
        history = ConversationHistory(ttl_seconds=100)
        with patch("src.conversation.history.time") as mock_time:
            mock_time.time.return_value = 0.0
            history.add(Channel.TELEGRAM, "7", "user", "hi")
            mock_time.time.return_value = 90.0
            history.add(Channel.TELEGRAM, "7", "assistant", "hello")
            mock_time.time.return_value = 150.0
            assert len(history.get(Channel.TELEGRAM, "7")) == 2

    def test_expired_transcript_restarts_empty(self) -> None:
        history = ConversationHistory(ttl_seconds=100)
        with patch("src.conversation.history.time") as mock_time:
            mock_time.time.return_value = 0.0
            history.add(Channel.TELEGRAM, "7", "user", "old")
            mock_time.time.return_value = 500.0
            history.add(Channel.TELEGRAM, "7", "user", "new")
            turns = history.get(Channel.TELEGRAM, "7")
        assert [t.content for t in turns] == ["new"]

    def test_sweep_removes_only_expired(self) -> None:
        history = ConversationHistory(ttl_seconds=100)
        with patch("src.conversation.history.time") as mock_time:
            mock_time.time.return_value = 0.0
            history.add(Channel.TELEGRAM, "old", "user", "hi")
            mock_time.time.return_value = 80.0
            history.add(Channel.TELEGRAM, "new", "user", "hi")
            mock_time.time.return_value = 150.0
            assert history.sweep() == 1
        assert len(history) == 1
