"""Tests for the per-sender rate limiter."""

from __future__ import annotations

from unittest.mock import patch

from src.webhook.rate_limiter import SenderRateLimiter


class TestSenderRateLimiter:
    """Sliding window per sender with an optional block period."""

    def test_allows_within_limit(self) -> None:
        limiter = SenderRateLimiter(max_requests=5, window_seconds=60)
        for _ in range(5):
            assert limiter.allow("whatsapp:1555").allowed is True

    def test_blocks_over_limit(self) -> None:
        limiter = SenderRateLimiter(max_requests=5, window_seconds=60)
        for _ in range(5):
            limiter.allow("whatsapp:1555")
        decision = limiter.allow("whatsapp:1555")
        assert decision.allowed is False
        assert decision.retry_after_seconds == 300

    def test_different_senders_independent(self) -> None:
        limiter = SenderRateLimiter(max_requests=1, window_seconds=60)
        assert limiter.allow("telegram:1").allowed is True
        assert limiter.allow("telegram:1").allowed is False
        assert limiter.allow("telegram:2").allowed is True

    def test_defaults(self) -> None:
        limiter = SenderRateLimiter()
        assert limiter._max_requests == 10
        assert limiter._window_seconds == 60
        assert limiter._block_seconds == 300

    def test_block_outlasts_window(self) -> None:
        limiter = SenderRateLimiter(max_requests=2, window_seconds=10, block_seconds=100)
        with patch("src.webhook.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            assert limiter.allow("s").allowed is True
            assert limiter.allow("s").allowed is True
            assert limiter.allow("s").allowed is False

            # Window has passed but the block has not
            mock_time.time.return_value = 1050.0
            decision = limiter.allow("s")
            assert decision.allowed is False
            assert decision.retry_after_seconds == 50

            mock_time.time.return_value = 1100.5
            assert limiter.allow("s").allowed is True

    def test_pure_sliding_window_without_block(self) -> None:
        limiter = SenderRateLimiter(max_requests=2, window_seconds=10, block_seconds=0)
        with patch("src.webhook.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            assert limiter.allow("s").allowed is True
            mock_time.time.return_value = 1004.0
            assert limiter.allow("s").allowed is True

            mock_time.time.return_value = 1006.0
            decision = limiter.allow("s")
            assert decision.allowed is False
            assert decision.retry_after_seconds == 4

            # Oldest message left the window: capacity for one more
            mock_time.time.return_value = 1010.5
            assert limiter.allow("s").allowed is True
            assert limiter.allow("s").allowed is False

    def test_rejected_requests_do_not_extend_window(self) -> None:
        limiter = SenderRateLimiter(max_requests=1, window_seconds=10, block_seconds=0)
        with patch("src.webhook.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            assert limiter.allow("s").allowed is True
            for offset in (1.0, 5.0, 9.0):
                mock_time.time.return_value = 1000.0 + offset
                assert limiter.allow("s").allowed is False
            mock_time.time.return_value = 1010.5
            assert limiter.allow("s").allowed is True

    def test_retry_after_is_at_least_one_second(self) -> None:
        limiter = SenderRateLimiter(max_requests=1, window_seconds=10, block_seconds=0)
        with patch("src.webhook.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            limiter.allow("s")
            mock_time.time.return_value = 1009.99
            assert limiter.allow("s").retry_after_seconds == 1

    def test_reset_lifts_block(self) -> None:
        limiter = SenderRateLimiter(max_requests=1, window_seconds=60)
        limiter.allow("s")
        assert limiter.allow("s").allowed is False
        limiter.reset("s")
        assert limiter.allow("s").allowed is True

    def test_cleanup_drops_idle_senders_only(self) -> None:
        limiter = SenderRateLimiter(max_requests=1, window_seconds=10, block_seconds=100)
        with patch("src.webhook.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            limiter.allow("idle")
            limiter.allow("blocked")
            limiter.allow("blocked")

            mock_time.time.return_value = 1020.0
            assert limiter.cleanup() == 1
            assert "idle" not in limiter._windows
            assert "blocked" in limiter._windows
