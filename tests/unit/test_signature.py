"""Tests for webhook signature verification."""

from __future__ import annotations

import hashlib
import hmac
from unittest.mock import patch

from src.webhook.signature import (
    compute_signature,
    derive_telegram_secret,
    verify_secret_token,
    verify_signature,
)

BODY = b'{"entry":[{"changes":[{"value":{"messages":[]}}]}]}'
SECRET = "app-secret"


def _sign(body: bytes, secret: str) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class TestComputeSignature:
    def test_matches_hmac_sha256_hex(self) -> None:
        assert compute_signature(BODY, SECRET) == _sign(BODY, SECRET)

    def test_prefix(self) -> None:
        assert compute_signature(b"", SECRET).startswith("sha256=")


class TestVerifySignature:
    def test_own_signature_verifies(self) -> None:
        assert verify_signature(BODY, compute_signature(BODY, SECRET), SECRET) is True

    def test_single_byte_change_in_body_fails(self) -> None:
        header = compute_signature(BODY, SECRET)
        tampered = bytearray(BODY)
        tampered[10] ^= 0x01
        assert verify_signature(bytes(tampered), header, SECRET) is False

    def test_single_char_change_in_signature_fails(self) -> None:
        header = compute_signature(BODY, SECRET)
        last = "0" if header[-1] != "0" else "1"
        assert verify_signature(BODY, header[:-1] + last, SECRET) is False

    def test_wrong_secret_fails(self) -> None:
        assert verify_signature(BODY, compute_signature(BODY, "other"), SECRET) is False

    def test_missing_header_fails(self) -> None:
        assert verify_signature(BODY, None, SECRET) is False
        assert verify_signature(BODY, "", SECRET) is False

    def test_header_without_prefix_fails(self) -> None:
        bare = hmac.new(SECRET.encode(), BODY, hashlib.sha256).hexdigest()
        assert verify_signature(BODY, bare, SECRET) is False

    def test_no_secret_configured_accepts(self) -> None:
        assert verify_signature(BODY, None, None) is True
        assert verify_signature(BODY, "sha256=garbage", "") is True

    def test_uses_constant_time_comparison(self) -> None:
        with patch("src.webhook.signature.hmac.compare_digest", return_value=True) as mock_cmp:
            verify_signature(BODY, "sha256=anything", SECRET)
            mock_cmp.assert_called_once()


class TestTelegramSecret:
    def test_derived_secret_is_sha256_of_token(self) -> None:
        assert derive_telegram_secret("123:ABC") == hashlib.sha256(b"123:ABC").hexdigest()

    def test_matching_token_accepted(self) -> None:
        assert verify_secret_token("s3cret", "s3cret") is True

    def test_wrong_or_missing_token_rejected(self) -> None:
        assert verify_secret_token("nope", "s3cret") is False
        assert verify_secret_token(None, "s3cret") is False
        assert verify_secret_token("", "s3cret") is False

    def test_no_secret_configured_accepts(self) -> None:
        assert verify_secret_token(None, None) is True
        assert verify_secret_token("anything", "") is True
