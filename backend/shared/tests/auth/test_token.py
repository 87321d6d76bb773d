"""Tests for HMAC-SHA256 session token signing and verification."""

import base64
import hashlib
import hmac
import json
import time

import pytest

from shared.auth.models import SessionClaims
from shared.auth.token import (
    CLOCK_SKEW_SECONDS,
    SESSION_TTL_SECONDS,
    ExpiredTokenError,
    MalformedTokenError,
    TokenError,
    issue_session_token,
    sign_claims,
    verify_session_token,
)

SECRET = "test-hmac-secret"


def _signed_payload(payload: dict) -> str:
    payload_bytes = json.dumps(payload, sort_keys=True).encode()
    sig = hmac.new(SECRET.encode(), payload_bytes, hashlib.sha256).digest()
    return f"{base64.urlsafe_b64encode(payload_bytes).decode()}.{base64.urlsafe_b64encode(sig).decode()}"


class TestIssueAndVerify:
    def test_valid_token_round_trips(self):
        token = issue_session_token(7, "alice", SECRET)
        claims = verify_session_token(token, SECRET)
        assert claims.account_id == 7
        assert claims.username == "alice"

    def test_expiry_is_one_hour_after_issue(self):
        token = issue_session_token(7, "alice", SECRET, now=1_000_000.0)
        claims = verify_session_token(token, SECRET, now=1_000_000.0)
        assert claims.issued_at == 1_000_000.0
        assert claims.expires_at == 1_000_000.0 + SESSION_TTL_SECONDS
        assert SESSION_TTL_SECONDS == 3600


class TestExpiry:
    def test_accepted_until_expiry(self):
        issued = 1_000_000.0
        token = issue_session_token(1, "alice", SECRET, now=issued)
        assert verify_session_token(token, SECRET, now=issued + SESSION_TTL_SECONDS).username == "alice"

    def test_rejected_once_clock_passes_expiry(self):
        issued = 1_000_000.0
        token = issue_session_token(1, "alice", SECRET, now=issued)
        with pytest.raises(ExpiredTokenError):
            verify_session_token(token, SECRET, now=issued + SESSION_TTL_SECONDS + 0.001)

    def test_expired_is_a_token_error(self):
        past = time.time() - SESSION_TTL_SECONDS - 1
        token = issue_session_token(1, "alice", SECRET, now=past)
        with pytest.raises(TokenError):
            verify_session_token(token, SECRET)


class TestTamperedToken:
    def test_tampered_payload_rejected(self):
        token = issue_session_token(1, "alice", SECRET)
        payload_b64, sig_b64 = token.split(".")
        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
        payload["username"] = "mallory"
        tampered_payload = base64.urlsafe_b64encode(json.dumps(payload, sort_keys=True).encode()).decode()
        with pytest.raises(MalformedTokenError):
            verify_session_token(f"{tampered_payload}.{sig_b64}", SECRET)

    def test_tampered_signature_rejected(self):
        token = issue_session_token(1, "alice", SECRET)
        payload_b64, sig_b64 = token.split(".")
        sig_bytes = bytearray(base64.urlsafe_b64decode(sig_b64))
        sig_bytes[0] ^= 0xFF
        tampered_sig = base64.urlsafe_b64encode(bytes(sig_bytes)).decode()
        with pytest.raises(MalformedTokenError):
            verify_session_token(f"{payload_b64}.{tampered_sig}", SECRET)

    def test_tampered_expired_token_reports_malformed(self):
        """Signature is checked before expiry."""
        token = issue_session_token(1, "alice", SECRET, now=1_000.0)
        payload_b64, _ = token.split(".")
        with pytest.raises(MalformedTokenError):
            verify_session_token(f"{payload_b64}.AAAA", SECRET)

    def test_wrong_secret_rejected(self):
        token = issue_session_token(1, "alice", SECRET)
        with pytest.raises(MalformedTokenError):
            verify_session_token(token, "wrong-secret")


class TestMalformedToken:
    @pytest.mark.parametrize("token", ["nodot", "a.b.c", "", "!!!invalid.AAAA"])
    def test_bad_structure(self, token):
        with pytest.raises(MalformedTokenError):
            verify_session_token(token, SECRET)

    def test_invalid_base64_signature(self):
        payload_b64 = issue_session_token(1, "alice", SECRET).split(".")[0]
        with pytest.raises(MalformedTokenError):
            verify_session_token(f"{payload_b64}.!!!invalid", SECRET)

    def test_signed_payload_missing_fields(self):
        with pytest.raises(MalformedTokenError):
            verify_session_token(_signed_payload({"account_id": 1}), SECRET)

    def test_signed_payload_not_json(self):
        payload_bytes = b"not json"
        sig = hmac.new(SECRET.encode(), payload_bytes, hashlib.sha256).digest()
        token = f"{base64.urlsafe_b64encode(payload_bytes).decode()}.{base64.urlsafe_b64encode(sig).decode()}"
        with pytest.raises(MalformedTokenError):
            verify_session_token(token, SECRET)

    def test_non_numeric_expiry(self):
        now = time.time()
        token = _signed_payload({"account_id": 1, "username": "a", "issued_at": now, "expires_at": "later"})
        with pytest.raises(MalformedTokenError):
            verify_session_token(token, SECRET)

    def test_issued_in_the_future(self):
        future = time.time() + CLOCK_SKEW_SECONDS + 100
        token = sign_claims(SessionClaims(1, "a", future, future + 60), SECRET)
        with pytest.raises(MalformedTokenError):
            verify_session_token(token, SECRET)

    def test_expires_before_issue(self):
        now = time.time()
        token = sign_claims(SessionClaims(1, "a", now, now - 1), SECRET)
        with pytest.raises(MalformedTokenError):
            verify_session_token(token, SECRET)

    def test_lifetime_longer_than_ttl(self):
        now = time.time()
        token = sign_claims(SessionClaims(1, "a", now, now + SESSION_TTL_SECONDS * 24), SECRET)
        with pytest.raises(MalformedTokenError):
            verify_session_token(token, SECRET)
