"""Tests for webhook token and signature checks."""
import pytest
from core.errors import AuthMismatch
from middleware.security import compute_signature, verify_signature, verify_token


@pytest.mark.parametrize("message", [
    {"token": "secret"},
    {"payload": {"token": "secret"}},
])
def test_matching_token(message):
    verify_token(message, "secret")


@pytest.mark.parametrize("message", [
    {},
    {"token": ""},
    {"token": "other"},
    {"payload": {"token": "other"}},
])
def test_token_mismatch(message):
    with pytest.raises(AuthMismatch):
        verify_token(message, "secret")


def test_no_expected_token_accepts_all():
    verify_token({}, None)
    verify_token({"token": "anything"}, "")


def test_signature():
    body = b"command=%2Fcount"
    signature = compute_signature("shh", "1000", body)

    assert signature.startswith("v0=")
    assert verify_signature("shh", body, "1000", signature, now=1010)
    assert not verify_signature("other", body, "1000", signature, now=1010)
    assert not verify_signature("shh", body + b"x", "1000", signature, now=1010)


@pytest.mark.parametrize("timestamp,signature", [
    (None, "v0=abc"),
    ("1000", None),
    ("not-a-number", "v0=abc"),
])
def test_signature_missing_headers(timestamp, signature):
    assert not verify_signature("shh", b"", timestamp, signature, now=1000)


def test_stale_signature():
    signature = compute_signature("shh", "1000", b"")
    assert not verify_signature("shh", b"", "1000", signature, max_age=300, now=1301)


def test_non_ascii_token():
    with pytest.raises(AuthMismatch):
        verify_token({"token": "sécret"}, "secret")
    verify_token({"token": "sécret"}, "sécret")


def test_non_ascii_signature():
    assert not verify_signature("shh", b"", "1000", "v0=é", now=1000)
