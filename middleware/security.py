"""Security checks for inbound webhooks."""
import hashlib
import hmac
import time
from typing import Any, Dict, Optional

import config
from core.errors import AuthMismatch


def verify_token(message: Dict[str, Any], expected: Optional[str]):
    """
    Check a message's verification token.

    No configured token means every message is accepted.

    Raises:
        AuthMismatch: if the token is missing or different
    """
    if not expected:
        return
    token = message.get("token")
    if token is None:
        payload = message.get("payload")
        if isinstance(payload, dict):
            token = payload.get("token")
    if not token:
        raise AuthMismatch("Unauthenticated request: no token")
    if not hmac.compare_digest(str(token).encode(), expected.encode()):
        raise AuthMismatch("Verification token mismatch")


def compute_signature(secret: str, timestamp: str, body: bytes) -> str:
    """Slack v0 request signature."""
    base = b"v0:" + timestamp.encode() + b":" + body
    return "v0=" + hmac.new(secret.encode(), base, hashlib.sha256).hexdigest()


def verify_signature(
    secret: str,
    body: bytes,
    timestamp: Optional[str],
    signature: Optional[str],
    max_age: int = None,
    now: float = None
) -> bool:
    """
    Verify an X-Slack-Signature header.

    Args:
        secret: Signing secret
        body: Raw request body
        timestamp: X-Slack-Request-Timestamp header value
        signature: X-Slack-Signature header value
        max_age: Oldest accepted timestamp, in seconds
        now: Current time (for tests)

    Returns:
        True if signature is valid and fresh
    """
    if not timestamp or not signature:
        return False
    try:
        sent_at = int(timestamp)
    except ValueError:
        return False

    max_age = config.SIGNATURE_MAX_AGE if max_age is None else max_age
    now = time.time() if now is None else now
    if abs(now - sent_at) > max_age:
        return False

    expected = compute_signature(secret, timestamp, body)
    return hmac.compare_digest(expected.encode(), signature.encode())
