"""Error types raised by the event bus."""
from typing import Optional


class SlackBusError(Exception):
    """Base class for event bus errors."""


class MalformedMessage(SlackBusError):
    """Body is neither JSON nor form encoded, or a nested field failed to decode."""

    def __init__(self, message: str, raw=None):
        super().__init__(message)
        self.raw = raw


class TransportError(SlackBusError):
    """Outbound call failed at the network, HTTP or Slack API level."""

    def __init__(
        self,
        message: str,
        endpoint: str = "",
        status_code: Optional[int] = None,
        api_error: Optional[str] = None
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code
        self.api_error = api_error


class AuthMismatch(SlackBusError):
    """Inbound request failed token or signature verification."""


class OAuthError(SlackBusError):
    """Authorization code could not be exchanged for a token."""
