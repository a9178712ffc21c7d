"""Base platform interface."""
from abc import ABC, abstractmethod
from typing import Any, Dict


class PlatformHandler(ABC):
    """Abstract base class for platform handlers."""

    @abstractmethod
    def parse_incoming(self, request_body) -> Dict[str, Any]:
        """
        Parse incoming webhook request.

        Returns:
            Decoded message
        """
        pass

    @abstractmethod
    def digest(self, message) -> Dict[str, Any]:
        """
        Parse a message and notify its subscribers.

        Returns:
            Decoded message
        """
        pass

    @abstractmethod
    async def send_outgoing(self, *args):
        """
        Send outgoing message.

        Args:
            *args: Optional endpoint followed by payload mappings

        Returns:
            Send result
        """
        pass

    @abstractmethod
    def verify_signature(self, request_body: bytes, timestamp: str, signature: str) -> bool:
        """
        Verify webhook signature.

        Args:
            request_body: Raw request body
            timestamp: Request timestamp header value
            signature: Signature header value

        Returns:
            True if signature is valid
        """
        pass
