"""Real Time Messaging client: digests every socket frame."""
import asyncio
import logging
from typing import Any, Dict, Optional

import websockets
from pydantic import ValidationError

from core.composer import Composer
from core.errors import MalformedMessage, TransportError
from core.router import Router
from models.schemas import RtmStart

logger = logging.getLogger(__name__)


class RtmConnection:
    """An RTM session whose frames are fed to a router."""

    def __init__(self, composer: Composer, router: Router):
        """Initialize RTM connection."""
        self.composer = composer
        self.router = router
        self.identity: Dict[str, Any] = {}
        self.ws = None
        self._reader: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self.ws is not None

    async def start(self, options: Dict[str, Any] = None) -> "RtmConnection":
        """
        Call rtm.start, open the socket and start digesting frames.

        Raises:
            TransportError: if rtm.start fails or returns no socket URL
        """
        result = await self.composer.send("rtm.start", options or {})
        result.raise_for_error()
        try:
            session = RtmStart.model_validate(result.data)
        except ValidationError as e:
            raise TransportError(f"rtm.start returned an unusable session: {e}", endpoint="rtm.start") from e

        self.identity = session.self_
        self.ws = await websockets.connect(session.url)
        self._reader = asyncio.create_task(self._read())
        logger.info(f"RTM connected as {self.identity.get('name', 'unknown')}")
        return self

    async def _read(self):
        try:
            async for frame in self.ws:
                try:
                    self.router.digest(frame)
                except MalformedMessage as e:
                    logger.warning(f"Dropping malformed RTM frame: {e}")
        except websockets.ConnectionClosed as e:
            logger.info(f"RTM connection closed: {e}")
        finally:
            self.ws = None

    async def close(self):
        """Close the socket and wait for the reader to stop."""
        if self.ws is not None:
            await self.ws.close()
        if self._reader is not None:
            await self._reader
            self._reader = None
