"""Slack platform handler."""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
import uvicorn

import config
from core.composer import Composer, SendResult
from core.parser import parse
from core.registry import SubscriptionRegistry
from core.router import Router
from core.rtm import RtmConnection
from middleware import security
from platforms.base import PlatformHandler

logger = logging.getLogger(__name__)


class SlackHandler(PlatformHandler):
    """
    Slack adapter: routes inbound messages to subscribers and sends replies.

    Handlers are registered with ``on``::

        slack = SlackHandler()

        @slack.on("/count")
        async def count(message):
            await slack.send(message["response_url"], {"text": "1"})
    """

    def __init__(
        self,
        defaults: Dict[str, Any] = None,
        token: str = None,
        scoped: bool = False,
        signing_secret: str = None,
        transport: httpx.AsyncBaseTransport = None
    ):
        """
        Initialize Slack handler.

        Args:
            defaults: Baseline fields for every outbound message
            token: Bot token for API calls (defaults to SLACK_BOT_TOKEN)
            scoped: Prefix routing keys with their dimension
            signing_secret: Secret for X-Slack-Signature checks
            transport: Optional httpx transport (used by tests)
        """
        self.scoped = scoped
        self.transport = transport
        self.signing_secret = config.SLACK_SIGNING_SECRET if signing_secret is None else signing_secret
        self.registry = SubscriptionRegistry()
        self.router = Router(self.registry, scoped=scoped)
        self.composer = Composer(
            defaults,
            token=token or config.SLACK_BOT_TOKEN or None,
            transport=transport
        )
        self.rtm_connection: Optional[RtmConnection] = None

    def instance(self, defaults: Dict[str, Any] = None) -> "SlackHandler":
        """New handler with its own defaults and subscriptions."""
        return self.__class__(
            defaults,
            token=self.token,
            scoped=self.scoped,
            signing_secret=self.signing_secret,
            transport=self.transport
        )

    @property
    def defaults(self) -> Dict[str, Any]:
        return self.composer.defaults

    @property
    def token(self) -> Optional[str]:
        return self.composer.token

    @token.setter
    def token(self, value: Optional[str]):
        self.composer.token = value

    def on(self, *names):
        """
        Register a callback under any number of routing keys.

        The last argument is the callback; without one a decorator is
        returned.

        Returns:
            The handler for chaining, or a decorator
        """
        if names and callable(names[-1]):
            self.registry.on(*names)
            return self
        return self.registry.on(*names)

    def emit(self, key: str, message: Any) -> int:
        """Notify subscribers of a single routing key."""
        return self.registry.emit(key, message)

    def parse_incoming(self, request_body) -> Dict[str, Any]:
        """Parse a Slack request body."""
        return parse(request_body)

    def digest(self, message) -> Dict[str, Any]:
        """Parse a Slack message and notify every matching subscriber."""
        return self.router.digest(message)

    async def send(self, *args) -> SendResult:
        """Send data to Slack's API (see Composer.send)."""
        return await self.composer.send(*args)

    async def send_outgoing(self, *args) -> SendResult:
        """Send outgoing message."""
        return await self.send(*args)

    async def post(self, endpoint: str, payload: Dict[str, Any]) -> SendResult:
        """POST a composed payload; raises TransportError on failure."""
        return await self.composer.post(endpoint, payload)

    def verify_signature(self, request_body: bytes, timestamp: str, signature: str) -> bool:
        """Verify Slack request signature."""
        if not self.signing_secret:
            return True  # Skip verification if no secret configured
        return security.verify_signature(self.signing_secret, request_body, timestamp, signature)

    async def rtm(self, **options) -> RtmConnection:
        """
        Start an RTM session whose frames are digested like webhooks.

        Returns:
            The open connection
        """
        connection = RtmConnection(self.composer, self.router)
        await connection.start(options)
        self.rtm_connection = connection
        return connection

    async def listen(self, port: int, token: str = None, store=None):
        """
        Serve webhooks for this handler on 0.0.0.0:port.

        Args:
            port: Port number to listen on
            token: Optional verification token to require on messages
            store: Connected key-value store; DATABASE_URL is used if omitted

        Returns:
            Running WebhookListener
        """
        from routes.application import create_app
        from routes.webhook import WebhookListener

        logger.info(f"Starting listener on port {port}")
        app = create_app(self, verification_token=token, store=store, connect_store=store is None)
        server = uvicorn.Server(uvicorn.Config(
            app,
            host="0.0.0.0",
            port=int(port),
            log_level=config.LOG_LEVEL.lower()
        ))
        task = asyncio.create_task(server.serve())
        while not server.started and not task.done():
            await asyncio.sleep(0.05)
        if task.done():
            # serve() returned early, surface its error
            task.result()
        logger.info(f"Listening for events on port {port}")
        return WebhookListener(server, task)
