"""Webhook listener routes."""
import asyncio
import logging
from typing import Optional

import uvicorn
from cachetools import TTLCache
from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

import config
from core.errors import AuthMismatch, MalformedMessage
from middleware.logging import generate_request_id, log_request
from middleware.security import verify_token

logger = logging.getLogger(__name__)


class WebhookListener:
    """Handle on a running uvicorn server."""

    def __init__(self, server: uvicorn.Server, task: asyncio.Task):
        self.server = server
        self.task = task

    @property
    def running(self) -> bool:
        return not self.task.done()

    async def close(self):
        """Ask the server to exit and wait for it."""
        self.server.should_exit = True
        await self.task


def request_path(request: Request) -> str:
    """Raw request path including the query string."""
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path


def create_webhook_router(slack, verification_token: Optional[str] = None) -> APIRouter:
    """
    Build the catch-all webhook route for a Slack handler.

    Every POST is acknowledged with an empty 200, except URL verification
    challenges which are echoed back.

    Args:
        slack: SlackHandler receiving the messages
        verification_token: Token messages must carry; None accepts all
    """
    router = APIRouter()
    seen_events = TTLCache(maxsize=10000, ttl=config.EVENT_DEDUPE_TTL)

    def check_event_dedupe(event_id: Optional[str]) -> bool:
        """
        Check if an Events API delivery was already digested.

        Returns:
            True if already processed, False otherwise
        """
        if not event_id:
            return False
        if event_id in seen_events:
            return True
        seen_events[event_id] = True
        return False

    @router.post("/{path:path}")
    async def webhook(request: Request):
        """Slack webhook handler (POST)."""
        request_id = generate_request_id()
        path = request_path(request)
        body = await request.body()

        try:
            message = slack.parse_incoming(body)
        except MalformedMessage as e:
            log_request(request_id, path, "malformed", metadata={"error": str(e)})
            return Response(status_code=200)

        # New event subscription challenge
        if message.get("challenge"):
            logger.info("Verifying event subscription")
            log_request(request_id, path, "challenge")
            return PlainTextResponse(str(message["challenge"]))

        try:
            verify_token(message, verification_token)
        except AuthMismatch as e:
            logger.warning(f"Dropping request to {path}: {e}")
            log_request(request_id, path, "unauthorized")
            return Response(status_code=200)

        if not slack.verify_signature(
            body,
            request.headers.get("X-Slack-Request-Timestamp"),
            request.headers.get("X-Slack-Signature")
        ):
            logger.warning(f"Dropping request to {path}: invalid signature")
            log_request(request_id, path, "bad_signature")
            return Response(status_code=200)

        event_id = message.get("event_id")
        if check_event_dedupe(event_id):
            log_request(request_id, path, "duplicate", metadata={
                "event_id": event_id,
                "retry_num": request.headers.get("X-Slack-Retry-Num"),
            })
            return Response(status_code=200)

        # Notify upon request path
        slack.emit(path, message)

        message = slack.digest(message)
        log_request(request_id, path, "digested", routing_keys=slack.router.routing_keys(message))
        return Response(status_code=200)

    return router
