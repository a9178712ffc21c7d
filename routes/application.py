"""Webhook application factory."""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import config
from core.oauth import load_token
from data.store import KeyValueStore
from platforms.slack import SlackHandler
from routes import health, oauth
from routes.webhook import create_webhook_router

logger = logging.getLogger(__name__)


def create_app(
    slack: SlackHandler = None,
    verification_token: Optional[str] = None,
    store: Optional[KeyValueStore] = None,
    connect_store: bool = False
) -> FastAPI:
    """
    Build the webhook application for a Slack handler.

    Args:
        slack: Handler receiving digested messages
        verification_token: Token inbound messages must carry
        store: Already connected key-value store
        connect_store: Connect DATABASE_URL on startup when no store is given
    """
    slack = slack or SlackHandler()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if app.state.store is None and connect_store:
            owned = await KeyValueStore.connect(config.DATABASE_URL, config.KV_COLLECTION)
            app.state.store = owned
        if app.state.store is not None and not slack.token:
            slack.token = await load_token(app.state.store)
        yield
        await slack.registry.drain()
        if owned is not None:
            await owned.close()
            app.state.store = None

    app = FastAPI(
        title="SlackBus",
        description="Slack webhook event bus",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.slack = slack
    app.state.store = store

    # Error handlers
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        # In production, hide error details
        if config.ENVIRONMENT.lower() == "production":
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"}
            )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    # Include routers; the webhook catch-all goes last
    app.include_router(health.router, tags=["health"])
    app.include_router(oauth.router, tags=["oauth"])
    app.include_router(create_webhook_router(slack, verification_token), tags=["webhooks"])

    return app
