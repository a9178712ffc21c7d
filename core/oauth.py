"""OAuth code exchange for Slack app installs."""
import logging

import httpx
from pydantic import ValidationError

import config
from core.errors import OAuthError
from data.store import KeyValueStore
from models.schemas import OAuthAccess

logger = logging.getLogger(__name__)

# Store key holding the token used for outbound API calls
BOT_TOKEN_KEY = "bot_token"


def add_to_slack_url() -> str:
    """Authorize URL behind the "Add to Slack" button."""
    return f"{config.SLACK_OAUTH_AUTHORIZE}?scope={','.join(config.SLACK_SCOPES)}&client_id={config.SLACK_CLIENT_ID}"


async def exchange_code(
    code: str,
    store: KeyValueStore,
    transport: httpx.AsyncBaseTransport = None
) -> OAuthAccess:
    """
    Turn an authorization code into an access token and persist it.

    Args:
        code: Code from the /auth/grant redirect
        store: Key-value store receiving the token under BOT_TOKEN_KEY
        transport: Optional httpx transport (used by tests)

    Returns:
        Parsed oauth.access response

    Raises:
        OAuthError: if the exchange fails or Slack rejects the code
    """
    if not code:
        raise OAuthError("Missing authorization code")

    try:
        async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT, transport=transport) as client:
            response = await client.post(
                config.SLACK_API_BASE + "oauth.access",
                data={
                    "client_id": config.SLACK_CLIENT_ID,
                    "client_secret": config.SLACK_CLIENT_SECRET,
                    "code": code,
                },
                headers={"User-Agent": config.USER_AGENT}
            )
            response.raise_for_status()
            access = OAuthAccess.model_validate(response.json())
    except (httpx.HTTPError, ValueError, ValidationError) as e:
        raise OAuthError(f"oauth.access request failed: {e}") from e

    if not access.ok or not access.access_token:
        raise OAuthError(f"oauth.access rejected the code: {access.error or 'no access_token'}")

    await store.set(BOT_TOKEN_KEY, access.access_token)
    logger.info(f"Stored bot token for team {access.team_id}")
    return access


async def load_token(store: KeyValueStore):
    """Previously stored token, or None."""
    return await store.get(BOT_TOKEN_KEY)
