"""OAuth install routes: Add to Slack page and grant callback."""
import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse

from core.errors import OAuthError
from core.oauth import add_to_slack_url, exchange_code
from data.store import StoreError

logger = logging.getLogger(__name__)

router = APIRouter()

PAGE_TITLE = "slackbus"

SUCCESS_HTML = "<p>Success! Authed ok</p>"
FAILURE_HTML = "<p>Failed! Something went wrong when authing, check the logs</p>"


@router.get("/", response_class=HTMLResponse)
async def root():
    """Display the Add to Slack button."""
    return f"""<!doctype html>
<html lang=en>
<head>
<meta charset=utf-8>
<title>{PAGE_TITLE}</title>
</head>
<body>
  <h2>{PAGE_TITLE}</h2>
  <a id="add-to-slack" href="{add_to_slack_url()}">
    <img alt="Add to Slack" height="40" width="139"
      src="https://platform.slack-edge.com/img/add_to_slack.png"
      srcset="https://platform.slack-edge.com/img/add_to_slack.png 1x,
      https://platform.slack-edge.com/img/add_to_slack@2x.png 2x" />
  </a>
</body>
</html>
"""


@router.get("/auth/grant", response_class=HTMLResponse)
async def auth_grant(request: Request, code: Optional[str] = Query(None)):
    """Exchange the OAuth code for a token and store it."""
    store = request.app.state.store
    if not code or store is None:
        logger.warning("Auth grant without code or store")
        return HTMLResponse(FAILURE_HTML)

    try:
        access = await exchange_code(code, store, transport=request.app.state.slack.transport)
    except (OAuthError, StoreError) as e:
        logger.error(f"OAuth exchange failed: {e}")
        return HTMLResponse(FAILURE_HTML)

    request.app.state.slack.token = access.access_token
    return HTMLResponse(SUCCESS_HTML)
