"""Outbound composer: build and send messages to Slack."""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import httpx

import config
from core.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "chat.postMessage"
UPDATE_ENDPOINT = "chat.update"

_ABSOLUTE_URL = re.compile(r"^http", re.IGNORECASE)


@dataclass
class SendResult:
    """Outcome of an outbound call."""
    ok: bool
    endpoint: str
    status_code: Optional[int] = None
    data: Any = None
    error: Optional[TransportError] = None

    def raise_for_error(self) -> "SendResult":
        """Raise the captured TransportError, if any."""
        if self.error is not None:
            raise self.error
        return self


def is_absolute(endpoint: str) -> bool:
    """True for response/hook URLs, False for bare API method names."""
    return bool(_ABSOLUTE_URL.match(endpoint))


class Composer:
    """Merges call arguments with instance defaults and posts them to Slack."""

    def __init__(
        self,
        defaults: Dict[str, Any] = None,
        token: str = None,
        api_base: str = None,
        transport: httpx.AsyncBaseTransport = None,
        timeout: float = None
    ):
        """
        Initialize composer.

        Args:
            defaults: Baseline fields for every outbound message
            token: Bot token appended to API method calls
            api_base: Base URL for API methods
            transport: Optional httpx transport (used by tests)
            timeout: Request timeout in seconds
        """
        self._defaults = dict(defaults or {})
        self.token = token
        self.api_base = api_base or config.SLACK_API_BASE
        self.transport = transport
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT

    @property
    def defaults(self) -> Dict[str, Any]:
        """Copy of the instance defaults."""
        return dict(self._defaults)

    def compose(self, *args) -> Tuple[str, Dict[str, Any]]:
        """
        Resolve the endpoint and effective payload for a send.

        A leading string is the endpoint (method name or URL). Remaining
        mappings are merged over the defaults, later ones winning. A payload
        carrying ``ts`` aimed at chat.postMessage goes to chat.update instead.

        Returns:
            (endpoint, payload)
        """
        args = list(args)
        endpoint = DEFAULT_ENDPOINT
        if args and isinstance(args[0], str):
            endpoint = args.pop(0)

        payload = dict(self._defaults)
        for arg in args:
            if arg:
                payload.update(arg)

        if payload.get("ts") and endpoint == DEFAULT_ENDPOINT:
            endpoint = UPDATE_ENDPOINT

        return endpoint, payload

    async def send(self, *args) -> SendResult:
        """
        Send data to Slack's API.

        Args:
            *args: Optional endpoint followed by payload mappings

        Returns:
            SendResult; failures are captured in ``error``, never retried
        """
        endpoint, payload = self.compose(*args)
        logger.info(f"Sending to {endpoint}")
        try:
            return await self.post(endpoint, payload)
        except TransportError as e:
            logger.warning(f"Send to {endpoint} failed: {e}")
            return SendResult(
                ok=False,
                endpoint=endpoint,
                status_code=e.status_code,
                error=e
            )

    def prepare(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build the httpx request arguments for an endpoint.

        URLs get a JSON body with ``attachments`` as structure. API methods
        get a form body with nested values JSON encoded, since form encoding
        cannot carry them.
        """
        payload = dict(payload)
        request: Dict[str, Any] = {"headers": {"User-Agent": config.USER_AGENT}}

        if is_absolute(endpoint):
            attachments = payload.get("attachments")
            if isinstance(attachments, str):
                try:
                    payload["attachments"] = json.loads(attachments)
                except ValueError:
                    pass
            request["json"] = payload
        else:
            request["data"] = _form_encode(payload)

        if "hooks" in endpoint:
            # responding to a slash command or incoming webhook
            request["url"] = endpoint
        else:
            request["url"] = endpoint if is_absolute(endpoint) else self.api_base + endpoint
            token = payload.get("token") or self.token
            if token:
                request["params"] = {"token": token}

        return request

    async def post(self, endpoint: str, payload: Dict[str, Any]) -> SendResult:
        """
        POST a payload to Slack.

        Raises:
            TransportError: on network errors, HTTP errors or ``ok: false``
        """
        request = self.prepare(endpoint, payload)
        url = request.pop("url")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, **request)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Slack returned HTTP {e.response.status_code} for {endpoint}",
                endpoint=endpoint,
                status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {endpoint} failed: {e}", endpoint=endpoint) from e

        try:
            data = response.json()
        except ValueError:
            data = response.text

        if isinstance(data, dict) and data.get("ok") is False:
            api_error = data.get("error", "unknown_error")
            raise TransportError(
                f"Slack API error for {endpoint}: {api_error}",
                endpoint=endpoint,
                status_code=response.status_code,
                api_error=api_error
            )

        return SendResult(ok=True, endpoint=endpoint, status_code=response.status_code, data=data)


def _form_encode(payload: Dict[str, Any]) -> Dict[str, str]:
    form = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            form[key] = json.dumps(value)
        elif isinstance(value, bool):
            form[key] = "true" if value else "false"
        else:
            form[key] = str(value)
    return form
