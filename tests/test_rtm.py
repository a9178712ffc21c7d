"""Tests for the RTM client."""
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from core.errors import TransportError
from platforms.slack import SlackHandler


class FakeSocket:
    """Async-iterable stand-in for a websocket connection."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.closed = False

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for frame in self.frames:
            yield frame

    async def close(self):
        self.closed = True


async def test_frames_are_digested(outbound):
    outbound.responses["rtm.start"] = httpx.Response(200, json={
        "ok": True, "url": "wss://rtm.example/ws", "self": {"id": "U9", "name": "bot"},
    })
    slack = SlackHandler(token="xoxb-test", signing_secret="", transport=outbound.transport)
    messages = []
    slack.on("message", lambda m: messages.append(m))
    socket = FakeSocket(['{"type": "hello"}', "garbage frame", '{"type": "message", "text": "hi"}'])

    with patch("core.rtm.websockets.connect", AsyncMock(return_value=socket)) as connect:
        connection = await slack.rtm(batch_presence_aware=1)
        await connection.close()

    connect.assert_awaited_once_with("wss://rtm.example/ws")
    assert connection.identity == {"id": "U9", "name": "bot"}
    assert messages == [{"type": "message", "text": "hi"}]
    assert not connection.connected
    assert slack.rtm_connection is connection
    assert outbound.requests[0].url.params["token"] == "xoxb-test"


async def test_rtm_start_failure(outbound):
    outbound.responses["rtm.start"] = httpx.Response(200, json={"ok": False, "error": "not_authed"})
    slack = SlackHandler(signing_secret="", transport=outbound.transport)

    with pytest.raises(TransportError, match="not_authed"):
        await slack.rtm()
