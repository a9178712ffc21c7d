"""Shared fixtures."""
import httpx
import pytest
from data.store import KeyValueStore


@pytest.fixture
async def store(tmp_path):
    """Key-value store on a temporary SQLite database."""
    store = await KeyValueStore.connect(f"sqlite+aiosqlite:///{tmp_path / 'kv.db'}", "keyvalue")
    yield store
    await store.close()


@pytest.fixture
def outbound():
    """Records outbound requests; answers Slack-style ok responses."""
    class Outbound:
        def __init__(self):
            self.requests = []
            self.responses = {}

        def handler(self, request: httpx.Request):
            self.requests.append(request)
            for suffix, response in self.responses.items():
                if request.url.path.endswith(suffix):
                    return response
            if "hooks" in str(request.url):
                return httpx.Response(200, text="ok")
            return httpx.Response(200, json={"ok": True})

        @property
        def transport(self):
            return httpx.MockTransport(self.handler)

    return Outbound()
