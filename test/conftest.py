from __future__ import annotations

import os
from urllib.parse import urlsplit

import httpx
import pytest

# Settings are read on first import, so the environment is fixed up here
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.pop("OPENAI_API_KEY", None)
os.environ["ACTIVITY_TRACKING_ENABLED"] = "false"
os.environ["BACKGROUND_JOBS_ENABLED"] = "false"
os.environ["LOGFIRE_ENABLED"] = "false"
os.environ.pop("FIREBASE_CREDENTIALS_JSON", None)
os.environ.pop("STRIPE_SECRET_KEY", None)
os.environ.pop("MAILGUN_API_KEY", None)

# ASGI test clients and mock hosts only; Mailgun, OpenAI and friends stay unreachable
LOCAL_HOSTS = {"", "test", "mock", "localhost", "127.0.0.1"}


def _is_local(client, url) -> bool:
    if isinstance(client._transport, (httpx.MockTransport, httpx.ASGITransport)):
        return True
    return (urlsplit(str(url)).hostname or "") in LOCAL_HOSTS


@pytest.fixture(autouse=True)
def _block_external_http(monkeypatch: pytest.MonkeyPatch):
    sync_request = httpx.Client.request
    async_request = httpx.AsyncClient.request

    def guarded_sync(self, method, url, *args, **kwargs):
        if not _is_local(self, url):
            raise RuntimeError(f"Outbound HTTP is disabled in tests: {method} {url}")
        return sync_request(self, method, url, *args, **kwargs)

    async def guarded_async(self, method, url, *args, **kwargs):
        if not _is_local(self, url):
            raise RuntimeError(f"Outbound HTTP is disabled in tests: {method} {url}")
        return await async_request(self, method, url, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "request", guarded_sync)
    monkeypatch.setattr(httpx.AsyncClient, "request", guarded_async)
