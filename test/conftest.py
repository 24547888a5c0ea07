from __future__ import annotations

import os
from pathlib import Path

import httpx
import pytest
from dotenv import load_dotenv

TEST_ROOT = Path(__file__).resolve().parent

# Local overrides first; nothing below replaces a value already set
load_dotenv(TEST_ROOT / ".env", override=False)

# The app builds its engine and settings at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DATABASE_AUTO_CREATE"] = "false"
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOGFIRE_ENABLED", "false")
os.environ.setdefault("ENABLE_FILE_LOGGING", "false")

# Requests may only reach the in-process ASGI app
LOCAL_HOSTS = ("localhost", "127.0.0.1", "testserver", "")


@pytest.fixture(autouse=True)
def _no_outbound_http(monkeypatch: pytest.MonkeyPatch):
    send_sync = httpx.Client.send
    send_async = httpx.AsyncClient.send

    def _check(request: httpx.Request) -> None:
        if request.url.host not in LOCAL_HOSTS:
            raise RuntimeError(f"Outbound HTTP is not allowed in tests: {request.url}")

    def guarded_send(self, request, *args, **kwargs):
        _check(request)
        return send_sync(self, request, *args, **kwargs)

    async def guarded_send_async(self, request, *args, **kwargs):
        _check(request)
        return await send_async(self, request, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "send", guarded_send)
    monkeypatch.setattr(httpx.AsyncClient, "send", guarded_send_async)
    yield
