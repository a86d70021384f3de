"""
Shared fixtures.

No test talks to the real vendor: outbound calls go through an
httpx.MockTransport that records every request it receives.
"""

import os
from contextlib import contextmanager
from typing import Callable, List, Optional, Union
from unittest.mock import patch
from urllib.parse import parse_qsl

import httpx
import pytest

from app.config import VendorSettings
from app.services.vendor_client import VendorClient

VENDOR_ENV_VARS = (
    "MURPHYS_DOWNLOAD_API_KEY",
    "API_KEY",
    "MURPHYS_API_BASE_URL",
    "SHOPIFY_WEBHOOK_SECRET",
    "ADMIN_API_SECRET",
)


class RecordingVendor:
    """MockTransport wrapper that answers canned responses and keeps the requests."""

    def __init__(
        self,
        status_code: int = 200,
        body: str = '{"message":"success"}',
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.requests: List[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._handler is not None:
            return self._handler(request)
        return httpx.Response(self.status_code, text=self.body)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def form(self, index: int = 0) -> dict:
        """Decoded form fields of the index-th request."""
        return dict(parse_qsl(self.requests[index].content.decode(), keep_blank_values=True))

    def client(self, settings: VendorSettings) -> VendorClient:
        return VendorClient(settings, transport=self.transport)


@pytest.fixture()
def vendor():
    """Factory: vendor(status_code, body) -> RecordingVendor."""
    def _make(status_code: int = 200, body: str = '{"message":"success"}', handler=None):
        return RecordingVendor(status_code=status_code, body=body, handler=handler)
    return _make


@contextmanager
def vendor_env(
    api_key: Optional[str] = "test-api-key",
    webhook_secret: Optional[str] = None,
    admin_secret: Optional[str] = None,
    **extra: Union[str, None],
):
    """Set exactly the given vendor env vars for the duration of the block."""
    with patch.dict(os.environ):
        for name in VENDOR_ENV_VARS:
            os.environ.pop(name, None)
        values = {
            "MURPHYS_DOWNLOAD_API_KEY": api_key,
            "SHOPIFY_WEBHOOK_SECRET": webhook_secret,
            "ADMIN_API_SECRET": admin_secret,
            **extra,
        }
        for name, value in values.items():
            if value is not None:
                os.environ[name] = value
        yield


@pytest.fixture()
def client():
    """TestClient for the FastAPI app."""
    from fastapi.testclient import TestClient
    from app.main import app
    return TestClient(app)


@pytest.fixture()
def env():
    """The vendor_env context manager, e.g. `with env(api_key=None): ...`."""
    return vendor_env
