"""
Configuration loading, signature helpers, and health endpoint tests.
"""

import base64
import hashlib
import hmac

from app.config import DEFAULT_VENDOR_BASE_URL, VendorSettings, load_settings
from app.main import get_cors_origins
from app.services.webhook_verification import (
    compute_shopify_signature,
    signature_from_headers,
    verify_shopify_signature,
)


class TestLoadSettings:

    def test_reads_primary_api_key(self, env):
        with env(api_key="primary"):
            settings = load_settings()

        assert settings.api_key == "primary"
        assert settings.api_key_configured is True
        assert settings.base_url == DEFAULT_VENDOR_BASE_URL

    def test_primary_key_wins_over_legacy(self, env):
        with env(api_key="primary", API_KEY="legacy"):
            assert load_settings().api_key == "primary"

    def test_blank_key_is_missing(self, env):
        with env(api_key="   "):
            settings = load_settings()

        assert settings.api_key is None
        assert settings.api_key_configured is False

    def test_read_at_call_time(self, env):
        with env(api_key=None):
            assert load_settings().api_key_configured is False
        with env(api_key="rotated"):
            assert load_settings().api_key == "rotated"

    def test_repr_masks_secrets(self):
        settings = VendorSettings(
            api_key="top-secret",
            shopify_webhook_secret="whsec",
            admin_api_secret="admin-pass",
        )

        text = repr(settings)
        assert "top-secret" not in text
        assert "whsec" not in text
        assert "admin-pass" not in text

    def test_endpoint_handles_trailing_slash(self):
        settings = VendorSettings(base_url="http://vendor.test/api/")

        assert settings.endpoint("AddOrder") == "http://vendor.test/api/AddOrder/"


class TestSignatureHelpers:

    def test_signature_matches_shopify_scheme(self):
        body = b'{"order_number": 1}'
        expected = base64.b64encode(
            hmac.new(b"whsec", body, hashlib.sha256).digest()
        ).decode()

        assert compute_shopify_signature(body, "whsec") == expected
        assert verify_shopify_signature(body, expected, "whsec") is True

    def test_tampered_body_fails(self):
        signature = compute_shopify_signature(b"original", "whsec")

        assert verify_shopify_signature(b"tampered", signature, "whsec") is False

    def test_missing_signature_fails(self):
        assert verify_shopify_signature(b"body", None, "whsec") is False

    def test_header_lookup_is_case_insensitive(self):
        assert signature_from_headers({"X-Shopify-Hmac-SHA256": "abc"}) == "abc"
        assert signature_from_headers({}) is None


class TestCorsOrigins:

    def test_includes_env_origins_without_duplicates(self, monkeypatch):
        monkeypatch.setenv(
            "CORS_ORIGINS",
            "https://magicfy.shop, http://localhost:3000,https://magicfy.shop",
        )

        origins = get_cors_origins()

        assert origins.count("http://localhost:3000") == 1
        assert origins.count("https://magicfy.shop") == 1


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_vendor_health_ok(self, client, env):
        with env():
            response = client.get("/health/vendor")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_vendor_health_missing_key(self, client, env):
        with env(api_key=None):
            response = client.get("/health/vendor")

        assert response.status_code == 503
