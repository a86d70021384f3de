"""
Vendor and webhook configuration.

Settings are read from the process environment on every call to
load_settings() so a key rotated in the deployment is picked up by the next
request. A .env file (if present) is loaded once at import time.

Environment variables
---------------------
MURPHYS_DOWNLOAD_API_KEY  Vendor download-center API key (required).
API_KEY                   Legacy alias, checked when the variable above is unset.
MURPHYS_API_BASE_URL      Vendor API root (default: http://downloads.murphysmagic.com/api).
SHOPIFY_WEBHOOK_SECRET    Optional. When set, inbound order webhooks must carry
                          a valid X-Shopify-Hmac-Sha256 signature.
ADMIN_API_SECRET          Shared secret for the manual order entry endpoint.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_VENDOR_BASE_URL = "http://downloads.murphysmagic.com/api"


def _env(*names: str) -> Optional[str]:
    """Return the first non-blank value among the given env vars."""
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


@dataclass(frozen=True, repr=False)
class VendorSettings:
    """Process-wide, read-only configuration handed to the relay and routers."""

    api_key: Optional[str] = None
    base_url: str = DEFAULT_VENDOR_BASE_URL
    shopify_webhook_secret: Optional[str] = None
    admin_api_secret: Optional[str] = None

    @property
    def api_key_configured(self) -> bool:
        return bool(self.api_key)

    def endpoint(self, name: str) -> str:
        """Build a vendor endpoint URL, e.g. endpoint("AddOrder") -> .../AddOrder/"""
        return f"{self.base_url.rstrip('/')}/{name}/"

    def __repr__(self) -> str:
        # Secrets never show up in logs or tracebacks
        return (
            f"VendorSettings(api_key={'***' if self.api_key else None}, "
            f"base_url={self.base_url!r}, "
            f"shopify_webhook_secret={'***' if self.shopify_webhook_secret else None}, "
            f"admin_api_secret={'***' if self.admin_api_secret else None})"
        )


def load_settings() -> VendorSettings:
    """Read VendorSettings from the current environment."""
    return VendorSettings(
        api_key=_env("MURPHYS_DOWNLOAD_API_KEY", "API_KEY"),
        base_url=_env("MURPHYS_API_BASE_URL") or DEFAULT_VENDOR_BASE_URL,
        shopify_webhook_secret=_env("SHOPIFY_WEBHOOK_SECRET"),
        admin_api_secret=_env("ADMIN_API_SECRET"),
    )
