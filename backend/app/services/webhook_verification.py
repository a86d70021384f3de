"""
Shopify webhook signature verification.

Shopify signs each delivery with X-Shopify-Hmac-Sha256: the base64-encoded
HMAC-SHA256 of the raw request body, keyed with the app's webhook secret.
Comparison is constant-time (hmac.compare_digest).
"""

import base64
import hashlib
import hmac
from typing import Mapping, Optional

SIGNATURE_HEADER = "x-shopify-hmac-sha256"


def compute_shopify_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_shopify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """True if signature is the correct HMAC of body. Missing signature fails."""
    if not signature:
        return False
    expected = compute_shopify_signature(body, secret)
    return hmac.compare_digest(expected, signature.strip())


def signature_from_headers(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    """Case-insensitive lookup of the Shopify signature header."""
    if not headers:
        return None
    for key, value in headers.items():
        if key.lower() == SIGNATURE_HEADER:
            return value
    return None
