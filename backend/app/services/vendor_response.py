"""
Vendor AddOrder/ response classification.

The vendor has shipped more than one response envelope over time, so the
body is not parsed against a fixed schema. Instead the available fields are
inspected and mapped onto a VendorOrderResult:

  non-2xx status                → rejected (JSON error field) / unreachable
  body is not a JSON object     → malformed (raw text kept, no guessing)
  {"error": "..."}              → rejected, reason = the error value
  {"message": "success"}        → success
  any other JSON object         → success, flagged anomalous and logged
"""

import json
import logging
from typing import Any, Optional

from app.models.vendor import VendorOrderResult

logger = logging.getLogger(__name__)

SUCCESS_TOKEN = "success"


def parse_vendor_json(text: str) -> Optional[Any]:
    """Parse a vendor body as JSON; None when it is not valid JSON."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None


def _error_field(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return None


def classify_order_response(
    status_code: int,
    text: str,
    order_label: str = "UNKNOWN",
) -> VendorOrderResult:
    """Map one AddOrder/ HTTP response onto a VendorOrderResult."""
    payload = parse_vendor_json(text)

    # 1. Transport-level failure
    if not 200 <= status_code < 300:
        error = _error_field(payload)
        if error:
            return VendorOrderResult.rejected(
                f"Vendor API error: Status {status_code} - {error}", raw=text
            )
        return VendorOrderResult.unreachable(
            f"Vendor API error: Status {status_code} - {text}", raw=text
        )

    # 2. Unparseable body
    if not isinstance(payload, dict):
        return VendorOrderResult.malformed(text)

    # 3. Explicit business error
    error = _error_field(payload)
    if error:
        return VendorOrderResult.rejected(
            f"Vendor API returned an error: {error}", raw=text
        )

    # 4. Success marker missing: tolerated, older API versions answer differently
    if payload.get("message") != SUCCESS_TOKEN:
        logger.warning(
            "order=%s unrecognised success response from vendor: %s",
            order_label,
            text,
        )
        return VendorOrderResult.success(anomalous=True, raw=text)

    return VendorOrderResult.success(raw=text)
