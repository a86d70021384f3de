"""
Manual order entry router.

Lets staff add a download purchase to a customer's vendor account by hand,
e.g. for an order placed outside the storefront. Uses the same request
builder and response classifier as the webhook relay.

Environment variables
---------------------
ADMIN_API_SECRET   Shared secret checked in the X-Admin-Secret header.

Endpoints:
  POST /   — create a vendor order (auth: X-Admin-Secret)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from app.config import load_settings
from app.models.vendor import ManualOrderRequest, ManualOrderResponse, VendorOutcome
from app.services.vendor_client import VendorError, get_vendor_client
from app.services.vendor_response import classify_order_response

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Admin authentication dependency
# ---------------------------------------------------------------------------

def _verify_admin_secret(x_admin_secret: Optional[str] = Header(None)) -> None:
    """
    Verify that the request carries the configured admin secret.

    Raises 401 if the secret is missing, unconfigured, or does not match.
    """
    expected = load_settings().admin_api_secret
    if not expected:
        logger.warning(
            "No admin secret configured (ADMIN_API_SECRET) — "
            "all manual order requests will be rejected"
        )
        raise HTTPException(status_code=401, detail="Admin secret not configured")

    if not x_admin_secret or x_admin_secret != expected:
        raise HTTPException(status_code=401, detail="Invalid admin secret")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/",
    response_model=ManualOrderResponse,
    responses={
        400: {"description": "No product IDs given"},
        401: {"description": "Missing or invalid X-Admin-Secret"},
        500: {"description": "Vendor API key not configured"},
        502: {"description": "Vendor rejected the order or could not be reached"},
    },
)
async def create_manual_order(
    order: ManualOrderRequest,
    _: None = Depends(_verify_admin_secret),
):
    """
    Add a purchase to a customer's download account.

    product_ids accepts "45234,34555" or ["45234", "34555"]; blanks are dropped.
    A missing first/last name falls back to the same defaults as the webhook.
    """
    if not order.product_ids:
        raise HTTPException(status_code=400, detail="At least one product ID is required")

    settings = load_settings()
    if not settings.api_key_configured:
        logger.error("Manual order refused: vendor API key is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error.")

    vendor_request = order.to_vendor_request()
    logger.info(
        "Manual order for %s: product ids [%s]",
        vendor_request.email,
        vendor_request.product_ids_field,
    )

    try:
        response = await get_vendor_client(settings).add_order(vendor_request)
    except VendorError as exc:
        logger.error("Manual order for %s failed: %s", vendor_request.email, exc)
        raise HTTPException(status_code=502, detail=f"Vendor unreachable: {exc}")

    result = classify_order_response(response.status_code, response.text, order_label="manual")
    if result.outcome != VendorOutcome.SUCCESS:
        logger.error("Manual order for %s failed: %s", vendor_request.email, result.reason)
        raise HTTPException(status_code=502, detail=result.reason)

    if result.anomalous:
        logger.warning(
            "Manual order for %s: vendor answered without the success token: %s",
            vendor_request.email,
            result.raw,
        )

    return ManualOrderResponse(
        message="success",
        product_ids=vendor_request.product_ids,
        anomalous=result.anomalous,
        vendor_response=result.raw if result.anomalous else None,
    )
