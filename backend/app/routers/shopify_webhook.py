"""
Storefront order webhook router.

Point the store's "Order payment" webhook at:
  POST /api/webhooks/shopify/order

Every HTTP method is routed to the relay so a wrong method gets the relay's
405 (with Allow: POST) rather than FastAPI's default.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from app.config import load_settings
from app.services.order_relay import OrderRelay
from app.services.vendor_client import get_vendor_client

router = APIRouter()


@router.api_route(
    "/order",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    response_class=PlainTextResponse,
    responses={
        200: {"description": "Order relayed, or nothing in it to fulfil"},
        400: {"description": "Invalid payload (do not retry unmodified)"},
        401: {"description": "Signature check failed (only when SHOPIFY_WEBHOOK_SECRET is set)"},
        405: {"description": "Method other than POST"},
        500: {"description": "Configuration missing or vendor failure (retryable)"},
    },
)
async def shopify_order_webhook(request: Request):
    """Relay one storefront order event to the vendor's AddOrder endpoint."""
    settings = load_settings()
    relay = OrderRelay(settings, get_vendor_client(settings))

    body = await request.body()
    result = await relay.handle(request.method, body, dict(request.headers))

    return PlainTextResponse(
        content=result.body,
        status_code=result.status_code,
        headers=result.headers,
    )
