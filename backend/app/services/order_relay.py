"""
Order fulfillment relay: storefront order webhook -> vendor AddOrder/ call.

One invocation makes at most one vendor call and keeps no state between
calls. Each stage either finishes the invocation with a VendorOrderResult or
returns None to hand over to the next one:

  check_method -> check_config -> verify_signature -> validate_payload
    -> derive_identifiers -> call_vendor -> classify

Every failure becomes a response here; nothing is raised to the caller.
5xx responses are safe for the storefront to retry, 4xx are not.

Redelivered events are relayed again: there is no deduplication.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from pydantic import ValidationError

from app.config import VendorSettings
from app.models.order_event import UNKNOWN_ORDER, OrderEvent, derive_product_ids
from app.models.vendor import VendorOrderRequest, VendorOrderResult, VendorOutcome
from app.services.vendor_client import VendorClient, VendorError, VendorHTTPResponse
from app.services.vendor_response import classify_order_response
from app.services.webhook_verification import signature_from_headers, verify_shopify_signature

logger = logging.getLogger(__name__)

ALLOWED_METHOD = "POST"

_RESPONSE_TEXT: Dict[VendorOutcome, str] = {
    VendorOutcome.SUCCESS: "Webhook processed successfully.",
    VendorOutcome.NO_FULFILLABLE_ITEMS: "No products to process.",
    VendorOutcome.METHOD_NOT_ALLOWED: "Method Not Allowed",
    VendorOutcome.CONFIGURATION_MISSING: "Server configuration error.",
    VendorOutcome.SIGNATURE_INVALID: "Invalid signature",
    VendorOutcome.VALIDATION_FAILED: "Invalid payload",
}


@dataclass
class RelayResponse:
    status_code: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class RelayContext:
    """Values handed from one stage to the next within a single invocation."""
    method: str
    body: bytes
    headers: Mapping[str, str]
    order_label: str = UNKNOWN_ORDER
    order: Optional[OrderEvent] = None
    product_ids: List[str] = field(default_factory=list)
    vendor_request: Optional[VendorOrderRequest] = None
    vendor_response: Optional[VendorHTTPResponse] = None
    result: Optional[VendorOrderResult] = None


def render_response(result: VendorOrderResult) -> RelayResponse:
    """Turn a classified result into the status/text the storefront sees."""
    text = _RESPONSE_TEXT.get(result.outcome)
    if text is None:
        text = f"Webhook processing failed: {result.reason or result.outcome.value}"
    headers = {"Allow": ALLOWED_METHOD} if result.outcome == VendorOutcome.METHOD_NOT_ALLOWED else {}
    return RelayResponse(status_code=result.status_code, body=text, headers=headers)


class OrderRelay:
    def __init__(self, settings: VendorSettings, client: VendorClient):
        self.settings = settings
        self.client = client
        self._stages = [
            self.check_method,
            self.check_config,
            self.verify_signature,
            self.validate_payload,
            self.derive_identifiers,
            self.call_vendor,
            self.classify,
        ]

    async def handle(
        self,
        method: str,
        body: bytes,
        headers: Optional[Mapping[str, str]] = None,
    ) -> RelayResponse:
        """Relay one order event. Always returns a response."""
        ctx = RelayContext(method=method, body=body, headers=headers or {})
        logger.info("order webhook received: method=%s bytes=%d", method, len(body))

        try:
            for stage in self._stages:
                result = await stage(ctx)
                if result is not None:
                    ctx.result = result
                    break
        except Exception:
            logger.exception("order=%s unexpected failure while relaying order", ctx.order_label)
            return RelayResponse(status_code=500, body="Webhook processing failed: unexpected error")

        self._log_result(ctx)
        return render_response(ctx.result)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def check_method(self, ctx: RelayContext) -> Optional[VendorOrderResult]:
        if ctx.method.upper() != ALLOWED_METHOD:
            return VendorOrderResult(
                outcome=VendorOutcome.METHOD_NOT_ALLOWED,
                reason=f"method {ctx.method} not allowed",
            )
        return None

    async def check_config(self, ctx: RelayContext) -> Optional[VendorOrderResult]:
        if not self.settings.api_key_configured:
            return VendorOrderResult(
                outcome=VendorOutcome.CONFIGURATION_MISSING,
                reason="vendor API key (MURPHYS_DOWNLOAD_API_KEY) is not configured",
            )
        logger.info("vendor API key is present")
        return None

    async def verify_signature(self, ctx: RelayContext) -> Optional[VendorOrderResult]:
        secret = self.settings.shopify_webhook_secret
        if not secret:
            return None
        signature = signature_from_headers(ctx.headers)
        if not verify_shopify_signature(ctx.body, signature, secret):
            return VendorOrderResult(
                outcome=VendorOutcome.SIGNATURE_INVALID,
                reason="missing or invalid X-Shopify-Hmac-Sha256 signature",
            )
        return None

    async def validate_payload(self, ctx: RelayContext) -> Optional[VendorOrderResult]:
        try:
            data = json.loads(ctx.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return VendorOrderResult(
                outcome=VendorOutcome.VALIDATION_FAILED, reason=f"body is not JSON: {exc}"
            )
        if not isinstance(data, dict):
            return VendorOrderResult(
                outcome=VendorOutcome.VALIDATION_FAILED, reason="body is not a JSON object"
            )

        try:
            order = OrderEvent.model_validate(data)
        except ValidationError as exc:
            ctx.order_label = str(data.get("order_number") or UNKNOWN_ORDER)
            return VendorOrderResult(
                outcome=VendorOutcome.VALIDATION_FAILED,
                reason=f"order payload does not match the expected shape ({exc.error_count()} errors)",
            )

        ctx.order_label = order.order_label
        logger.info("order=%s payload parsed", ctx.order_label)

        if not order.is_complete:
            return VendorOrderResult(
                outcome=VendorOutcome.VALIDATION_FAILED,
                reason="missing customer or line_items",
            )

        ctx.order = order
        logger.info("order=%s customer=%s lines=%d", ctx.order_label, order.customer.email, len(order.line_items))
        return None

    async def derive_identifiers(self, ctx: RelayContext) -> Optional[VendorOrderResult]:
        for item in ctx.order.line_items:
            logger.debug("order=%s line %r sku=%s", ctx.order_label, item.title, item.sku or "No SKU")

        ctx.product_ids = derive_product_ids(ctx.order.line_items)
        if not ctx.product_ids:
            return VendorOrderResult(
                outcome=VendorOutcome.NO_FULFILLABLE_ITEMS,
                reason="no line item carries a SKU",
            )

        logger.info("order=%s product ids from SKUs: [%s]", ctx.order_label, ",".join(ctx.product_ids))
        return None

    async def call_vendor(self, ctx: RelayContext) -> Optional[VendorOrderResult]:
        ctx.vendor_request = VendorOrderRequest.from_order(ctx.order.customer, ctx.product_ids)
        logger.info("order=%s calling vendor AddOrder", ctx.order_label)

        try:
            ctx.vendor_response = await self.client.add_order(ctx.vendor_request)
        except VendorError as exc:
            return VendorOrderResult.unreachable(str(exc))

        logger.info(
            "order=%s vendor responded with status %d: %s",
            ctx.order_label,
            ctx.vendor_response.status_code,
            ctx.vendor_response.text,
        )
        return None

    async def classify(self, ctx: RelayContext) -> VendorOrderResult:
        return classify_order_response(
            ctx.vendor_response.status_code,
            ctx.vendor_response.text,
            order_label=ctx.order_label,
        )

    # ------------------------------------------------------------------

    def _log_result(self, ctx: RelayContext) -> None:
        result = ctx.result
        if result.is_success:
            logger.info("order=%s finished: %s", ctx.order_label, result.outcome.value)
        elif result.retryable:
            logger.error("order=%s FAILED (%s): %s", ctx.order_label, result.outcome.value, result.reason)
        else:
            logger.warning("order=%s rejected (%s): %s", ctx.order_label, result.outcome.value, result.reason)
