"""
Pydantic models for inbound storefront order events.

Only the fields the relay needs are modelled; Shopify sends far more and the
rest are ignored (model_config extra="ignore").
"""

from typing import Any, List, Optional
from pydantic import BaseModel, field_validator

UNKNOWN_ORDER = "UNKNOWN"


def _number_to_text(v: float) -> str:
    # 45234.0 -> "45234"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _lenient_text(v: Any) -> Optional[str]:
    """Coerce a diagnostic/display field: numbers become text, other non-strings None."""
    if isinstance(v, str):
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return _number_to_text(v)
    return None


class LineItem(BaseModel):
    """One order line. The SKU doubles as the vendor's product ID."""
    model_config = {"extra": "ignore"}

    sku: Optional[str] = None
    title: Optional[str] = None  # diagnostics only

    @field_validator("sku", mode="before")
    @classmethod
    def _stringify_sku(cls, v):
        # Some stores keep numeric SKUs, which arrive as JSON numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return _number_to_text(v)
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _lenient_title(cls, v):
        return _lenient_text(v)


class Customer(BaseModel):
    model_config = {"extra": "ignore"}

    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _lenient_names(cls, v):
        # An odd name type falls back to the default name rather than failing the order
        return _lenient_text(v)


class OrderEvent(BaseModel):
    """
    Order payload as delivered by the storefront's "order payment" webhook.

    customer and line_items are optional at the model level so that a
    payload missing either still parses and can be logged with its order
    number before being rejected (see is_complete).
    """
    model_config = {"extra": "ignore"}

    order_number: Optional[str] = None
    customer: Optional[Customer] = None
    line_items: Optional[List[LineItem]] = None

    @field_validator("order_number", mode="before")
    @classmethod
    def _lenient_order_number(cls, v):
        return _lenient_text(v)

    @property
    def order_label(self) -> str:
        if not self.order_number:
            return UNKNOWN_ORDER
        return self.order_number

    @property
    def is_complete(self) -> bool:
        """True when both customer and line_items are present (line_items may be empty)."""
        return self.customer is not None and self.line_items is not None


def normalize_product_ids(values: List[Optional[str]]) -> List[str]:
    """Drop empty/missing ids, keep the original order and any repeats."""
    ids: List[str] = []
    for value in values:
        if value is None:
            continue
        cleaned = str(value).strip()
        if cleaned:
            ids.append(cleaned)
    return ids


def derive_product_ids(line_items: List[LineItem]) -> List[str]:
    """Vendor product IDs for an order: the non-empty SKUs, in line order."""
    return normalize_product_ids([item.sku for item in line_items])
