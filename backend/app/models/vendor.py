"""
Pydantic models for the vendor (Murphy's Magic download center) API.

Models:
  VendorOrderRequest  — form payload for AddOrder/
  VendorOutcome       — classification tags for one relay attempt
  VendorOrderResult   — tagged result: outcome + reason/raw text
  Download            — GetDownload/ record
  DownloadStatus      — GetDownloadLinkv2/ and GetDownloadLinkStatus/ record
  ManualOrderRequest  — body of POST /api/orders (admin order entry)
"""

from enum import Enum
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, field_validator

from app.models.order_event import Customer, normalize_product_ids

DEFAULT_FIRST_NAME = "Customer"
DEFAULT_LAST_NAME = " "  # LastName is never sent empty


# ---------------------------------------------------------------------------
# AddOrder request
# ---------------------------------------------------------------------------

class VendorOrderRequest(BaseModel):
    """
    Customer + product data sent to AddOrder/.

    The API key is not a field: to_form() merges it in, so a logged request
    never contains it.
    """

    first_name: str
    last_name: str
    email: str
    product_ids: List[str]

    @classmethod
    def from_order(cls, customer: Customer, product_ids: List[str]) -> "VendorOrderRequest":
        return cls(
            first_name=customer.first_name or DEFAULT_FIRST_NAME,
            last_name=customer.last_name or DEFAULT_LAST_NAME,
            email=customer.email or "",
            product_ids=product_ids,
        )

    @property
    def product_ids_field(self) -> str:
        return ",".join(self.product_ids)

    def to_form(self, api_key: str) -> Dict[str, str]:
        return {
            "APIKey": api_key,
            "FirstName": self.first_name,
            "LastName": self.last_name,
            "Email": self.email,
            "ProductIds": self.product_ids_field,
        }


# ---------------------------------------------------------------------------
# Relay outcome
# ---------------------------------------------------------------------------

class VendorOutcome(str, Enum):
    SUCCESS = "success"
    NO_FULFILLABLE_ITEMS = "no_fulfillable_items"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFIGURATION_MISSING = "configuration_missing"
    SIGNATURE_INVALID = "signature_invalid"
    VALIDATION_FAILED = "validation_failed"
    VENDOR_REJECTED = "vendor_rejected"
    VENDOR_UNREACHABLE = "vendor_unreachable"
    VENDOR_RESPONSE_MALFORMED = "vendor_response_malformed"


# Outward HTTP status for each outcome. Every 500 is safe for the storefront
# to retry; 4xx are not.
OUTCOME_STATUS: Dict[VendorOutcome, int] = {
    VendorOutcome.SUCCESS: 200,
    VendorOutcome.NO_FULFILLABLE_ITEMS: 200,
    VendorOutcome.METHOD_NOT_ALLOWED: 405,
    VendorOutcome.SIGNATURE_INVALID: 401,
    VendorOutcome.VALIDATION_FAILED: 400,
    VendorOutcome.CONFIGURATION_MISSING: 500,
    VendorOutcome.VENDOR_REJECTED: 500,
    VendorOutcome.VENDOR_UNREACHABLE: 500,
    VendorOutcome.VENDOR_RESPONSE_MALFORMED: 500,
}


class VendorOrderResult(BaseModel):
    """Classified outcome of one relay attempt. Built once, never retained."""

    outcome: VendorOutcome
    reason: Optional[str] = None
    raw: Optional[str] = None
    # True when the vendor answered 2xx without the documented success token
    anomalous: bool = False

    @property
    def status_code(self) -> int:
        return OUTCOME_STATUS[self.outcome]

    @property
    def is_success(self) -> bool:
        return self.status_code == 200

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500

    @classmethod
    def success(cls, anomalous: bool = False, raw: Optional[str] = None) -> "VendorOrderResult":
        return cls(outcome=VendorOutcome.SUCCESS, anomalous=anomalous, raw=raw)

    @classmethod
    def rejected(cls, reason: str, raw: Optional[str] = None) -> "VendorOrderResult":
        return cls(outcome=VendorOutcome.VENDOR_REJECTED, reason=reason, raw=raw)

    @classmethod
    def unreachable(cls, reason: str, raw: Optional[str] = None) -> "VendorOrderResult":
        return cls(outcome=VendorOutcome.VENDOR_UNREACHABLE, reason=reason, raw=raw)

    @classmethod
    def malformed(cls, raw: str) -> "VendorOrderResult":
        return cls(
            outcome=VendorOutcome.VENDOR_RESPONSE_MALFORMED,
            reason=f"Failed to parse vendor response: {raw}",
            raw=raw,
        )


# ---------------------------------------------------------------------------
# Download center records
# ---------------------------------------------------------------------------

class Download(BaseModel):
    """A purchased download as returned by GetDownload/ (vendor PascalCase)."""
    model_config = {"extra": "ignore"}

    ID: int
    Name: str
    CreatorName: Optional[str] = None
    Price: Optional[float] = None
    Type: Optional[str] = None  # "Video", "eBook" or "Mixed"
    LiveStreamStartTime: Optional[str] = None
    NumberOfVideos: int = 0


class DownloadStatus(BaseModel):
    """Watermarking/link status; Status is queued, watermarking, ready, notqueued or error."""
    model_config = {"extra": "ignore"}

    PercentComplete: float = 0
    RequestTime: Optional[str] = None
    Status: str
    DownloadLink: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Manual order entry
# ---------------------------------------------------------------------------

class ManualOrderRequest(BaseModel):
    """Order typed in by staff; product_ids may be "45234,34555" or a list."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    product_ids: Union[str, List[Union[str, int]]]

    @field_validator("product_ids", mode="after")
    @classmethod
    def _split_product_ids(cls, v):
        if isinstance(v, str):
            return normalize_product_ids(v.split(","))
        return normalize_product_ids([str(item) for item in v])

    def to_vendor_request(self) -> VendorOrderRequest:
        customer = Customer(
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
        )
        return VendorOrderRequest.from_order(customer, list(self.product_ids))


class ManualOrderResponse(BaseModel):
    message: str
    product_ids: List[str]
    # True when the vendor accepted the call but did not answer {"message": "success"}
    anomalous: bool = False
    vendor_response: Optional[str] = None
