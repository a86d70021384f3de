"""
HTTP client for the vendor download-center API.

Every endpoint is a form-encoded POST carrying APIKey plus call-specific
fields. The client opens one httpx.AsyncClient per call and relies on the
httpx default timeout; it never retries.

add_order() hands back the raw status and body text so the relay can log and
classify them itself. The download-center helpers used by the customer
portal parse the JSON and raise VendorAPIError on any vendor-side failure.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from app.config import VendorSettings
from app.models.vendor import Download, DownloadStatus, VendorOrderRequest
from app.services.vendor_response import parse_vendor_json

logger = logging.getLogger(__name__)

ADD_ORDER = "AddOrder"
GET_DOWNLOADS = "GetDownloadsForCustomer"
GET_DOWNLOAD_DETAILS = "GetDownload"
GET_VIDEO_STREAM_URL = "GetVideoStreamURLv2"
GET_DOWNLOAD_LINK = "GetDownloadLinkv2"
GET_DOWNLOAD_STATUS = "GetDownloadLinkStatus"


class VendorError(Exception):
    """Base class for vendor client failures."""


class VendorTransportError(VendorError):
    """The vendor could not be reached (DNS, connect, timeout, protocol)."""


class VendorAPIError(VendorError):
    """The vendor answered, but with a failure status, an error field, or garbage."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class VendorNotConfiguredError(VendorError):
    """No vendor API key is configured."""


@dataclass
class VendorHTTPResponse:
    status_code: int
    text: str


class VendorClient:
    def __init__(
        self,
        settings: VendorSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport

    async def _post(self, endpoint: str, form: Dict[str, str]) -> VendorHTTPResponse:
        if not self.settings.api_key:
            raise VendorNotConfiguredError("Vendor API key is not configured")

        url = self.settings.endpoint(endpoint)
        data = {"APIKey": self.settings.api_key, **form}
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(url, data=data)
        except httpx.HTTPError as exc:
            raise VendorTransportError(f"{endpoint} request failed: {exc}") from exc

        return VendorHTTPResponse(status_code=response.status_code, text=response.text)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def add_order(self, request: VendorOrderRequest) -> VendorHTTPResponse:
        """Create a vendor order; exactly one POST, no interpretation of the body."""
        return await self._post(ADD_ORDER, request.to_form(self.settings.api_key))

    # ------------------------------------------------------------------
    # Download center
    # ------------------------------------------------------------------

    async def _post_json(self, endpoint: str, form: Dict[str, str]) -> Any:
        response = await self._post(endpoint, form)
        payload = parse_vendor_json(response.text)

        if isinstance(payload, dict) and payload.get("error"):
            raise VendorAPIError(str(payload["error"]), status_code=response.status_code)
        if not 200 <= response.status_code < 300:
            raise VendorAPIError(
                f"Vendor responded with status {response.status_code}",
                status_code=response.status_code,
            )
        if payload is None:
            logger.warning("%s returned a non-JSON body: %s", endpoint, response.text[:200])
            raise VendorAPIError(
                f"Unexpected response from vendor {endpoint}",
                status_code=response.status_code,
            )
        return payload

    async def get_downloads_for_customer(self, email: str) -> List[int]:
        """Product IDs the customer owns downloads for."""
        payload = await self._post_json(GET_DOWNLOADS, {"Email": email})
        if not isinstance(payload, list):
            raise VendorAPIError(f"Unexpected response from vendor {GET_DOWNLOADS}")
        try:
            return [int(product_id) for product_id in payload]
        except (TypeError, ValueError) as exc:
            raise VendorAPIError(f"Unexpected product id from vendor {GET_DOWNLOADS}") from exc

    async def get_download(self, product_id: int) -> Download:
        payload = await self._post_json(GET_DOWNLOAD_DETAILS, {"ProductId": str(product_id)})
        return Download.model_validate(payload)

    async def request_download_link(self, email: str, product_id: int) -> DownloadStatus:
        """Ask the vendor to start watermarking a download for this customer."""
        payload = await self._post_json(
            GET_DOWNLOAD_LINK, {"Email": email, "ProductId": str(product_id)}
        )
        return DownloadStatus.model_validate(payload)

    async def get_download_status(self, email: str, product_id: int) -> DownloadStatus:
        payload = await self._post_json(
            GET_DOWNLOAD_STATUS, {"Email": email, "ProductId": str(product_id)}
        )
        return DownloadStatus.model_validate(payload)

    async def get_video_stream_url(self, email: str, product_id: int) -> str:
        payload = await self._post_json(
            GET_VIDEO_STREAM_URL, {"Email": email, "ProductId": str(product_id)}
        )
        # v2 answers a bare JSON string; older builds wrapped it in {"url": ...}
        if isinstance(payload, dict):
            payload = payload.get("url") or payload.get("URL")
        if not isinstance(payload, str) or not payload:
            raise VendorAPIError(f"Unexpected response from vendor {GET_VIDEO_STREAM_URL}")
        return payload


def get_vendor_client(settings: VendorSettings) -> VendorClient:
    """Factory used by the routers; tests patch it to inject a mock transport."""
    return VendorClient(settings)
