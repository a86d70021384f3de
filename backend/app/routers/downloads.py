"""
Customer download portal API.

Backs the self-service page where a customer looks up their purchased
downloads by email, requests a watermarked download link, polls its status
and streams videos. The vendor API key never leaves the server.

Endpoints:
  GET  /                          — downloads owned by ?email=
  POST /{product_id}/link         — start preparing a download link
  GET  /{product_id}/status       — poll link preparation
  GET  /{product_id}/stream       — video stream URL
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from app.config import load_settings
from app.models.vendor import Download, DownloadStatus
from app.services.vendor_client import (
    VendorAPIError,
    VendorClient,
    VendorError,
    VendorTransportError,
    get_vendor_client,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _client() -> VendorClient:
    settings = load_settings()
    if not settings.api_key_configured:
        logger.error("Download portal request refused: vendor API key is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error.")
    return get_vendor_client(settings)


def _vendor_http_error(exc: VendorError) -> HTTPException:
    if isinstance(exc, VendorTransportError):
        return HTTPException(status_code=502, detail="Download service is unreachable")
    if isinstance(exc, VendorAPIError):
        return HTTPException(status_code=502, detail=exc.message)
    return HTTPException(status_code=502, detail=str(exc))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/", response_model=List[Download])
async def list_downloads(email: str = Query(..., min_length=3)):
    """
    List the downloads a customer owns.

    Details for each product are fetched concurrently. A product whose
    details cannot be fetched is left out rather than failing the request.
    """
    client = _client()

    try:
        product_ids = await client.get_downloads_for_customer(email)
    except VendorError as exc:
        logger.warning("Download lookup for %s failed: %s", email, exc)
        raise _vendor_http_error(exc)

    if not product_ids:
        raise HTTPException(status_code=404, detail="No downloads found for this email address.")

    results = await asyncio.gather(
        *(client.get_download(product_id) for product_id in product_ids),
        return_exceptions=True,
    )

    downloads: List[Download] = []
    for product_id, result in zip(product_ids, results):
        if isinstance(result, Download):
            downloads.append(result)
        else:
            logger.warning("Skipping product %s for %s: %s", product_id, email, result)

    return downloads


@router.post("/{product_id}/link", response_model=DownloadStatus)
async def request_download_link(product_id: int, email: str = Query(..., min_length=3)):
    """Ask the vendor to prepare (watermark) a download for this customer."""
    client = _client()
    try:
        return await client.request_download_link(email, product_id)
    except VendorError as exc:
        logger.warning("Download link request %s/%s failed: %s", email, product_id, exc)
        raise _vendor_http_error(exc)


@router.get("/{product_id}/status", response_model=DownloadStatus)
async def get_download_status(product_id: int, email: str = Query(..., min_length=3)):
    """
    Current link preparation status.

    Clients poll this while Status is "queued" or "watermarking"; once it is
    "ready", DownloadLink holds the URL.
    """
    client = _client()
    try:
        return await client.get_download_status(email, product_id)
    except VendorError as exc:
        logger.warning("Download status %s/%s failed: %s", email, product_id, exc)
        raise _vendor_http_error(exc)


@router.get("/{product_id}/stream")
async def get_stream_url(product_id: int, email: str = Query(..., min_length=3)):
    client = _client()
    try:
        url = await client.get_video_stream_url(email, product_id)
    except VendorError as exc:
        logger.warning("Stream URL %s/%s failed: %s", email, product_id, exc)
        raise _vendor_http_error(exc)
    return {"url": url}
