"""
Magicfy Backend API
FastAPI application relaying storefront orders to the download vendor and
serving the customer download portal.
"""

import logging
import os
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.config import load_settings
from app.routers import downloads, orders, shopify_webhook

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Magicfy API",
    description="Order fulfillment relay and customer download portal",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes the local portal dev servers (ports 3000 and 5173).
    Additional origins are read from the CORS_ORIGINS environment variable
    as a comma-separated list, e.g.:
        CORS_ORIGINS=https://downloads.magicfy.shop,https://magicfy.shop

    Duplicates are removed while preserving order.
    """
    always_included = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    extra_origins: List[str] = []
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    seen: set = set()
    origins: List[str] = []
    for origin in always_included + extra_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(shopify_webhook.router, prefix="/api/webhooks/shopify", tags=["webhooks"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(downloads.router, prefix="/api/downloads", tags=["downloads"])


@app.on_event("startup")
async def log_startup_config() -> None:
    """Log which optional features are active. Secrets themselves are never logged."""
    settings = load_settings()
    logger.info(
        "Magicfy API starting: vendor=%s api_key=%s webhook_signatures=%s admin_orders=%s",
        settings.base_url,
        "configured" if settings.api_key_configured else "MISSING",
        "on" if settings.shopify_webhook_secret else "off",
        "on" if settings.admin_api_secret else "off",
    )


@app.get("/")
async def root():
    return {"message": "Magicfy API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/vendor")
async def health_vendor():
    """
    Report whether the vendor API key is configured.

    Does not contact the vendor: AddOrder has side effects and the read
    endpoints need a customer email. Returns 503 when the key is missing.
    """
    settings = load_settings()
    if not settings.api_key_configured:
        raise HTTPException(
            status_code=503,
            detail="Vendor API key unavailable: MURPHYS_DOWNLOAD_API_KEY is not configured",
        )
    return {"status": "ok", "vendor": settings.base_url}
