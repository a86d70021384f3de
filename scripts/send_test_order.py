#!/usr/bin/env python3
"""
Dev helper: send a test order webhook to the local Magicfy backend.

Builds a minimal storefront "order payment" payload, optionally signs it
with SHOPIFY_WEBHOOK_SECRET, and POST-s it to /api/webhooks/shopify/order.

Usage
-----
# Basic — two SKUs and one SKU-less line, targeting localhost:8000
python scripts/send_test_order.py

# Specific SKUs (vendor product ids)
python scripts/send_test_order.py --sku 45234 --sku 34555

# Customer details
python scripts/send_test_order.py --email ann@example.com --first-name Ann

# Target a different backend URL
python scripts/send_test_order.py --url http://staging.example.com

# Print the payload only
python scripts/send_test_order.py --dry-run

Environment / .env
------------------
SHOPIFY_WEBHOOK_SECRET   When set (or --secret is given) the payload is signed
                         with X-Shopify-Hmac-Sha256 like a real delivery.

WARNING: unless the backend points at a sandbox vendor URL, a successful run
creates a real vendor order.
"""

import argparse
import base64
import hashlib
import hmac
import json
import os
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv


def _sign(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def _build_order_payload(
    order_number: str,
    email: str,
    first_name: str | None,
    last_name: str | None,
    skus: list[str],
) -> dict:
    """Subset of a Shopify order payload that the relay reads."""
    customer = {"email": email}
    if first_name:
        customer["first_name"] = first_name
    if last_name:
        customer["last_name"] = last_name

    line_items = [
        {"sku": sku, "title": f"Test download {sku}"} for sku in skus
    ]
    # A physical item without a SKU is skipped by the relay
    line_items.append({"sku": "", "title": "Physical item (no SKU)"})

    return {
        "order_number": order_number,
        "customer": customer,
        "line_items": line_items,
    }


def _print_response(response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    print(response.text)


def main() -> int:
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_order.py",
        description=textwrap.dedent("""\
            Send a test order webhook to the Magicfy backend.

            Signs the payload when SHOPIFY_WEBHOOK_SECRET is set in the
            environment or a .env file, or when --secret is given.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument("--order-number", default="TEST-1001")
    parser.add_argument("--email", default="customer@example.com")
    parser.add_argument("--first-name", default=None)
    parser.add_argument("--last-name", default=None)
    parser.add_argument(
        "--sku",
        dest="skus",
        action="append",
        default=None,
        help="Vendor product id to order; repeat for several (default: 45234, 34555)",
    )
    parser.add_argument(
        "--secret",
        default=None,
        help="Override the webhook signing secret (default: SHOPIFY_WEBHOOK_SECRET)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    payload = _build_order_payload(
        order_number=args.order_number,
        email=args.email,
        first_name=args.first_name,
        last_name=args.last_name,
        skus=args.skus or ["45234", "34555"],
    )
    body = json.dumps(payload).encode()
    endpoint = f"{args.url.rstrip('/')}/api/webhooks/shopify/order"

    print(f"Endpoint : {endpoint}")
    print(f"Order    : {args.order_number}")
    print(f"Customer : {args.email}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2))
        return 0

    headers = {"Content-Type": "application/json"}
    secret = args.secret or os.getenv("SHOPIFY_WEBHOOK_SECRET")
    if secret:
        headers["X-Shopify-Hmac-Sha256"] = _sign(body, secret)
        print("Signature: X-Shopify-Hmac-Sha256 attached")

    try:
        response = httpx.post(endpoint, content=body, headers=headers, timeout=30)
        _print_response(response)
        return 0 if response.status_code == 200 else 1
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
