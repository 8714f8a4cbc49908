"""
mock_shopify.py — Mock Implementation of the Shopify Admin REST API

This module provides a simulated commerce backend for local runs and tests of
the phone order service. It exposes a small FastAPI application that mimics
the Admin API endpoints the service uses, backed by an in-memory catalog.

Simulation Scenarios:
    • Missing or wrong access token (HTTP 401)
    • Unknown variant or draft order (HTTP 404)
    • Variant 9999 returns a body without 'variant' (malformed response)
    • Customer email containing "reject" → draft order validation error (HTTP 422)
    • Customer email containing "noinvoice" → invoice sending fails (HTTP 422)

Endpoints:
    GET  /admin/api/{version}/shop.json
    GET  /admin/api/{version}/variants/{variant_id}.json
    GET  /admin/api/{version}/products.json?title=&limit=
    POST /admin/api/{version}/draft_orders.json
    POST /admin/api/{version}/draft_orders/{draft_order_id}/send_invoice.json

Port:
    Default: 8002 (HTTP)
"""

import copy
import logging
import os
import time
from decimal import Decimal
from typing import Optional

from fastapi import Body, FastAPI, Header, HTTPException

app = FastAPI(title="Mock Shopify Admin API")
logging.basicConfig(level=logging.INFO)

ACCESS_TOKEN = os.environ.get("MOCK_SHOPIFY_ACCESS_TOKEN", "shpat_mock_token")
MALFORMED_VARIANT_ID = 9999

CATALOG = [
    {
        "id": 101,
        "title": "Classic Cotton T-Shirt",
        "variants": [
            {"id": 1001, "title": "Small / Red", "option1": "Small", "option2": "Red",
             "price": "19.99", "inventory_quantity": 12},
            {"id": 1002, "title": "Large / Blue", "option1": "Large", "option2": "Blue",
             "price": "19.99", "inventory_quantity": 2},
            {"id": 1003, "title": "Large / Blue Heather", "option1": "Large", "option2": "Blue Heather",
             "price": "21.99", "inventory_quantity": 0},
        ],
    },
    {
        "id": 102,
        "title": "Ceramic Coffee Mug",
        "variants": [
            {"id": 2001, "title": "Default Title", "option1": "Default Title",
             "price": "12.50", "inventory_quantity": 40},
        ],
    },
    {
        "id": 103,
        "title": "Gift Card",
        "variants": [],
    },
]

SHOP = {
    "name": "Mock Shop",
    "domain": "mock-shop.myshopify.com",
    "email": "owner@mock-shop.example",
    "currency": "USD",
    "timezone": "(GMT-06:00) America/Chicago",
}

# In-memory state, cleared by reset()
DRAFT_ORDERS = {}
INVOICES = []
REQUEST_LOG = []


def reset():
    """Clears draft orders, invoices and the request log."""
    DRAFT_ORDERS.clear()
    INVOICES.clear()
    REQUEST_LOG.clear()


def _authorize(token: Optional[str], action: str):
    REQUEST_LOG.append(action)
    if token != ACCESS_TOKEN:
        logging.warning(f"[SHOP] Rejected '{action}': invalid access token.")
        raise HTTPException(status_code=401, detail={"errors": "[API] Invalid API key or access token"})


def _find_variant(variant_id: int):
    for product in CATALOG:
        for variant in product["variants"]:
            if variant["id"] == variant_id:
                return product, variant
    return None, None


@app.get("/admin/api/{version}/shop.json")
def get_shop(version: str, token: Optional[str] = Header(None, alias="X-Shopify-Access-Token")):
    _authorize(token, "get_shop")
    return {"shop": SHOP}


@app.get("/admin/api/{version}/variants/{variant_id}.json")
def get_variant(version: str, variant_id: int,
                token: Optional[str] = Header(None, alias="X-Shopify-Access-Token")):
    """
    Returns a single variant with its inventory_quantity.

    Raises:
        HTTPException(404): If the variant is not in the catalog.
    """
    _authorize(token, f"get_variant:{variant_id}")

    if variant_id == MALFORMED_VARIANT_ID:
        logging.info(f"[SHOP] Simulating malformed response for variant {variant_id}.")
        return {"unexpected": True}

    product, variant = _find_variant(variant_id)
    if variant is None:
        raise HTTPException(status_code=404, detail={"errors": "Not Found"})

    return {"variant": {**variant, "product_id": product["id"]}}


@app.get("/admin/api/{version}/products.json")
def search_products(version: str, title: str = "", limit: int = 50,
                    token: Optional[str] = Header(None, alias="X-Shopify-Access-Token")):
    """Case-insensitive title containment search, capped at `limit` products."""
    _authorize(token, f"search_products:{title}")
    wanted = title.strip().lower()
    products = [copy.deepcopy(product) for product in CATALOG if wanted in product["title"].lower()]
    return {"products": products[:limit]}


@app.post("/admin/api/{version}/draft_orders.json", status_code=201)
def create_draft_order(version: str, payload: dict = Body(...),
                       token: Optional[str] = Header(None, alias="X-Shopify-Access-Token")):
    """
    Creates a draft order and prices its line items from the catalog.

    Raises:
        HTTPException(422): For unknown variants or customer emails marked "reject".
    """
    _authorize(token, "create_draft_order")
    draft = payload.get("draft_order") or {}
    email = draft.get("email") or ""

    if "reject" in email:
        logging.warning(f"[SHOP] Draft order for {email} rejected.")
        raise HTTPException(status_code=422, detail={"errors": {"customer": ["is invalid"]}})

    lines = []
    total = Decimal("0")
    for item in draft.get("line_items") or []:
        product, variant = _find_variant(int(item["variant_id"]))
        if variant is None:
            raise HTTPException(status_code=422, detail={"errors": {"line_items": ["variant not found"]}})
        quantity = int(item["quantity"])
        total += Decimal(variant["price"]) * quantity
        lines.append({
            "variant_id": variant["id"],
            "title": product["title"],
            "variant_title": variant["title"],
            "quantity": quantity,
            "price": variant["price"],
        })

    draft_id = 900000 + len(DRAFT_ORDERS) + 1
    record = {
        "id": draft_id,
        "name": f"#D{len(DRAFT_ORDERS) + 1}",
        "email": email,
        "status": "open",
        "currency": "USD",
        "total_price": f"{total:.2f}",
        "invoice_url": f"https://{SHOP['domain']}/invoices/{draft_id}",
        "expires_at": None,
        "note": draft.get("note"),
        "tags": draft.get("tags"),
        "customer": draft.get("customer"),
        "billing_address": draft.get("billing_address"),
        "shipping_address": draft.get("shipping_address"),
        "line_items": lines,
        "created_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    }
    DRAFT_ORDERS[draft_id] = record
    logging.info(f"[SHOP] Draft order {record['name']} created for {email}.")
    return {"draft_order": record}


@app.post("/admin/api/{version}/draft_orders/{draft_order_id}/send_invoice.json")
def send_invoice(version: str, draft_order_id: int, payload: dict = Body(...),
                 token: Optional[str] = Header(None, alias="X-Shopify-Access-Token")):
    _authorize(token, f"send_invoice:{draft_order_id}")
    draft = DRAFT_ORDERS.get(draft_order_id)
    if draft is None:
        raise HTTPException(status_code=404, detail={"errors": "Not Found"})

    if "noinvoice" in (draft["email"] or ""):
        logging.warning(f"[SHOP] Invoice for {draft['name']} could not be sent.")
        raise HTTPException(status_code=422, detail={"errors": {"to": ["is invalid"]}})

    invoice = payload.get("draft_order_invoice") or {}
    INVOICES.append({"draft_order_id": draft_order_id, **invoice})
    logging.info(f"[SHOP] Invoice for {draft['name']} sent to {draft['email']}.")
    return {"draft_order_invoice": {"to": draft["email"], "subject": invoice.get("subject")}}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
