"""
main.py — FastAPI Entry Point for the Phone Order Service

This module provides the REST API used by the voice-AI platform during a phone
call. It sits between the voice agent, the commerce platform and the
workflow-automation webhook.

Responsibilities:
    • Answer inventory questions (known variants or free-text product search)
    • Turn phone orders into draft orders with an invoice email
    • Relay every outcome to the automation webhook after responding
    • Provide health, connectivity and debug endpoints
"""

import logging
import os
from datetime import datetime, timezone

from fastapi import BackgroundTasks, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .clients import ShopifyClient, WebhookClient
from .config import Settings
from .logging_config import setup_logging
from .models import CheckInventoryRequest, PlaceOrderRequest
from .workflow import (
    WorkflowOutcome,
    inventory_error_outcome,
    log_prefix,
    order_error_outcome,
    process_inventory_check,
    process_place_order,
)

# Initialization
# Configure logging and initialize FastAPI app
setup_logging()
log = logging.getLogger(__name__)
app = FastAPI(title="Phone Order Service")

# Browser-based tooling (voice platform dashboards, webhook testers) calls the API directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """
    Reports malformed payloads (wrong types, non-positive quantities) as caller
    input errors: HTTP 400 with the same body shape as the workflow's input errors.
    """
    body = getattr(exc, "body", None)
    call_id = body.get("call_id") if isinstance(body, dict) else None
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))

    log.warning(f"{log_prefix(call_id)} Rejected invalid payload on {request.url.path}: {'; '.join(details)}")
    return JSONResponse(status_code=400, content={
        "success": False,
        "error": f"Invalid request: {'; '.join(details)}",
        "error_code": "invalid_request",
        "call_id": call_id,
    })


# Startup Event: Load Configuration
@app.on_event("startup")
def on_startup():
    """
    FastAPI startup event handler.

    Reads the configuration and builds the collaborator clients. A missing shop
    domain or access token raises ConfigurationError here, so the server never
    starts accepting calls without credentials.
    """
    log.info("Phone order service starting...")
    settings = Settings.from_env()
    app.state.settings = settings
    app.state.shopify = ShopifyClient(settings)
    app.state.webhook = WebhookClient(settings)
    log.info(f"Shop domain: {settings.shop_domain}")
    log.info(f"Access token configured: {bool(settings.access_token)}")
    log.info(f"Webhook configured: {bool(settings.webhook_url)}")


@app.on_event("shutdown")
def on_shutdown():
    for name in ("shopify", "webhook"):
        client = getattr(app.state, name, None)
        if client is not None:
            client.close()


# Dependency providers
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_shopify_client(request: Request) -> ShopifyClient:
    return request.app.state.shopify


def get_webhook_client(request: Request) -> WebhookClient:
    return request.app.state.webhook


def _respond(outcome: WorkflowOutcome, background_tasks: BackgroundTasks, webhook: WebhookClient, prefix: str):
    """
    Builds the JSON response and schedules the webhook delivery to run after it is sent.
    """
    if outcome.event_type:
        background_tasks.add_task(webhook.notify, outcome.event_type, outcome.body, prefix)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


# API Endpoint: Voice agent → Inventory
@app.post("/check-inventory")
def check_inventory(
        payload: CheckInventoryRequest,
        background_tasks: BackgroundTasks,
        settings: Settings = Depends(get_settings),
        shopify: ShopifyClient = Depends(get_shopify_client),
        webhook: WebhookClient = Depends(get_webhook_client)
):
    """
    Reports stock for the requested line items or for a product found by name.

    Returns:
        JSONResponse: Inventory report (200), input error (400) or
        'inventory_check_failed' (500).
    """
    prefix = log_prefix(payload.call_id)
    log.info(f"{prefix} Inventory check received.")
    try:
        outcome = process_inventory_check(payload, shopify, settings)
    except Exception as e:
        log.critical(f"{prefix} Unexpected error during inventory check: {e}", exc_info=True)
        outcome = inventory_error_outcome(payload.call_id)
    return _respond(outcome, background_tasks, webhook, prefix)


# API Endpoint: Voice agent → Draft order
@app.post("/place-order")
def place_order(
        payload: PlaceOrderRequest,
        background_tasks: BackgroundTasks,
        settings: Settings = Depends(get_settings),
        shopify: ShopifyClient = Depends(get_shopify_client),
        webhook: WebhookClient = Depends(get_webhook_client)
):
    """
    Creates a draft order for a phone order and sends the payment link.

    Insufficient stock is an expected outcome for the conversation and is
    answered with 200 and success=False. Webhook delivery happens after the
    response and cannot change it.

    Returns:
        JSONResponse: Confirmation or rejection (200), input error (400),
        or 'draft_order_creation_failed' (500).
    """
    prefix = log_prefix(payload.call_id)
    log.info(f"{prefix} New phone order received.")
    try:
        outcome = process_place_order(payload, shopify, settings)
    except Exception as e:
        log.critical(f"{prefix} Unexpected error while placing order: {e}", exc_info=True)
        outcome = order_error_outcome(payload.call_id, type(e).__name__)
    return _respond(outcome, background_tasks, webhook, prefix)


# Debug Endpoint: echo what the voice agent sends
@app.post("/debug-order-data")
async def debug_order_data(request: Request):
    """
    Logs an arbitrary JSON body and its headers and returns the body unchanged.
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"success": False, "error": "Request body must be JSON"})

    headers = {key: value for key, value in request.headers.items() if key.lower() != "authorization"}
    log.info(f"[DEBUG] Order data received: {body}")
    log.info(f"[DEBUG] Headers: {headers}")
    return {
        "success": True,
        "received_data": body,
        "message": "Data logged to console",
    }


# Connectivity Endpoint: verify shop domain and credential
@app.get("/test-shopify-connection")
def test_shopify_connection(shopify: ShopifyClient = Depends(get_shopify_client)):
    result = shopify.get_shop(context="[Connection test]")
    if not result.ok:
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": result.error,
            "status": result.status_code,
        })

    shop = result.data
    return {
        "success": True,
        "shop_info": {
            "name": shop.get("name"),
            "domain": shop.get("domain"),
            "email": shop.get("email"),
            "currency": shop.get("currency"),
            "timezone": shop.get("timezone"),
        },
    }


# Health Check Endpoint
@app.get("/health")
def health_check():
    """
    Liveness check for monitoring systems and container orchestrators.
    """
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "3000")))
