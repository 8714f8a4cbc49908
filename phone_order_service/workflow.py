"""
workflow.py — Orchestration Logic for Phone Orders and Inventory Checks

This module contains the request handling logic behind the HTTP endpoints.
Each workflow returns a WorkflowOutcome (HTTP status, JSON body, webhook event)
and leaves delivery of the webhook to the caller, so a slow or failing webhook
never delays or fails the response.

Place-order workflow:
1. Validate caller input (email, at least one line item)      → 400 on failure
2. Check inventory for every line item                          → 200 rejection if short
3. Assemble the order and create a draft order                  → 500 on upstream failure
4. Send the invoice email (failure only degrades the response)
5. Compose the confirmation for the voice agent

Inventory-check workflow:
    - line_items: stock check per variant
    - product_name (+ variant_details): catalog search ranked by the variant matcher
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .assembler import OrderValidationError, assemble_order
from .clients import ShopifyClient
from .config import Settings
from .inventory import describe_shortfalls, unavailable_items, validate_inventory
from .matching import match_variants
from .models import CallId, CheckInventoryRequest, PlaceOrderRequest

log = logging.getLogger(__name__)

EVENT_INVENTORY_CHECKED = "inventory_checked"
EVENT_ORDER_FAILED = "order_failed"
EVENT_ORDER_ERROR = "order_error"
EVENT_DRAFT_ORDER_CREATED = "draft_order_created"

ORDER_ERROR_MESSAGE = ("I apologize, but I encountered an error while preparing your order. "
                       "Please try again or contact our support team.")


@dataclass
class WorkflowOutcome:
    """
    Result of a workflow run.

    Attributes:
        status_code (int): HTTP status for the response.
        body (dict): JSON response body.
        event_type (str, optional): Webhook event tag; None means no notification.
    """
    status_code: int
    body: Dict[str, Any]
    event_type: Optional[str] = None


def log_prefix(call_id: CallId) -> str:
    return f"[Call: {call_id if call_id is not None else '-'}]"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _input_error(message: str, error_code: str, call_id: CallId) -> WorkflowOutcome:
    return WorkflowOutcome(400, {
        "success": False,
        "error": message,
        "error_code": error_code,
        "call_id": call_id,
    })


def order_error_outcome(call_id: CallId, error_type: str, upstream_status: Optional[int] = None) -> WorkflowOutcome:
    """
    Generic failure of the order path. The upstream error text stays in the logs;
    the caller only sees its type and HTTP status.
    """
    return WorkflowOutcome(500, {
        "success": False,
        "error": "draft_order_creation_failed",
        "message": ORDER_ERROR_MESSAGE,
        "debug_info": {
            "error_type": error_type,
            "upstream_status": upstream_status,
            "timestamp": _timestamp(),
        },
        "call_id": call_id,
    }, EVENT_ORDER_ERROR)


def inventory_error_outcome(call_id: CallId) -> WorkflowOutcome:
    return WorkflowOutcome(500, {
        "success": False,
        "error": "inventory_check_failed",
        "message": "Failed to check inventory",
        "call_id": call_id,
    })


def _order_number_label(order_number: str) -> str:
    return order_number if str(order_number).startswith("#") else f"#{order_number}"


def process_place_order(request: PlaceOrderRequest, shopify: ShopifyClient, settings: Settings) -> WorkflowOutcome:
    """
    Executes the complete order placement for a single phone call.

    Args:
        request (PlaceOrderRequest): Validated payload from the voice agent.
        shopify (ShopifyClient): Commerce API client.
        settings (Settings): Service configuration.

    Returns:
        WorkflowOutcome: 400 for input errors, 200 with success=False when stock is
        short, 500 when the draft order cannot be created, 200 with the draft order
        otherwise.
    """
    call_id = request.call_id
    prefix = log_prefix(call_id)
    customer_info = request.customer_info

    # --- 1. Input validation ---
    if customer_info is None or not (customer_info.email or "").strip():
        log.warning(f"{prefix} Rejected: customer email missing.")
        return _input_error("Customer email is required", "missing_customer_email", call_id)

    if not request.line_items:
        log.warning(f"{prefix} Rejected: no line items provided.")
        return _input_error("At least one item is required", "missing_line_items", call_id)

    log.info(f"{prefix} Processing draft order for {customer_info.email} "
             f"({len(request.line_items)} line item(s)).")

    # --- 2. Inventory ---
    inventory = validate_inventory(
        request.line_items,
        lambda variant_id: shopify.get_variant(variant_id, context=prefix),
        max_workers=settings.inventory_workers,
        context=prefix,
    )
    shortfalls = unavailable_items(inventory)
    if shortfalls:
        log.warning(f"{prefix} Rejected: insufficient inventory for {len(shortfalls)} item(s).")
        return WorkflowOutcome(200, {
            "success": False,
            "error": "insufficient_inventory",
            "message": (f"Sorry, some items are not available in the requested quantities: "
                        f"{describe_shortfalls(shortfalls)}. Please adjust your order."),
            "unavailable_items": [item.to_dict() for item in shortfalls],
            "call_id": call_id,
        }, EVENT_ORDER_FAILED)

    # --- 3. Draft order ---
    try:
        order = assemble_order(
            customer_info,
            request.line_items,
            billing_address=request.billing_address,
            shipping_address=request.shipping_address,
            special_instructions=request.special_instructions,
            call_id=call_id,
            fallback_mode=settings.address_fallback,
            tags=settings.draft_order_tags.split(","),
        )
    except OrderValidationError as e:
        log.warning(f"{prefix} Rejected: {e}")
        return _input_error(str(e), "invalid_order", call_id)

    created = shopify.create_draft_order(order, context=prefix)
    if not created.ok:
        log.error(f"{prefix} Draft order creation failed: {created.error} (HTTP {created.status_code}).")
        return order_error_outcome(call_id, "UpstreamError", created.status_code)

    draft = created.data
    order_number = draft.get("name")
    order_label = _order_number_label(order_number)
    log.info(f"{prefix} Draft order {order_number} created (ID: {draft.get('id')}).")

    # --- 4. Invoice email ---
    custom_message = (f"Thank you for your phone order! Your order {order_label} is ready for payment. "
                      f"Please click the link below to complete your purchase securely.")
    invoice = shopify.send_invoice(draft.get("id"), custom_message, context=prefix)
    if invoice.ok:
        log.info(f"{prefix} Invoice email sent for draft order {draft.get('id')}.")
    else:
        log.warning(f"{prefix} Invoice email not sent: {invoice.error}. Continuing without it.")

    # --- 5. Confirmation ---
    draft_lines = draft.get("line_items") or []
    item_count = sum(int(line.get("quantity") or 0) for line in draft_lines)
    total_price = draft.get("total_price")
    customer = order.customer

    if invoice.ok:
        payment_note = f"I'm sending a secure payment link to {customer.email} right now."
    else:
        payment_note = "You can find the payment link in your order details."

    body = {
        "success": True,
        "message": (f"Perfect! I've prepared your order {order_label} for {item_count} item(s) "
                    f"totaling {total_price}. {payment_note}"),
        "draft_order": {
            "order_number": order_number,
            "draft_order_id": draft.get("id"),
            "total_price": total_price,
            "currency": draft.get("currency"),
            "customer_email": customer.email,
            "customer_name": customer.full_name,
            "payment_url": draft.get("invoice_url"),
            "expires_at": draft.get("expires_at"),
            "invoice_email_sent": invoice.ok,
            "line_items": [
                {"title": line.get("title"), "quantity": line.get("quantity"), "price": line.get("price")}
                for line in draft_lines
            ],
        },
        "call_id": call_id,
    }
    return WorkflowOutcome(200, body, EVENT_DRAFT_ORDER_CREATED)


def _line_item_report(request: CheckInventoryRequest, shopify: ShopifyClient, settings: Settings) -> WorkflowOutcome:
    prefix = log_prefix(request.call_id)
    results = validate_inventory(
        request.line_items,
        lambda variant_id: shopify.get_variant(variant_id, context=prefix),
        max_workers=settings.inventory_workers,
        context=prefix,
    )
    shortfalls = unavailable_items(results)
    body = {
        "success": True,
        "all_items_available": not shortfalls,
        "inventory_results": [result.to_dict() for result in results],
        "unavailable_items": [result.to_dict() for result in shortfalls],
        "summary": {
            "total_items_checked": len(results),
            "available_items": len(results) - len(shortfalls),
            "unavailable_items": len(shortfalls),
        },
        "call_id": request.call_id,
    }
    return WorkflowOutcome(200, body, EVENT_INVENTORY_CHECKED)


def _availability_message(product_name: str, best: Optional[Dict[str, Any]], quantity: int) -> str:
    if best is None:
        return f"Sorry, I couldn't find a matching option for {product_name}."
    if best["available"]:
        return (f"Yes, {best['display_name']} is in stock "
                f"({best['inventory_quantity']} available).")
    if best["inventory_quantity"] > 0:
        return (f"We only have {best['inventory_quantity']} of {best['display_name']} in stock, "
                f"you asked for {quantity}.")
    return f"Sorry, {best['display_name']} is currently out of stock."


def _product_search_report(request: CheckInventoryRequest, shopify: ShopifyClient) -> WorkflowOutcome:
    prefix = log_prefix(request.call_id)
    product_name = request.product_name.strip()
    searched = shopify.search_products(product_name, context=prefix)
    if not searched.ok:
        log.error(f"{prefix} Product search for '{product_name}' failed: {searched.error}")
        return inventory_error_outcome(request.call_id)

    products = searched.data
    if not products:
        log.info(f"{prefix} No products found for '{product_name}'.")
        body = {
            "success": True,
            "product_found": False,
            "matches": [],
            "best_match": None,
            "message": f"Sorry, I couldn't find any product called {product_name}.",
            "call_id": request.call_id,
        }
        return WorkflowOutcome(200, body, EVENT_INVENTORY_CHECKED)

    matches: List[Dict[str, Any]] = []
    for candidate in match_variants(products, request.variant_details):
        entry = candidate.to_dict()
        entry["available"] = candidate.inventory_quantity >= request.quantity
        matches.append(entry)

    best = matches[0] if matches else None
    log.info(f"{prefix} Product search '{product_name}' / '{request.variant_details or ''}': "
             f"{len(products)} product(s), {len(matches)} matching variant(s).")
    body = {
        "success": True,
        "product_found": True,
        "requested_quantity": request.quantity,
        "matches": matches,
        "best_match": best,
        "message": _availability_message(product_name, best, request.quantity),
        "call_id": request.call_id,
    }
    return WorkflowOutcome(200, body, EVENT_INVENTORY_CHECKED)


def process_inventory_check(request: CheckInventoryRequest, shopify: ShopifyClient, settings: Settings) -> WorkflowOutcome:
    """
    Answers an inventory question from the voice agent.

    Line items take precedence over a product name when both are given.

    Returns:
        WorkflowOutcome: 400 when neither line_items nor product_name is present.
    """
    if request.line_items:
        return _line_item_report(request, shopify, settings)

    if request.product_name and request.product_name.strip():
        return _product_search_report(request, shopify)

    log.warning(f"{log_prefix(request.call_id)} Rejected inventory check without line_items or product_name.")
    return _input_error("line_items array or product_name is required", "missing_inventory_query", request.call_id)
