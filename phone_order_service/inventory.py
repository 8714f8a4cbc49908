"""
inventory.py — Inventory Validation for Requested Line Items

Checks each requested quantity against the variant's current stock. Lookups
are independent and run concurrently on a small thread pool; results come
back in input order, one per line item. A failed lookup never aborts the
batch: it is reported as unavailable with zero stock.

Stock is read, not reserved. It can change between this check and the
order creation that follows.
"""

import logging
from concurrent import futures
from typing import Callable, List, Sequence

from .clients import ClientResult
from .models import InventoryResult, LineItem, VariantId

log = logging.getLogger(__name__)

UNKNOWN_PRODUCT_TITLE = "Unknown Product"

VariantLookup = Callable[[VariantId], ClientResult]


def check_line_item(item: LineItem, fetch_variant: VariantLookup, context: str = "") -> InventoryResult:
    """
    Compares one line item against the stock reported for its variant.

    Args:
        item (LineItem): Requested variant and quantity.
        fetch_variant (Callable): Returns a ClientResult whose data is the variant dict.
        context (str): Log prefix identifying the call.

    Returns:
        InventoryResult: available is True iff available_quantity >= requested quantity.
    """
    try:
        result = fetch_variant(item.variant_id)
        if not result.ok:
            raise LookupError(result.error)

        variant = result.data
        available_quantity = int(variant.get("inventory_quantity") or 0)
        return InventoryResult(
            variant_id=item.variant_id,
            title=variant.get("title") or UNKNOWN_PRODUCT_TITLE,
            requested_quantity=item.quantity,
            available_quantity=available_quantity,
            available=available_quantity >= item.quantity,
        )
    except Exception as e:
        log.error(f"{context} Error checking inventory for variant {item.variant_id}: {e}")
        return InventoryResult(
            variant_id=item.variant_id,
            title=UNKNOWN_PRODUCT_TITLE,
            requested_quantity=item.quantity,
            available_quantity=0,
            available=False,
        )


def validate_inventory(
        line_items: Sequence[LineItem],
        fetch_variant: VariantLookup,
        max_workers: int = 5,
        context: str = ""
) -> List[InventoryResult]:
    """
    Checks stock for every line item.

    Args:
        line_items (Sequence[LineItem]): Items in caller order.
        fetch_variant (Callable): Single-variant lookup, e.g. ShopifyClient.get_variant.
        max_workers (int): Upper bound on concurrent lookups.
        context (str): Log prefix identifying the call.

    Returns:
        List[InventoryResult]: Same length and order as `line_items`.
    """
    if not line_items:
        return []

    workers = max(1, min(max_workers, len(line_items)))
    with futures.ThreadPoolExecutor(max_workers=workers) as executor:
        # map() yields in submission order and waits for every lookup
        results = list(executor.map(lambda item: check_line_item(item, fetch_variant, context), line_items))

    unavailable = sum(1 for result in results if not result.available)
    log.info(f"{context} Inventory checked: {len(results)} item(s), {unavailable} unavailable.")
    return results


def unavailable_items(results: Sequence[InventoryResult]) -> List[InventoryResult]:
    return [result for result in results if not result.available]


def describe_shortfalls(results: Sequence[InventoryResult]) -> str:
    """Formats items as 'title (requested: Q, available: A)', joined by ', '."""
    return ", ".join(
        f"{result.title or 'Item'} (requested: {result.requested_quantity}, "
        f"available: {result.available_quantity})"
        for result in results
    )
