from __future__ import annotations

import httpx

from phone_order_service.clients import ClientResult, ShopifyClient
from phone_order_service.inventory import (
    describe_shortfalls,
    unavailable_items,
    validate_inventory,
)
from phone_order_service.models import InventoryResult, LineItem

STOCK = {1: 10, 2: 2, 3: 0}


def _lookup(variant_id):
    if variant_id == 404:
        return ClientResult.failure("Resource not found", status_code=404)
    if variant_id == 500:
        raise httpx.ConnectError("connection refused")
    if variant_id == 422:
        return ClientResult.success({"title": "Broken", "inventory_quantity": "lots"})
    return ClientResult.success({"title": f"Variant {variant_id}", "inventory_quantity": STOCK[variant_id]})


def test_results_preserve_length_and_order() -> None:
    items = [LineItem(variant_id=v, quantity=1) for v in (3, 1, 404, 2, 500)]
    results = validate_inventory(items, _lookup, max_workers=4)
    assert [r.variant_id for r in results] == [3, 1, 404, 2, 500]


def test_available_iff_stock_covers_request() -> None:
    items = [
        LineItem(variant_id=1, quantity=10),
        LineItem(variant_id=2, quantity=3),
        LineItem(variant_id=3, quantity=1),
    ]
    results = validate_inventory(items, _lookup)
    assert [r.available for r in results] == [True, False, False]
    assert results[1].available_quantity == 2
    assert results[1].requested_quantity == 3


def test_lookup_failures_become_unavailable_without_aborting_batch() -> None:
    items = [
        LineItem(variant_id=404, quantity=1),
        LineItem(variant_id=500, quantity=1),
        LineItem(variant_id=422, quantity=1),
        LineItem(variant_id=1, quantity=1),
    ]
    results = validate_inventory(items, _lookup, max_workers=2)

    for failed in results[:3]:
        assert failed.available is False
        assert failed.available_quantity == 0
        assert failed.title == "Unknown Product"
    assert results[3].available is True


def test_unexpected_lookup_error_stays_with_its_item() -> None:
    def flaky(variant_id):
        if variant_id == 2:
            raise RuntimeError("boom")
        return _lookup(variant_id)

    items = [LineItem(variant_id=1, quantity=1), LineItem(variant_id=2, quantity=1)]
    results = validate_inventory(items, flaky)

    assert [r.available for r in results] == [True, False]
    assert results[1].available_quantity == 0


def test_unbuildable_variant_url_does_not_abort_batch(shopify: ShopifyClient) -> None:
    items = [LineItem(variant_id=1001, quantity=1), LineItem(variant_id="bad\x00id", quantity=1)]
    results = validate_inventory(items, shopify.get_variant)

    assert len(results) == 2
    assert results[0].available is True
    assert results[1].available is False
    assert results[1].available_quantity == 0


def test_empty_batch() -> None:
    assert validate_inventory([], _lookup) == []


def test_describe_shortfalls() -> None:
    results = [
        InventoryResult(1, "Large / Blue", 5, 2, False),
        InventoryResult(2, "Small / Red", 1, 0, False),
        InventoryResult(3, "Mug", 1, 4, True),
    ]
    text = describe_shortfalls(unavailable_items(results))
    assert text == "Large / Blue (requested: 5, available: 2), Small / Red (requested: 1, available: 0)"


def test_against_mock_shop(shopify: ShopifyClient) -> None:
    items = [
        LineItem(variant_id=1001, quantity=2),
        LineItem(variant_id=1002, quantity=5),
        LineItem(variant_id=424242, quantity=1),
        LineItem(variant_id=9999, quantity=1),
    ]
    results = validate_inventory(items, shopify.get_variant)

    assert [r.available for r in results] == [True, False, False, False]
    assert results[0].available_quantity == 12
    assert results[1].available_quantity == 2
    assert results[2].available_quantity == 0
    assert results[3].available_quantity == 0
