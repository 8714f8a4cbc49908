from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

from mock_services import mock_automation_webhook, mock_shopify
from phone_order_service.assembler import assemble_order
from phone_order_service.clients import INVOICE_SUBJECT, ShopifyClient, WebhookClient
from phone_order_service.config import Settings
from phone_order_service.models import AddressInput, CustomerInfo, LineItem


def _order(email: str = "ada@example.com"):
    return assemble_order(
        CustomerInfo(email=email, first_name="Ada"),
        [LineItem(variant_id=1001, quantity=2)],
        shipping_address=AddressInput(address1="1 Congress Ave", city="Austin", province="TX",
                                      country="US", zip="78701"),
        tags=["phone-order", "draft"],
    )


def test_get_variant(shopify: ShopifyClient) -> None:
    result = shopify.get_variant(1002)
    assert result.ok
    assert result.data["inventory_quantity"] == 2


def test_get_variant_not_found(shopify: ShopifyClient) -> None:
    result = shopify.get_variant(424242)
    assert not result.ok
    assert result.status_code == 404


def test_malformed_variant_response(shopify: ShopifyClient) -> None:
    result = shopify.get_variant(9999)
    assert not result.ok
    assert "variant" in result.error


def test_invalid_variant_url_is_a_failure_result(shopify: ShopifyClient) -> None:
    result = shopify.get_variant("bad\x00id")
    assert not result.ok
    assert result.error.startswith("Invalid request URL")
    assert mock_shopify.REQUEST_LOG == []


def test_wrong_token_is_reported(settings: Settings) -> None:
    bad = Settings(shop_domain=settings.shop_domain, access_token="nope")
    client = ShopifyClient(bad, http_client=TestClient(mock_shopify.app))
    result = client.get_shop()
    assert not result.ok
    assert result.status_code == 401
    assert "Authentication failed" in result.error


def test_search_products_sends_page_size(shopify: ShopifyClient) -> None:
    result = shopify.search_products("t-shirt")
    assert result.ok
    assert [p["title"] for p in result.data] == ["Classic Cotton T-Shirt"]
    assert mock_shopify.REQUEST_LOG == ["search_products:t-shirt"]


def test_create_draft_order_payload(shopify: ShopifyClient) -> None:
    result = shopify.create_draft_order(_order())
    assert result.ok

    stored = mock_shopify.DRAFT_ORDERS[result.data["id"]]
    assert stored["email"] == "ada@example.com"
    assert stored["tags"] == "phone-order,draft"
    assert stored["billing_address"]["city"] == "Austin"
    assert stored["customer"]["first_name"] == "Ada"
    assert result.data["total_price"] == "39.98"


def test_create_draft_order_validation_error(shopify: ShopifyClient) -> None:
    result = shopify.create_draft_order(_order(email="reject@example.com"))
    assert not result.ok
    assert result.status_code == 422
    assert result.error.startswith("Validation error")


def test_send_invoice(shopify: ShopifyClient) -> None:
    draft = shopify.create_draft_order(_order()).data
    result = shopify.send_invoice(draft["id"], "Thanks!")
    assert result.ok
    assert mock_shopify.INVOICES[0]["subject"] == INVOICE_SUBJECT
    assert mock_shopify.INVOICES[0]["custom_message"] == "Thanks!"


def test_unreachable_shop_is_a_failure_result(settings: Settings) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http_client = httpx.Client(base_url=settings.shop_base_url, transport=httpx.MockTransport(refuse))
    result = ShopifyClient(settings, http_client=http_client).get_variant(1001)
    assert not result.ok
    assert "unreachable" in result.error


def test_webhook_notify_adds_type(webhook: WebhookClient) -> None:
    result = webhook.notify("draft_order_created", {"success": True, "call_id": "c-1"})
    assert result.ok
    assert mock_automation_webhook.RECEIVED == [
        {"success": True, "call_id": "c-1", "type": "draft_order_created"}
    ]


def test_webhook_failure_is_absorbed(webhook: WebhookClient) -> None:
    mock_automation_webhook.FAIL_NEXT["enabled"] = True
    result = webhook.notify("order_failed", {"success": False})
    assert not result.ok
    assert result.status_code == 500


def test_webhook_timeout_is_absorbed(settings: Settings) -> None:
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = WebhookClient(settings, http_client=httpx.Client(transport=httpx.MockTransport(slow)))
    result = client.notify("draft_order_created", {})
    assert not result.ok
    assert result.error == "Webhook timed out"


def test_webhook_without_url_is_skipped(settings: Settings) -> None:
    unconfigured = Settings(shop_domain=settings.shop_domain, access_token=settings.access_token)
    client = WebhookClient(unconfigured, http_client=TestClient(mock_automation_webhook.app))
    result = client.notify("draft_order_created", {})
    assert not result.ok
    assert mock_automation_webhook.RECEIVED == []


def test_webhook_with_invalid_url_is_absorbed(settings: Settings) -> None:
    broken = Settings(shop_domain=settings.shop_domain, access_token=settings.access_token,
                      webhook_url="http://hooks.example/\x00")
    client = WebhookClient(broken, http_client=TestClient(mock_automation_webhook.app))
    result = client.notify("draft_order_created", {})
    assert not result.ok
    assert result.error.startswith("Invalid webhook URL")
    assert mock_automation_webhook.RECEIVED == []
