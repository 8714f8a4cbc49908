"""Shared fixtures: real clients wired to the in-process mock collaborators."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from mock_services import mock_automation_webhook, mock_shopify
from phone_order_service.clients import ShopifyClient, WebhookClient
from phone_order_service.config import Settings

SHOP_DOMAIN = "mock-shop.myshopify.com"
WEBHOOK_URL = "http://hooks.test/webhook"


@pytest.fixture(autouse=True)
def _reset_mocks() -> None:
    mock_shopify.reset()
    mock_automation_webhook.reset()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        shop_domain=SHOP_DOMAIN,
        access_token=mock_shopify.ACCESS_TOKEN,
        webhook_url=WEBHOOK_URL,
    )


@pytest.fixture()
def shopify(settings: Settings) -> ShopifyClient:
    return ShopifyClient(settings, http_client=TestClient(mock_shopify.app))


@pytest.fixture()
def webhook(settings: Settings) -> WebhookClient:
    return WebhookClient(settings, http_client=TestClient(mock_automation_webhook.app))


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch, shopify: ShopifyClient, webhook: WebhookClient) -> TestClient:
    monkeypatch.setenv("LOG_FILE", "")
    monkeypatch.setenv("SHOPIFY_SHOP_DOMAIN", SHOP_DOMAIN)
    monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", mock_shopify.ACCESS_TOKEN)
    monkeypatch.setenv("MAKE_WEBHOOK_URL", WEBHOOK_URL)

    from phone_order_service.main import app, get_shopify_client, get_webhook_client

    app.dependency_overrides[get_shopify_client] = lambda: shopify
    app.dependency_overrides[get_webhook_client] = lambda: webhook
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
