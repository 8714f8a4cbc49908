from __future__ import annotations

import pytest

from phone_order_service.config import ConfigurationError, Settings

BASE_ENV = {
    "SHOPIFY_SHOP_DOMAIN": "demo.myshopify.com",
    "SHOPIFY_ACCESS_TOKEN": "shpat_123",
}


def test_defaults() -> None:
    settings = Settings.from_env(BASE_ENV)
    assert settings.shop_base_url == "https://demo.myshopify.com"
    assert settings.admin_path == "/admin/api/2023-10"
    assert settings.webhook_url is None
    assert settings.webhook_timeout == 10.0
    assert settings.search_limit == 10
    assert settings.address_fallback == "cross"


@pytest.mark.parametrize("missing", ["SHOPIFY_SHOP_DOMAIN", "SHOPIFY_ACCESS_TOKEN"])
def test_missing_credentials_fail(missing: str) -> None:
    env = {k: v for k, v in BASE_ENV.items() if k != missing}
    with pytest.raises(ConfigurationError, match=missing):
        Settings.from_env(env)


def test_scheme_is_stripped_from_domain() -> None:
    settings = Settings.from_env({**BASE_ENV, "SHOPIFY_SHOP_DOMAIN": "https://demo.myshopify.com/"})
    assert settings.shop_domain == "demo.myshopify.com"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("WEBHOOK_TIMEOUT", "soon"),
        ("WEBHOOK_TIMEOUT", "0"),
        ("PRODUCT_SEARCH_LIMIT", "1000"),
        ("INVENTORY_WORKERS", "-1"),
        ("ADDRESS_FALLBACK_MODE", "sometimes"),
    ],
)
def test_invalid_values_fail(name: str, value: str) -> None:
    with pytest.raises(ConfigurationError):
        Settings.from_env({**BASE_ENV, name: value})


def test_optional_values() -> None:
    settings = Settings.from_env({
        **BASE_ENV,
        "MAKE_WEBHOOK_URL": "https://hook.example/abc",
        "WEBHOOK_TIMEOUT": "2.5",
        "ADDRESS_FALLBACK_MODE": "NONE",
        "INVENTORY_WORKERS": "8",
    })
    assert settings.webhook_url == "https://hook.example/abc"
    assert settings.webhook_timeout == 2.5
    assert settings.address_fallback == "none"
    assert settings.inventory_workers == 8


def test_startup_fails_without_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FILE", "")
    monkeypatch.delenv("SHOPIFY_SHOP_DOMAIN", raising=False)
    monkeypatch.delenv("SHOPIFY_ACCESS_TOKEN", raising=False)

    from phone_order_service.main import on_startup

    with pytest.raises(ConfigurationError):
        on_startup()
