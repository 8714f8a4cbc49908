"""
config.py — Runtime Configuration for the Phone Order Service

Settings are read once from environment variables at startup and passed
explicitly to every component that needs them (clients, workflows).

Required:
    SHOPIFY_SHOP_DOMAIN    e.g. 'your-shop.myshopify.com'
    SHOPIFY_ACCESS_TOKEN   Admin API access token

Optional:
    SHOPIFY_API_VERSION, SHOPIFY_TIMEOUT, SHOPIFY_READ_TIMEOUT,
    MAKE_WEBHOOK_URL, WEBHOOK_TIMEOUT, PRODUCT_SEARCH_LIMIT,
    INVENTORY_WORKERS, ADDRESS_FALLBACK_MODE, DRAFT_ORDER_TAGS
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ADDRESS_FALLBACK_CROSS = "cross"
ADDRESS_FALLBACK_NONE = "none"
ADDRESS_FALLBACK_MODES = (ADDRESS_FALLBACK_CROSS, ADDRESS_FALLBACK_NONE)

MAX_SEARCH_LIMIT = 250


class ConfigurationError(Exception):
    """Raised when the service cannot start with the supplied environment."""


@dataclass(frozen=True)
class Settings:
    """
    Immutable configuration value for one process.

    Attributes:
        shop_domain (str): Shopify shop domain, without scheme.
        access_token (str): Static Admin API credential.
        api_version (str): Admin REST API version used in request paths.
        webhook_url (Optional[str]): Workflow-automation webhook; None disables notifications.
        webhook_timeout (float): Upper bound in seconds for a webhook delivery.
        connect_timeout (float): Connect timeout for commerce API calls.
        read_timeout (float): Read timeout for commerce API calls.
        search_limit (int): Page size for product searches.
        inventory_workers (int): Concurrent variant lookups per inventory check.
        address_fallback (str): 'cross' (use the other address) or 'none'.
        draft_order_tags (str): Comma separated tags attached to draft orders.
    """
    shop_domain: str
    access_token: str
    api_version: str = "2023-10"
    webhook_url: Optional[str] = None
    webhook_timeout: float = 10.0
    connect_timeout: float = 5.0
    read_timeout: float = 8.0
    search_limit: int = 10
    inventory_workers: int = 5
    address_fallback: str = ADDRESS_FALLBACK_CROSS
    draft_order_tags: str = "phone-order,draft"

    @property
    def shop_base_url(self) -> str:
        return f"https://{self.shop_domain}"

    @property
    def admin_path(self) -> str:
        return f"/admin/api/{self.api_version}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Builds the settings from environment variables.

        Args:
            environ (Mapping[str, str], optional): Source mapping, defaults to os.environ.

        Returns:
            Settings: The validated configuration.

        Raises:
            ConfigurationError: If a required credential is missing or a value is malformed.
        """
        env = os.environ if environ is None else environ

        shop_domain = env.get("SHOPIFY_SHOP_DOMAIN", "").strip()
        access_token = env.get("SHOPIFY_ACCESS_TOKEN", "").strip()
        missing = [name for name, value in (("SHOPIFY_SHOP_DOMAIN", shop_domain),
                                            ("SHOPIFY_ACCESS_TOKEN", access_token)) if not value]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        # Accept domains pasted with a scheme
        for prefix in ("https://", "http://"):
            if shop_domain.startswith(prefix):
                shop_domain = shop_domain[len(prefix):]
        shop_domain = shop_domain.rstrip("/")

        address_fallback = env.get("ADDRESS_FALLBACK_MODE", ADDRESS_FALLBACK_CROSS).strip().lower()
        if address_fallback not in ADDRESS_FALLBACK_MODES:
            raise ConfigurationError(
                f"ADDRESS_FALLBACK_MODE must be one of {ADDRESS_FALLBACK_MODES}, got '{address_fallback}'"
            )

        search_limit = _positive_int(env, "PRODUCT_SEARCH_LIMIT", 10)
        if search_limit > MAX_SEARCH_LIMIT:
            raise ConfigurationError(f"PRODUCT_SEARCH_LIMIT must not exceed {MAX_SEARCH_LIMIT}")

        return cls(
            shop_domain=shop_domain,
            access_token=access_token,
            api_version=env.get("SHOPIFY_API_VERSION", "2023-10").strip() or "2023-10",
            webhook_url=env.get("MAKE_WEBHOOK_URL", "").strip() or None,
            webhook_timeout=_positive_float(env, "WEBHOOK_TIMEOUT", 10.0),
            connect_timeout=_positive_float(env, "SHOPIFY_TIMEOUT", 5.0),
            read_timeout=_positive_float(env, "SHOPIFY_READ_TIMEOUT", 8.0),
            search_limit=search_limit,
            inventory_workers=_positive_int(env, "INVENTORY_WORKERS", 5),
            address_fallback=address_fallback,
            draft_order_tags=env.get("DRAFT_ORDER_TAGS", "phone-order,draft").strip(),
        )


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be greater than zero")
    return value


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be greater than zero")
    return value
