"""
This module provides communication clients for the external systems used by the phone order service:
- Commerce platform (Shopify Admin REST API)
- Workflow-automation webhook (Make.com scenario or similar)
Each class encapsulates its protocol logic, error handling, and connection management.

No call raises for transport, HTTP or malformed-response failures. Each returns a
ClientResult so the workflow decides how a failure shapes the response. Every
outbound call is attempted exactly once.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .config import Settings
from .models import OrderRequest, VariantId

log = logging.getLogger(__name__)

INVOICE_SUBJECT = "Complete Your Order - Payment Required"


@dataclass(frozen=True)
class ClientResult:
    """
    Outcome of a single collaborator call.

    Attributes:
        ok (bool): True if the call succeeded and `data` holds the parsed payload.
        data (Any): Parsed response content on success.
        error (str, optional): Diagnostic message on failure.
        status_code (int, optional): Upstream HTTP status, if a response was received.
    """
    ok: bool
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def success(cls, data: Any = None, status_code: Optional[int] = None) -> "ClientResult":
        return cls(ok=True, data=data, status_code=status_code)

    @classmethod
    def failure(cls, error: str, status_code: Optional[int] = None) -> "ClientResult":
        return cls(ok=False, error=error, status_code=status_code)


def _describe_http_error(response: httpx.Response) -> str:
    """Translates a commerce API error status into a diagnostic message."""
    status = response.status_code
    if status == 401:
        return "Authentication failed - check your Shopify access token"
    if status == 403:
        return "Permission denied - check your Shopify API permissions"
    if status == 404:
        return "Resource not found - check the shop domain and identifier"
    if status == 422:
        try:
            body = response.json()
        except ValueError:
            body = response.text
        details = body.get("errors", body) if isinstance(body, dict) else body
        return f"Validation error: {details}"
    return f"Shopify API returned HTTP {status}"


# --- Commerce Client (REST) ---
class ShopifyClient:
    """
    Client for the Shopify Admin REST API.
    Handles variant lookups, product search, draft orders and invoice emails.
    """
    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        """
        Initializes the HTTP client with proper timeout configuration.

        Args:
            settings (Settings): Shop domain, credential, API version and timeouts.
            http_client (httpx.Client, optional): Pre-built client (e.g. a test client);
                requests are sent with paths relative to its base URL.
        """
        self.settings = settings
        self._headers = {
            "X-Shopify-Access-Token": settings.access_token,
            "Content-Type": "application/json",
        }
        if http_client is None:
            timeout_config = httpx.Timeout(settings.connect_timeout, read=settings.read_timeout)
            http_client = httpx.Client(base_url=settings.shop_base_url, timeout=timeout_config)
            self._owns_client = True
        else:
            self._owns_client = False
        self.client = http_client

    def close(self):
        """Closes the HTTP client session if this instance created it."""
        if self._owns_client:
            self.client.close()

    def _request(self, method: str, path: str, context: str, **kwargs) -> ClientResult:
        url = f"{self.settings.admin_path}{path}"
        try:
            response = self.client.request(method, url, headers=self._headers, **kwargs)
            response.raise_for_status()
        except httpx.InvalidURL as e:
            log.error(f"{context} Shopify {method} {path!r} rejected before sending: {e}")
            return ClientResult.failure(f"Invalid request URL: {e}")
        except httpx.HTTPStatusError as e:
            message = _describe_http_error(e.response)
            log.error(f"{context} Shopify {method} {path} failed: {message}")
            return ClientResult.failure(message, status_code=e.response.status_code)
        except httpx.TimeoutException as e:
            log.error(f"{context} Shopify {method} {path} timed out: {e!r}")
            return ClientResult.failure("Shopify API timed out")
        except httpx.RequestError as e:
            log.error(f"{context} Shopify {method} {path} unreachable: {e!r}")
            return ClientResult.failure(f"Shopify API unreachable: {e}")

        try:
            return ClientResult.success(response.json(), status_code=response.status_code)
        except ValueError:
            log.error(f"{context} Shopify {method} {path} returned a non-JSON body.")
            return ClientResult.failure("Malformed response from Shopify API", status_code=response.status_code)

    def _unwrap(self, result: ClientResult, key: str, context: str) -> ClientResult:
        if not result.ok:
            return result
        if not isinstance(result.data, dict) or not isinstance(result.data.get(key), (dict, list)):
            log.error(f"{context} Shopify response is missing '{key}'.")
            return ClientResult.failure(f"Malformed response from Shopify API: missing '{key}'",
                                        status_code=result.status_code)
        return ClientResult.success(result.data[key], status_code=result.status_code)

    def get_variant(self, variant_id: VariantId, context: str = "") -> ClientResult:
        """
        Fetches a single variant, including its inventory_quantity.

        Returns:
            ClientResult: On success `data` is the variant dict.
        """
        result = self._request("GET", f"/variants/{variant_id}.json", context)
        return self._unwrap(result, "variant", context)

    def search_products(self, title: str, context: str = "") -> ClientResult:
        """
        Searches products by title, bounded by the configured page size.

        Returns:
            ClientResult: On success `data` is a list of product dicts with their variants.
        """
        params = {"title": title, "limit": self.settings.search_limit}
        result = self._request("GET", "/products.json", context, params=params)
        return self._unwrap(result, "products", context)

    def create_draft_order(self, order: OrderRequest, context: str = "") -> ClientResult:
        """
        Creates an unconfirmed, payable draft order.

        Args:
            order (OrderRequest): The assembled order.
            context (str): Log prefix identifying the call.

        Returns:
            ClientResult: On success `data` is the draft order dict (id, name, invoice_url, ...).
        """
        payload = {
            "draft_order": {
                "line_items": [{"variant_id": item.variant_id, "quantity": item.quantity}
                               for item in order.line_items],
                "customer": order.customer.to_payload(),
                "billing_address": order.billing_address.to_payload(),
                "shipping_address": order.shipping_address.to_payload(),
                "note": order.note,
                "tags": ",".join(order.tags),
                "email": order.customer.email,
                # The custom invoice is sent separately
                "send_invoice": False,
                "use_customer_default_address": False,
            }
        }
        log.info(f"{context} Creating draft order for {order.customer.email} "
                 f"with {len(order.line_items)} line item(s).")
        log.debug(f"{context} Draft order payload: {payload}")
        result = self._request("POST", "/draft_orders.json", context, json=payload)
        return self._unwrap(result, "draft_order", context)

    def send_invoice(self, draft_order_id: VariantId, custom_message: str, context: str = "") -> ClientResult:
        """
        Triggers the invoice email for a draft order.

        The recipient is the customer email stored on the draft order and the sender is
        the shop's own address.
        """
        payload = {
            "draft_order_invoice": {
                "to": None,
                "from": None,
                "subject": INVOICE_SUBJECT,
                "custom_message": custom_message,
            }
        }
        return self._request("POST", f"/draft_orders/{draft_order_id}/send_invoice.json", context, json=payload)

    def get_shop(self, context: str = "") -> ClientResult:
        """Fetches the shop profile; used to verify domain and credential."""
        result = self._request("GET", "/shop.json", context)
        return self._unwrap(result, "shop", context)


# --- Webhook Client (REST) ---
class WebhookClient:
    """
    Client for the workflow-automation webhook.
    Delivers a copy of each response payload tagged with an event type. Best effort.
    """
    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.url = settings.webhook_url
        if http_client is None:
            http_client = httpx.Client(timeout=httpx.Timeout(settings.webhook_timeout))
            self._owns_client = True
        else:
            self._owns_client = False
        self.client = http_client

    def close(self):
        if self._owns_client:
            self.client.close()

    def notify(self, event_type: str, payload: Dict[str, Any], context: str = "") -> ClientResult:
        """
        Posts the payload plus a `type` field to the configured webhook URL.

        Args:
            event_type (str): Event tag, e.g. 'draft_order_created' or 'order_failed'.
            payload (dict): The response body sent to the caller.
            context (str): Log prefix identifying the call.

        Returns:
            ClientResult: Failure results are logged here and never raised.
        """
        if not self.url:
            log.info(f"{context} No webhook URL configured, '{event_type}' not sent.")
            return ClientResult.failure("Webhook URL not configured")

        body = {**payload, "type": event_type}
        try:
            response = self.client.post(self.url, json=body)
            response.raise_for_status()
        except httpx.InvalidURL as e:
            log.error(f"{context} Webhook '{event_type}' not sent, invalid URL: {e}")
            return ClientResult.failure(f"Invalid webhook URL: {e}")
        except httpx.HTTPStatusError as e:
            log.error(f"{context} Webhook '{event_type}' rejected with HTTP {e.response.status_code}.")
            return ClientResult.failure(f"Webhook returned HTTP {e.response.status_code}",
                                        status_code=e.response.status_code)
        except httpx.TimeoutException:
            log.error(f"{context} Webhook '{event_type}' timed out, abandoned.")
            return ClientResult.failure("Webhook timed out")
        except httpx.RequestError as e:
            log.error(f"{context} Webhook '{event_type}' failed: {e!r}")
            return ClientResult.failure(f"Webhook unreachable: {e}")

        log.info(f"{context} Webhook '{event_type}' delivered (HTTP {response.status_code}).")
        return ClientResult.success(status_code=response.status_code)
