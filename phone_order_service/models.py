"""
models.py — Data Models for Phone Order Processing

Inbound request payloads are Pydantic models so FastAPI validates their types.
Field presence rules that the voice agent depends on (email, at least one line
item) are checked by the workflow instead, because each of those failures
carries its own error_code (missing_customer_email, missing_line_items). Type failures are
answered by main.py with error_code invalid_request.

The request-scoped records derived from a payload (inventory results, variant
candidates, customer/address records, the assembled order) are frozen
dataclasses: built once per request, handed to one outbound call, discarded.

Models:
    - LineItem, CustomerInfo, AddressInput: building blocks of inbound payloads.
    - PlaceOrderRequest, CheckInventoryRequest: endpoint payloads.
    - InventoryResult, VariantCandidate, CustomerRecord, AddressRecord, OrderRequest: derived records.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

VariantId = Union[int, str]
CallId = Optional[Union[str, int]]


class LineItem(BaseModel):
    """
    A (variant, quantity) pair requested by the caller.

    Attributes:
        variant_id (int | str): Commerce platform variant identifier.
        quantity (int): Requested quantity. Must be greater than zero.
    """
    model_config = ConfigDict(frozen=True)

    variant_id: VariantId
    quantity: int = Field(..., gt=0)


class CustomerInfo(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class AddressInput(BaseModel):
    """Address as spoken by the caller. Every field may be missing."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address1: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class PlaceOrderRequest(BaseModel):
    """
    Payload of POST /place-order.

    Attributes:
        customer_info (CustomerInfo, optional): Caller identity; email is mandatory for an order.
        line_items (List[LineItem]): Items to order; at least one is required.
        shipping_address (AddressInput, optional): Delivery address.
        billing_address (AddressInput, optional): Billing address.
        special_instructions (str, optional): Free-text note for the order.
        call_id (str | int, optional): Correlation token of the phone call, passed through untouched.
    """
    customer_info: Optional[CustomerInfo] = None
    line_items: List[LineItem] = Field(default_factory=list)
    shipping_address: Optional[AddressInput] = None
    billing_address: Optional[AddressInput] = None
    special_instructions: Optional[str] = None
    call_id: CallId = None


class CheckInventoryRequest(BaseModel):
    """
    Payload of POST /check-inventory.

    Either `line_items` (stock check for known variants) or `product_name`
    (catalog search, optionally narrowed by `variant_details`) must be given.
    """
    product_name: Optional[str] = None
    variant_details: Optional[str] = None
    quantity: int = Field(1, gt=0)
    line_items: List[LineItem] = Field(default_factory=list)
    call_id: CallId = None


@dataclass(frozen=True)
class InventoryResult:
    variant_id: VariantId
    title: str
    requested_quantity: int
    available_quantity: int
    available: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VariantCandidate:
    """A catalog variant scored against the caller's description (0-100)."""
    product_title: str
    variant_id: VariantId
    variant_title: str
    option_labels: Tuple[str, ...]
    inventory_quantity: int
    price: Optional[str]
    match_score: float
    display_name: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["option_labels"] = list(self.option_labels)
        return data


@dataclass(frozen=True)
class CustomerRecord:
    first_name: str
    last_name: str
    email: str
    phone: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AddressRecord:
    first_name: str
    last_name: str
    address1: str
    city: str
    province: str
    country: str
    zip: str
    phone: Optional[str] = None
    email: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        # Unset contact fields are omitted rather than sent as null
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class OrderRequest:
    """Everything the draft-order call needs, fully populated."""
    customer: CustomerRecord
    line_items: Tuple[LineItem, ...]
    billing_address: AddressRecord
    shipping_address: AddressRecord
    note: str
    call_id: CallId = None
    tags: Tuple[str, ...] = ()
