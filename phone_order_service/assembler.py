"""
assembler.py — Order Assembly from Caller Input

Turns the loosely filled customer and address data collected during a phone
call into a fully populated OrderRequest for the draft-order call.

Resolution rules:
    - email is mandatory (OrderValidationError otherwise)
    - customer names default to 'Unknown' / 'Customer', phone to ''
    - each address field: value on that address → value on the other address
      (cross fallback, unless disabled) → customer record → placeholder text
    - note defaults to a fixed text
    - line items are reduced to variant_id and quantity
"""

from typing import Dict, Optional, Sequence

from .config import ADDRESS_FALLBACK_CROSS
from .models import (
    AddressInput,
    AddressRecord,
    CallId,
    CustomerInfo,
    CustomerRecord,
    LineItem,
    OrderRequest,
)

DEFAULT_FIRST_NAME = "Unknown"
DEFAULT_LAST_NAME = "Customer"
DEFAULT_NOTE = "Draft order created via phone call"

ADDRESS_PLACEHOLDERS: Dict[str, Optional[str]] = {
    "first_name": None,
    "last_name": None,
    "address1": "Address not provided",
    "city": "City not provided",
    "province": "Province not provided",
    "country": "Country not provided",
    "zip": "Zip not provided",
    "phone": None,
    "email": None,
}

# Address fields that can be taken from the customer record
CUSTOMER_FIELDS = ("first_name", "last_name", "phone", "email")


class OrderValidationError(ValueError):
    """Raised when caller input cannot form an order."""


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_customer(customer_info: Optional[CustomerInfo]) -> CustomerRecord:
    """
    Builds the customer record. Never reads address fields.

    Raises:
        OrderValidationError: If no email was supplied.
    """
    info = customer_info or CustomerInfo()
    email = _clean(info.email)
    if not email:
        raise OrderValidationError("Customer email is required")

    return CustomerRecord(
        first_name=_clean(info.first_name) or DEFAULT_FIRST_NAME,
        last_name=_clean(info.last_name) or DEFAULT_LAST_NAME,
        email=email,
        phone=_clean(info.phone) or "",
    )


def resolve_address(
        primary: Optional[AddressInput],
        sibling: Optional[AddressInput],
        customer: CustomerRecord,
        fallback_mode: str = ADDRESS_FALLBACK_CROSS
) -> AddressRecord:
    """
    Resolves every address field by priority.

    Args:
        primary (AddressInput, optional): The address being built.
        sibling (AddressInput, optional): The other address of the order.
        customer (CustomerRecord): Source for name and contact fields.
        fallback_mode (str): 'cross' to consult the sibling address, 'none' to skip it.

    Returns:
        AddressRecord: Address with every required field set.
    """
    sources = [primary]
    if fallback_mode == ADDRESS_FALLBACK_CROSS:
        sources.append(sibling)

    resolved = {}
    for name, placeholder in ADDRESS_PLACEHOLDERS.items():
        value = None
        for source in sources:
            if source is not None:
                value = _clean(getattr(source, name))
            if value:
                break
        if not value and name in CUSTOMER_FIELDS:
            value = _clean(getattr(customer, name))
        resolved[name] = value or placeholder

    return AddressRecord(**resolved)


def assemble_order(
        customer_info: Optional[CustomerInfo],
        line_items: Sequence[LineItem],
        billing_address: Optional[AddressInput] = None,
        shipping_address: Optional[AddressInput] = None,
        special_instructions: Optional[str] = None,
        call_id: CallId = None,
        fallback_mode: str = ADDRESS_FALLBACK_CROSS,
        tags: Sequence[str] = ()
) -> OrderRequest:
    """
    Produces the OrderRequest handed to the draft-order call.

    Raises:
        OrderValidationError: If email is missing or there are no line items.
    """
    customer = build_customer(customer_info)
    if not line_items:
        raise OrderValidationError("At least one item is required")

    return OrderRequest(
        customer=customer,
        line_items=tuple(LineItem(variant_id=item.variant_id, quantity=item.quantity) for item in line_items),
        billing_address=resolve_address(billing_address, shipping_address, customer, fallback_mode),
        shipping_address=resolve_address(shipping_address, billing_address, customer, fallback_mode),
        note=_clean(special_instructions) or DEFAULT_NOTE,
        call_id=call_id,
        tags=tuple(tag.strip() for tag in tags if tag and tag.strip()),
    )
