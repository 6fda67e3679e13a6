import logging
from typing import Any, Dict, List, Optional

from ..catalog.service import find_product_by_name, get_product
from ..common.auth import CurrentUser
from ..common.config import settings
from ..common.database import fetch_order, fetch_orders, insert_order, update_order_fields
from ..common.db import is_object_id
from ..common.errors import (
    EmptyOrder,
    Forbidden,
    InvalidReference,
    NotFound,
    ProductNotFound,
    ValidationFailure,
)
from .model import Order, check_payment_status, check_status_change
from .refs import NamedRef, literal_product_id, parse_product_ref

_logger = logging.getLogger(__name__)

ITEM_POLICIES = ("lenient", "strict")


def _as_number(value: Any) -> Any:
    # Form posts often carry numbers as strings; anything unparseable is left
    # alone for the schema check to report.
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return value
        return int(number) if number.is_integer() else number
    return value


async def _lookup_by_name(name: str) -> Optional[str]:
    try:
        product = await find_product_by_name(name)
    except Exception:
        _logger.exception("Error looking up product by name: %s", name)
        return None
    return product["id"] if product else None


async def resolve_product_id(item: Dict[str, Any], policy: str = "lenient") -> Optional[str]:
    if policy == "strict":
        return literal_product_id(item)
    ref = parse_product_ref(item)
    if ref is None:
        return None
    if isinstance(ref, NamedRef):
        return await _lookup_by_name(ref.name)
    return ref.value


async def resolve_item(item: Any, policy: str = "lenient") -> Dict[str, Any]:
    """Turn one raw request item into a line item bound to a catalog product.

    Request-supplied name, price and image win over the catalog's; the
    catalog fills whatever the client left out.
    """
    if not isinstance(item, dict):
        raise ValidationFailure("Each order item must be an object", "Order validation failed: items: Cast to Object failed")

    product_id = await resolve_product_id(item, policy)
    if not product_id:
        if policy == "strict":
            raise ValidationFailure(
                "Each order item must have a product ID",
                "Order validation failed: items.product: Path `product` is required.",
            )
        raise ValidationFailure(
            f"Product ID not found for item: {item.get('name') or 'Unknown item'}",
            "Order validation failed: items.product: Path `product` is required.",
        )

    if not is_object_id(product_id):
        raise InvalidReference(product_id)

    product = await get_product(product_id)
    if not product:
        raise ProductNotFound(product_id)

    return {
        "product": product_id,
        "name": item.get("name") or product.get("name"),
        "price": _as_number(item.get("price")) or product.get("price"),
        "quantity": _as_number(item.get("quantity")),
        "image": item.get("image") or product.get("image"),
    }


async def create_order(user: CurrentUser, payload: Dict[str, Any], policy: Optional[str] = None) -> Dict[str, Any]:
    policy = policy or settings.ORDER_ITEM_POLICY
    if policy not in ITEM_POLICIES:
        raise ValueError(f"unknown order item policy: {policy}")

    if not isinstance(payload, dict):
        raise ValidationFailure("Invalid order data", "Order validation failed: body must be a JSON object")

    items = payload.get("items")
    _logger.info(
        "Order creation request received | user=%s items=%s total=%s payment=%s",
        user.id,
        len(items) if isinstance(items, list) else None,
        payload.get("totalPrice"),
        payload.get("paymentMethod"),
    )
    if not isinstance(items, list) or not items:
        raise EmptyOrder()

    # Resolve everything before writing so a bad item leaves no partial order
    resolved: List[Dict[str, Any]] = []
    for item in items:
        resolved.append(await resolve_item(item, policy))

    order = Order(
        user=user.id,
        items=resolved,
        total_price=_as_number(payload.get("totalPrice")),
        shipping_address=payload.get("shippingAddress"),
        customer_name=payload.get("customerName"),
        customer_email=payload.get("customerEmail"),
        customer_phone=payload.get("customerPhone"),
        payment_method=payload.get("paymentMethod"),
        notes=payload.get("notes"),
    )
    saved = await insert_order(order)
    _logger.info("Order created | order_id=%s user=%s items=%s", saved["id"], user.id, len(resolved))
    return saved


async def list_orders(user: CurrentUser) -> List[Dict[str, Any]]:
    # Admins see every order, everyone else only their own
    return await fetch_orders(None if user.is_admin else user.id)


async def _load_order(order_id: str) -> Dict[str, Any]:
    order = await fetch_order(order_id) if is_object_id(order_id) else None
    if order is None:
        raise NotFound()
    return order


async def get_order(user: CurrentUser, order_id: str) -> Dict[str, Any]:
    order = await _load_order(order_id)
    if not user.can_access(order["user"]):
        _logger.warning("Order access denied | order_id=%s user=%s", order_id, user.id)
        raise Forbidden("Not authorized to view this order")
    return order


async def update_status(user: CurrentUser, order_id: str, status: Optional[str]) -> Dict[str, Any]:
    if not status:
        raise ValidationFailure("Status is required", "status_required")
    order = await _load_order(order_id)
    if not user.is_admin:
        raise Forbidden("Not authorized to update this order")
    check_status_change(order["status"], status)
    updated = await update_order_fields(order_id, status=status)
    _logger.info("Order status updated | order_id=%s %s -> %s by=%s", order_id, order["status"], status, user.id)
    return updated


async def update_payment(user: CurrentUser, order_id: str, payment_status: Optional[str]) -> Dict[str, Any]:
    if not payment_status:
        raise ValidationFailure("Payment status is required", "payment_status_required")
    order = await _load_order(order_id)
    if not user.is_admin:
        raise Forbidden("Not authorized to update payment status")
    check_payment_status(payment_status)
    updated = await update_order_fields(order_id, payment_status=payment_status)
    _logger.info(
        "Order payment updated | order_id=%s %s -> %s by=%s",
        order_id,
        order["paymentStatus"],
        payment_status,
        user.id,
    )
    return updated


async def cancel_order(user: CurrentUser, order_id: str) -> Dict[str, Any]:
    order = await _load_order(order_id)
    if not user.can_access(order["user"]):
        raise Forbidden("Not authorized to cancel this order")
    check_status_change(order["status"], "cancelled")
    updated = await update_order_fields(order_id, status="cancelled")
    _logger.info("Order cancelled | order_id=%s by=%s", order_id, user.id)
    return updated
