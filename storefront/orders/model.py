import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..common.db import Base, new_object_id, utcnow
from ..common.errors import InvalidTransition, SchemaValidation

PAYMENT_METHODS = ("card", "credit_card", "paypal", "cash_on_delivery", "bank_transfer")
PAYMENT_STATUSES = ("pending", "paid", "failed")
ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

# Orders can only be cancelled before they leave the warehouse
CANCELLABLE_STATUSES = ("pending", "processing")

# Free-text columns, stored as-is
_TEXT_FIELDS = (
    ("shipping_address", "shippingAddress"),
    ("customer_name", "customerName"),
    ("customer_email", "customerEmail"),
    ("customer_phone", "customerPhone"),
    ("notes", "notes"),
)

_REQUIRED_FIELDS = (
    ("user", "user"),
    ("total_price", "totalPrice"),
    ("shipping_address", "shippingAddress"),
    ("customer_name", "customerName"),
    ("customer_email", "customerEmail"),
    ("customer_phone", "customerPhone"),
    ("payment_method", "paymentMethod"),
)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    user: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # Line items are embedded in the order document, prices frozen at purchase time
    items: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    shipping_address: Mapped[str] = mapped_column(Text, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(64), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def validate(self) -> None:
        """Apply the document schema before the order is written.

        Collects every violation into one ``SchemaValidation`` error so the
        client sees all broken fields at once.
        """
        problems = []
        for attr, path in _REQUIRED_FIELDS:
            value = getattr(self, attr)
            if value is None or (isinstance(value, str) and not value.strip()):
                problems.append(f"{path}: Path `{path}` is required.")
        for attr, path in _TEXT_FIELDS:
            value = getattr(self, attr)
            if value is not None and not isinstance(value, str):
                problems.append(_cast_problem(path, "String", value))
        if self.total_price is not None and not _is_finite_number(self.total_price):
            problems.append(_cast_problem("totalPrice", "Number", self.total_price))
        if not self.items:
            problems.append("items: Order must contain at least one item")
        for index, item in enumerate(self.items or []):
            problems.extend(_item_problems(index, item))
        if self.payment_method is not None and self.payment_method not in PAYMENT_METHODS:
            problems.append(_enum_problem("paymentMethod", self.payment_method))
        if self.payment_status not in (None,) + PAYMENT_STATUSES:
            problems.append(_enum_problem("paymentStatus", self.payment_status))
        if self.status not in (None,) + ORDER_STATUSES:
            problems.append(_enum_problem("status", self.status))
        if problems:
            raise SchemaValidation("Order validation failed: " + ", ".join(problems))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user,
            "items": list(self.items or []),
            "totalPrice": self.total_price,
            "shippingAddress": self.shipping_address,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "paymentMethod": self.payment_method,
            "paymentStatus": self.payment_status,
            "status": self.status,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


def _enum_problem(path: str, value) -> str:
    return f"{path}: `{value}` is not a valid enum value for path `{path}`."


def _cast_problem(path: str, kind: str, value) -> str:
    return f"{path}: Cast to {kind} failed for value \"{value}\""


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _item_problems(index: int, item: Dict[str, Any]) -> List[str]:
    problems = []
    for key in ("product", "name", "price", "quantity"):
        if item.get(key) is None:
            problems.append(f"items.{index}.{key}: Path `{key}` is required.")
    name = item.get("name")
    if name is not None and not isinstance(name, str):
        problems.append(_cast_problem(f"items.{index}.name", "String", name))
    quantity = item.get("quantity")
    if quantity is not None:
        # Whole units only: 2.0 is fine, 1.5 and NaN are not
        if not _is_finite_number(quantity) or (isinstance(quantity, float) and not quantity.is_integer()):
            problems.append(_cast_problem(f"items.{index}.quantity", "Integer", quantity))
        elif quantity < 1:
            problems.append(f"items.{index}.quantity: Path `quantity` ({quantity}) is less than minimum allowed value (1).")
    price = item.get("price")
    if price is not None and not _is_finite_number(price):
        problems.append(_cast_problem(f"items.{index}.price", "Number", price))
    return problems


def check_status_change(current: str, new: str) -> None:
    """Validate a fulfillment status change.

    Administrators may set any status directly; the only rule enforced is
    that cancellation is limited to orders that have not shipped yet.
    """
    if new not in ORDER_STATUSES:
        raise SchemaValidation(
            "Order validation failed: " + _enum_problem("status", new),
            message="Invalid order status",
        )
    if new == "cancelled" and current not in CANCELLABLE_STATUSES:
        raise InvalidTransition(
            f"Cannot cancel order. Order is already {current}.",
            f"invalid_transition: {current} -> cancelled",
        )


def check_payment_status(value: str) -> None:
    if value not in PAYMENT_STATUSES:
        raise SchemaValidation(
            "Order validation failed: " + _enum_problem("paymentStatus", value),
            message="Invalid payment status",
        )
