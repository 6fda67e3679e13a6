import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .api import StorefrontAPI
from .cart import Cart
from .errors import ApiResponseError, AuthenticationRequired, OrderRejected, ServiceUnavailable
from .local_cache import LocalOrderCache
from .session import AuthSession

_logger = logging.getLogger(__name__)

MOCK_ORDER_PREFIX = "mock-"

# api: talk to the server only
# api_with_fallback: keep the shopper moving with a local mock order when the server fails
# local: never call the server
SUBMISSION_POLICIES = ("api", "api_with_fallback", "local")

# Keys that only exist on locally synthesized orders
_LOCAL_ONLY_KEYS = ("id", "user", "status", "paymentStatus", "createdAt", "updatedAt", "isMock", "failureReason")


def is_mock_order_id(order_id: Optional[str]) -> bool:
    return bool(order_id) and order_id.startswith(MOCK_ORDER_PREFIX)


@dataclass
class CheckoutForm:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    payment_method: str = "card"
    notes: str = ""

    @classmethod
    def from_user(cls, user: Dict[str, Any], **overrides) -> "CheckoutForm":
        """Prefill the form from a profile dict using the API's camelCase keys."""
        form = cls(
            first_name=user.get("firstName") or "",
            last_name=user.get("lastName") or "",
            email=user.get("email") or "",
            phone=user.get("phone") or "",
            address=user.get("address") or "",
            city=user.get("city") or "",
            state=user.get("state") or "",
            zip_code=user.get("zipCode") or "",
        )
        for key, value in overrides.items():
            setattr(form, key, value)
        return form


def build_order_payload(cart: Cart, form: CheckoutForm, tax_rate: float = 0.0) -> Dict[str, Any]:
    return {
        "items": [
            {
                "product": line.product_id,
                "name": line.product.get("name"),
                "price": line.product.get("price"),
                "quantity": line.quantity,
            }
            for line in cart.items
        ],
        "totalPrice": round(cart.total_price() * (1 + tax_rate), 2),
        "shippingAddress": f"{form.address}, {form.city}, {form.state} {form.zip_code}",
        "customerName": f"{form.first_name} {form.last_name}".strip(),
        "customerEmail": form.email,
        "customerPhone": form.phone,
        "paymentMethod": form.payment_method,
        "notes": form.notes or "",
    }


@dataclass
class PlacementResult:
    order: Dict[str, Any]
    is_local: bool = False
    reason: Optional[str] = None

    @property
    def order_id(self) -> str:
        return self.order["id"]


@dataclass
class SyncReport:
    synced: Dict[str, str] = field(default_factory=dict)
    pending: List[str] = field(default_factory=list)


class OrderSubmitter:
    def __init__(self, api: StorefrontAPI, auth: AuthSession, cache: LocalOrderCache, policy: str = "api_with_fallback"):
        if policy not in SUBMISSION_POLICIES:
            raise ValueError(f"unknown submission policy: {policy}")
        self.api = api
        self.auth = auth
        self.cache = cache
        self.policy = policy

    def _mock_order(self, payload: Dict[str, Any], reason: Optional[str]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        order = dict(payload)
        order.update(
            {
                "id": f"{MOCK_ORDER_PREFIX}{uuid.uuid4().hex}",
                "user": self.auth.user.get("id"),
                "status": "pending",
                "paymentStatus": "pending",
                "createdAt": now,
                "updatedAt": now,
                "isMock": True,
                "failureReason": reason,
            }
        )
        self.cache.save(order)
        _logger.warning("Order stored locally | order_id=%s reason=%s", order["id"], reason)
        return order

    def _session_expired(self) -> AuthenticationRequired:
        self.auth.clear()
        return AuthenticationRequired("Your session has expired. Please log in again.")

    async def submit(self, payload: Dict[str, Any]) -> PlacementResult:
        if not self.auth.is_authenticated:
            raise AuthenticationRequired()

        if self.policy == "local":
            return PlacementResult(order=self._mock_order(payload, None), is_local=True)

        try:
            response = await self.api.create_order(payload)
        except ApiResponseError as e:
            if e.status == 401:
                raise self._session_expired() from e
            fallback_worthy = e.status == 400 or e.status >= 500
            if self.policy == "api_with_fallback" and fallback_worthy:
                return PlacementResult(order=self._mock_order(payload, e.message), is_local=True, reason=e.message)
            if e.status >= 500:
                raise ServiceUnavailable(e.message) from e
            raise OrderRejected(e.message, e.payload.get("error")) from e
        except ServiceUnavailable as e:
            if self.policy == "api_with_fallback":
                return PlacementResult(order=self._mock_order(payload, e.message), is_local=True, reason=e.message)
            raise

        return PlacementResult(order=response["order"])

    async def sync_local_orders(self) -> SyncReport:
        """Replay cached mock orders to the server.

        Accepted orders leave the cache. Rejected ones stay for the shopper to
        review, and the first connectivity failure stops the run since the rest
        would fail the same way.
        """
        report = SyncReport()
        if not self.auth.is_authenticated:
            raise AuthenticationRequired()
        for order in reversed(self.cache.list()):
            payload = {k: v for k, v in order.items() if k not in _LOCAL_ONLY_KEYS}
            try:
                response = await self.api.create_order(payload)
            except ServiceUnavailable:
                report.pending.extend(o["id"] for o in self.cache.list() if o["id"] not in report.pending)
                return report
            except ApiResponseError as e:
                if e.status == 401:
                    raise self._session_expired() from e
                _logger.warning("Local order not accepted | order_id=%s status=%s msg=%s", order["id"], e.status, e.message)
                report.pending.append(order["id"])
                continue
            self.cache.invalidate(order["id"])
            report.synced[order["id"]] = response["order"]["id"]
            _logger.info("Local order synced | local_id=%s order_id=%s", order["id"], response["order"]["id"])
        return report


@dataclass
class OrderConfirmation:
    order_id: str
    is_local: bool
    order: Dict[str, Any]


class Checkout:
    """Final step of the checkout flow: cart + form in, confirmation out."""

    def __init__(self, cart: Cart, orders, tax_rate: float = 0.0):
        self.cart = cart
        self.orders = orders
        self.tax_rate = tax_rate

    async def place_order(self, form: CheckoutForm) -> OrderConfirmation:
        if self.cart.is_empty():
            raise OrderRejected("You have no items in your shopping cart.", "empty_cart")
        payload = build_order_payload(self.cart, form, self.tax_rate)
        result = await self.orders.place_order(payload)
        self.cart.clear()
        return OrderConfirmation(order_id=result.order_id, is_local=result.is_local, order=result.order)
