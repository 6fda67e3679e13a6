import logging
from typing import Any, Dict, List, Optional

from .api import StorefrontAPI
from .checkout import OrderSubmitter, PlacementResult, is_mock_order_id
from .errors import ApiResponseError, ClientError
from .local_cache import LocalOrderCache

_logger = logging.getLogger(__name__)


class OrderStore:
    """Client-side view of the shopper's orders.

    Mirrors the server routes; every action resets ``error``, flips
    ``is_loading`` while in flight and leaves a human-readable ``error``
    behind when it fails (the exception is still raised to the caller).
    Mock orders from the local cache are listed alongside server orders.
    """

    def __init__(self, api: StorefrontAPI, submitter: OrderSubmitter, cache: LocalOrderCache):
        self.api = api
        self.submitter = submitter
        self.cache = cache
        self.orders: List[Dict[str, Any]] = []
        self.current_order: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.error: Optional[str] = None

    def _fail(self, exc: Exception, default: str) -> None:
        self.error = getattr(exc, "message", None) or default
        _logger.info("Order store action failed | error=%s", self.error)

    def _replace(self, order_id: str, **changes: Any) -> None:
        self.orders = [dict(o, **changes) if o.get("id") == order_id else o for o in self.orders]
        if self.current_order and self.current_order.get("id") == order_id:
            self.current_order = dict(self.current_order, **changes)

    async def fetch_orders(self) -> List[Dict[str, Any]]:
        self.is_loading, self.error = True, None
        try:
            remote = await self.api.get_orders()
            self.orders = self.cache.list() + list(remote)
            return self.orders
        except ClientError as e:
            self._fail(e, "Failed to fetch orders")
            raise
        finally:
            self.is_loading = False

    async def fetch_order(self, order_id: str) -> Dict[str, Any]:
        self.is_loading, self.error = True, None
        try:
            if is_mock_order_id(order_id):
                order = self.cache.get(order_id)
                if order is None:
                    raise ApiResponseError(404, {"message": "Order not found"})
            else:
                order = await self.api.get_order(order_id)
            self.current_order = order
            return order
        except ClientError as e:
            self._fail(e, "Failed to fetch order details")
            raise
        finally:
            self.is_loading = False

    async def place_order(self, order_data: Dict[str, Any]) -> PlacementResult:
        self.is_loading, self.error = True, None
        try:
            result = await self.submitter.submit(order_data)
            self.orders = [result.order] + self.orders
            self.current_order = result.order
            return result
        except ClientError as e:
            self._fail(e, "Failed to place order")
            raise
        finally:
            self.is_loading = False

    async def update_status(self, order_id: str, status: str) -> Dict[str, Any]:
        self.is_loading, self.error = True, None
        try:
            response = await self.api.update_order_status(order_id, status)
            self._replace(order_id, status=status)
            return response
        except ClientError as e:
            self._fail(e, "Failed to update order status")
            raise
        finally:
            self.is_loading = False

    async def update_payment(self, order_id: str, payment_status: str) -> Dict[str, Any]:
        self.is_loading, self.error = True, None
        try:
            response = await self.api.update_payment_status(order_id, payment_status)
            self._replace(order_id, paymentStatus=payment_status)
            return response
        except ClientError as e:
            self._fail(e, "Failed to update payment status")
            raise
        finally:
            self.is_loading = False

    async def cancel_order(self, order_id: str) -> Dict[str, Any]:
        self.is_loading, self.error = True, None
        try:
            if is_mock_order_id(order_id):
                # Never reached the server, so dropping it locally is the cancellation
                self.cache.invalidate(order_id)
                response = {"success": True, "message": "Order cancelled successfully"}
            else:
                response = await self.api.cancel_order(order_id)
            self._replace(order_id, status="cancelled")
            return response
        except ClientError as e:
            self._fail(e, "Failed to cancel order")
            raise
        finally:
            self.is_loading = False
