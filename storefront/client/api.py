import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .errors import ApiResponseError, ServiceUnavailable
from .session import AuthSession

_logger = logging.getLogger(__name__)


class StorefrontAPI:
    """Thin aiohttp wrapper around the order and catalog routes.

    Every call is a single request bounded by one fixed timeout; there are
    no retries here, callers decide what a failure means.
    """

    def __init__(self, base_url: str, auth: AuthSession, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def open(self) -> "StorefrontAPI":
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        return self

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _request(self, method: str, path: str, json_data: Any = None, params: Optional[Dict[str, str]] = None) -> Any:
        if self._session is None:
            await self.open()
        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(
                method, url, json=json_data, params=params, headers=self.auth.auth_headers()
            ) as response:
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    payload = {"message": await response.text()}
                if response.status >= 400:
                    _logger.info("API error | %s %s status=%s", method, path, response.status)
                    raise ApiResponseError(response.status, payload if isinstance(payload, dict) else None)
                return payload
        except asyncio.TimeoutError as e:
            _logger.warning("API timeout | %s %s", method, path)
            raise ServiceUnavailable("The store took too long to respond.") from e
        except aiohttp.ClientError as e:
            _logger.warning("API unreachable | %s %s err=%s", method, path, e)
            raise ServiceUnavailable() from e

    async def create_order(self, order_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/orders", order_data)

    async def get_orders(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/orders")

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/orders/{order_id}")

    async def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        return await self._request("PUT", f"/orders/{order_id}/status", {"status": status})

    async def update_payment_status(self, order_id: str, payment_status: str) -> Dict[str, Any]:
        return await self._request("PUT", f"/orders/{order_id}/payment", {"paymentStatus": payment_status})

    async def cancel_order(self, order_id: str) -> Dict[str, Any]:
        return await self._request("PUT", f"/orders/{order_id}/cancel")

    async def get_products(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"category": category} if category else None
        data = await self._request("GET", "/products", params=params)
        return data.get("products", [])
