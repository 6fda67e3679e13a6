from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from ..common.config import Settings, settings as default_settings
from .api import StorefrontAPI
from .cart import Cart
from .checkout import Checkout, OrderSubmitter
from .local_cache import LocalOrderCache
from .session import AuthSession
from .store import OrderStore


@dataclass
class ClientContext:
    """Everything one storefront client session needs, wired together.

    Pass this around instead of reaching for module globals. Build it with
    ``ClientContext.open()`` so the HTTP session and the local order cache
    are set up and torn down together.
    """

    auth: AuthSession
    cart: Cart
    cache: LocalOrderCache
    api: StorefrontAPI
    submitter: OrderSubmitter
    orders: OrderStore
    checkout: Checkout

    @classmethod
    def build(cls, config: Settings = default_settings, auth: Optional[AuthSession] = None) -> "ClientContext":
        auth = auth or AuthSession()
        cart = Cart()
        cache = LocalOrderCache(config.LOCAL_ORDER_CACHE_PATH)
        api = StorefrontAPI(config.API_BASE_URL, auth, timeout=config.CLIENT_REQUEST_TIMEOUT)
        submitter = OrderSubmitter(api, auth, cache, policy=config.CHECKOUT_SUBMISSION_POLICY)
        orders = OrderStore(api, submitter, cache)
        checkout = Checkout(cart, orders, tax_rate=config.TAX_RATE)
        return cls(auth=auth, cart=cart, cache=cache, api=api, submitter=submitter, orders=orders, checkout=checkout)

    @classmethod
    @asynccontextmanager
    async def open(cls, config: Settings = default_settings, auth: Optional[AuthSession] = None) -> AsyncIterator["ClientContext"]:
        ctx = cls.build(config, auth)
        ctx.cache.load()
        await ctx.api.open()
        try:
            yield ctx
        finally:
            await ctx.api.close()
