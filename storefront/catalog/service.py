from typing import Any, Dict, List, Optional
import json
import logging

from redis.exceptions import RedisError

from ..common.config import settings
from ..common.database import fetch_product, fetch_product_by_name, fetch_products
from ..common.redis_client import get_redis

_logger = logging.getLogger(__name__)


def redis_product_key(product_id: str) -> str:
    return f"product:{product_id}:data"


async def _cached_product(product_id: str) -> Optional[Dict[str, Any]]:
    try:
        r = await get_redis()
        raw = await r.get(redis_product_key(product_id))
    except (RedisError, OSError) as e:
        _logger.warning("Catalog cache unavailable, reading DB | product_id=%s err=%s", product_id, e)
        return None
    if not raw:
        return None
    try:
        obj = json.loads(raw)
    except ValueError:
        return None
    _logger.debug("Cache hit: product | product_id=%s", product_id)
    return obj


async def _cache_product(product: Dict[str, Any]) -> None:
    try:
        r = await get_redis()
        await r.set(redis_product_key(product["id"]), json.dumps(product), ex=settings.CATALOG_CACHE_TTL)
    except (RedisError, OSError) as e:
        _logger.warning("Could not cache product | product_id=%s err=%s", product["id"], e)


async def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    if settings.CATALOG_CACHE_ENABLED:
        cached = await _cached_product(product_id)
        if cached is not None:
            return cached
    prod = await fetch_product(product_id)
    _logger.info("DB get product | product_id=%s found=%s", product_id, prod is not None)
    if prod is not None and settings.CATALOG_CACHE_ENABLED:
        await _cache_product(prod)
    return prod


async def find_product_by_name(name: str) -> Optional[Dict[str, Any]]:
    prod = await fetch_product_by_name(name)
    _logger.info("DB find product by name | name=%r found=%s", name, prod is not None)
    return prod


async def get_products(category: Optional[str] = None) -> List[Dict[str, Any]]:
    return await fetch_products(category)
