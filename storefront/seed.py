import asyncio
import logging

from .common.database import count_products, init_db, insert_products

_logger = logging.getLogger(__name__)


SAMPLE_PRODUCTS = [
    {"name": "Galaxy A54", "category": "phones", "stock": 30, "price": 349.00, "image": "https://picsum.photos/seed/phone/400/300"},
    {"name": "ThinkPad E14", "category": "laptops", "stock": 12, "price": 899.00, "image": "https://picsum.photos/seed/laptop/400/300"},
    {"name": "Desk Fan 30cm", "category": "fans", "stock": 55, "price": 29.99, "image": "https://picsum.photos/seed/fan/400/300"},
    {"name": "Noise-cancelling Headphones", "category": "headphones", "stock": 35, "price": 199.99, "image": "https://picsum.photos/seed/headphones/400/300"},
    {"name": "Smartphone Charger 65W", "category": "chargers", "stock": 200, "price": 19.99, "image": "https://picsum.photos/seed/charger/400/300"},
    {"name": "Power Bank 20000mAh", "category": "powerbanks", "stock": 80, "price": 39.99, "image": "https://picsum.photos/seed/powerbank/400/300"},
    {"name": "USB-C Cable", "category": "accessories", "stock": 150, "price": 9.99, "image": "https://picsum.photos/seed/cable/400/300"},
]


async def seed_products() -> int:
    """Insert the sample catalog when no products exist yet. Returns the number added."""
    if await count_products() > 0:
        return 0
    added = await insert_products(SAMPLE_PRODUCTS)
    _logger.info("Seed complete | added=%s", added)
    return added


async def amain():
    logging.basicConfig(level=logging.INFO)
    await init_db()
    await seed_products()


def main() -> None:
    asyncio.run(amain())


if __name__ == "__main__":
    main()
