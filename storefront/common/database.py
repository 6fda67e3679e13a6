from typing import Optional, Dict, Any, List

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from .config import settings
from .db import Base
from .errors import SchemaValidation
from ..catalog.model import Product
from ..orders.model import Order


# Async SQLAlchemy engine and session factory
engine = create_async_engine(settings.DB_URL, future=True, echo=False)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def reset_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


# Products

async def fetch_product(product_id: str) -> Optional[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        prod = await session.get(Product, product_id)
        if not prod:
            return None
        return prod.to_dict()


async def fetch_product_by_name(name: str) -> Optional[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        stmt = sa.select(Product).where(Product.name == name).order_by(Product.created_at).limit(1)
        res = await session.execute(stmt)
        prod = res.scalars().first()
        return prod.to_dict() if prod else None


async def fetch_products(category: Optional[str] = None) -> List[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        stmt = sa.select(Product).order_by(Product.created_at)
        if category:
            stmt = stmt.where(Product.category == category)
        res = await session.execute(stmt)
        return [prod.to_dict() for prod in res.scalars().all()]


async def insert_products(products: List[Dict[str, Any]]) -> int:
    async with AsyncSessionLocal() as session:
        session.add_all([Product(**p) for p in products])
        await session.commit()
        return len(products)


async def count_products() -> int:
    async with AsyncSessionLocal() as session:
        res = await session.execute(sa.select(sa.func.count(Product.id)))
        return int(res.scalar() or 0)


# Orders

async def insert_order(order: Order) -> Dict[str, Any]:
    order.validate()
    async with AsyncSessionLocal() as session:
        session.add(order)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise SchemaValidation(f"Order validation failed: {e.orig}") from e
        await session.refresh(order)
        return order.to_dict()


async def fetch_order(order_id: str) -> Optional[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        order = await session.get(Order, order_id)
        return order.to_dict() if order else None


async def fetch_orders(user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        stmt = sa.select(Order).order_by(Order.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(Order.user == user_id)
        res = await session.execute(stmt)
        return [order.to_dict() for order in res.scalars().all()]


async def count_orders() -> int:
    async with AsyncSessionLocal() as session:
        res = await session.execute(sa.select(sa.func.count(Order.id)))
        return int(res.scalar() or 0)


async def update_order_fields(order_id: str, **values: Any) -> Optional[Dict[str, Any]]:
    async with AsyncSessionLocal() as session:
        order = await session.get(Order, order_id)
        if order is None:
            return None
        for key, value in values.items():
            setattr(order, key, value)
        await session.commit()
        await session.refresh(order)
        return order.to_dict()
