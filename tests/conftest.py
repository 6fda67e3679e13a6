import os
import socket
import tempfile

# Settings are read at import time, so the environment has to be ready first
_TMP_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DB_URL"] = "sqlite+aiosqlite:///" + os.path.join(_TMP_DIR, "storefront.db")
os.environ["CATALOG_CACHE_ENABLED"] = "false"
os.environ["SEED_SAMPLE_PRODUCTS"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ORDER_ITEM_POLICY"] = "lenient"

import pytest
from aiohttp.test_utils import TestServer

from storefront.app import create_app
from storefront.common.auth import issue_token
from storefront.common.database import engine, fetch_products, insert_products, reset_db
from storefront.common.redis_client import set_redis

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
ADMIN_ID = "admin-1"

CATALOG = [
    {"name": "USB-C Cable", "category": "accessories", "price": 10.0, "stock": 50, "image": "cable.png"},
    {"name": "Desk Fan 30cm", "category": "fans", "price": 29.99, "stock": 5, "image": "fan.png"},
    {"name": "Power Bank 20000mAh", "category": "powerbanks", "price": 39.99, "stock": 8, "image": "bank.png"},
]


def auth_header(user_id: str = USER_ID, role: str = "user") -> dict:
    return {"Authorization": f"Bearer {issue_token(user_id, role)}"}


def order_payload(*items, **overrides) -> dict:
    payload = {
        "items": list(items),
        "totalPrice": 20,
        "shippingAddress": "12 Road",
        "customerName": "A B",
        "customerEmail": "a@b.com",
        "customerPhone": "000",
        "paymentMethod": "cash_on_delivery",
    }
    payload.update(overrides)
    return payload


def free_port() -> int:
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
async def db():
    await reset_db()
    yield
    set_redis(None)
    await engine.dispose()


@pytest.fixture
async def products(db):
    await insert_products(CATALOG)
    return {p["name"]: p for p in await fetch_products()}


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app, db):
    return app.test_client()


@pytest.fixture
async def serve():
    """Start throwaway aiohttp apps standing in for the order API."""
    servers = []

    async def _serve(web_app) -> str:
        server = TestServer(web_app, host="127.0.0.1")
        await server.start_server()
        servers.append(server)
        return f"http://{server.host}:{server.port}"

    yield _serve
    for server in servers:
        await server.close()
