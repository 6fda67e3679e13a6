import pytest

from conftest import USER_ID, auth_header, order_payload
from storefront.common.config import settings
from storefront.common.database import count_orders

MISSING_ID = "64f0c2a1b3d4e5f6a7b8ab12"


async def test_create_order_with_existing_product(client, products):
    cable = products["USB-C Cable"]
    payload = order_payload({"product": cable["id"], "quantity": 2, "price": 10, "name": "Cable"})

    resp = await client.post("/orders", json=payload, headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 201
    assert body["success"] is True
    assert body["message"] == "Order created successfully"
    order = body["order"]
    assert len(order["items"]) == 1
    assert order["items"][0]["quantity"] == 2
    assert order["items"][0]["product"] == cable["id"]
    assert order["user"] == USER_ID
    assert order["status"] == "pending"
    assert order["paymentStatus"] == "pending"
    assert order["id"] and order["createdAt"] and order["updatedAt"]


async def test_item_count_matches_input(client, products):
    items = [{"product": p["id"], "quantity": 1} for p in products.values()]
    resp = await client.post("/orders", json=order_payload(*items), headers=auth_header())
    assert resp.status_code == 201
    assert len((await resp.get_json())["order"]["items"]) == len(items)


async def test_missing_product_is_rejected(client, products):
    payload = order_payload({"product": MISSING_ID, "quantity": 2, "price": 10, "name": "Cable"})

    resp = await client.post("/orders", json=payload, headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert body["success"] is False
    assert MISSING_ID in body["error"]
    assert "not found" in body["error"]
    assert await count_orders() == 0


@pytest.mark.parametrize("items", [[], None, "nope"])
async def test_empty_order(client, products, items):
    payload = order_payload()
    payload["items"] = items

    resp = await client.post("/orders", json=payload, headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert body["message"] == "Order must contain at least one item"
    assert await count_orders() == 0


async def test_one_bad_item_persists_nothing(client, products):
    good = {"product": products["USB-C Cable"]["id"], "quantity": 1}
    bad = {"product": MISSING_ID, "quantity": 1}

    resp = await client.post("/orders", json=order_payload(good, bad), headers=auth_header())

    assert resp.status_code == 400
    assert await count_orders() == 0


async def test_name_only_item_resolves_to_catalog_entry(client, products):
    fan = products["Desk Fan 30cm"]
    resp = await client.post("/orders", json=order_payload({"name": "Desk Fan 30cm", "quantity": 1}), headers=auth_header())
    item = (await resp.get_json())["order"]["items"][0]

    assert resp.status_code == 201
    assert item["product"] == fan["id"]
    assert item["price"] == fan["price"]
    assert item["image"] == fan["image"]


@pytest.mark.parametrize("shape", ["id", "_id", "productId"])
async def test_alternate_reference_shapes(client, products, shape):
    pid = products["Power Bank 20000mAh"]["id"]
    item = {"productId": pid} if shape == "productId" else {"product": {shape: pid}}
    item["quantity"] = 3

    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())

    assert resp.status_code == 201
    assert (await resp.get_json())["order"]["items"][0]["product"] == pid


async def test_request_values_win_over_catalog(client, products):
    cable = products["USB-C Cable"]
    item = {"product": cable["id"], "quantity": 1, "name": "Braided cable", "price": 12.5, "image": "mine.png"}

    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())
    stored = (await resp.get_json())["order"]["items"][0]

    assert stored["name"] == "Braided cable"
    assert stored["price"] == 12.5
    assert stored["image"] == "mine.png"


async def test_item_without_any_reference(client, products):
    resp = await client.post("/orders", json=order_payload({"quantity": 1}), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert body["message"] == "Product ID not found for item: Unknown item"


async def test_unknown_name_is_reported_by_name(client, products):
    resp = await client.post("/orders", json=order_payload({"name": "Flux Capacitor", "quantity": 1}), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert body["message"] == "Product ID not found for item: Flux Capacitor"


async def test_malformed_reference(client, products):
    resp = await client.post("/orders", json=order_payload({"product": "abc123", "quantity": 1}), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert body["message"] == "Invalid product ID format"
    assert "abc123" in body["error"]


async def test_schema_violation_is_a_400(client, products):
    item = {"product": products["USB-C Cable"]["id"], "quantity": 1}
    resp = await client.post("/orders", json=order_payload(item, paymentMethod="bitcoin"), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert body["message"] == "Invalid order data"
    assert "paymentMethod" in body["error"]
    assert await count_orders() == 0


async def test_zero_quantity_is_a_schema_violation(client, products):
    item = {"product": products["USB-C Cable"]["id"], "quantity": 0}
    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())

    assert resp.status_code == 400
    assert "quantity" in (await resp.get_json())["error"]


async def test_numeric_strings_are_accepted(client, products):
    item = {"product": products["USB-C Cable"]["id"], "quantity": "2"}
    resp = await client.post("/orders", json=order_payload(item, totalPrice="20.5"), headers=auth_header())
    order = (await resp.get_json())["order"]

    assert resp.status_code == 201
    assert order["items"][0]["quantity"] == 2
    assert order["totalPrice"] == 20.5


async def test_requires_bearer_token(client, products):
    resp = await client.post("/orders", json=order_payload({"name": "USB-C Cable", "quantity": 1}))
    body = await resp.get_json()

    assert resp.status_code == 401
    assert body["success"] is False
    assert body["message"] == "Not authorized to access this route"


async def test_rejects_forged_token(client, products):
    headers = {"Authorization": "Bearer not-a-real-token"}
    resp = await client.post("/orders", json=order_payload({"name": "USB-C Cable", "quantity": 1}), headers=headers)
    assert resp.status_code == 401


async def test_strict_policy_requires_literal_ids(client, products, monkeypatch):
    monkeypatch.setattr(settings, "ORDER_ITEM_POLICY", "strict")
    pid = products["USB-C Cable"]["id"]

    by_name = await client.post("/orders", json=order_payload({"name": "USB-C Cable", "quantity": 1}), headers=auth_header())
    by_object = await client.post("/orders", json=order_payload({"product": {"id": pid}, "quantity": 1}), headers=auth_header())
    literal = await client.post("/orders", json=order_payload({"product": pid, "quantity": 1}), headers=auth_header())

    assert by_name.status_code == 400
    assert (await by_name.get_json())["message"] == "Each order item must have a product ID"
    assert by_object.status_code == 400
    assert literal.status_code == 201


async def test_name_lookup_failure_is_not_fatal(client, products, monkeypatch):
    async def broken_lookup(name):
        raise RuntimeError("catalog down")

    monkeypatch.setattr("storefront.orders.service.find_product_by_name", broken_lookup)
    resp = await client.post("/orders", json=order_payload({"name": "USB-C Cable", "quantity": 1}), headers=auth_header())

    assert resp.status_code == 400
    assert (await resp.get_json())["message"] == "Product ID not found for item: USB-C Cable"


async def test_unexpected_failure_is_a_generic_500(client, products, monkeypatch):
    async def exploding_insert(order):
        raise RuntimeError("disk on fire at /var/lib/db")

    monkeypatch.setattr("storefront.orders.service.insert_order", exploding_insert)
    item = {"product": products["USB-C Cable"]["id"], "quantity": 1}
    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 500
    assert body == {"success": False, "message": "Server error", "error": "Internal server error"}


@pytest.mark.parametrize("quantity", [1.5, "2.5", "nan", "inf"])
async def test_quantity_must_be_a_whole_number(client, products, quantity):
    item = {"product": products["USB-C Cable"]["id"], "quantity": quantity}
    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert "items.0.quantity: Cast to Integer failed" in body["error"]
    assert await count_orders() == 0


async def test_whole_float_quantity_is_accepted(client, products):
    item = {"product": products["USB-C Cable"]["id"], "quantity": 2.0}
    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())
    assert resp.status_code == 201
    assert (await resp.get_json())["order"]["items"][0]["quantity"] == 2


@pytest.mark.parametrize("total", ["nan", "inf", "-inf"])
async def test_non_finite_total_is_rejected(client, products, total):
    item = {"product": products["USB-C Cable"]["id"], "quantity": 1}
    resp = await client.post("/orders", json=order_payload(item, totalPrice=total), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert "totalPrice: Cast to Number failed" in body["error"]
    assert await count_orders() == 0


async def test_non_finite_item_price_is_rejected(client, products):
    item = {"product": products["USB-C Cable"]["id"], "quantity": 1, "price": "nan"}
    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())

    assert resp.status_code == 400
    assert "items.0.price: Cast to Number failed" in (await resp.get_json())["error"]


@pytest.mark.parametrize(
    "field, value",
    [
        ("shippingAddress", {"street": "12 Road"}),
        ("customerName", ["A", "B"]),
        ("customerEmail", {"address": "a@b.com"}),
        ("customerPhone", ["000"]),
        ("notes", {"gift": True}),
    ],
)
async def test_structured_text_fields_are_a_400(client, products, field, value):
    item = {"product": products["USB-C Cable"]["id"], "quantity": 1}
    resp = await client.post("/orders", json=order_payload(item, **{field: value}), headers=auth_header())
    body = await resp.get_json()

    assert resp.status_code == 400
    assert body["message"] == "Invalid order data"
    assert f"{field}: Cast to String failed" in body["error"]
    assert await count_orders() == 0


async def test_zero_price_falls_back_to_catalog_price(client, products):
    cable = products["USB-C Cable"]
    item = {"product": cable["id"], "quantity": 1, "price": 0}
    resp = await client.post("/orders", json=order_payload(item), headers=auth_header())
    assert (await resp.get_json())["order"]["items"][0]["price"] == cable["price"]
