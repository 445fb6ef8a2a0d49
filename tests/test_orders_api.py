"""
Orders API end to end over ASGI.
"""
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from conftest import count_orders, stock_of
from cafeteria.db import order_ops


def cart(*lines, customer="Alice", total="2.50"):
    return {
        "customer_name": customer,
        "items": [{"product_id": p, "quantity": q, "unit_price": "2.50"} for p, q in lines],
        "total_amount": total,
    }


@pytest.mark.asyncio
async def test_checkout_then_kitchen_board(client, make_product):
    coffee = await make_product("Coffee", stock=5)

    r = await client.post("/api/orders", json=cart((coffee, 2), total="5.00"))
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "Order placed!"
    order_id = body["order_id"]
    assert await stock_of(coffee) == 3

    r = await client.get("/api/orders")
    assert r.status_code == 200
    board = r.json()
    assert [o["id"] for o in board] == [order_id]
    assert board[0]["status"] == "pending"
    assert board[0]["customer_name"] == "Alice"
    assert Decimal(board[0]["total_amount"]) == Decimal("5.00")
    assert board[0]["items"] == [{"name": "Coffee", "quantity": 2}]


@pytest.mark.asyncio
async def test_short_stock_is_409_and_nothing_changes(client, make_product):
    coffee = await make_product("Coffee", stock=1)
    bagel = await make_product("Bagel", stock=10)

    r = await client.post("/api/orders", json=cart((bagel, 1), (coffee, 2)))

    assert r.status_code == 409
    detail = r.json()["detail"]
    assert detail["error"] == "insufficient_stock"
    assert detail["product_id"] == coffee
    assert detail["requested"] == 2
    assert detail["available"] == 1
    assert await stock_of(coffee) == 1
    assert await stock_of(bagel) == 10
    assert await count_orders() == (0, 0)


@pytest.mark.asyncio
async def test_unknown_product_is_404(client, db_engine):
    r = await client.post("/api/orders", json=cart((999, 1)))
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "product_not_found"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"customer_name": "Alice", "items": [], "total_amount": "0.00"},
        {"customer_name": "Alice", "items": [{"product_id": 1, "quantity": 0, "unit_price": "1.00"}], "total_amount": "0.00"},
        {"customer_name": "", "items": [{"product_id": 1, "quantity": 1, "unit_price": "1.00"}], "total_amount": "1.00"},
        {"customer_name": "Alice", "items": [{"product_id": 1, "quantity": 1, "unit_price": "1.00"}], "total_amount": "-1"},
    ],
    ids=["empty-cart", "zero-quantity", "no-customer", "negative-total"],
)
async def test_malformed_carts_are_422(client, make_product, payload):
    await make_product("Coffee", stock=5)

    r = await client.post("/api/orders", json=payload)

    assert r.status_code == 422
    assert await count_orders() == (0, 0)
    assert await stock_of(1) == 5


@pytest.mark.asyncio
async def test_cart_builder_keys_are_accepted(client, make_product):
    coffee = await make_product("Coffee", stock=5)

    r = await client.post(
        "/api/orders",
        json={"customer_name": "Bob", "items": [{"id": coffee, "quantity": 1, "price": "2.50"}], "total_amount": "2.50"},
    )

    assert r.status_code == 201
    assert await stock_of(coffee) == 4


@pytest.mark.asyncio
async def test_status_update_and_history(client, make_product):
    coffee = await make_product("Coffee", stock=5)
    bagel = await make_product("Bagel", stock=5)
    r = await client.post("/api/orders", json=cart((coffee, 2), (bagel, 1), total="7.50"))
    order_id = r.json()["order_id"]

    r = await client.put(f"/api/orders/{order_id}", json={"status": "preparing"})
    assert r.status_code == 200
    assert r.json() == {"message": "Status updated", "id": order_id, "status": "preparing"}
    assert (await client.get("/api/orders/history")).json() == []

    r = await client.put(f"/api/orders/{order_id}", json={"status": "completed"})
    assert r.status_code == 200
    assert (await client.get("/api/orders")).json() == []

    history = (await client.get("/api/orders/history")).json()
    assert len(history) == 1
    assert history[0]["id"] == order_id
    assert history[0]["items_summary"] == "2x Coffee, 1x Bagel"
    assert Decimal(history[0]["total_amount"]) == Decimal("7.50")


@pytest.mark.asyncio
async def test_status_update_errors(client, make_product):
    coffee = await make_product("Coffee", stock=5)
    order_id = (await client.post("/api/orders", json=cart((coffee, 1)))).json()["order_id"]

    r = await client.put("/api/orders/4242", json={"status": "completed"})
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "order_not_found"

    r = await client.put(f"/api/orders/{order_id}", json={"status": "ready"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_storage_outage_is_503(client, make_product, monkeypatch):
    coffee = await make_product("Coffee", stock=5)

    async def broken_commit(*args, **kwargs):
        raise OperationalError("INSERT INTO orders", {}, Exception("database is locked"))

    monkeypatch.setattr(order_ops, "commit_order", broken_commit)

    r = await client.post("/api/orders", json=cart((coffee, 1)))

    assert r.status_code == 503
    assert r.headers["retry-after"] == "1"
    assert r.json()["detail"]["error"] == "storage_failure"
    assert await stock_of(coffee) == 5
