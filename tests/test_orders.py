from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select

from grocery.api.api_v1.endpoints.orders.core import generate_order_number
from grocery.models import B2BBusiness, Order, Product, StockFlow

from conftest import API, headers, future

B2C_ADDRESS = {"address_line1": "12 Lake View", "city": "Pune", "pincode": "411001"}


async def _b2c_cart(client, user, product, quantity=1):
    resp = await client.post(
        f"{API}/cart/add", json={"product_id": product.id, "quantity": quantity}, headers=headers(user))
    assert resp.status_code == 200


async def _b2b_cart(client, user, product, quantity=100):
    resp = await client.post(
        f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": quantity}, headers=headers(user))
    assert resp.status_code == 200


def _b2b_order(**kwargs):
    data = {"scheduled_date": future(), "payment_method": "credit", "po_number": "PO-77"}
    data.update(kwargs)
    return data


async def test_place_b2c_order(client, seed, session_factory, shopper, product):
    await _b2c_cart(client, shopper, product)
    resp = await client.post(
        f"{API}/orders/b2c/place",
        json={"delivery_address": B2C_ADDRESS, "delivery_slot": "30min"},
        headers=headers(shopper))
    assert resp.status_code == 201
    body = resp.json()
    assert body["order_number"].startswith("ORD" + datetime.utcnow().strftime("%Y%m%d"))
    assert body["order_number"].endswith("001")
    assert body["total_amount"] == 125.0
    assert body["payment_method"] == "cod"
    assert body["estimated_delivery"] is not None

    stored = await seed.get(Product, product.id)
    assert stored.b2c_reserved_stock == 299
    assert stored.total_stock == 999
    assert stored.b2b_reserved_stock == 700

    async with session_factory() as db:
        flows = (await db.execute(select(StockFlow))).scalars().all()
    assert [(f.channel, f.quantity_change, f.order_id) for f in flows] == [("b2c", -1, body["order_id"])]

    cart = (await client.get(f"{API}/cart/", headers=headers(shopper))).json()
    assert cart["items"] == []


async def test_order_numbers_increase_per_day(client, shopper, product):
    numbers = []
    for _ in range(2):
        await _b2c_cart(client, shopper, product)
        resp = await client.post(
            f"{API}/orders/b2c/place", json={"delivery_address": B2C_ADDRESS}, headers=headers(shopper))
        numbers.append(resp.json()["order_number"])
    assert numbers[0][-3:] == "001"
    assert numbers[1][-3:] == "002"


async def test_order_sequence_past_three_digits(seed, session_factory, shopper):
    day = datetime.utcnow().strftime("%Y%m%d")
    for seq in ("999", "1000"):
        await seed.add(Order(
            order_number=f"ORD{day}{seq}",
            user_id=shopper.id,
            order_type="b2c",
            total_amount=Decimal("100")))

    async with session_factory() as db:
        assert await generate_order_number(db, "b2c") == f"ORD{day}1001"
        assert await generate_order_number(db, "b2b") == f"B2B{day}001"


async def test_b2c_minimum_order_value(client, seed, shopper):
    cheap = await seed.product(b2c_mrp=Decimal("60"), b2c_selling_price=Decimal("50"), b2b_base_price=Decimal("40"))
    await _b2c_cart(client, shopper, cheap)
    resp = await client.post(
        f"{API}/orders/b2c/place", json={"delivery_address": B2C_ADDRESS}, headers=headers(shopper))
    assert resp.status_code == 400

    stored = await seed.get(Product, cheap.id)
    assert stored.b2c_reserved_stock == 300


async def test_empty_cart_cannot_be_placed(client, shopper):
    resp = await client.post(
        f"{API}/orders/b2c/place", json={"delivery_address": B2C_ADDRESS}, headers=headers(shopper))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cart is empty"


async def test_place_b2b_credit_order(client, seed, buyer, product):
    user, business = buyer
    await _b2b_cart(client, user, product)
    scheduled = datetime.utcnow() + timedelta(days=2)
    resp = await client.post(
        f"{API}/orders/b2b/place",
        json=_b2b_order(scheduled_date=scheduled.isoformat(), scheduled_time_slot="06:00-09:00"),
        headers=headers(user))
    assert resp.status_code == 201
    body = resp.json()
    assert body["order_number"].startswith("B2B")
    assert body["total_amount"] == 9260.0
    assert datetime.fromisoformat(body["credit_due_date"]) == scheduled + timedelta(days=15)
    assert body["scheduled_deliveries"][0]["time_slot"] == "06:00-09:00"

    stored = await seed.get(B2BBusiness, business.id)
    assert stored.available_credit == Decimal("90740.00")
    assert stored.used_credit == Decimal("9260.00")

    stored = await seed.get(Product, product.id)
    assert stored.b2b_reserved_stock == 600
    assert stored.total_stock == 900

    detail = (await client.get(f"{API}/orders/{body['order_id']}", headers=headers(user))).json()
    assert detail["gst_amount"] == 1260.0
    assert detail["delivery_charges"] == 1000.0
    assert detail["credit_used"] == 9260.0
    assert detail["items"][0]["unit_price"] == 70.0
    assert detail["items"][0]["applied_tier"] == "Tier: 50-∞ units"


async def test_b2b_cod_order_leaves_credit_alone(client, seed, buyer, product):
    user, business = buyer
    await _b2b_cart(client, user, product)
    resp = await client.post(
        f"{API}/orders/b2b/place", json=_b2b_order(payment_method="cod"), headers=headers(user))
    assert resp.status_code == 201
    assert resp.json()["credit_due_date"] is None

    stored = await seed.get(B2BBusiness, business.id)
    assert stored.available_credit == Decimal("100000.00")


async def test_b2b_minimum_order_value(client, seed, buyer, product):
    user, _ = buyer
    await _b2b_cart(client, user, product, quantity=10)
    resp = await client.post(f"{API}/orders/b2b/place", json=_b2b_order(), headers=headers(user))
    assert resp.status_code == 400


async def test_b2b_schedule_lead_time(client, seed, buyer, product):
    user, business = buyer
    await _b2b_cart(client, user, product)
    resp = await client.post(
        f"{API}/orders/b2b/place", json=_b2b_order(scheduled_date=future(hours=2)), headers=headers(user))
    assert resp.status_code == 400

    stored = await seed.get(Product, product.id)
    assert stored.b2b_reserved_stock == 700
    stored = await seed.get(B2BBusiness, business.id)
    assert stored.available_credit == Decimal("100000.00")
    cart = (await client.get(f"{API}/cart/", headers=headers(user))).json()
    assert len(cart["items"]) == 1


async def test_b2b_insufficient_credit(client, seed, product):
    user, business = await seed.b2b_user(credit_limit=Decimal("9000"))
    await _b2b_cart(client, user, product)
    resp = await client.post(f"{API}/orders/b2b/place", json=_b2b_order(), headers=headers(user))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient credit limit"

    stored = await seed.get(Product, product.id)
    assert stored.b2b_reserved_stock == 700


async def test_b2b_stock_shortfall_changes_nothing(client, seed, session_factory, buyer, product):
    user, business = buyer
    await _b2b_cart(client, user, product)
    async with session_factory() as db:
        row = await db.get(Product, product.id)
        row.b2b_reserved_stock = 50
        await db.commit()

    resp = await client.post(f"{API}/orders/b2b/place", json=_b2b_order(), headers=headers(user))
    assert resp.status_code == 400

    stored = await seed.get(B2BBusiness, business.id)
    assert stored.available_credit == Decimal("100000.00")
    async with session_factory() as db:
        assert (await db.execute(select(StockFlow))).scalars().all() == []


async def test_b2b_split_across_locations(client, seed, buyer, product):
    user, business = buyer
    locations = [await seed.address(business) for _ in range(3)]
    await _b2b_cart(client, user, product)

    # 7000 over three locations is below 2500 each
    resp = await client.post(
        f"{API}/orders/b2b/place",
        json=_b2b_order(delivery_locations=[{"location_id": a.id} for a in locations]),
        headers=headers(user))
    assert resp.status_code == 400

    resp = await client.post(
        f"{API}/orders/b2b/place",
        json=_b2b_order(delivery_locations=[{"location_id": a.id} for a in locations[:2]]),
        headers=headers(user))
    assert resp.status_code == 201
    assert [d["location"] for d in resp.json()["scheduled_deliveries"]] == [a.label for a in locations[:2]]


async def test_b2b_unknown_location(client, seed, buyer, product):
    user, _ = buyer
    _, other_business = await seed.b2b_user()
    foreign = await seed.address(other_business)
    await _b2b_cart(client, user, product)
    resp = await client.post(
        f"{API}/orders/b2b/place",
        json=_b2b_order(delivery_locations=[{"location_id": foreign.id}]),
        headers=headers(user))
    assert resp.status_code == 400


async def test_list_own_orders(client, seed, shopper, product):
    for _ in range(3):
        await _b2c_cart(client, shopper, product)
        await client.post(f"{API}/orders/b2c/place", json={"delivery_address": B2C_ADDRESS}, headers=headers(shopper))

    other = await seed.user("b2c")
    await _b2c_cart(client, other, product)
    await client.post(f"{API}/orders/b2c/place", json={"delivery_address": B2C_ADDRESS}, headers=headers(other))

    resp = await client.get(f"{API}/orders/", params={"page": 1, "limit": 2}, headers=headers(shopper))
    body = resp.json()
    assert body["pagination"]["total"] == 3
    assert len(body["orders"]) == 2
    assert body["orders"][0]["order_number"] > body["orders"][1]["order_number"]
    assert body["orders"][0]["delivery_address"] == "12 Lake View"


async def test_order_detail_is_private(client, seed, shopper, product):
    await _b2c_cart(client, shopper, product)
    order = (await client.post(
        f"{API}/orders/b2c/place", json={"delivery_address": B2C_ADDRESS}, headers=headers(shopper))).json()
    other = await seed.user("b2c")
    resp = await client.get(f"{API}/orders/{order['order_id']}", headers=headers(other))
    assert resp.status_code == 403
    assert (await client.get(f"{API}/orders/9999", headers=headers(other))).status_code == 404


async def test_cancel_restores_stock_and_credit(client, seed, session_factory, buyer, product):
    user, business = buyer
    await _b2b_cart(client, user, product)
    order = (await client.post(f"{API}/orders/b2b/place", json=_b2b_order(), headers=headers(user))).json()

    resp = await client.post(
        f"{API}/orders/{order['order_id']}/cancel", json={"reason": "Event postponed"}, headers=headers(user))
    assert resp.status_code == 200

    stored = await seed.get(Product, product.id)
    assert stored.b2b_reserved_stock == 700
    assert stored.total_stock == 1000
    stored = await seed.get(B2BBusiness, business.id)
    assert stored.available_credit == Decimal("100000.00")
    assert stored.used_credit == Decimal("0.00")

    detail = (await client.get(f"{API}/orders/{order['order_id']}", headers=headers(user))).json()
    assert detail["order_status"] == "cancelled"
    assert detail["cancellation_reason"] == "Event postponed"

    async with session_factory() as db:
        flows = (await db.execute(select(StockFlow).order_by(StockFlow.id))).scalars().all()
    assert [f.flow_type for f in flows] == ["out", "in"]

    resp = await client.post(f"{API}/orders/{order['order_id']}/cancel", headers=headers(user))
    assert resp.status_code == 400


async def test_cancel_someone_elses_order(client, seed, shopper, product):
    await _b2c_cart(client, shopper, product)
    order = (await client.post(
        f"{API}/orders/b2c/place", json={"delivery_address": B2C_ADDRESS}, headers=headers(shopper))).json()
    other = await seed.user("b2c")
    resp = await client.post(f"{API}/orders/{order['order_id']}/cancel", headers=headers(other))
    assert resp.status_code == 403


async def test_reorder_reprices_at_current_tiers(client, seed, session_factory, buyer, product):
    user, _ = buyer
    await _b2b_cart(client, user, product)
    order = (await client.post(f"{API}/orders/b2b/place", json=_b2b_order(), headers=headers(user))).json()

    async with session_factory() as db:
        row = await db.get(Product, product.id)
        row.b2b_bulk_tiers = [
            {"min_qty": 10, "max_qty": 49, "price_per_unit": 75},
            {"min_qty": 50, "max_qty": None, "price_per_unit": 65},
        ]
        await db.commit()

    resp = await client.post(f"{API}/orders/b2b/reorder/{order['order_id']}", headers=headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["items_added"] == 1
    assert body["items_unavailable"] == 0
    assert body["price_changes"] == [{"product": product.name, "old_price": 70.0, "new_price": 65.0}]

    cart = (await client.get(f"{API}/cart/", headers=headers(user))).json()
    assert cart["items"][0]["quantity"] == 100
    assert cart["items"][0]["unit_price"] == 65.0


async def test_reorder_skips_unavailable_lines(client, seed, session_factory, buyer, product):
    user, _ = buyer
    await _b2b_cart(client, user, product)
    order = (await client.post(f"{API}/orders/b2b/place", json=_b2b_order(), headers=headers(user))).json()

    async with session_factory() as db:
        row = await db.get(Product, product.id)
        row.status = "inactive"
        await db.commit()

    body = (await client.post(f"{API}/orders/b2b/reorder/{order['order_id']}", headers=headers(user))).json()
    assert body["items_added"] == 0
    assert body["unavailable_items"] == [{"product": product.name, "reason": "Product no longer available"}]
