from grocery.models import Cart

from conftest import API, headers


async def test_b2c_add_and_merge(client, shopper, product):
    h = headers(shopper)
    resp = await client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 2}, headers=h)
    assert resp.status_code == 200
    line = resp.json()
    assert line["unit_price"] == 100.0
    assert line["item_total"] == 200.0
    assert line["applied_tier"] is None

    resp = await client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 3}, headers=h)
    assert resp.json()["quantity"] == 5
    assert resp.json()["cart_item_id"] == line["cart_item_id"]


async def test_b2c_add_quantity_bounds(client, shopper, product):
    h = headers(shopper)
    for quantity in (0, 11):
        resp = await client.post(
            f"{API}/cart/add", json={"product_id": product.id, "quantity": quantity}, headers=h)
        assert resp.status_code == 400


async def test_b2c_line_capped_by_product_maximum(client, shopper, product):
    h = headers(shopper)
    await client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 8}, headers=h)
    resp = await client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 3}, headers=h)
    assert resp.status_code == 400


async def test_b2c_add_checks_retail_pool(client, seed, shopper):
    product = await seed.product(b2c_reserved_stock=1)
    resp = await client.post(
        f"{API}/cart/add", json={"product_id": product.id, "quantity": 2}, headers=headers(shopper))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient stock available"


async def test_add_unknown_or_inactive_product(client, seed, shopper):
    inactive = await seed.product(status="inactive")
    h = headers(shopper)
    for product_id in (inactive.id, 9999):
        resp = await client.post(f"{API}/cart/add", json={"product_id": product_id, "quantity": 1}, headers=h)
        assert resp.status_code == 404


async def test_channels_are_separated(client, shopper, buyer, product):
    user, _ = buyer
    resp = await client.post(
        f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 10}, headers=headers(shopper))
    assert resp.status_code == 403

    resp = await client.post(
        f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=headers(user))
    assert resp.status_code == 403


async def test_b2b_add_prices_by_tier(client, buyer, product):
    user, _ = buyer
    resp = await client.post(
        f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 20}, headers=headers(user))
    assert resp.status_code == 200
    line = resp.json()
    assert line["unit_price"] == 75.0
    assert line["applied_tier"] == "Tier: 10-49 units"
    assert line["item_total"] == 1500.0
    assert line["next_tier_info"] == {"quantity_needed": 30, "price_per_unit": 70.0, "savings": 0.0}


async def test_b2b_add_below_minimum(client, buyer, product):
    user, _ = buyer
    resp = await client.post(
        f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 5}, headers=headers(user))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Minimum order quantity is 10 units"


async def test_b2b_add_respects_maximum(client, seed, buyer):
    user, _ = buyer
    product = await seed.product(b2b_max_order_qty=30)
    h = headers(user)
    await client.post(f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 20}, headers=h)
    resp = await client.post(f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 20}, headers=h)
    assert resp.status_code == 400


async def test_b2b_update_reprices_line(client, buyer, product):
    user, _ = buyer
    h = headers(user)
    line = (await client.post(
        f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 10}, headers=h)).json()

    resp = await client.put(f"{API}/cart/items/{line['cart_item_id']}", json={"quantity": 49}, headers=h)
    assert resp.status_code == 200
    assert resp.json()["next_tier_info"]["quantity_needed"] == 1
    # 49 x 75 = 3675 against 50 x 70 = 3500
    assert resp.json()["next_tier_info"]["savings"] == 175.0

    resp = await client.put(f"{API}/cart/items/{line['cart_item_id']}", json={"quantity": 60}, headers=h)
    assert resp.json()["unit_price"] == 70.0
    assert resp.json()["applied_tier"] == "Tier: 50-∞ units"
    assert resp.json()["next_tier_info"] is None


async def test_b2c_update_bounds(client, shopper, product):
    h = headers(shopper)
    line = (await client.post(
        f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=h)).json()
    resp = await client.put(f"{API}/cart/items/{line['cart_item_id']}", json={"quantity": 11}, headers=h)
    assert resp.status_code == 400


async def test_b2c_cart_summary(client, shopper, product):
    h = headers(shopper)
    await client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=h)
    cart = (await client.get(f"{API}/cart/", headers=h)).json()
    assert cart["summary"] == {
        "total_items": 1,
        "subtotal": 100.0,
        "delivery_charges": 25.0,
        "total_amount": 125.0,
        "gst_18": None,
    }
    assert cart["credit_info"] is None

    await client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=h)
    cart = (await client.get(f"{API}/cart/", headers=h)).json()
    assert cart["summary"]["delivery_charges"] == 0.0


async def test_b2b_cart_summary_with_gst_and_credit(client, buyer, product):
    user, _ = buyer
    h = headers(user)
    await client.post(f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 100}, headers=h)
    cart = (await client.get(f"{API}/cart/", headers=h)).json()
    assert cart["summary"]["subtotal"] == 7000.0
    assert cart["summary"]["gst_18"] == 1260.0
    assert cart["summary"]["delivery_charges"] == 1000.0
    assert cart["summary"]["total_amount"] == 9260.0
    assert cart["credit_info"] == {"credit_available": 100000.0, "credit_after_order": 90740.0}


async def test_empty_cart(client, shopper):
    cart = (await client.get(f"{API}/cart/", headers=headers(shopper))).json()
    assert cart["items"] == []
    assert cart["summary"]["total_amount"] == 0


async def test_expired_cart_is_emptied(client, seed, shopper, product):
    h = headers(shopper)
    await client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=h)
    await seed.expire_cart(shopper)

    cart = (await client.get(f"{API}/cart/", headers=h)).json()
    assert cart["items"] == []

    stored = await seed.get(Cart, cart["cart_id"])
    assert not stored.is_expired()


async def test_remove_and_clear(client, seed, shopper, product):
    other = await seed.product()
    h = headers(shopper)
    line = (await client.post(
        f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=h)).json()
    await client.post(f"{API}/cart/add", json={"product_id": other.id, "quantity": 1}, headers=h)

    resp = await client.delete(f"{API}/cart/items/{line['cart_item_id']}", headers=h)
    assert resp.status_code == 200
    assert len((await client.get(f"{API}/cart/", headers=h)).json()["items"]) == 1

    await client.delete(f"{API}/cart/clear", headers=h)
    assert (await client.get(f"{API}/cart/", headers=h)).json()["items"] == []


async def test_cannot_touch_someone_elses_line(client, seed, shopper, product):
    line = (await client.post(
        f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=headers(shopper))).json()
    intruder = await seed.user("b2c")
    resp = await client.delete(f"{API}/cart/items/{line['cart_item_id']}", headers=headers(intruder))
    assert resp.status_code == 404


async def test_expired_line_cannot_be_updated(client, seed, shopper, product):
    h = headers(shopper)
    line = (await client.post(
        f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=h)).json()
    await seed.expire_cart(shopper)
    resp = await client.put(f"{API}/cart/items/{line['cart_item_id']}", json={"quantity": 2}, headers=h)
    assert resp.status_code == 404


async def test_b2b_tier_price_rounded_to_paise(client, seed, buyer):
    user, _ = buyer
    product = await seed.product(b2b_bulk_tiers=[{"min_qty": 10, "max_qty": None, "price_per_unit": 33.333}])
    h = headers(user)
    line = (await client.post(
        f"{API}/cart/b2b/add", json={"product_id": product.id, "quantity": 10}, headers=h)).json()
    assert line["unit_price"] == 33.33
    assert line["item_total"] == 333.3

    cart = (await client.get(f"{API}/cart/", headers=h)).json()
    assert cart["items"][0]["item_total"] == line["item_total"]
    assert cart["summary"]["subtotal"] == 333.3
