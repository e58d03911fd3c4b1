from datetime import datetime, timedelta
from decimal import Decimal

from grocery.models import Order

from conftest import API, headers


async def _credit_order(seed, user, business, total, due_date, **kwargs):
    data = dict(
        order_number=f"B2B{datetime.utcnow():%Y%m%d}{kwargs.pop('seq', 1):03d}",
        user_id=user.id,
        business_id=business.id,
        order_type="b2b",
        payment_method="credit",
        payment_status="pending",
        order_status="placed",
        subtotal=total,
        total_amount=total,
        credit_used=total,
        due_date=due_date)
    data.update(kwargs)
    return await seed.add(Order(**data))


async def test_profile(client, buyer):
    user, business = buyer
    resp = await client.get(f"{API}/b2b/profile", headers=headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["business_id"] == business.id
    assert body["credit_limit"] == 100000.0
    assert body["user_email"] == user.email


async def test_pending_business_is_locked_out(client, seed):
    user = await seed.user("b2b")
    await seed.business(user, account_status="pending")
    resp = await client.get(f"{API}/b2b/profile", headers=headers(user))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Business account is pending. Cannot access."


async def test_rejected_business_is_locked_out(client, seed):
    user = await seed.user("b2b")
    business = await seed.business(user, account_status="rejected")
    assert not business.is_approved
    resp = await client.get(f"{API}/b2b/profile", headers=headers(user))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Business account is rejected. Cannot access."


async def test_b2c_user_cannot_use_b2b_routes(client, shopper):
    resp = await client.get(f"{API}/b2b/profile", headers=headers(shopper))
    assert resp.status_code == 403


async def test_credit_dashboard(client, seed, buyer):
    user, business = buyer
    past = datetime.utcnow() - timedelta(days=3)
    ahead = datetime.utcnow() + timedelta(days=10)
    await _credit_order(seed, user, business, Decimal("6000"), past, seq=1)
    await _credit_order(seed, user, business, Decimal("8000"), ahead, seq=2)
    await _credit_order(seed, user, business, Decimal("5000"), past, seq=3, payment_status="paid")
    await _credit_order(seed, user, business, Decimal("7000"), past, seq=4, order_status="cancelled")

    resp = await client.get(f"{API}/b2b/credit", headers=headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["payment_summary"] == {
        "pending_amount": 14000.0,
        "overdue_amount": 6000.0,
        "pending_invoices": 2,
    }
    assert body["credit_info"]["total_limit"] == 100000.0
    assert len(body["recent_invoices"]) == 4
    assert body["recent_invoices"][0]["invoice_number"].startswith("INV-B2B")


async def test_recent_invoices_are_capped(client, seed, buyer):
    user, business = buyer
    for seq in range(1, 13):
        await _credit_order(seed, user, business, Decimal("5000"), datetime.utcnow(), seq=seq)
    body = (await client.get(f"{API}/b2b/credit", headers=headers(user))).json()
    assert len(body["recent_invoices"]) == 10
    assert body["recent_invoices"][0]["order_number"].endswith("012")


def _address(**kwargs):
    data = {
        "label": "Kitchen",
        "address_line1": "5 Mill Street",
        "city": "Pune",
        "state": "MH",
        "pincode": "411002",
    }
    data.update(kwargs)
    return data


async def test_new_default_address_replaces_old(client, buyer):
    user, _ = buyer
    h = headers(user)
    first = (await client.post(f"{API}/b2b/addresses", json=_address(is_default=True), headers=h)).json()
    second = (await client.post(
        f"{API}/b2b/addresses", json=_address(label="Outlet", is_default=True), headers=h)).json()
    await client.post(f"{API}/b2b/addresses", json=_address(label="Store"), headers=h)

    rows = (await client.get(f"{API}/b2b/addresses", headers=h)).json()
    assert rows[0]["id"] == second["id"]
    assert [r["is_default"] for r in rows] == [True, False, False]
    assert next(r for r in rows if r["id"] == first["id"])["is_default"] is False


async def test_update_address_default(client, buyer):
    user, _ = buyer
    h = headers(user)
    first = (await client.post(f"{API}/b2b/addresses", json=_address(is_default=True), headers=h)).json()
    second = (await client.post(f"{API}/b2b/addresses", json=_address(label="Outlet"), headers=h)).json()

    resp = await client.put(f"{API}/b2b/addresses/{second['id']}", json={"is_default": True}, headers=h)
    assert resp.status_code == 200
    assert resp.json()["is_default"] is True

    rows = {r["id"]: r for r in (await client.get(f"{API}/b2b/addresses", headers=h)).json()}
    assert rows[first["id"]]["is_default"] is False


async def test_address_soft_delete(client, buyer):
    user, _ = buyer
    h = headers(user)
    created = (await client.post(f"{API}/b2b/addresses", json=_address(), headers=h)).json()
    resp = await client.delete(f"{API}/b2b/addresses/{created['id']}", headers=h)
    assert resp.status_code == 200
    assert (await client.get(f"{API}/b2b/addresses", headers=h)).json() == []

    resp = await client.put(f"{API}/b2b/addresses/{created['id']}", json={"label": "Back"}, headers=h)
    assert resp.status_code == 404


async def test_foreign_address_is_not_found(client, seed, buyer):
    user, _ = buyer
    _, other_business = await seed.b2b_user()
    foreign = await seed.address(other_business)
    resp = await client.put(f"{API}/b2b/addresses/{foreign.id}", json={"label": "Mine"}, headers=headers(user))
    assert resp.status_code == 404
    resp = await client.delete(f"{API}/b2b/addresses/{foreign.id}", headers=headers(user))
    assert resp.status_code == 404


async def test_short_pincode_is_rejected(client, buyer):
    user, _ = buyer
    resp = await client.post(f"{API}/b2b/addresses", json=_address(pincode="411"), headers=headers(user))
    assert resp.status_code == 422
