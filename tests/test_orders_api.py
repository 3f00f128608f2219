from datetime import datetime, timedelta, timezone

import pytest

from sopopped.models.order import Order, OrderItem


@pytest.fixture
def place_order(session, make_product):
    product = make_product()
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _place(user_id: int, n: int = 0, quantity: int = 1) -> Order:
        order = Order(
            user_id=user_id,
            total_amount=product.price * quantity,
            created_at=base + timedelta(minutes=n),
        )
        session.add(order)
        session.commit()
        session.refresh(order)
        session.add(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                price_at_purchase=product.price,
                quantity=quantity,
            )
        )
        session.commit()
        return order

    return _place


@pytest.fixture
def ana(client, make_user, login):
    user = make_user()
    login(client, "ana.cruz@sopopped.ph")
    return user


@pytest.fixture
def ben(make_user):
    return make_user(email="ben.reyes@sopopped.ph", first_name="Ben", last_name="Reyes")


def test_anonymous_order_list_is_401(client):
    resp = client.get("/api/orders")

    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_lists_only_own_orders_newest_first(client, ana, ben, place_order):
    first = place_order(ana.id, n=1)
    place_order(ben.id, n=2)
    latest = place_order(ana.id, n=3)

    orders = client.get("/api/orders").json()["orders"]

    assert [o["id"] for o in orders] == [latest.id, first.id]
    assert all(o["user_id"] == ana.id for o in orders)
    assert orders[0]["items"] == [
        {
            "product_id": orders[0]["items"][0]["product_id"],
            "product_name": "Caramel Popcorn",
            "price_at_purchase": 120.0,
            "quantity": 1,
        }
    ]


def test_other_users_order_is_404(client, ana, ben, place_order):
    theirs = place_order(ben.id)

    resp = client.get(f"/api/orders/{theirs.id}")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Order not found"}


def test_own_order_detail(client, ana, place_order):
    mine = place_order(ana.id, quantity=2)

    resp = client.get(f"/api/orders/{mine.id}")

    assert resp.status_code == 200
    order = resp.json()["order"]
    assert order["id"] == mine.id
    assert order["total_amount"] == 240.0
    assert order["items"][0]["quantity"] == 2


@pytest.mark.parametrize(
    "limit, expected",
    [(None, 10), (3, 3), (0, 10), (-5, 10), (500, 12)],
)
def test_limit_handling(client, ana, place_order, limit, expected):
    for n in range(12):
        place_order(ana.id, n=n)

    params = {"limit": limit} if limit is not None else {}
    orders = client.get("/api/orders", params=params).json()["orders"]

    assert len(orders) == expected


def test_deleted_product_shows_as_unknown(client, ana, place_order, session):
    order = place_order(ana.id)
    item = session.get(OrderItem, 1)
    item.product_id = 4040
    session.add(item)
    session.commit()

    detail = client.get(f"/api/orders/{order.id}").json()["order"]

    assert detail["items"][0]["product_name"] == "Unknown Product"


# -------- Admin --------


@pytest.fixture
def admin(make_client, make_user, login):
    make_user(email="owner@sopopped.ph", role="admin", first_name="Pia", last_name="Lim")
    browser = make_client()
    login(browser, "owner@sopopped.ph")
    return browser


def test_customer_cannot_use_admin_endpoints(client, ana):
    assert client.get("/api/admin/orders").status_code == 403
    assert client.get("/api/admin/users").status_code == 403


def test_admin_lists_all_orders(admin, ana, ben, place_order):
    place_order(ana.id, n=1)
    place_order(ben.id, n=2)

    orders = admin.get("/api/admin/orders").json()

    assert {o["user_id"] for o in orders} == {ana.id, ben.id}


def test_admin_status_transitions(admin, ana, place_order):
    order = place_order(ana.id)
    url = f"/api/admin/orders/{order.id}/status"

    assert admin.patch(url, json={"status": "paid"}).json()["status"] == "paid"
    assert admin.patch(url, json={"status": "shipped"}).json()["status"] == "shipped"

    resp = admin.patch(url, json={"status": "pending"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid status transition: shipped -> pending"


def test_admin_unknown_status_is_400(admin, ana, place_order):
    order = place_order(ana.id)

    resp = admin.patch(f"/api/admin/orders/{order.id}/status", json={"status": "lost"})

    assert resp.status_code == 400
