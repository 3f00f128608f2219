import pytest


@pytest.fixture
def admin(make_client, make_user, login):
    make_user(email="owner@sopopped.ph", role="admin", first_name="Pia", last_name="Lim")
    browser = make_client()
    login(browser, "owner@sopopped.ph")
    return browser


def test_admin_lists_users(admin, make_user):
    make_user()

    users = admin.get("/api/admin/users").json()

    assert [u["email"] for u in users] == ["owner@sopopped.ph", "ana.cruz@sopopped.ph"]
    assert "password_hash" not in users[0]


def test_archiving_logs_the_user_out_and_blocks_login(admin, make_client, make_user, login):
    customer = make_user()
    browser = make_client()
    login(browser, "ana.cruz@sopopped.ph")
    assert browser.get("/api/cart").status_code == 200

    resp = admin.patch(f"/api/admin/users/{customer.id}/archive", json={"is_archived": True})

    assert resp.status_code == 200
    assert resp.json()["is_archived"] is True
    assert browser.get("/api/cart").status_code == 401
    assert login(make_client(), "ana.cruz@sopopped.ph").status_code == 403


def test_restoring_an_account(admin, make_client, make_user, login):
    customer = make_user(archived=True)

    admin.patch(f"/api/admin/users/{customer.id}/archive", json={"is_archived": False})

    assert login(make_client(), "ana.cruz@sopopped.ph").status_code == 200


def test_admin_cannot_archive_self(admin):
    own_id = admin.get("/api/session").json()["user_id"]

    resp = admin.patch(f"/api/admin/users/{own_id}/archive", json={"is_archived": True})

    assert resp.status_code == 400
    assert resp.json()["error"] == "You cannot archive your own account"


def test_archive_unknown_user_is_404(admin):
    resp = admin.patch("/api/admin/users/999/archive", json={"is_archived": True})

    assert resp.status_code == 404


def test_admin_creates_and_lists_products(admin, client):
    created = admin.post(
        "/api/products",
        json={"name": "Ube Popcorn", "price": 135.0, "quantity": 20},
    )
    assert created.status_code == 201

    listed = client.get("/api/products").json()
    assert [p["name"] for p in listed] == ["Ube Popcorn"]
    assert client.get(f"/api/products/{created.json()['id']}").json()["quantity"] == 20


def test_customer_cannot_create_products(client, make_user, login):
    make_user()
    login(client, "ana.cruz@sopopped.ph")

    resp = client.post("/api/products", json={"name": "X", "price": 1.0})

    assert resp.status_code == 403


def test_inactive_products_are_hidden(admin, client, make_product):
    product = make_product()

    admin.patch(f"/api/products/{product.id}", json={"is_active": False})

    assert client.get("/api/products").json() == []
    assert len(client.get("/api/products", params={"only_active": False}).json()) == 1


def test_unknown_product_is_404(client):
    resp = client.get("/api/products/12345")

    assert resp.status_code == 404
    assert resp.json()["error"] == "Product not found"
