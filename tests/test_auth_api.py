from urllib.parse import parse_qs, urlparse

from sqlmodel import select

from sopopped.models.session import LoginSession
from sopopped.models.user import User

SIGNUP = {
    "name": "Bea",
    "middle": "",
    "last": "Santos",
    "email": "Bea.Santos@Gmail.com",
    "phone": "09181112222",
    "password": "Popcorn#2024",
    "password2": "Popcorn#2024",
}


# -------- Login / session --------


def test_login_sets_cookie_and_session_reports_logged_in(client, make_user, login):
    user = make_user()

    resp = login(client, "ANA.CRUZ@sopopped.ph ")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Welcome back, Ana!"
    assert body["redirect"] == "/home"
    assert body["user"]["id"] == user.id
    assert client.cookies.get("sopopped_session")

    info = client.get("/api/session")
    assert info.status_code == 200
    assert info.json() == {"logged_in": True, "user_id": user.id, "username": "Ana Cruz"}


def test_session_endpoint_is_401_when_anonymous(client):
    resp = client.get("/api/session")

    assert resp.status_code == 401
    assert resp.json() == {"logged_in": False}


def test_admin_login_redirects_to_dashboard(client, make_user, login):
    make_user(email="owner@sopopped.ph", role="admin")

    resp = login(client, "owner@sopopped.ph")

    assert resp.json()["redirect"] == "/admin/dashboard"
    assert resp.json()["user"]["role"] == "admin"


def test_login_unknown_email(client, login):
    resp = login(client, "nobody@sopopped.ph")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "No account found with this email."}


def test_login_wrong_password(client, make_user, login):
    make_user()

    resp = login(client, "ana.cruz@sopopped.ph", "Wrong#1234")

    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid email or password"
    assert client.cookies.get("sopopped_session") is None


def test_login_archived_account(client, make_user, login):
    make_user(archived=True)

    resp = login(client, "ana.cruz@sopopped.ph")

    assert resp.status_code == 403
    assert "deactivated" in resp.json()["error"]


def test_login_validation_messages(client):
    resp = client.post("/api/auth/login", json={"email": "not-an-email"})

    assert resp.status_code == 400
    body = resp.json()
    assert "Please enter a valid email address" in body["errors"]
    assert "Password is required" in body["errors"]


def test_form_login_redirects_with_outcome_in_query(client, make_user):
    make_user()

    resp = client.post(
        "/api/auth/login",
        data={"email": "ana.cruz@sopopped.ph", "password": "Secret#123"},
        follow_redirects=False,
    )

    assert resp.status_code == 303
    location = urlparse(resp.headers["location"])
    assert location.path == "/home"
    assert parse_qs(location.query) == {
        "login_result": ["success"],
        "login_message": ["Welcome back, Ana!"],
    }
    assert client.cookies.get("sopopped_session")


def test_form_login_failure_redirects_with_error(client):
    resp = client.post(
        "/api/auth/login",
        data={"email": "nobody@sopopped.ph", "password": "Secret#123"},
        follow_redirects=False,
    )

    assert resp.status_code == 303
    query = parse_qs(urlparse(resp.headers["location"]).query)
    assert query["login_result"] == ["error"]


def test_relogin_revokes_previous_session(make_client, make_user, session, login):
    make_user()
    browser = make_client()
    login(browser, "ana.cruz@sopopped.ph")
    old_cookie = browser.cookies.get("sopopped_session")

    login(browser, "ana.cruz@sopopped.ph")

    stale = make_client()
    stale.cookies.set("sopopped_session", old_cookie)
    assert stale.get("/api/session").status_code == 401
    assert browser.get("/api/session").status_code == 200

    rows = session.exec(select(LoginSession)).all()
    assert len(rows) == 2
    assert sum(1 for r in rows if r.revoked_at is None) == 1


def test_tampered_cookie_is_anonymous(client):
    client.cookies.set("sopopped_session", "not.a.jwt")

    assert client.get("/api/session").status_code == 401


def test_logout_ends_session(make_client, make_user, login):
    make_user()
    browser = make_client()
    login(browser, "ana.cruz@sopopped.ph")
    cookie = browser.cookies.get("sopopped_session")

    resp = browser.post("/api/auth/logout", headers={"X-Requested-With": "XMLHttpRequest"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "You have been logged out successfully."}

    # the old cookie value is dead server-side too
    replay = make_client()
    replay.cookies.set("sopopped_session", cookie)
    assert replay.get("/api/session").status_code == 401


def test_logout_without_session_is_not_an_error(client):
    resp = client.get("/api/auth/logout", follow_redirects=False)

    assert resp.status_code == 303
    assert "logout_result=success" in resp.headers["location"]


# -------- Signup --------


def test_signup_creates_customer(client, session):
    resp = client.post("/api/auth/signup", json=SIGNUP)

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Account created successfully! You can now log in."
    assert body["user"]["email"] == "bea.santos@gmail.com"

    user = session.exec(select(User).where(User.email == "bea.santos@gmail.com")).one()
    assert user.role == "customer"
    assert user.password_hash != SIGNUP["password"]


def test_signup_does_not_log_in(client):
    client.post("/api/auth/signup", json=SIGNUP)

    assert client.get("/api/session").status_code == 401


def test_signup_then_login(client, login):
    client.post("/api/auth/signup", json=SIGNUP)

    resp = login(client, "bea.santos@gmail.com", SIGNUP["password"])

    assert resp.status_code == 200


def test_signup_duplicate_email(client, make_user):
    make_user(email="bea.santos@gmail.com")

    resp = client.post("/api/auth/signup", json=SIGNUP)

    assert resp.status_code == 409
    assert resp.json()["error"] == "An account with this email already exists"


def test_signup_archived_email(client, make_user):
    make_user(email="bea.santos@gmail.com", archived=True)

    resp = client.post("/api/auth/signup", json=SIGNUP)

    assert resp.status_code == 409
    assert "archived" in resp.json()["error"]


def test_signup_password_rules(client):
    resp = client.post(
        "/api/auth/signup",
        json={**SIGNUP, "password": "weakpass", "password2": "different"},
    )

    assert resp.status_code == 400
    errors = resp.json()["errors"]
    assert "Password must include uppercase, lowercase, number, and special character" in errors


def test_signup_password_mismatch(client):
    resp = client.post("/api/auth/signup", json={**SIGNUP, "password2": "Popcorn#2025"})

    assert resp.status_code == 400
    assert resp.json()["errors"] == ["Passwords do not match"]


# -------- Email check --------


def test_check_email(client, make_user):
    make_user()

    known = client.get("/api/auth/check-email", params={"email": "Ana.Cruz@sopopped.ph"})
    unknown = client.post("/api/auth/check-email", json={"email": "new@sopopped.ph"})

    assert known.json() == {"success": True, "exists": True, "is_archived": False}
    assert unknown.json() == {"success": True, "exists": False, "is_archived": False}


def test_check_email_rejects_invalid(client):
    resp = client.get("/api/auth/check-email", params={"email": "nope"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_email"
