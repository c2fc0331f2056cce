from models import storage
from models.user import User
from tests.conftest import PASSWORD

API = "/api/v1"
COOKIE = "refresh_token"


def login(client, email="kaimu@example.com", password=PASSWORD):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password})


def refresh_cookie(client):
    cookie = client.get_cookie(COOKIE)
    return cookie.value if cookie else None


def stored_session_id(user_id):
    return storage.get(User, user_id).refresh_session_id


def test_register_then_login(client):
    res = client.post(
        f"{API}/auth/register",
        json={"name": "Kaimu", "email": "Kaimu@Example.com", "password": PASSWORD},
    )
    assert res.status_code == 201
    assert res.get_json()["data"]["email"] == "kaimu@example.com"

    assert login(client).status_code == 200


def test_register_rejects_duplicates_and_short_passwords(client, make_user):
    make_user()
    dup = client.post(f"{API}/auth/register", json={"name": "K", "email": "kaimu@example.com", "password": PASSWORD})
    assert dup.status_code == 409

    short = client.post(f"{API}/auth/register", json={"name": "K", "email": "k2@example.com", "password": "short"})
    assert short.status_code == 422
    assert "password" in short.get_json()["details"]


def test_login_payload_and_cookie(client, make_user, clock):
    user = make_user()
    res = login(client)
    assert res.status_code == 200

    body = res.get_json()
    assert body["user"]["id"] == user.id
    assert body["user"]["email"] == "kaimu@example.com"
    assert body["user"]["name"] == "Kaimu"
    assert "created_at" in body["user"]
    assert "sub" in body["user"]
    assert abs(body["expires"] - (clock() + 30 * 60)) <= 1

    set_cookie = res.headers.get("Set-Cookie")
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "HttpOnly" in set_cookie
    assert "Secure" not in set_cookie

    cookie = client.get_cookie(COOKIE)
    assert abs(cookie.expires.timestamp() - (clock() + 24 * 60 * 60)) <= 1

    flow = client.application.extensions["user_auth"]
    refresh = flow.refresh_tokens.parse(cookie.value)
    assert refresh.session_id == stored_session_id(user.id)


def test_login_failures_look_identical(client, make_user):
    make_user()
    make_user(email="sleeper@example.com", activated=False)

    unknown = login(client, email="nobody@example.com")
    wrong = login(client, password=PASSWORD + "x")
    inactive = login(client, email="sleeper@example.com")

    assert unknown.status_code == wrong.status_code == inactive.status_code == 404
    assert unknown.get_json() == wrong.get_json() == inactive.get_json()
    assert refresh_cookie(client) is None


def test_login_requires_email_and_password(client):
    res = client.post(f"{API}/auth/login", json={"email": "kaimu@example.com"})
    assert res.status_code == 422


def test_refresh_rotates_cookie_and_session(client, make_user, clock):
    user = make_user()
    first = login(client).get_json()
    old_cookie = refresh_cookie(client)
    old_session = stored_session_id(user.id)

    clock.advance(10)
    res = client.post(f"{API}/auth/refresh")
    assert res.status_code == 200

    body = res.get_json()
    new_cookie = refresh_cookie(client)
    assert body["token"] != first["token"]
    assert new_cookie != old_cookie
    assert stored_session_id(user.id) != old_session

    flow = client.application.extensions["user_auth"]
    assert flow.refresh_tokens.parse(new_cookie).session_id == stored_session_id(user.id)


def test_refresh_without_cookie(client, make_user):
    make_user()
    res = client.post(f"{API}/auth/refresh")
    assert res.status_code == 401
    assert res.get_json()["error"] == "UNAUTHORIZED"


def test_stale_refresh_cookie_is_rejected_and_cleared(client, make_user):
    make_user()
    login(client)
    old_cookie = refresh_cookie(client)
    login(client)

    client.set_cookie(COOKIE, old_cookie)
    res = client.post(f"{API}/auth/refresh")

    assert res.status_code == 401
    assert res.get_json()["error"] == "INVALID_SESSION"
    assert res.get_json()["message"] == "Invalid jti for refresh token"
    assert refresh_cookie(client) is None


def test_expired_refresh_cookie(client, make_user, clock):
    make_user()
    login(client)
    clock.advance(24 * 60 * 60)

    res = client.post(f"{API}/auth/refresh")
    assert res.status_code == 401
    assert res.get_json()["error"] == "UNAUTHORIZED"
    assert refresh_cookie(client) is None


def test_malformed_refresh_cookie(client, make_user):
    make_user()
    client.set_cookie(COOKIE, "a.b.c")
    res = client.post(f"{API}/auth/refresh")
    assert res.status_code == 401
    assert refresh_cookie(client) is None


def test_logout(client, make_user):
    user = make_user()
    login(client)
    assert stored_session_id(user.id) is not None

    res = client.delete(f"{API}/auth/logout")
    assert res.status_code == 200
    assert res.get_json() == {"status": "logged_out"}
    assert refresh_cookie(client) is None
    assert stored_session_id(user.id) is None

    again = client.delete(f"{API}/auth/logout")
    assert again.status_code == 401


def test_logout_with_cleared_session_cookie(client, make_user):
    make_user()
    login(client)
    cookie = refresh_cookie(client)
    client.delete(f"{API}/auth/logout")

    client.set_cookie(COOKIE, cookie)
    res = client.delete(f"{API}/auth/logout")
    assert res.status_code == 401
    assert refresh_cookie(client) is None


def test_logout_with_expired_cookie(client, make_user, clock):
    make_user()
    login(client)
    clock.advance(24 * 60 * 60)

    res = client.delete(f"{API}/auth/logout")
    assert res.status_code == 401
    assert refresh_cookie(client) is None


def test_auth_routes_live_under_auth_prefix(app):
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    for path in ("register", "login", "refresh", "logout"):
        assert f"{API}/auth/{path}" in rules
    assert f"{API}/login" not in rules


def test_failed_login_drops_existing_refresh_cookie(client, make_user):
    make_user()
    assert login(client).status_code == 200
    assert refresh_cookie(client) is not None

    res = login(client, password=PASSWORD + "x")
    assert res.status_code == 404
    assert refresh_cookie(client) is None


def test_login_replaces_stale_cookie_with_single_set_cookie(client, make_user):
    make_user()
    login(client)
    old_cookie = refresh_cookie(client)

    res = login(client)
    assert res.status_code == 200
    assert len(res.headers.getlist("Set-Cookie")) == 1
    assert refresh_cookie(client) not in (None, old_cookie)
