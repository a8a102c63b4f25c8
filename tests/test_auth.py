"""Registration, login sessions and the CSRF guard in front of every write."""
from conftest import PASSWORD, login


def _register(client, email="new@example.com", **extra):
    body = {"email": email, "password": PASSWORD, "first_name": "Nia", "last_name": "Reel"}
    body.update(extra)
    return client.post("/auth/register", json=body)


def test_register_and_login(client):
    resp = _register(client)
    assert resp.status_code == 201

    login(client, "new@example.com")
    me = client.get("/auth/me")
    assert me.status_code == 200
    body = me.get_json()
    assert body["email"] == "new@example.com"
    assert body["roles"] == ["USER"]
    assert body["display_name"] == "Nia Reel"


def test_register_as_captain(client):
    assert _register(client, email="Skipper@Example.com", role="captain").status_code == 201
    login(client, "skipper@example.com")
    assert client.get("/auth/me").get_json()["roles"] == ["CAPTAIN"]


def test_register_validation(client):
    assert _register(client, email="not-an-email").status_code == 400
    assert _register(client, password="short").status_code == 400
    assert _register(client, role="admin").status_code == 400

    assert _register(client).status_code == 201
    assert _register(client).status_code == 409


def test_bad_credentials(client, build):
    build.user("angler@example.com", "USER")
    resp = client.post("/auth/login", json={"email": "angler@example.com", "password": "wrong-password"})
    assert resp.status_code == 401
    assert client.get("/auth/me").status_code == 401


def test_logout_revokes_the_session(client, build):
    build.user("angler@example.com", "USER")
    headers = login(client, "angler@example.com")

    assert client.post("/auth/logout", headers=headers).status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_logout_needs_csrf(client, build):
    build.user("angler@example.com", "USER")
    login(client, "angler@example.com")

    assert client.post("/auth/logout").status_code == 403
    assert client.post("/auth/logout", headers={"X-CSRF-Token": "forged"}).status_code == 403
    assert client.get("/auth/me").status_code == 200


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
