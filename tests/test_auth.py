from app.models.kid import Kid
from tests.conftest import PASSWORD, TestingSessionLocal, auth_header, login


def test_unified_login_admin(client):
    r = client.post(
        "/api/auth/login",
        json={"email": "admin1@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"
    assert body["user"]["name"] == "Admin One"


def test_unified_login_kid_updates_last_login(client, seed_data):
    r = client.post(
        "/api/auth/login",
        json={"email": "kid1@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200, r.text
    assert r.json()["user"]["role"] == "kid"

    db = TestingSessionLocal()
    try:
        kid = db.get(Kid, seed_data["kid"])
        assert kid.last_login is not None
    finally:
        db.close()


def test_login_rejects_wrong_password(client):
    r = client.post(
        "/api/auth/login",
        json={"email": "kid1@example.com", "password": "not-the-password"},
    )
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid credentials"


def test_login_rejects_unknown_email(client):
    r = client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": PASSWORD},
    )
    assert r.status_code == 401


def test_admin_login_endpoint_refuses_kids(client):
    r = client.post(
        "/api/admin/login",
        json={"email": "kid1@example.com", "password": PASSWORD},
    )
    assert r.status_code == 401


def test_kid_login_endpoint(client):
    r = client.post(
        "/api/kid/login",
        json={"email": "kid1@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200, r.text
    assert r.json()["kid"]["email"] == "kid1@example.com"


def test_missing_token_is_401(client):
    r = client.get("/api/admin/stats")
    assert r.status_code == 401


def test_garbage_token_is_401(client):
    r = client.get("/api/kid/dashboard", headers=auth_header("not-a-jwt"))
    assert r.status_code == 401


def test_kid_token_cannot_reach_admin_routes(client, kid_headers):
    r = client.get("/api/admin/stats", headers=kid_headers)
    assert r.status_code == 403


def test_admin_token_cannot_reach_kid_routes(client, admin_headers):
    r = client.get("/api/kid/dashboard", headers=admin_headers)
    assert r.status_code == 403


def test_token_for_deleted_kid_is_rejected(client, seed_data):
    token = login(client, "kid2@example.com")

    db = TestingSessionLocal()
    try:
        db.query(Kid).filter(Kid.id == seed_data["other_kid"]).delete()
        db.commit()
    finally:
        db.close()

    r = client.get("/api/kid/dashboard", headers=auth_header(token))
    assert r.status_code == 401


def test_health_and_banner(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["message"] == "Wheeliz API Server"


def test_admin_changes_password(client, admin_headers):
    r = client.put("/api/admin/profile", headers=admin_headers, data={"new_password": "newsecret99"})
    assert r.status_code == 400

    r = client.put(
        "/api/admin/profile",
        headers=admin_headers,
        data={"name": "Chief", "old_password": PASSWORD, "new_password": "newsecret99"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Chief"

    login(client, "admin1@example.com", "newsecret99")
