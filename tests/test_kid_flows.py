from datetime import datetime, timedelta, timezone

from app.core.clock import utcnow
from app.main import app
from tests.conftest import auth_header


def test_signup_verify_and_complete_profile(client, mailer):
    r = client.post(
        "/api/kid/signup",
        json={"full_name": "New Kid", "email": "newkid@example.com", "password": "secret123"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["email"] == "newkid@example.com"

    assert len(mailer.sent) == 1
    to_email, code = mailer.sent[0]
    assert to_email == "newkid@example.com"
    assert len(code) == 6 and code.isdigit()

    # profile completion is refused until the email is verified
    r = client.post("/api/kid/complete-profile", json={"email": "newkid@example.com"})
    assert r.status_code == 400

    r = client.post("/api/kid/verify-email", json={"email": "newkid@example.com", "code": code})
    assert r.status_code == 200, r.text

    r = client.post("/api/kid/verify-email", json={"email": "newkid@example.com", "code": code})
    assert r.status_code == 400
    assert r.json()["detail"] == "Email already verified"

    r = client.post(
        "/api/kid/complete-profile",
        json={
            "email": "newkid@example.com",
            "father_name": "Dad",
            "mother_name": "Mum",
            "gender": "female",
            "date_of_birth": "2016-04-02",
        },
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["kid"]["father_name"] == "Dad"
    assert body["kid"]["last_login"] is not None

    r = client.get("/api/kid/dashboard", headers=auth_header(body["access_token"]))
    assert r.status_code == 200


def test_signup_duplicate_email_conflicts(client):
    r = client.post(
        "/api/kid/signup",
        json={"full_name": "Copy", "email": "kid1@example.com", "password": "secret123"},
    )
    assert r.status_code == 409


def test_verify_with_wrong_code(client, mailer):
    client.post(
        "/api/kid/signup",
        json={"full_name": "New Kid", "email": "newkid@example.com", "password": "secret123"},
    )
    _, code = mailer.sent[0]
    wrong = "000000" if code != "000000" else "111111"

    r = client.post("/api/kid/verify-email", json={"email": "newkid@example.com", "code": wrong})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid verification code"


def test_verify_with_expired_code(client, mailer):
    client.post(
        "/api/kid/signup",
        json={"full_name": "Slow Kid", "email": "slow@example.com", "password": "secret123"},
    )
    _, code = mailer.sent[0]

    later = datetime.now(timezone.utc) + timedelta(minutes=11)
    app.dependency_overrides[utcnow] = lambda: later

    r = client.post("/api/kid/verify-email", json={"email": "slow@example.com", "code": code})
    assert r.status_code == 400
    assert r.json()["detail"] == "Verification code expired"


def test_check_profile_by_phone_and_birthday(client, seed_data):
    r = client.post(
        "/api/kid/check",
        json={"parent_phone": "+15550001", "date_of_birth": "2015-06-01"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["kid"]["id"] == seed_data["kid"]
    assert r.json()["kid"]["last_login"] is not None


def test_check_profile_wrong_birthday(client):
    r = client.post(
        "/api/kid/check",
        json={"parent_phone": "+15550001", "date_of_birth": "2015-06-02"},
    )
    assert r.status_code == 401


def test_check_profile_unknown_phone(client):
    r = client.post(
        "/api/kid/check",
        json={"parent_phone": "+19999999", "date_of_birth": "2015-06-01"},
    )
    assert r.status_code == 404


def test_create_profile_requires_confirmation(client):
    payload = {"name": "Phone Kid", "parent_phone": "+15550003", "date_of_birth": "2017-01-01"}

    r = client.post("/api/kid/create", json=payload)
    assert r.status_code == 400

    r = client.post("/api/kid/create", json={**payload, "confirm": True})
    assert r.status_code == 201, r.text
    assert r.json()["kid"]["parent_phone"] == "+15550003"

    r = client.post("/api/kid/create", json={**payload, "confirm": True})
    assert r.status_code == 409


def test_update_profile_password_needs_old_password(client, kid_headers, seed_data):
    r = client.put(
        "/api/kid/profile",
        headers=kid_headers,
        data={"name": "Kid Renamed", "new_password": "another-secret"},
    )
    assert r.status_code == 400

    r = client.put(
        "/api/kid/profile",
        headers=kid_headers,
        data={"name": "Kid Renamed", "old_password": "password123", "new_password": "another-secret"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Kid Renamed"

    r = client.post(
        "/api/auth/login",
        json={"email": "kid1@example.com", "password": "another-secret"},
    )
    assert r.status_code == 200


def test_update_profile_avatar_upload(client, kid_headers):
    r = client.put(
        "/api/kid/profile",
        headers=kid_headers,
        files={"avatar": ("me.png", b"\x89PNG fake", "image/png")},
    )
    assert r.status_code == 200, r.text
    assert r.json()["avatar"].startswith("http://testserver/uploads/avatars/")


def test_update_profile_rejects_non_image_avatar(client, kid_headers):
    r = client.put(
        "/api/kid/profile",
        headers=kid_headers,
        files={"avatar": ("notes.pdf", b"%PDF", "application/pdf")},
    )
    assert r.status_code == 400
