from datetime import datetime, timezone
from types import SimpleNamespace

from app.core.clock import utcnow
from app.main import app
from app.models.kid import Kid
from app.services.stats_repository import get_stats_repository
from tests.conftest import TestingSessionLocal


def submit_and_grade(client, kid_headers, admin_headers, comic_id, marks):
    r = client.post("/api/kid/submit", headers=kid_headers, data={"comic_id": str(comic_id)})
    assert r.status_code == 201, r.text
    r = client.post(
        f"/api/admin/submissions/{r.json()['id']}/grade",
        headers=admin_headers,
        json={"marks": marks},
    )
    assert r.status_code == 200, r.text


def test_kid_dashboard_counts_bonus_and_rank(client, kid_headers, admin_headers, seed_data):
    submit_and_grade(client, kid_headers, admin_headers, seed_data["comic"], 80)

    r = client.get("/api/kid/dashboard", headers=kid_headers)
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["kid_name"] == "Kid One"
    assert body["score"] == 100  # 80 marks + 20 on-time bonus
    assert body["overall_percentage"] == 100.0
    assert body["rank"] == 1
    assert body["standing"] == 1
    assert body["comics_read"] == 1
    assert body["avatar"].startswith("https://ui-avatars.com/api/?name=Kid%20One")

    [progress] = body["recent_progress"]
    assert progress["id"] == seed_data["comic"]
    assert progress["progress"] == 80.0
    assert progress["marks"] == 80
    assert progress["total_marks"] == 100
    assert progress["status"] == "graded"


def test_kid_without_submissions(client, kid_headers, admin_headers, seed_data):
    submit_and_grade(client, kid_headers, admin_headers, seed_data["comic"], 10)

    r = client.post("/api/auth/login", json={"email": "kid2@example.com", "password": "password123"})
    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}

    body = client.get("/api/kid/dashboard", headers=headers).json()
    assert body["score"] == 0
    assert body["rank"] == 2
    assert body["overall_percentage"] == 0.0
    assert body["comics_read"] == 0
    assert body["recent_progress"] == []


def test_dashboard_records_last_login_from_clock(client, kid_headers, seed_data):
    fixed = datetime(2030, 5, 4, 10, 30, tzinfo=timezone.utc)
    app.dependency_overrides[utcnow] = lambda: fixed

    r = client.get("/api/kid/dashboard", headers=kid_headers)
    assert r.status_code == 200

    db = TestingSessionLocal()
    try:
        last_login = db.get(Kid, seed_data["kid"]).last_login
        assert last_login.replace(tzinfo=None) == fixed.replace(tzinfo=None)
    finally:
        db.close()


def test_admin_stats_shape(client, admin_headers):
    r = client.get("/api/admin/stats", headers=admin_headers)
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["total_comics"] == 1
    assert body["total_kids"] == 2
    assert body["total_admins"] == 1
    assert body["total_submissions"] == 0
    assert body["greeting"] in {"Good Morning", "Good Afternoon", "Good Evening"}

    chart = body["chart_data"]
    assert len(chart["monthly"]) == 12
    assert len(chart["weekly"]) == 4
    assert len(chart["daily"]) == 7

    # both seeded kids were created 30 days ago, so they exist "today"
    today = chart["daily"][-1]
    assert today["total"] == 2


def test_admin_stats_greeting_follows_clock(client, admin_headers):
    app.dependency_overrides[utcnow] = lambda: datetime(2024, 3, 15, 15, 0, tzinfo=timezone.utc)

    body = client.get("/api/admin/stats", headers=admin_headers).json()
    assert body["greeting"] == "Good Afternoon"
    # kids were created after this "now"
    assert all(b["total"] == 0 for b in body["chart_data"]["monthly"])


def test_admin_kid_list_has_status_and_rank(client, kid_headers, admin_headers, seed_data):
    submit_and_grade(client, kid_headers, admin_headers, seed_data["comic"], 50)

    r = client.get("/api/admin/kids", headers=admin_headers)
    assert r.status_code == 200, r.text
    rows = r.json()

    assert [row["name"] for row in rows] == ["Kid One", "Kid Two"]
    one, two = rows
    assert (one["status"], one["rank"], one["submissions"], one["comics_read"]) == ("Active", 1, 1, 1)
    assert (two["status"], two["rank"], two["submissions"], two["comics_read"]) == ("Inactive", 2, 0, 0)


def test_admin_creates_kid(client, admin_headers):
    r = client.post(
        "/api/admin/kids",
        headers=admin_headers,
        data={"name": "Walk In", "parent_phone": "+15550009", "date_of_birth": "2016-09-09"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["avatar"].startswith("https://ui-avatars.com/")

    r = client.post(
        "/api/admin/kids",
        headers=admin_headers,
        data={"name": "Walk In Again", "parent_phone": "+15550009"},
    )
    assert r.status_code == 409


def test_admin_kid_list_reports_inconsistent_submissions(client, admin_headers, seed_data):
    orphan = SimpleNamespace(id=99, comic_id=404, marks=10, created_at=datetime.now(timezone.utc))
    kid = SimpleNamespace(id=seed_data["kid"], name="Kid One", submissions=[orphan])

    class BrokenRepository:
        def kids_with_submissions(self):
            return [kid]

        def comics(self):
            return []

    app.dependency_overrides[get_stats_repository] = BrokenRepository

    r = client.get("/api/admin/kids", headers=admin_headers)
    assert r.status_code == 500
    assert r.json()["detail"] == "Inconsistent submission data"
