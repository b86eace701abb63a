import os
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.deps import get_db, get_mailer, get_storage
from app.core.security import hash_password
from app.core.storage import LocalFileStorage
from app.db.base import Base
from app.main import app
from app.models.admin import Admin
from app.models.comic import Comic
from app.models.kid import Kid
from app.models.submission import Submission

TEST_DB_FILE = "test_wheeliz.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

PASSWORD = "password123"

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeMailer:
    """Collects verification codes instead of sending them."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def send_verification_email(self, to_email: str, code: str) -> bool:
        self.sent.append((to_email, code))
        return True


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """Seed a clean minimal dataset for each test; returns the ids."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(Comic).delete()
        db.query(Kid).delete()
        db.query(Admin).delete()
        db.commit()

        now = datetime.now(timezone.utc)

        admin = Admin(
            name="Admin One",
            email="admin1@example.com",
            password_hash=hash_password(PASSWORD),
        )
        kid = Kid(
            name="Kid One",
            email="kid1@example.com",
            password_hash=hash_password(PASSWORD),
            parent_phone="+15550001",
            date_of_birth=date(2015, 6, 1),
            is_verified=True,
            created_at=now - timedelta(days=30),
        )
        other_kid = Kid(
            name="Kid Two",
            email="kid2@example.com",
            password_hash=hash_password(PASSWORD),
            parent_phone="+15550002",
            is_verified=True,
            created_at=now - timedelta(days=30),
        )
        db.add_all([admin, kid, other_kid])
        db.commit()

        # deadline in the future so on-time submissions earn the bonus
        comic = Comic(
            title="Space Explorers",
            subtitle="Chapter 1",
            description="Draw your own rocket",
            bonus=20,
            total_marks=100,
            max_uploads=2,
            submission_deadline=now + timedelta(days=7),
        )
        db.add(comic)
        db.commit()

        ids = {
            "admin": admin.id,
            "kid": kid.id,
            "other_kid": other_kid.id,
            "comic": comic.id,
        }
        yield ids
    finally:
        db.close()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def client(tmp_path, mailer):
    """Test client wired to the test DB, a temp upload dir and the fake mailer."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: LocalFileStorage(
        tmp_path, "http://testserver/uploads"
    )
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login(client, email: str, password: str = PASSWORD) -> str:
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    return auth_header(login(client, "admin1@example.com"))


@pytest.fixture()
def kid_headers(client):
    return auth_header(login(client, "kid1@example.com"))
