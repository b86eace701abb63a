from app.core.config import PUBLIC_BASE_URL, UPLOAD_DIR
from app.core.email import Mailer
from app.core.storage import LocalFileStorage
from app.db.session import SessionLocal


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage() -> LocalFileStorage:
    return LocalFileStorage(UPLOAD_DIR, PUBLIC_BASE_URL)


def get_mailer() -> Mailer:
    return Mailer()
