import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/wheeliz.db")

# DEV ONLY default: override SECRET_KEY in every deployed environment.
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE = timedelta(days=7)
PROFILE_TOKEN_EXPIRE = timedelta(days=1)  # phone + date-of-birth sign in

# Email verification
VERIFICATION_CODE_TTL = timedelta(minutes=10)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM = os.getenv("EMAIL_FROM", "Wheeliz <noreply@wheeliz.app>")

# Stats
ACTIVE_WINDOW_DAYS = 7  # admin kid list: "Active" if logged in within this window
LOCAL_TIMEZONE = os.getenv("LOCAL_TIMEZONE", "UTC")

# Uploads
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads")))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000/uploads")
MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024
MAX_COMIC_DOCUMENTS = 5
MAX_SUBMISSION_ATTACHMENTS = 10

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,https://wheeliz-web.vercel.app",
    ).split(",")
    if o.strip()
]

# Server (used by the `wheeliz-api` console script)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
