import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import CORS_ORIGINS, HOST, PORT, UPLOAD_DIR
from app.core.logging_middleware import LoggingMiddleware
from app.db.init_db import init_db

from app.routers.admin import router as admin_router
from app.routers.auth import router as auth_router
from app.routers.comics import router as comics_router
from app.routers.kids import router as kids_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Wheeliz API", version="1.0.0")

# Middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=r"http://localhost(:\d+)?",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


@app.get("/")
def root():
    return {
        "message": "Wheeliz API Server",
        "version": app.version,
        "endpoints": {"docs": "/docs", "admin": "/api/admin", "kid": "/api/kid"},
    }


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
# comic reads are open to kids too, so this router carries its own guards
app.include_router(comics_router, prefix="/api/admin/comics", tags=["comics"])
app.include_router(admin_router, prefix="/api/admin", tags=["admin"])
app.include_router(kids_router, prefix="/api/kid", tags=["kid"])


def run():
    import uvicorn

    uvicorn.run("app.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
