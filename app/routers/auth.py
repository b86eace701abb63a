import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.deps import get_db
from app.core.principal import AdminPrincipal, KidPrincipal
from app.core.security import create_access_token, verify_password
from app.models.admin import Admin
from app.models.kid import Kid
from app.schemas.auth import LoginRequest, LoginResponse, UserSummary
from app.services.stats_repository import StatsRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Invalid credentials"}},
)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(utcnow),
):
    """Unified login: admins are checked first, then kids."""
    admin = db.query(Admin).filter(Admin.email == payload.email).first()
    if admin:
        if not verify_password(payload.password, admin.password_hash):
            logger.warning("Failed admin login for %s", payload.email)
            raise _invalid_credentials()
        token = create_access_token(AdminPrincipal(id=admin.id))
        return {"access_token": token, "user": UserSummary.model_validate(admin)}

    kid = db.query(Kid).filter(Kid.email == payload.email).first()
    if not kid or not verify_password(payload.password, kid.password_hash):
        logger.warning("Failed login for %s", payload.email)
        raise _invalid_credentials()

    StatsRepository(db).touch_last_login(kid.id, now)
    token = create_access_token(KidPrincipal(id=kid.id))
    return {"access_token": token, "user": UserSummary.model_validate(kid)}
