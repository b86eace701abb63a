from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.current_user import get_current_principal
from app.core.deps import get_db
from app.core.principal import AdminPrincipal, KidPrincipal, Principal
from app.models.admin import Admin
from app.models.kid import Kid


def require_admin(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Admin:
    if not isinstance(principal, AdminPrincipal):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    admin = db.get(Admin, principal.id)
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin account no longer exists",
        )
    return admin


def require_kid(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Kid:
    if not isinstance(principal, KidPrincipal):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    kid = db.get(Kid, principal.id)
    if kid is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Kid account no longer exists",
        )
    return kid
