from dataclasses import dataclass
from typing import Union

ROLE_ADMIN = "admin"
ROLE_KID = "kid"


@dataclass(frozen=True)
class AdminPrincipal:
    id: int
    role: str = ROLE_ADMIN


@dataclass(frozen=True)
class KidPrincipal:
    id: int
    role: str = ROLE_KID


Principal = Union[AdminPrincipal, KidPrincipal]


def principal_from_claims(claims: dict) -> Principal | None:
    """Build the identity variant from decoded token claims, or None if malformed."""
    sub = claims.get("sub")
    role = claims.get("role")
    try:
        principal_id = int(sub)
    except (TypeError, ValueError):
        return None

    if role == ROLE_ADMIN:
        return AdminPrincipal(id=principal_id)
    if role == ROLE_KID:
        return KidPrincipal(id=principal_id)
    return None
