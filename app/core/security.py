import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import ACCESS_TOKEN_EXPIRE, ALGORITHM, SECRET_KEY
from app.core.principal import Principal, principal_from_claims

logger = logging.getLogger(__name__)

# pbkdf2 for new hashes; bcrypt kept so existing bcrypt hashes still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Unrecognised password hash format")
        return False


def create_access_token(
    principal: Principal,
    expires_delta: timedelta = ACCESS_TOKEN_EXPIRE,
) -> str:
    # token expiry always follows the wall clock, never an injected one
    issued = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(principal.id),
        "role": principal.role,
        "exp": issued + expires_delta,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Principal | None:
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    return principal_from_claims(claims)
