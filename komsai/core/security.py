from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from .config import settings

ALGORITHM = "HS256"
OPERATOR_ROLE = "operator"
OPERATOR_TOKEN_TTL = timedelta(days=7)  # covers the whole cup week
MAX_BCRYPT_BYTES = 72  # bcrypt limit


def hash_password(password: str) -> str:
    raw = password.encode("utf-8")[:MAX_BCRYPT_BYTES]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")[:MAX_BCRYPT_BYTES]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


def create_operator_token(operator_id: int, email: str) -> str:
    claims = {
        "sub": str(operator_id),
        "email": email,
        "role": OPERATOR_ROLE,
        "exp": datetime.now(timezone.utc) + OPERATOR_TOKEN_TTL,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_operator_token(token: str) -> int | None:
    """Operator id from a valid token, None for anything expired, forged or of another role."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if claims.get("role") != OPERATOR_ROLE or "sub" not in claims:
        return None
    try:
        return int(claims["sub"])
    except (TypeError, ValueError):
        return None
