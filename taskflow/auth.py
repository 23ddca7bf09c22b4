import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from taskflow.constants import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ACCESS_TOKEN_TYPE,
    ALGORITHM,
    REFRESH_TOKEN_EXPIRE_DAYS,
    REFRESH_TOKEN_TYPE,
    SECRET_KEY,
)
from taskflow.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(data: dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    if "sub" not in data:
        raise ValueError("Missing 'sub' claim (user id) in token data.")
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update(
        {
            "type": token_type,
            "iat": now,
            "exp": now + expires_delta,
            # Two tokens minted in the same second must still differ
            "jti": str(uuid.uuid4()),
        }
    )
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def build_claims(user) -> dict[str, Any]:
    """Claims carried by both tokens for ``user``."""
    return {
        "sub": user.id,
        "email": user.email,
        "tenant_id": user.tenant_id,
        "role": user.role,
    }


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(data, ACCESS_TOKEN_TYPE, expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(data, REFRESH_TOKEN_TYPE, expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> dict[str, Any]:
    """
    Verify ``token`` and return its claims.

    Expired, tampered or wrong-type tokens all raise the same
    InvalidTokenError so callers cannot tell the causes apart.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired %s token", expected_type)
        raise InvalidTokenError()
    except JWTError as e:
        logger.info(f"JWT decoding failed: {str(e)}")
        raise InvalidTokenError()

    if payload.get("type") != expected_type or not payload.get("sub"):
        logger.info("Rejected token with type=%s, expected %s", payload.get("type"), expected_type)
        raise InvalidTokenError()
    return payload
