from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import HTTPException
from passlib.context import CryptContext

from twinber import config

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _secret() -> str:
    if not config.JWT_SECRET:
        raise HTTPException(status_code=500, detail="JWT secret not configured")
    return config.JWT_SECRET


def create_access_token(
    user_id: str,
    email: str | None,
    is_anonymous: bool,
    ttl_minutes: int | None = None,
) -> str:
    secret = _secret()
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=ttl_minutes or config.ACCESS_TOKEN_TTL_MINUTES)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "anon": is_anonymous,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    secret = _secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        if not isinstance(payload, dict):
            raise HTTPException(status_code=401, detail="Invalid token")
        return payload
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=401, detail="Token expired") from exc
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc
