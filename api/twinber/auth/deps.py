"""
Authentication dependencies for FastAPI.

Every visitor gets an account: an anonymous one on first visit, which can
later be linked to an email and password. Two transports are accepted:
1. Cookie-based session (primary for web): httpOnly cookie holds the access token
2. Bearer token (API clients): Authorization header
"""

import logging
import uuid
from typing import Any

from fastapi import Cookie, Header, HTTPException
from pydantic import BaseModel

from twinber import config, repo
from twinber.auth.security import decode_access_token

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "twinber_session"


class AuthErrorDetail(BaseModel):
    message: str = "unauthorized"
    reason: str
    trace_id: str


def _fail(status_code: int, message: str, reason: str, trace_id: str) -> HTTPException:
    logger.warning(f"[AUTH_FAILURE] trace_id={trace_id} reason={reason}")
    if config.DEV_MODE:
        detail: dict[str, Any] = AuthErrorDetail(message=message, reason=reason, trace_id=trace_id).model_dump()
    else:
        detail = {"message": message, "trace_id": trace_id}
    return HTTPException(status_code=status_code, detail=detail)


def _extract_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


def _validate_token_and_get_user(token: str, trace_id: str) -> dict[str, Any]:
    try:
        payload = decode_access_token(token)
    except HTTPException as e:
        reason = "token_expired" if "expired" in str(e.detail).lower() else "signature_invalid"
        raise _fail(401, "unauthorized", reason, trace_id)

    user_id = str(payload.get("sub", ""))
    if not user_id:
        raise _fail(401, "unauthorized", "token_missing_subject", trace_id)

    user = repo.get_user_by_id(user_id)
    if not user:
        raise _fail(401, "unauthorized", "token_user_not_found", trace_id)

    logger.debug(f"[auth] user_id={user_id} anonymous={bool(user.get('is_anonymous'))}")
    return {
        "id": str(user["id"]),
        "email": user.get("email"),
        "is_anonymous": bool(user.get("is_anonymous")),
    }


def get_current_user(
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """Resolve the caller from the session cookie, falling back to a bearer token."""
    trace_id = str(uuid.uuid4())
    if session_token:
        return _validate_token_and_get_user(session_token, trace_id)
    if authorization:
        token = _extract_bearer(authorization)
        if not token:
            raise _fail(401, "Invalid Authorization header", "malformed_token", trace_id)
        return _validate_token_and_get_user(token, trace_id)
    raise _fail(401, "Authentication required", "missing_token", trace_id)
