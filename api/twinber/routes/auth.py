import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from .. import config
from .. import repo as auth_repo
from ..auth.admin_deps import is_admin_email
from ..auth.deps import SESSION_COOKIE_NAME, get_current_user
from ..auth.security import create_access_token, hash_password, verify_password
from ..config import (
    RL_AUTH_ANONYMOUS_LIMIT,
    RL_AUTH_LOGIN_LIMIT,
    RL_AUTH_REGISTER_LIMIT,
    RL_WINDOW_SECONDS,
)
from ..http_helpers import normalize_email, validate_registration_input
from ..schemas import AnonymousSessionRequest, LoginRequest, RegisterRequest
from ..services.rate_limit import rate_limit_dependency
from ..survey_loader import resolve_language

logger = logging.getLogger(__name__)

router = APIRouter()

RL_AUTH_ANONYMOUS = rate_limit_dependency("auth_anonymous", RL_AUTH_ANONYMOUS_LIMIT, RL_WINDOW_SECONDS)
RL_AUTH_REGISTER = rate_limit_dependency("auth_register", RL_AUTH_REGISTER_LIMIT, RL_WINDOW_SECONDS)
RL_AUTH_LOGIN = rate_limit_dependency("auth_login", RL_AUTH_LOGIN_LIMIT, RL_WINDOW_SECONDS)


def _is_bearer_mode(request: Request) -> bool:
    return str(request.headers.get("X-Auth-Mode") or "").strip().lower() == "bearer"


def _set_session_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="lax",
        path="/",
        max_age=config.ACCESS_TOKEN_TTL_MINUTES * 60,
    )


def _account_payload(user: dict[str, Any]) -> dict[str, Any]:
    email = user.get("email")
    return {
        "id": str(user["id"]),
        "email": email,
        "is_anonymous": bool(user.get("is_anonymous")),
        "is_admin": not bool(user.get("is_anonymous")) and is_admin_email(email),
    }


def _start_session(request: Request, response: Response, user: dict[str, Any]) -> dict[str, Any]:
    access_token = create_access_token(
        user_id=str(user["id"]),
        email=user.get("email"),
        is_anonymous=bool(user.get("is_anonymous")),
    )
    _set_session_cookie(response, access_token)
    payload = _account_payload(user)
    if _is_bearer_mode(request):
        payload["access_token"] = access_token
        payload["token_type"] = "bearer"
    return payload


@router.post("/anonymous", status_code=201)
def auth_anonymous(
    request: Request,
    response: Response,
    payload: AnonymousSessionRequest | None = None,
    _: None = RL_AUTH_ANONYMOUS,
) -> dict[str, Any]:
    language = resolve_language(payload.language if payload else None)
    user = auth_repo.create_anonymous_user(preferred_language=language)
    logger.info(f"[auth] anonymous session user_id={user['id']}")
    return _start_session(request, response, user)


@router.post("/register")
def auth_register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    current_user: dict[str, Any] = Depends(get_current_user),
    _: None = RL_AUTH_REGISTER,
) -> dict[str, Any]:
    """Link the caller's anonymous account to an email and password."""
    if not current_user.get("is_anonymous"):
        raise HTTPException(status_code=400, detail="Account already registered")
    email, password = validate_registration_input(body.email, body.password, body.confirm_password)
    if auth_repo.get_user_by_email(email):
        raise HTTPException(status_code=409, detail="Email already registered")

    linked = auth_repo.link_user_credentials(current_user["id"], email, hash_password(password))
    if not linked:
        raise HTTPException(status_code=409, detail="Email already registered")
    logger.info(f"[auth] registered user_id={linked['id']}")
    return _start_session(request, response, linked)


@router.post("/login")
def auth_login(body: LoginRequest, request: Request, response: Response, _: None = RL_AUTH_LOGIN) -> dict[str, Any]:
    email = normalize_email(body.email)
    user = auth_repo.get_user_by_email(email)
    if not user or not user.get("password_hash") or not verify_password(body.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _start_session(request, response, user)


@router.post("/logout")
def auth_logout(response: Response) -> dict[str, str]:
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/me")
def auth_me(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    payload = _account_payload(current_user)
    respondent = auth_repo.get_respondent_by_uid(current_user["id"])
    payload["respondent"] = respondent.to_dict() if respondent else None
    return payload
