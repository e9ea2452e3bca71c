import re
from typing import Any

from fastapi import HTTPException
from fastapi.responses import Response

from .config import PASSWORD_MIN_LENGTH
from .models import UserInfo
from .survey_loader import get_country_names

ALLOWED_GENDERS = {"male", "female"}
MIN_AGE = 13
MAX_AGE = 120


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration_input(email: str, password: str, confirm_password: str | None = None) -> tuple[str, str]:
    e = normalize_email(email)
    if not re.match(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$", e):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if len(e) > 254:
        raise HTTPException(status_code=400, detail="Email too long")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if confirm_password is not None and confirm_password != password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    return e, password


def parse_optional_int(value: Any, field: str) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"{field} must be a whole number")
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field} must be a whole number")


def sanitize_user_info(payload: Any) -> UserInfo:
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="user_info must be an object")

    name = str(payload.get("name") or "").strip()
    gender = str(payload.get("gender") or "").strip().lower()
    country = str(payload.get("country") or "").strip().upper()
    age = parse_optional_int(payload.get("age"), "age")
    if not name or age is None or not gender or not country:
        raise HTTPException(status_code=400, detail="name, age, gender and country are required")
    if len(name) > 80:
        raise HTTPException(status_code=400, detail="name must be 80 characters or fewer")
    if age < MIN_AGE or age > MAX_AGE:
        raise HTTPException(status_code=400, detail=f"age must be between {MIN_AGE} and {MAX_AGE}")
    if gender not in ALLOWED_GENDERS:
        raise HTTPException(status_code=400, detail="gender must be one of: male, female")
    if country not in get_country_names():
        raise HTTPException(status_code=400, detail="country must be a known ISO country code")
    return UserInfo(name=name, age=age, gender=gender, country=country)


def validate_answers(raw: Any, question_count: int, *, allow_missing: bool = False) -> list[Any]:
    if not isinstance(raw, list):
        raise HTTPException(status_code=400, detail="answers must be an array")
    if len(raw) != question_count:
        raise HTTPException(status_code=400, detail=f"answers must contain exactly {question_count} entries")
    out: list[Any] = []
    for value in raw:
        if value is None and allow_missing:
            out.append(None)
            continue
        if isinstance(value, bool) or value not in (0, 1):
            raise HTTPException(status_code=400, detail="each answer must be 0 or 1")
        out.append(int(value))
    return out


def csv_response(content: str, filename: str) -> Response:
    safe = re.sub(r"[^A-Za-z0-9._-]", "_", filename)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{safe}"'},
    )
