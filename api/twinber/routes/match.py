import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from .. import repo as auth_repo
from ..auth.deps import get_current_user
from ..config import RL_COMPARE_LIMIT, RL_WINDOW_SECONDS, SEARCH_DEFAULTS
from ..http_helpers import parse_optional_int
from ..models import CompatibilityReport, SearchCriteria, UserData
from ..schemas import CompareRequest, SearchRequest
from ..services.archive_filter import search_compatible
from ..services.codes import is_valid_code, normalize_code
from ..services.compatibility import (
    CompatibilityInputError,
    build_contact_message,
    calculate_compatibility,
    present_report,
)
from ..services.rate_limit import rate_limit_dependency
from ..survey_loader import get_category_labels, get_questions, get_translator, resolve_language

logger = logging.getLogger(__name__)

router = APIRouter()

RL_COMPARE = rate_limit_dependency("compare", RL_COMPARE_LIMIT, RL_WINDOW_SECONDS)


def _lookup(code: str, t) -> UserData:
    user = auth_repo.get_respondent_by_code(code) if is_valid_code(code) else None
    if not user:
        raise HTTPException(status_code=404, detail=t("comparison_error_search_code_not_found"))
    return user


def _render(report: CompatibilityReport, viewer: UserData | None, language: str) -> dict[str, Any]:
    t = get_translator(language)
    payload = present_report(report, t, get_category_labels(language))
    if viewer and viewer.code in (report.user1_code, report.user2_code):
        payload["contact_message"] = build_contact_message(report, viewer.code, viewer.user_info.name, t)
    return payload


@router.post("/compare")
def compare_codes(
    body: CompareRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    _: None = RL_COMPARE,
) -> dict[str, Any]:
    language = resolve_language(body.language)
    t = get_translator(language)
    code1, code2 = normalize_code(body.code1), normalize_code(body.code2)
    if not code1 or not code2:
        raise HTTPException(status_code=400, detail=t("comparison_error_invalid_code"))
    if code1 == code2:
        raise HTTPException(status_code=400, detail=t("comparison_error_same_code"))

    user1, user2 = _lookup(code1, t), _lookup(code2, t)
    try:
        report = calculate_compatibility(user1.answer_data(), user2.answer_data(), get_questions(language))
    except CompatibilityInputError as exc:
        logger.warning(f"[compare] unusable answers code1={code1} code2={code2}: {exc}")
        raise HTTPException(status_code=422, detail=str(exc))
    report.user1_info = user1.user_info
    report.user2_info = user2.user_info

    auth_repo.add_report(current_user["id"], report.to_dict())
    viewer = auth_repo.get_respondent_by_uid(current_user["id"])
    return {"report": _render(report, viewer, language)}


@router.get("/reports")
def get_reports(lang: str | None = None, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    language = resolve_language(lang)
    viewer = auth_repo.get_respondent_by_uid(current_user["id"])
    reports = [CompatibilityReport.from_dict(r) for r in auth_repo.list_reports(current_user["id"])]
    return {"reports": [_render(r, viewer, language) for r in reports]}


@router.delete("/reports")
def clear_reports(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    removed = auth_repo.clear_reports(current_user["id"])
    return {"status": "cleared", "removed": removed}


@router.post("/search")
def search_matches(
    body: SearchRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    _: None = RL_COMPARE,
) -> dict[str, Any]:
    """Rank archived respondents by compatibility with a reference code.

    The reference defaults to the caller's own respondent. Unset bounds fall
    back to ``SEARCH_DEFAULTS``.
    """
    language = resolve_language(body.language)
    t = get_translator(language)
    if body.code:
        reference = _lookup(normalize_code(body.code), t)
    else:
        reference = auth_repo.get_respondent_by_uid(current_user["id"])
        if not reference:
            raise HTTPException(status_code=404, detail="Quiz not completed yet")

    min_age = parse_optional_int(body.min_age, "min_age")
    max_age = parse_optional_int(body.max_age, "max_age")
    min_compat = parse_optional_int(body.min_compatibility, "min_compatibility")
    criteria = SearchCriteria(
        min_compatibility=SEARCH_DEFAULTS["min_compatibility"] if min_compat is None else min_compat,
        gender=body.gender or "any",
        min_age=SEARCH_DEFAULTS["min_age"] if min_age is None else min_age,
        max_age=SEARCH_DEFAULTS["max_age"] if max_age is None else max_age,
        countries=list(body.countries or []),
    )
    if criteria.min_age > criteria.max_age:
        raise HTTPException(status_code=400, detail="min_age must not exceed max_age")

    try:
        results = search_compatible(reference, auth_repo.list_respondents(), get_questions(language), criteria)
    except CompatibilityInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    logger.info(f"[search] reference={reference.code} results={len(results)}")
    return {
        "reference_code": reference.code,
        "results": [
            {
                "code": s.user.code,
                "uid": s.user.uid,
                "user_info": s.user.user_info.to_dict(),
                "compatibility_score": s.compatibility_score,
            }
            for s in results
        ],
    }
