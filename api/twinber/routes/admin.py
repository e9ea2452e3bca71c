import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from .. import repo as auth_repo
from ..auth.admin_deps import get_current_admin
from ..http_helpers import csv_response, parse_optional_int
from ..models import ArchiveCriteria, CompatibilityReport, UserData
from ..schemas import ArchiveFilterRequest
from ..services.archive_filter import FilterError, filter_archive, parse_question_numbers
from ..services.codes import normalize_code
from ..services.compatibility import present_report
from ..services.export import (
    archive_filename,
    export_archive_csv,
    export_filtered_csv,
    export_user_answers_csv,
    filtered_filename,
    user_answers_filename,
)
from ..survey_loader import (
    country_name,
    get_category_labels,
    get_country_names,
    get_questions,
    get_translator,
    question_count,
    resolve_language,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")


def _archive_row(user: UserData, country_names: dict[str, str]) -> dict[str, Any]:
    payload = user.to_dict()
    payload["country_name"] = country_name(user.user_info.country, country_names)
    return payload


def _require_respondent(code: str) -> UserData:
    user = auth_repo.get_respondent_by_code(normalize_code(code))
    if not user:
        raise HTTPException(status_code=404, detail="Respondent not found")
    return user


def _filter_error(error: FilterError, t) -> HTTPException:
    message = t(error.code, questionCount=error.question_count or question_count())
    return HTTPException(status_code=400, detail={"code": error.code, "message": message})


def _run_filter(body: ArchiveFilterRequest, t) -> tuple[ArchiveCriteria, list[UserData]]:
    numbers, error = parse_question_numbers(body.questions)
    if error:
        raise _filter_error(error, t)
    answer = parse_optional_int(body.answer, "answer")
    criteria = ArchiveCriteria(
        answer=1 if answer is None else answer,
        question_numbers=numbers,
        gender=body.gender or "any",
        min_age=parse_optional_int(body.min_age, "min_age"),
        max_age=parse_optional_int(body.max_age, "max_age"),
        countries=list(body.countries or []),
    )
    result = filter_archive(auth_repo.list_respondents(), criteria, question_count())
    if not result.ok:
        raise _filter_error(result.error, t)
    return criteria, result.users


@router.get("/archive")
def get_archive(_admin: dict[str, Any] = Depends(get_current_admin)) -> dict[str, Any]:
    names = get_country_names()
    users = auth_repo.list_respondents()
    return {"total": len(users), "users": [_archive_row(u, names) for u in users]}


@router.get("/archive/export")
def export_archive(admin: dict[str, Any] = Depends(get_current_admin)) -> Response:
    users = auth_repo.list_respondents()
    logger.info(f"[admin] archive export rows={len(users)} admin={admin['id']}")
    return csv_response(export_archive_csv(users, question_count(), get_country_names()), archive_filename())


@router.post("/archive/filter")
def post_archive_filter(
    body: ArchiveFilterRequest,
    lang: str | None = None,
    _admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    t = get_translator(resolve_language(lang))
    criteria, users = _run_filter(body, t)
    names = get_country_names()
    return {
        "question_numbers": criteria.question_numbers,
        "total": len(users),
        "users": [_archive_row(u, names) for u in users],
    }


@router.post("/archive/filter/export")
def export_archive_filter(
    body: ArchiveFilterRequest,
    lang: str | None = None,
    admin: dict[str, Any] = Depends(get_current_admin),
) -> Response:
    language = resolve_language(lang)
    t = get_translator(language)
    criteria, users = _run_filter(body, t)
    if not criteria.question_numbers:
        raise HTTPException(
            status_code=400,
            detail={"code": "admin_filter_error_export_invalid", "message": t("admin_filter_error_export_invalid")},
        )
    content = export_filtered_csv(users, criteria.question_numbers, get_questions(language), t, get_country_names())
    logger.info(f"[admin] filtered export rows={len(users)} admin={admin['id']}")
    return csv_response(content, filtered_filename(criteria.question_numbers))


@router.get("/archive/{code}")
def get_archive_user(
    code: str,
    lang: str | None = None,
    _admin: dict[str, Any] = Depends(get_current_admin),
) -> dict[str, Any]:
    language = resolve_language(lang)
    user = _require_respondent(code)
    t = get_translator(language)
    yes, no = t("questionnaire_option_yes"), t("questionnaire_option_no")
    questions = get_questions(language)
    payload = _archive_row(user, get_country_names())
    payload["answers_detail"] = [
        {
            "number": i + 1,
            "question": q.text,
            "category": q.category,
            "answer": user.answers[i] if i < len(user.answers) else None,
            "answer_label": yes if i < len(user.answers) and user.answers[i] == 1 else no,
        }
        for i, q in enumerate(questions)
    ]
    return {"user": payload}


@router.get("/archive/{code}/export")
def export_archive_user(
    code: str,
    lang: str | None = None,
    admin: dict[str, Any] = Depends(get_current_admin),
) -> Response:
    language = resolve_language(lang)
    user = _require_respondent(code)
    content = export_user_answers_csv(user, get_questions(language), get_translator(language))
    logger.info(f"[admin] answers export code={user.code} admin={admin['id']}")
    return csv_response(content, user_answers_filename(user))


@router.get("/reports")
def get_admin_reports(lang: str | None = None, admin: dict[str, Any] = Depends(get_current_admin)) -> dict[str, Any]:
    language = resolve_language(lang)
    t = get_translator(language)
    labels = get_category_labels(language)
    reports = [CompatibilityReport.from_dict(r) for r in auth_repo.list_reports(admin["id"])]
    return {"reports": [present_report(r, t, labels) for r in reports]}
