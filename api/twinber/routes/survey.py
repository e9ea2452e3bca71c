import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from .. import repo as auth_repo
from ..auth.deps import get_current_user
from ..config import USER_CODE_MAX_ATTEMPTS
from ..http_helpers import sanitize_user_info, validate_answers
from ..models import UserData
from ..schemas import QuizProgressRequest, QuizSubmitRequest
from ..services.codes import decode_answers, encode_answers, generate_user_code
from ..survey_loader import (
    get_category_labels,
    get_country_names,
    get_coupon,
    get_questions,
    list_languages,
    question_count,
    resolve_language,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _respondent_payload(user: UserData) -> dict[str, Any]:
    payload = user.to_dict()
    payload["share_token"] = encode_answers(user.answer_data())
    return payload


@router.get("/languages")
def get_languages() -> dict[str, Any]:
    return {"languages": list_languages()}


@router.get("/countries")
def get_countries() -> dict[str, Any]:
    names = get_country_names()
    return {"countries": [{"code": code, "name": name} for code, name in sorted(names.items(), key=lambda kv: kv[1])]}


@router.get("/questions")
def get_question_list(lang: str | None = None) -> dict[str, Any]:
    language = resolve_language(lang)
    labels = get_category_labels(language)
    questions = get_questions(language)
    categories: list[str] = []
    for q in questions:
        if q.category not in categories:
            categories.append(q.category)
    return {
        "language": language,
        "question_count": len(questions),
        "categories": [{"key": c, "label": labels.get(c, c), "coupon": get_coupon(c)} for c in categories],
        "questions": [
            {"number": i + 1, "category": q.category, "category_label": labels.get(q.category, q.category), "text": q.text}
            for i, q in enumerate(questions)
        ],
    }


@router.get("/quiz/progress")
def get_progress(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return {"progress": auth_repo.get_quiz_progress(current_user["id"])}


@router.put("/quiz/progress")
def save_progress(body: QuizProgressRequest, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    count = question_count()
    info = sanitize_user_info(body.user_info)
    answers = validate_answers(body.answers, count, allow_missing=True)
    if body.current_question_index < 0 or body.current_question_index >= count:
        raise HTTPException(status_code=400, detail=f"current_question_index must be between 0 and {count - 1}")
    auth_repo.save_quiz_progress(current_user["id"], answers, body.current_question_index, info.to_dict())
    return {"status": "saved"}


@router.delete("/quiz/progress")
def discard_progress(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    auth_repo.delete_quiz_progress(current_user["id"])
    return {"status": "discarded"}


@router.post("/quiz/submit", status_code=201)
def submit_quiz(body: QuizSubmitRequest, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    info = sanitize_user_info(body.user_info)
    answers = validate_answers(body.answers, question_count())
    language = resolve_language(body.language)

    for _ in range(USER_CODE_MAX_ATTEMPTS):
        user = UserData(uid=current_user["id"], user_info=info, code=generate_user_code(), answers=answers)
        if auth_repo.save_respondent(user, language):
            logger.info(f"[quiz] submitted user_id={user.uid} code={user.code}")
            return {"respondent": _respondent_payload(user)}
    raise HTTPException(status_code=503, detail="Could not allocate a unique code, please retry")


@router.get("/me/respondent")
def get_my_respondent(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    user = auth_repo.get_respondent_by_uid(current_user["id"])
    if not user:
        raise HTTPException(status_code=404, detail="Quiz not completed yet")
    return {"respondent": _respondent_payload(user)}


@router.post("/codes/decode")
def decode_share_token(payload: dict[str, Any]) -> dict[str, Any]:
    data = decode_answers(str(payload.get("token") or ""), question_count())
    if not data:
        raise HTTPException(status_code=400, detail="Invalid answer token")
    return {"code": data.code, "answers": data.answers}
