from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..models import ArchiveCriteria, Question, SearchCriteria, UserData
from .compatibility import CompatibilityInputError, calculate_compatibility, check_answer_data

logger = logging.getLogger(__name__)

WORLD = "world"


@dataclass
class FilterError:
    code: str
    message: str
    question_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "question_count": self.question_count}


@dataclass
class FilterResult:
    users: list[UserData]
    error: FilterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScoredUser:
    user: UserData
    compatibility_score: int


def parse_question_numbers(raw: Any) -> tuple[list[int], FilterError | None]:
    """Parse "3, 7,12" (or a list) into question numbers.

    Blank entries are ignored. Anything that is not a whole number is reported
    back as a FilterError instead of raising.
    """
    if raw is None:
        return [], None
    parts = raw if isinstance(raw, list) else str(raw).split(",")
    numbers: list[int] = []
    for part in parts:
        if isinstance(part, bool):
            return [], FilterError("admin_filter_error_invalid_numbers", "Question numbers must be whole numbers")
        if isinstance(part, int):
            numbers.append(part)
            continue
        value = str(part).strip()
        if not value:
            continue
        try:
            numbers.append(int(value, 10))
        except ValueError:
            return [], FilterError("admin_filter_error_invalid_numbers", "Question numbers must be whole numbers")
    return numbers, None


def validate_question_numbers(numbers: list[int], question_count: int) -> FilterError | None:
    for n in numbers:
        if isinstance(n, bool) or not isinstance(n, int):
            return FilterError("admin_filter_error_invalid_numbers", "Question numbers must be whole numbers")
        if n < 1 or n > question_count:
            return FilterError(
                "admin_filter_error_out_of_range",
                f"Question numbers must be between 1 and {question_count}",
                question_count=question_count,
            )
    return None


def _effective_countries(countries: list[str]) -> set[str]:
    cleaned = {str(c).strip().upper() for c in countries if str(c).strip()}
    if WORLD.upper() in cleaned:
        return set()
    return cleaned


def matches_demographics(
    user: UserData,
    *,
    gender: str = "any",
    min_age: int | None = None,
    max_age: int | None = None,
    countries: list[str] | None = None,
) -> bool:
    wanted_gender = str(gender or "any").strip().lower()
    if wanted_gender != "any" and str(user.user_info.gender).strip().lower() != wanted_gender:
        return False
    age = user.user_info.age
    if min_age is not None and age < min_age:
        return False
    if max_age is not None and age > max_age:
        return False
    allowed = _effective_countries(countries or [])
    if allowed and str(user.user_info.country).upper() not in allowed:
        return False
    return True


def filter_archive(archive: list[UserData], criteria: ArchiveCriteria, question_count: int) -> FilterResult:
    if criteria.answer not in (0, 1) or isinstance(criteria.answer, bool):
        return FilterResult(users=[], error=FilterError("admin_filter_error_invalid_answer", "Answer must be 0 or 1"))
    error = validate_question_numbers(criteria.question_numbers, question_count)
    if error:
        return FilterResult(users=[], error=error)

    indices = [n - 1 for n in criteria.question_numbers]
    out: list[UserData] = []
    for user in archive:
        if not matches_demographics(
            user,
            gender=criteria.gender,
            min_age=criteria.min_age,
            max_age=criteria.max_age,
            countries=criteria.countries,
        ):
            continue
        if indices and not all(i < len(user.answers) and user.answers[i] == criteria.answer for i in indices):
            continue
        out.append(user)
    return FilterResult(users=out)


def search_compatible(
    reference: UserData,
    archive: list[UserData],
    questions: list[Question],
    criteria: SearchCriteria,
) -> list[ScoredUser]:
    """Score every other archived respondent against ``reference``.

    Results at or above ``criteria.min_compatibility`` that pass the
    demographic predicates are returned best first. ``sorted`` is stable, so
    equal scores keep archive order. Archived records whose answers do not fit
    the question list are skipped; a malformed reference raises
    ``CompatibilityInputError``.
    """
    ref_data = reference.answer_data()
    check_answer_data(ref_data, len(questions))
    scored: list[ScoredUser] = []
    for user in archive:
        if user.code == reference.code:
            continue
        try:
            report = calculate_compatibility(ref_data, user.answer_data(), questions)
        except CompatibilityInputError as exc:
            logger.warning("Skipping archived respondent %s in search: %s", user.code, exc)
            continue
        if report.overall_score < criteria.min_compatibility:
            continue
        if not matches_demographics(
            user,
            gender=criteria.gender,
            min_age=criteria.min_age,
            max_age=criteria.max_age,
            countries=criteria.countries,
        ):
            continue
        scored.append(ScoredUser(user=user, compatibility_score=report.overall_score))
    return sorted(scored, key=lambda s: s.compatibility_score, reverse=True)
