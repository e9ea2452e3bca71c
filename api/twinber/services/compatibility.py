from __future__ import annotations

import math
from typing import Any, Callable

from ..config import GROWTH_THRESHOLD, STRENGTH_THRESHOLD
from ..models import AnswerData, CompatibilityCategoryScore, CompatibilityReport, Question


class CompatibilityInputError(ValueError):
    pass


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent(matches: int, count: int) -> int:
    return round_half_up((matches / count) * 100)


def check_answer_data(data: AnswerData, question_count: int) -> None:
    if question_count <= 0:
        raise CompatibilityInputError("Question list is empty")
    if len(data.answers) != question_count:
        raise CompatibilityInputError(
            f"Answers for {data.code or 'respondent'} have {len(data.answers)} entries, expected {question_count}"
        )
    if any(isinstance(a, bool) or a not in (0, 1) for a in data.answers):
        raise CompatibilityInputError(f"Answers for {data.code or 'respondent'} must be 0 or 1")


def _check_inputs(data1: AnswerData, data2: AnswerData, questions: list[Question]) -> None:
    check_answer_data(data1, len(questions))
    check_answer_data(data2, len(questions))


def calculate_compatibility(data1: AnswerData, data2: AnswerData, questions: list[Question]) -> CompatibilityReport:
    _check_inputs(data1, data2, questions)

    total_matches = 0
    # dicts keep insertion order, so categories come out in first-seen order
    category_stats: dict[str, list[int]] = {}
    for index, question in enumerate(questions):
        is_match = data1.answers[index] == data2.answers[index]
        stats = category_stats.setdefault(question.category, [0, 0])
        if is_match:
            total_matches += 1
            stats[0] += 1
        stats[1] += 1

    return CompatibilityReport(
        overall_score=percent(total_matches, len(questions)),
        category_scores=[
            CompatibilityCategoryScore(category=category, score=percent(matches, count))
            for category, (matches, count) in category_stats.items()
        ],
        user1_code=data1.code,
        user2_code=data2.code,
    )


def score_band(score: int) -> str:
    if score >= STRENGTH_THRESHOLD:
        return "high"
    if score >= GROWTH_THRESHOLD:
        return "medium"
    return "low"


def strengths(report: CompatibilityReport) -> list[CompatibilityCategoryScore]:
    items = [c for c in report.category_scores if c.score >= STRENGTH_THRESHOLD]
    return sorted(items, key=lambda c: c.score, reverse=True)


def growth_areas(report: CompatibilityReport) -> list[CompatibilityCategoryScore]:
    items = [c for c in report.category_scores if c.score < GROWTH_THRESHOLD]
    return sorted(items, key=lambda c: c.score)


def build_summary(
    report: CompatibilityReport,
    t: Callable[..., str],
    category_labels: dict[str, str] | None = None,
) -> list[str]:
    labels = category_labels or {}
    top = strengths(report)
    low = growth_areas(report)

    def _fmt(items: list[CompatibilityCategoryScore]) -> str:
        return ", ".join(labels.get(c.category, c.category) for c in items)

    paragraphs: list[str] = []
    if top:
        paragraphs.append(t("result_summary_strengths", categories=_fmt(top)))
    if low:
        paragraphs.append(t("result_summary_growth_areas", categories=_fmt(low)))

    if not top and not low:
        paragraphs.append(t("result_summary_balanced"))
    elif len(paragraphs) == 1 and top:
        paragraphs.append(t("result_summary_strengths_only_ending"))
    elif len(paragraphs) == 1 and low:
        paragraphs.append(t("result_summary_growth_only_ending"))
    return paragraphs


def build_contact_message(report: CompatibilityReport, viewer_code: str, sender_name: str, t: Callable[..., str]) -> str:
    if viewer_code == report.user1_code:
        partner_info, partner_code = report.user2_info, report.user2_code
    else:
        partner_info, partner_code = report.user1_info, report.user1_code
    partner_name = partner_info.name if partner_info and partner_info.name else partner_code
    return t(
        "contact_message_template",
        partnerName=partner_name,
        score=report.overall_score,
        senderName=sender_name,
    )


def present_report(
    report: CompatibilityReport,
    t: Callable[..., str],
    category_labels: dict[str, str],
) -> dict[str, Any]:
    payload = report.to_dict()
    payload["overall_band"] = score_band(report.overall_score)
    payload["category_scores"] = [
        {
            "category": c.category,
            "label": category_labels.get(c.category, c.category),
            "score": c.score,
            "band": score_band(c.score),
        }
        for c in report.category_scores
    ]
    payload["summary"] = build_summary(report, t, category_labels)
    return payload
