import pytest

from twinber.models import AnswerData, CompatibilityCategoryScore, CompatibilityReport, Question, UserInfo
from twinber.services.compatibility import (
    CompatibilityInputError,
    build_contact_message,
    build_summary,
    calculate_compatibility,
    growth_areas,
    percent,
    present_report,
    round_half_up,
    score_band,
    strengths,
)


def _questions(*categories: str) -> list[Question]:
    return [Question(category=c, text=f"q{i}") for i, c in enumerate(categories)]


def _t(key: str, **replacements) -> str:
    if not replacements:
        return key
    return key + ":" + ",".join(f"{k}={v}" for k, v in sorted(replacements.items()))


def test_two_categories_half_match():
    questions = _questions("A", "A", "B", "B")
    report = calculate_compatibility(AnswerData("X", [1, 0, 1, 1]), AnswerData("Y", [1, 1, 1, 0]), questions)
    assert report.overall_score == 50
    assert [(c.category, c.score) for c in report.category_scores] == [("A", 50), ("B", 50)]
    assert report.user1_code == "X"
    assert report.user2_code == "Y"


def test_identical_answers_score_100_everywhere():
    questions = _questions("A", "B", "A", "C")
    answers = [1, 0, 0, 1]
    report = calculate_compatibility(AnswerData("X", answers), AnswerData("Y", list(answers)), questions)
    assert report.overall_score == 100
    assert all(c.score == 100 for c in report.category_scores)


def test_complementary_answers_score_zero():
    questions = _questions("A", "B", "B")
    report = calculate_compatibility(AnswerData("X", [1, 0, 1]), AnswerData("Y", [0, 1, 0]), questions)
    assert report.overall_score == 0
    assert [c.score for c in report.category_scores] == [0, 0]


def test_categories_in_first_seen_order():
    questions = _questions("C", "A", "C", "B", "A")
    report = calculate_compatibility(AnswerData("X", [1] * 5), AnswerData("Y", [1] * 5), questions)
    assert [c.category for c in report.category_scores] == ["C", "A", "B"]


def test_scoring_is_symmetric():
    questions = _questions("A", "A", "B", "C", "C", "C")
    a = AnswerData("X", [1, 0, 1, 1, 0, 0])
    b = AnswerData("Y", [0, 0, 1, 0, 0, 1])
    r1 = calculate_compatibility(a, b, questions)
    r2 = calculate_compatibility(b, a, questions)
    assert r1.overall_score == r2.overall_score
    assert [c.score for c in r1.category_scores] == [c.score for c in r2.category_scores]


def test_rounding_is_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(66.4) == 66
    # 1/3 and 2/3
    assert percent(1, 3) == 33
    assert percent(2, 3) == 67
    # 1/8 = 12.5 rounds up, unlike banker's rounding
    assert percent(1, 8) == 13


def test_three_question_category_rounds_to_67():
    questions = _questions("A", "A", "A")
    report = calculate_compatibility(AnswerData("X", [1, 1, 1]), AnswerData("Y", [1, 1, 0]), questions)
    assert report.overall_score == 67
    assert report.category_scores[0].score == 67


def test_empty_question_list_is_rejected():
    with pytest.raises(CompatibilityInputError):
        calculate_compatibility(AnswerData("X", []), AnswerData("Y", []), [])


def test_length_mismatch_is_rejected():
    questions = _questions("A", "B")
    with pytest.raises(CompatibilityInputError):
        calculate_compatibility(AnswerData("X", [1, 0, 1]), AnswerData("Y", [1, 0]), questions)
    with pytest.raises(CompatibilityInputError):
        calculate_compatibility(AnswerData("X", [1, 0]), AnswerData("Y", [1]), questions)


def test_non_binary_answers_are_rejected():
    questions = _questions("A", "B")
    with pytest.raises(CompatibilityInputError):
        calculate_compatibility(AnswerData("X", [1, 2]), AnswerData("Y", [1, 0]), questions)


def test_input_error_is_a_value_error():
    assert issubclass(CompatibilityInputError, ValueError)


def test_score_bands():
    assert score_band(100) == "high"
    assert score_band(70) == "high"
    assert score_band(69) == "medium"
    assert score_band(40) == "medium"
    assert score_band(39) == "low"


def _report(*scores: tuple[str, int]) -> CompatibilityReport:
    return CompatibilityReport(
        overall_score=50,
        category_scores=[CompatibilityCategoryScore(c, s) for c, s in scores],
        user1_code="AAAAAAAA",
        user2_code="BBBBBBBB",
        user1_info=UserInfo("Ann", 30, "female", "IT"),
        user2_info=UserInfo("Bob", 31, "male", "US"),
    )


def test_strengths_and_growth_areas_sorted():
    report = _report(("a", 75), ("b", 100), ("c", 20), ("d", 0), ("e", 50))
    assert [c.category for c in strengths(report)] == ["b", "a"]
    assert [c.category for c in growth_areas(report)] == ["d", "c"]


def test_summary_paragraphs():
    labels = {"a": "Alpha", "b": "Beta", "c": "Gamma"}
    both = build_summary(_report(("a", 100), ("c", 0)), _t, labels)
    assert both == ["result_summary_strengths:categories=Alpha", "result_summary_growth_areas:categories=Gamma"]

    only_top = build_summary(_report(("a", 100), ("b", 50)), _t, labels)
    assert only_top == ["result_summary_strengths:categories=Alpha", "result_summary_strengths_only_ending"]

    only_low = build_summary(_report(("b", 50), ("c", 0)), _t, labels)
    assert only_low == ["result_summary_growth_areas:categories=Gamma", "result_summary_growth_only_ending"]

    balanced = build_summary(_report(("b", 50)), _t, labels)
    assert balanced == ["result_summary_balanced"]


def test_contact_message_names_the_other_person():
    report = _report(("a", 100))
    msg = build_contact_message(report, "AAAAAAAA", "Ann", _t)
    assert msg == "contact_message_template:partnerName=Bob,score=50,senderName=Ann"
    msg = build_contact_message(report, "BBBBBBBB", "Bob", _t)
    assert "partnerName=Ann" in msg


def test_present_report_adds_labels_and_bands():
    payload = present_report(_report(("a", 100), ("c", 10)), _t, {"a": "Alpha"})
    assert payload["overall_band"] == "medium"
    assert payload["category_scores"] == [
        {"category": "a", "label": "Alpha", "score": 100, "band": "high"},
        {"category": "c", "label": "c", "score": 10, "band": "low"},
    ]
    assert payload["user1_info"]["name"] == "Ann"
    assert len(payload["summary"]) == 2
