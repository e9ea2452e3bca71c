import pytest

from twinber.models import ArchiveCriteria, Question, SearchCriteria, UserData, UserInfo
from twinber.services.archive_filter import (
    filter_archive,
    matches_demographics,
    parse_question_numbers,
    search_compatible,
    validate_question_numbers,
)
from twinber.services.compatibility import CompatibilityInputError


def _user(code: str, answers: list[int], *, age: int = 25, gender: str = "female", country: str = "IT") -> UserData:
    return UserData(uid=f"uid-{code}", user_info=UserInfo(f"name-{code}", age, gender, country), code=code, answers=answers)


QUESTIONS = [Question(category=c, text=f"q{i}") for i, c in enumerate(["A", "A", "B", "B"])]


def test_parse_question_numbers():
    assert parse_question_numbers("3, 7,12") == ([3, 7, 12], None)
    assert parse_question_numbers("") == ([], None)
    assert parse_question_numbers(" 1 , , 2 ") == ([1, 2], None)
    assert parse_question_numbers([4, "5"]) == ([4, 5], None)
    numbers, error = parse_question_numbers("1,x")
    assert numbers == []
    assert error.code == "admin_filter_error_invalid_numbers"
    _, error = parse_question_numbers("1.5")
    assert error.code == "admin_filter_error_invalid_numbers"


def test_validate_question_numbers_range():
    assert validate_question_numbers([1, 4], 4) is None
    error = validate_question_numbers([0], 4)
    assert error.code == "admin_filter_error_out_of_range"
    assert error.question_count == 4
    assert validate_question_numbers([5], 4).code == "admin_filter_error_out_of_range"


def test_filter_single_question_yes():
    archive = [_user("U1", [1, 0, 1, 0]), _user("U2", [0, 0, 1, 0]), _user("U3", [1, 1, 1, 1])]
    result = filter_archive(archive, ArchiveCriteria(answer=1, question_numbers=[1]), 4)
    assert result.ok
    assert [u.code for u in result.users] == ["U1", "U3"]


def test_filter_multiple_questions_is_conjunctive():
    archive = [_user("U1", [0, 0, 1, 0]), _user("U2", [0, 1, 0, 0]), _user("U3", [0, 0, 0, 0])]
    result = filter_archive(archive, ArchiveCriteria(answer=0, question_numbers=[2, 3]), 4)
    assert [u.code for u in result.users] == ["U3"]


def test_filter_out_of_range_reports_error_and_filters_nothing():
    archive = [_user("U1", [1, 0, 1, 0])]
    result = filter_archive(archive, ArchiveCriteria(answer=1, question_numbers=[5]), 4)
    assert not result.ok
    assert result.users == []
    assert result.error.code == "admin_filter_error_out_of_range"


def test_filter_invalid_answer_reports_error():
    result = filter_archive([_user("U1", [1, 0, 1, 0])], ArchiveCriteria(answer=2), 4)
    assert result.error.code == "admin_filter_error_invalid_answer"


def test_filter_age_bounds_inclusive():
    archive = [_user("U1", [1] * 4, age=18), _user("U2", [1] * 4, age=30), _user("U3", [1] * 4, age=31)]
    result = filter_archive(archive, ArchiveCriteria(min_age=18, max_age=30), 4)
    assert [u.code for u in result.users] == ["U1", "U2"]


def test_filter_demographics_only_keeps_archive_order():
    archive = [
        _user("U1", [1] * 4, gender="male", country="US"),
        _user("U2", [1] * 4, gender="female", country="IT"),
        _user("U3", [1] * 4, gender="female", country="FR"),
        _user("U4", [1] * 4, gender="female", country="US"),
    ]
    result = filter_archive(archive, ArchiveCriteria(gender="female", countries=["US", "IT"]), 4)
    assert [u.code for u in result.users] == ["U2", "U4"]


def test_world_country_means_unconstrained():
    user = _user("U1", [1] * 4, country="JP")
    assert matches_demographics(user, countries=["world"])
    assert matches_demographics(user, countries=[])
    assert not matches_demographics(user, countries=["IT"])
    assert matches_demographics(user, countries=["jp"])


def test_search_sorted_best_first_and_threshold_respected():
    reference = _user("REF", [1, 1, 1, 1])
    archive = [
        reference,
        _user("U25", [1, 0, 0, 0]),
        _user("U75", [1, 1, 1, 0]),
        _user("U100", [1, 1, 1, 1]),
        _user("U50", [1, 1, 0, 0]),
    ]
    results = search_compatible(reference, archive, QUESTIONS, SearchCriteria(min_compatibility=50, min_age=None, max_age=None))
    assert [(s.user.code, s.compatibility_score) for s in results] == [("U100", 100), ("U75", 75), ("U50", 50)]


def test_search_ties_keep_archive_order():
    reference = _user("REF", [1, 1, 1, 1])
    archive = [_user("B", [1, 1, 0, 0]), _user("A", [0, 0, 1, 1]), _user("C", [1, 0, 1, 0])]
    results = search_compatible(reference, archive, QUESTIONS, SearchCriteria(min_compatibility=0))
    assert [s.user.code for s in results] == ["B", "A", "C"]


def test_search_applies_demographics():
    reference = _user("REF", [1, 1, 1, 1])
    archive = [
        _user("OLD", [1, 1, 1, 1], age=60),
        _user("MALE", [1, 1, 1, 1], gender="male"),
        _user("OK", [1, 1, 1, 1], age=40, country="US"),
    ]
    criteria = SearchCriteria(min_compatibility=35, gender="female", min_age=18, max_age=50, countries=["world"])
    assert [s.user.code for s in search_compatible(reference, archive, QUESTIONS, criteria)] == ["OK"]


def test_search_skips_malformed_archive_records():
    reference = _user("REF", [1, 1, 1, 1])
    archive = [_user("SHORT", [1, 1]), _user("OK", [1, 1, 1, 1])]
    results = search_compatible(reference, archive, QUESTIONS, SearchCriteria(min_compatibility=0))
    assert [s.user.code for s in results] == ["OK"]


def test_search_rejects_malformed_reference():
    with pytest.raises(CompatibilityInputError):
        search_compatible(_user("REF", [1]), [_user("OK", [1, 1, 1, 1])], QUESTIONS, SearchCriteria())
