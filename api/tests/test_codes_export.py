import base64
import json

from twinber import config
from twinber.models import AnswerData, Question, UserData, UserInfo
from twinber.services.codes import decode_answers, encode_answers, generate_user_code, is_valid_code, normalize_code
from twinber.services.export import (
    archive_filename,
    export_archive_csv,
    export_filtered_csv,
    export_user_answers_csv,
    filtered_filename,
    user_answers_filename,
)


def _t(key: str, **_kwargs) -> str:
    return {
        "questionnaire_option_yes": "Yes",
        "questionnaire_option_no": "No",
        "userDetail_question_header": "Question",
        "userDetail_answer_header": "Answer",
    }.get(key, key)


def test_generated_codes_use_the_code_alphabet():
    for _ in range(50):
        code = generate_user_code()
        assert len(code) == config.USER_CODE_LENGTH
        assert is_valid_code(code)
        assert not set(code) & {"0", "O", "I"}


def test_normalize_and_validate_code():
    assert normalize_code("  ab12cd34 ") == "AB12CD34"
    assert normalize_code(None) == ""
    assert not is_valid_code("AB12CD3")
    assert not is_valid_code("AB12CD30")


def test_answer_token_decodes_back():
    token = encode_answers(AnswerData("ABCDEFGH", [1, 0, 1]))
    decoded = decode_answers(token, 3)
    assert decoded == AnswerData("ABCDEFGH", [1, 0, 1])


def test_malformed_tokens_decode_to_none():
    assert decode_answers("not base64!!", 3) is None
    assert decode_answers(base64.b64encode(b"not json").decode(), 3) is None
    assert decode_answers(base64.b64encode(b"[1,0,1]").decode(), 3) is None
    wrong_len = base64.b64encode(json.dumps({"code": "X", "answers": [1, 0]}).encode()).decode()
    assert decode_answers(wrong_len, 3) is None
    bad_value = base64.b64encode(json.dumps({"code": "X", "answers": [1, 0, 2]}).encode()).decode()
    assert decode_answers(bad_value, 3) is None


def _user(name: str, answers: list[int], country: str = "IT") -> UserData:
    return UserData(uid="u1", user_info=UserInfo(name, 29, "female", country), code="ABCDEFGH", answers=answers)


def test_archive_csv_layout():
    content = export_archive_csv([_user('Anna "Nina" Rossi', [1, 0])], 2, {"IT": "Italy"})
    lines = content.split("\r\n")
    assert lines[0] == "Name,Age,Gender,Country,Code,Answer 1,Answer 2"
    assert lines[1] == '"Anna ""Nina"" Rossi",29,female,Italy,ABCDEFGH,1,0'
    assert content.endswith("\r\n")


def test_archive_csv_unknown_country_keeps_code():
    content = export_archive_csv([_user("Ann", [1], country="ZZ")], 1, {"IT": "Italy"})
    assert ",ZZ," in content


def test_archive_csv_quotes_plain_names_too():
    content = export_archive_csv([_user("Ann", [0])], 1, {"IT": "Italy"})
    assert content.split("\r\n")[1] == '"Ann",29,female,Italy,ABCDEFGH,0'


def test_user_answers_csv():
    questions = [Question("food_and_drink", "Do you like pizza?"), Question("hobbies", "Do you paint, often?")]
    content = export_user_answers_csv(_user("Ann", [1, 0]), questions, _t)
    assert content.split("\r\n")[:3] == ["Question,Answer", "Do you like pizza?,Yes", '"Do you paint, often?",No']


def test_filtered_csv_has_selected_question_columns():
    questions = [Question("a", "Q one"), Question("a", "Q two"), Question("b", "Q three")]
    content = export_filtered_csv([_user("Ann", [1, 0, 1])], [1, 3], questions, _t, {"IT": "Italy"})
    lines = content.split("\r\n")
    assert lines[0] == "Name,Age,Gender,Country,Code,Q one,Q three"
    assert lines[1] == '"Ann",29,female,Italy,ABCDEFGH,Yes,Yes'


def test_export_filenames():
    assert archive_filename() == "twinber_archive.csv"
    assert user_answers_filename(_user("Anna Maria Rossi", [])) == "twinber_answers_Anna_Maria_Rossi.csv"
    assert filtered_filename([3, 7]) == "twinber_filtered_q3_7.csv"
