import csv
import io
import re
from typing import Callable

from ..models import Question, UserData
from ..survey_loader import country_name


def _writer(buf: io.StringIO):
    return csv.writer(buf, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)


def _write_user_row(buf: io.StringIO, w, user: UserData, country_names: dict[str, str], rest: list[object]) -> None:
    # Name column is always quoted, the rest only when needed.
    name = str(user.user_info.name).replace('"', '""')
    buf.write(f'"{name}",')
    country = country_name(user.user_info.country, country_names)
    w.writerow([user.user_info.age, user.user_info.gender, country, user.code, *rest])


def export_archive_csv(archive: list[UserData], question_count: int, country_names: dict[str, str]) -> str:
    buf = io.StringIO()
    w = _writer(buf)
    w.writerow(["Name", "Age", "Gender", "Country", "Code", *[f"Answer {i + 1}" for i in range(question_count)]])
    for user in archive:
        _write_user_row(buf, w, user, country_names, list(user.answers))
    return buf.getvalue()


def export_user_answers_csv(user: UserData, questions: list[Question], t: Callable[..., str]) -> str:
    yes, no = t("questionnaire_option_yes"), t("questionnaire_option_no")
    buf = io.StringIO()
    w = _writer(buf)
    w.writerow([t("userDetail_question_header"), t("userDetail_answer_header")])
    for index, question in enumerate(questions):
        answer = user.answers[index] if index < len(user.answers) else None
        w.writerow([question.text, yes if answer == 1 else no])
    return buf.getvalue()


def export_filtered_csv(
    users: list[UserData],
    question_numbers: list[int],
    questions: list[Question],
    t: Callable[..., str],
    country_names: dict[str, str],
) -> str:
    yes, no = t("questionnaire_option_yes"), t("questionnaire_option_no")
    indices = [n - 1 for n in question_numbers]
    buf = io.StringIO()
    w = _writer(buf)
    w.writerow(["Name", "Age", "Gender", "Country", "Code", *[questions[i].text for i in indices]])
    for user in users:
        answers = [yes if i < len(user.answers) and user.answers[i] == 1 else no for i in indices]
        _write_user_row(buf, w, user, country_names, answers)
    return buf.getvalue()


def archive_filename() -> str:
    return "twinber_archive.csv"


def user_answers_filename(user: UserData) -> str:
    name = re.sub(r"\s", "_", user.user_info.name)
    return f"twinber_answers_{name}.csv"


def filtered_filename(question_numbers: list[int]) -> str:
    return f"twinber_filtered_q{'_'.join(str(n) for n in question_numbers)}.csv"
