from types import SimpleNamespace

import pytest

pytest.importorskip("sqlalchemy")
from sqlalchemy.exc import IntegrityError

from twinber import repo
from twinber.models import UserData, UserInfo


def _failing_session(constraint_name):
    orig = SimpleNamespace(diag=SimpleNamespace(constraint_name=constraint_name))

    class _Session:
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def execute(self, stmt, params=None):
            raise IntegrityError("INSERT INTO respondent ...", params, orig)

        def commit(self):
            pass

    return _Session


def _user() -> UserData:
    return UserData(
        uid="00000000-0000-0000-0000-000000000001",
        user_info=UserInfo("Anna", 29, "female", "IT"),
        code="ABCDEFGH",
        answers=[1, 0],
    )


def test_code_collision_reports_false(monkeypatch):
    monkeypatch.setattr(repo, "SessionLocal", _failing_session(repo.RESPONDENT_CODE_CONSTRAINT))
    assert repo.save_respondent(_user(), "en") is False


def test_other_integrity_errors_propagate(monkeypatch):
    monkeypatch.setattr(repo, "SessionLocal", _failing_session("respondent_user_id_fkey"))
    with pytest.raises(IntegrityError):
        repo.save_respondent(_user(), "en")
