import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

import twinber.main as m
from twinber import config
from twinber import repo as auth_repo
from twinber.models import UserData
from twinber.services.chat import conversation_id_for, ordered_participants
from twinber.services.rate_limit import limiter

ADMIN_EMAIL = "admin@twinber.app"


class FakeStore:
    """In-memory stand-in for twinber.repo, keyed the same way the tables are."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.respondents: dict[str, UserData] = {}
        self.progress: dict[str, dict[str, Any]] = {}
        self.reports: dict[str, list[dict[str, Any]]] = {}
        self.conversations: dict[str, dict[str, Any]] = {}
        self.messages: dict[str, list[dict[str, Any]]] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def create_anonymous_user(self, preferred_language=None):
        user = {"id": str(uuid.uuid4()), "email": None, "password_hash": None, "is_anonymous": True}
        self.users[user["id"]] = user
        return dict(user)

    def get_user_by_id(self, user_id):
        user = self.users.get(str(user_id))
        return dict(user) if user else None

    def get_user_by_email(self, email):
        for user in self.users.values():
            if user["email"] == email:
                return dict(user)
        return None

    def link_user_credentials(self, user_id, email, password_hash):
        if self.get_user_by_email(email):
            return None
        self.users[user_id].update(email=email, password_hash=password_hash, is_anonymous=False)
        return dict(self.users[user_id])

    def save_respondent(self, user, language):
        if any(r.code == user.code and r.uid != user.uid for r in self.respondents.values()):
            return False
        self.respondents[user.uid] = copy.deepcopy(user)
        self.progress.pop(user.uid, None)
        return True

    def get_respondent_by_uid(self, uid):
        return copy.deepcopy(self.respondents.get(str(uid)))

    def get_respondent_by_code(self, code):
        for r in self.respondents.values():
            if r.code == code:
                return copy.deepcopy(r)
        return None

    def list_respondents(self):
        return [copy.deepcopy(r) for r in self.respondents.values()]

    def get_quiz_progress(self, uid):
        return copy.deepcopy(self.progress.get(uid))

    def save_quiz_progress(self, uid, answers, current_question_index, user_info):
        self.progress[uid] = {
            "answers": list(answers),
            "current_question_index": current_question_index,
            "user_info": dict(user_info),
        }

    def delete_quiz_progress(self, uid):
        self.progress.pop(uid, None)

    def add_report(self, viewer_user_id, report):
        self.reports.setdefault(viewer_user_id, []).insert(0, copy.deepcopy(report))

    def list_reports(self, viewer_user_id):
        return copy.deepcopy(self.reports.get(viewer_user_id, []))

    def clear_reports(self, viewer_user_id):
        return len(self.reports.pop(viewer_user_id, []))

    def send_message(self, sender, partner, body, compatibility_score):
        conversation_id = conversation_id_for(sender.uid, partner.uid)
        now = self._tick()
        last_message = {"sender_code": sender.code, "sender_uid": sender.uid, "text": body, "timestamp": now.isoformat()}
        if conversation_id not in self.conversations:
            p1, p2 = ordered_participants(sender, partner)
            self.conversations[conversation_id] = {
                "id": conversation_id,
                "participant_a_id": p1["uid"],
                "participant_b_id": p2["uid"],
                "participant1": p1,
                "participant2": p2,
                "compatibility_score": compatibility_score,
            }
        self.conversations[conversation_id].update(last_message=last_message, last_update=now)
        row = {
            "id": str(uuid.uuid4()),
            "conversation_id": conversation_id,
            "sender_uid": sender.uid,
            "sender_code": sender.code,
            "body": body,
            "created_at": now,
        }
        self.messages.setdefault(conversation_id, []).append(row)
        return {
            "id": row["id"],
            "conversation_id": conversation_id,
            "sender_uid": sender.uid,
            "sender_code": sender.code,
            "text": body,
            "timestamp": now,
        }

    def get_conversation(self, conversation_id):
        return copy.deepcopy(self.conversations.get(conversation_id))

    def list_conversations(self, uid):
        mine = [c for c in self.conversations.values() if uid in (c["participant_a_id"], c["participant_b_id"])]
        return copy.deepcopy(sorted(mine, key=lambda c: c["last_update"], reverse=True))

    def list_messages(self, conversation_id):
        return copy.deepcopy(self.messages.get(conversation_id, []))


_REPO_FUNCTIONS = [
    "create_anonymous_user",
    "get_user_by_id",
    "get_user_by_email",
    "link_user_credentials",
    "save_respondent",
    "get_respondent_by_uid",
    "get_respondent_by_code",
    "list_respondents",
    "get_quiz_progress",
    "save_quiz_progress",
    "delete_quiz_progress",
    "add_report",
    "list_reports",
    "clear_reports",
    "send_message",
    "get_conversation",
    "list_conversations",
    "list_messages",
]


@pytest.fixture
def store(monkeypatch):
    fake = FakeStore()
    for name in _REPO_FUNCTIONS:
        monkeypatch.setattr(auth_repo, name, getattr(fake, name))
    monkeypatch.setattr(m, "wait_for_db", lambda *args, **kwargs: None)
    monkeypatch.setattr(m, "run_migrations", lambda *args, **kwargs: None)
    monkeypatch.setattr(config, "JWT_SECRET", "test-secret-key-for-testing-only")
    monkeypatch.setattr(config, "ADMIN_EMAILS", [ADMIN_EMAIL])
    limiter.reset()
    yield fake
    limiter.reset()
    m.app.dependency_overrides = {}


@pytest.fixture
def new_client(store):
    """Factory for clients with their own cookie jar, so each one is a separate visitor."""

    def _make() -> TestClient:
        return TestClient(m.app)

    return _make


PROFILE = {"name": "Anna Rossi", "age": 29, "gender": "female", "country": "IT"}


def answers(pattern: str) -> list[int]:
    """Expand a pattern like "10" to a 40-answer vector by repetition."""
    digits = [int(ch) for ch in pattern]
    return [digits[i % len(digits)] for i in range(40)]


def start_respondent(client: TestClient, profile: dict[str, Any] | None = None, pattern: str = "1") -> dict[str, Any]:
    res = client.post("/auth/anonymous", json={"language": "en"})
    assert res.status_code == 201, res.text
    res = client.post(
        "/quiz/submit",
        json={"user_info": profile or PROFILE, "answers": answers(pattern), "language": "en"},
    )
    assert res.status_code == 201, res.text
    return res.json()["respondent"]
