import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from twinber.database import SessionLocal
from twinber.models import UserData
from twinber.services.chat import conversation_id_for, ordered_participants

logger = logging.getLogger(__name__)

RESPONDENT_CODE_CONSTRAINT = "respondent_code_key"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _violated_constraint(exc: IntegrityError) -> str | None:
    diag = getattr(exc.orig, "diag", None)
    return getattr(diag, "constraint_name", None)


# accounts


def create_anonymous_user(preferred_language: str | None = None) -> dict[str, Any]:
    user_id = str(uuid.uuid4())
    with SessionLocal() as db:
        db.execute(
            text(
                """
                INSERT INTO user_account (id, is_anonymous, preferred_language)
                VALUES (CAST(:id AS uuid), true, :lang)
                """
            ),
            {"id": user_id, "lang": preferred_language},
        )
        db.commit()
    return get_user_by_id(user_id) or {"id": user_id, "email": None, "is_anonymous": True}


def get_user_by_id(user_id: str) -> dict[str, Any] | None:
    try:
        uuid.UUID(str(user_id))
    except ValueError:
        return None
    with SessionLocal() as db:
        row = db.execute(text("SELECT * FROM user_account WHERE id=CAST(:id AS uuid)"), {"id": user_id}).mappings().first()
    return dict(row) if row else None


def get_user_by_email(email: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(text("SELECT * FROM user_account WHERE email=:email"), {"email": email}).mappings().first()
    return dict(row) if row else None


def link_user_credentials(user_id: str, email: str, password_hash: str) -> dict[str, Any] | None:
    """Turn an anonymous account into an email/password account. None if the email is taken."""
    try:
        with SessionLocal() as db:
            db.execute(
                text(
                    """
                    UPDATE user_account
                    SET email=:email, password_hash=:password_hash, is_anonymous=false, updated_at=NOW()
                    WHERE id=CAST(:id AS uuid)
                    """
                ),
                {"id": user_id, "email": email, "password_hash": password_hash},
            )
            db.commit()
    except IntegrityError:
        return None
    return get_user_by_id(user_id)


# respondents


_RESPONDENT_COLUMNS = "user_id AS uid, code, name, age, gender, country, answers, language, created_at"


def save_respondent(user: UserData, language: str) -> bool:
    """Insert or replace the respondent row for ``user.uid``. False on a code collision, other integrity errors propagate."""
    try:
        with SessionLocal() as db:
            db.execute(
                text(
                    """
                    INSERT INTO respondent (user_id, code, name, age, gender, country, answers, language)
                    VALUES (CAST(:uid AS uuid), :code, :name, :age, :gender, :country, CAST(:answers AS jsonb), :language)
                    ON CONFLICT (user_id) DO UPDATE SET
                      code=EXCLUDED.code,
                      name=EXCLUDED.name,
                      age=EXCLUDED.age,
                      gender=EXCLUDED.gender,
                      country=EXCLUDED.country,
                      answers=EXCLUDED.answers,
                      language=EXCLUDED.language,
                      updated_at=NOW()
                    """
                ),
                {
                    "uid": user.uid,
                    "code": user.code,
                    "name": user.user_info.name,
                    "age": user.user_info.age,
                    "gender": user.user_info.gender,
                    "country": user.user_info.country,
                    "answers": json.dumps(user.answers),
                    "language": language,
                },
            )
            db.execute(text("DELETE FROM quiz_progress WHERE user_id=CAST(:uid AS uuid)"), {"uid": user.uid})
            db.commit()
    except IntegrityError as exc:
        if _violated_constraint(exc) != RESPONDENT_CODE_CONSTRAINT:
            raise
        logger.info("Respondent code collision on %s", user.code)
        return False
    return True


def get_respondent_by_uid(uid: str) -> UserData | None:
    try:
        uuid.UUID(str(uid))
    except ValueError:
        return None
    with SessionLocal() as db:
        row = db.execute(
            text(f"SELECT {_RESPONDENT_COLUMNS} FROM respondent WHERE user_id=CAST(:uid AS uuid)"),
            {"uid": uid},
        ).mappings().first()
    return UserData.from_row(dict(row)) if row else None


def get_respondent_by_code(code: str) -> UserData | None:
    with SessionLocal() as db:
        row = db.execute(
            text(f"SELECT {_RESPONDENT_COLUMNS} FROM respondent WHERE code=:code"),
            {"code": code},
        ).mappings().first()
    return UserData.from_row(dict(row)) if row else None


def list_respondents() -> list[UserData]:
    with SessionLocal() as db:
        rows = db.execute(text(f"SELECT {_RESPONDENT_COLUMNS} FROM respondent ORDER BY created_at ASC")).mappings().all()
    return [UserData.from_row(dict(r)) for r in rows]


# quiz progress


def get_quiz_progress(uid: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                SELECT answers, current_question_index, user_info, updated_at
                FROM quiz_progress
                WHERE user_id=CAST(:uid AS uuid)
                """
            ),
            {"uid": uid},
        ).mappings().first()
    return dict(row) if row else None


def save_quiz_progress(uid: str, answers: list[int | None], current_question_index: int, user_info: dict[str, Any]) -> None:
    with SessionLocal() as db:
        db.execute(
            text(
                """
                INSERT INTO quiz_progress (user_id, answers, current_question_index, user_info)
                VALUES (CAST(:uid AS uuid), CAST(:answers AS jsonb), :idx, CAST(:user_info AS jsonb))
                ON CONFLICT (user_id) DO UPDATE SET
                  answers=EXCLUDED.answers,
                  current_question_index=EXCLUDED.current_question_index,
                  user_info=EXCLUDED.user_info,
                  updated_at=NOW()
                """
            ),
            {"uid": uid, "answers": json.dumps(answers), "idx": current_question_index, "user_info": json.dumps(user_info)},
        )
        db.commit()


def delete_quiz_progress(uid: str) -> None:
    with SessionLocal() as db:
        db.execute(text("DELETE FROM quiz_progress WHERE user_id=CAST(:uid AS uuid)"), {"uid": uid})
        db.commit()


# report history


def add_report(viewer_user_id: str, report: dict[str, Any]) -> None:
    with SessionLocal() as db:
        db.execute(
            text(
                """
                INSERT INTO compatibility_report (id, viewer_user_id, report)
                VALUES (CAST(:id AS uuid), CAST(:viewer AS uuid), CAST(:report AS jsonb))
                """
            ),
            {"id": str(uuid.uuid4()), "viewer": viewer_user_id, "report": json.dumps(report)},
        )
        db.commit()


def list_reports(viewer_user_id: str) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT report
                FROM compatibility_report
                WHERE viewer_user_id=CAST(:viewer AS uuid)
                ORDER BY created_at DESC
                """
            ),
            {"viewer": viewer_user_id},
        ).mappings().all()
    return [dict(r["report"]) for r in rows]


def clear_reports(viewer_user_id: str) -> int:
    with SessionLocal() as db:
        res = db.execute(
            text("DELETE FROM compatibility_report WHERE viewer_user_id=CAST(:viewer AS uuid)"),
            {"viewer": viewer_user_id},
        )
        db.commit()
    return int(res.rowcount or 0)


# chat


def send_message(sender: UserData, partner: UserData, body: str, compatibility_score: int) -> dict[str, Any]:
    """Append a message, creating the conversation on first contact. One transaction."""
    conversation_id = conversation_id_for(sender.uid, partner.uid)
    participant1, participant2 = ordered_participants(sender, partner)
    message_id = str(uuid.uuid4())
    now = _now_utc()
    last_message = {"sender_code": sender.code, "sender_uid": sender.uid, "text": body, "timestamp": now.isoformat()}

    with SessionLocal() as db:
        existing = db.execute(
            text("SELECT id FROM conversation WHERE id=:id FOR UPDATE"),
            {"id": conversation_id},
        ).mappings().first()
        if not existing:
            db.execute(
                text(
                    """
                    INSERT INTO conversation (
                      id, participant_a_id, participant_b_id, participant1, participant2,
                      compatibility_score, last_message, last_update
                    )
                    VALUES (
                      :id, CAST(:a AS uuid), CAST(:b AS uuid), CAST(:p1 AS jsonb), CAST(:p2 AS jsonb),
                      :score, CAST(:last_message AS jsonb), :now
                    )
                    ON CONFLICT (id) DO UPDATE SET last_message=EXCLUDED.last_message, last_update=EXCLUDED.last_update
                    """
                ),
                {
                    "id": conversation_id,
                    "a": participant1["uid"],
                    "b": participant2["uid"],
                    "p1": json.dumps(participant1),
                    "p2": json.dumps(participant2),
                    "score": compatibility_score,
                    "last_message": json.dumps(last_message),
                    "now": now,
                },
            )
        else:
            db.execute(
                text(
                    """
                    UPDATE conversation
                    SET last_message=CAST(:last_message AS jsonb), last_update=:now
                    WHERE id=:id
                    """
                ),
                {"id": conversation_id, "last_message": json.dumps(last_message), "now": now},
            )
        db.execute(
            text(
                """
                INSERT INTO chat_message (id, conversation_id, sender_uid, sender_code, body, created_at)
                VALUES (CAST(:id AS uuid), :conversation_id, CAST(:sender_uid AS uuid), :sender_code, :body, :now)
                """
            ),
            {
                "id": message_id,
                "conversation_id": conversation_id,
                "sender_uid": sender.uid,
                "sender_code": sender.code,
                "body": body,
                "now": now,
            },
        )
        db.commit()

    return {
        "id": message_id,
        "conversation_id": conversation_id,
        "sender_uid": sender.uid,
        "sender_code": sender.code,
        "text": body,
        "timestamp": now,
    }


def get_conversation(conversation_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(text("SELECT * FROM conversation WHERE id=:id"), {"id": conversation_id}).mappings().first()
    return dict(row) if row else None


def list_conversations(uid: str) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT *
                FROM conversation
                WHERE participant_a_id=CAST(:uid AS uuid) OR participant_b_id=CAST(:uid AS uuid)
                ORDER BY last_update DESC
                """
            ),
            {"uid": uid},
        ).mappings().all()
    return [dict(r) for r in rows]


def list_messages(conversation_id: str) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT id, conversation_id, sender_uid, sender_code, body, created_at
                FROM chat_message
                WHERE conversation_id=:id
                ORDER BY created_at ASC
                """
            ),
            {"id": conversation_id},
        ).mappings().all()
    return [dict(r) for r in rows]
