from typing import Any

from fastapi import HTTPException

from ..config import MESSAGE_MAX_LENGTH
from ..models import UserData


def conversation_id_for(uid_a: str, uid_b: str) -> str:
    first, second = sorted((str(uid_a), str(uid_b)))
    return f"{first}-{second}"


def participant_snapshot(user: UserData) -> dict[str, Any]:
    return {**user.user_info.to_dict(), "code": user.code, "uid": user.uid}


def ordered_participants(sender: UserData, partner: UserData) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (participant1, participant2) ordered by uid, matching the conversation id."""
    a, b = participant_snapshot(sender), participant_snapshot(partner)
    if str(sender.uid) < str(partner.uid):
        return a, b
    return b, a


def clean_message_body(raw: Any) -> str:
    body = str(raw or "").strip()
    if not body:
        raise HTTPException(status_code=400, detail="Message body required")
    if len(body) > MESSAGE_MAX_LENGTH:
        raise HTTPException(status_code=400, detail="Message too long")
    return body


def is_participant(conversation: dict[str, Any], uid: str) -> bool:
    return str(uid) in {str(conversation.get("participant_a_id")), str(conversation.get("participant_b_id"))}


def other_participant(conversation: dict[str, Any], uid: str) -> dict[str, Any]:
    p1 = conversation.get("participant1") or {}
    p2 = conversation.get("participant2") or {}
    return p2 if str(p1.get("uid")) == str(uid) else p1
