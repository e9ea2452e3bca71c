import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from .. import repo as auth_repo
from ..auth.deps import get_current_user
from ..config import RL_CHAT_SEND_LIMIT, RL_WINDOW_SECONDS
from ..models import CompatibilityReport, UserData
from ..schemas import SendMessageRequest, StartChatRequest
from ..services.chat import clean_message_body, is_participant, other_participant
from ..services.codes import normalize_code
from ..services.compatibility import CompatibilityInputError, build_contact_message, calculate_compatibility
from ..services.rate_limit import rate_limit_dependency
from ..survey_loader import get_questions, get_translator, resolve_language

logger = logging.getLogger(__name__)

router = APIRouter()

RL_CHAT_SEND = rate_limit_dependency("chat_send", RL_CHAT_SEND_LIMIT, RL_WINDOW_SECONDS)


def _require_respondent(uid: str) -> UserData:
    me = auth_repo.get_respondent_by_uid(uid)
    if not me:
        raise HTTPException(status_code=403, detail="Complete the quiz before chatting")
    return me


def _require_conversation(conversation_id: str, uid: str) -> dict[str, Any]:
    conversation = auth_repo.get_conversation(conversation_id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if not is_participant(conversation, uid):
        raise HTTPException(status_code=403, detail="Not a participant in this conversation")
    return conversation


def _conversation_payload(conversation: dict[str, Any], uid: str) -> dict[str, Any]:
    return {
        "id": conversation["id"],
        "participant1": conversation.get("participant1"),
        "participant2": conversation.get("participant2"),
        "partner": other_participant(conversation, uid),
        "compatibility_score": conversation.get("compatibility_score"),
        "last_message": conversation.get("last_message"),
        "last_update": conversation.get("last_update"),
    }


def _message_payload(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(row["id"]),
        "sender_uid": str(row["sender_uid"]),
        "sender_code": row.get("sender_code"),
        "text": row.get("body"),
        "timestamp": row.get("created_at"),
    }


def _report(me: UserData, partner: UserData) -> CompatibilityReport:
    try:
        report = calculate_compatibility(me.answer_data(), partner.answer_data(), get_questions(None))
    except CompatibilityInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    report.user1_info, report.user2_info = me.user_info, partner.user_info
    return report


@router.get("/conversations")
def get_conversations(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    uid = current_user["id"]
    return {"conversations": [_conversation_payload(c, uid) for c in auth_repo.list_conversations(uid)]}


@router.get("/conversations/{conversation_id}/messages")
def get_messages(conversation_id: str, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    conversation = _require_conversation(conversation_id, current_user["id"])
    return {
        "conversation": _conversation_payload(conversation, current_user["id"]),
        "messages": [_message_payload(m) for m in auth_repo.list_messages(conversation_id)],
    }


@router.post("/conversations/{conversation_id}/messages", status_code=201)
def post_message(
    conversation_id: str,
    body: SendMessageRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    _: None = RL_CHAT_SEND,
) -> dict[str, Any]:
    uid = current_user["id"]
    conversation = _require_conversation(conversation_id, uid)
    text_body = clean_message_body(body.body)
    me = _require_respondent(uid)
    partner_uid = str(other_participant(conversation, uid).get("uid") or "")
    partner = auth_repo.get_respondent_by_uid(partner_uid)
    if not partner:
        raise HTTPException(status_code=404, detail="Chat partner no longer exists")

    message = auth_repo.send_message(me, partner, text_body, int(conversation.get("compatibility_score") or 0))
    logger.info(f"[chat] message conversation={conversation_id} sender={me.code}")
    return {"message": message}


@router.post("/chat/start", status_code=201)
def start_chat(
    body: StartChatRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    _: None = RL_CHAT_SEND,
) -> dict[str, Any]:
    """Open (or continue) a conversation with the other person in a report.

    Without a body the localized contact message quoting the score is sent.
    """
    me = _require_respondent(current_user["id"])
    codes = {normalize_code(body.user1_code), normalize_code(body.user2_code)}
    if me.code not in codes or len(codes) != 2:
        raise HTTPException(status_code=403, detail="You can only start a chat from your own report")
    partner_code = next(c for c in codes if c != me.code)
    partner = auth_repo.get_respondent_by_code(partner_code)
    if not partner:
        raise HTTPException(status_code=404, detail="Chat partner not found")

    report = _report(me, partner)
    if body.body is not None and body.body.strip():
        text_body = clean_message_body(body.body)
    else:
        t = get_translator(resolve_language(body.language))
        text_body = clean_message_body(build_contact_message(report, me.code, me.user_info.name, t))

    message = auth_repo.send_message(me, partner, text_body, report.overall_score)
    logger.info(f"[chat] started conversation={message['conversation_id']} sender={me.code}")
    return {"conversation_id": message["conversation_id"], "message": message}
