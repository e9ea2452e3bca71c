import base64
import binascii
import json
import secrets

from ..config import USER_CODE_ALPHABET, USER_CODE_LENGTH
from ..models import AnswerData


def generate_user_code() -> str:
    return "".join(secrets.choice(USER_CODE_ALPHABET) for _ in range(USER_CODE_LENGTH))


def normalize_code(code: str | None) -> str:
    return str(code or "").strip().upper()


def is_valid_code(code: str) -> bool:
    return len(code) == USER_CODE_LENGTH and all(ch in USER_CODE_ALPHABET for ch in code)


def encode_answers(data: AnswerData) -> str:
    raw = json.dumps({"code": data.code, "answers": list(data.answers)}, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_answers(token: str, question_count: int) -> AnswerData | None:
    """Decode a shared answer token; any malformed input yields None."""
    try:
        payload = json.loads(base64.b64decode(str(token or "").strip(), validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    code = payload.get("code")
    answers = payload.get("answers")
    if not code or not isinstance(answers, list) or len(answers) != question_count:
        return None
    if any(isinstance(a, bool) or a not in (0, 1) for a in answers):
        return None
    return AnswerData(code=str(code), answers=[int(a) for a in answers])
