import json
import os
from pathlib import Path
from typing import Any

_default_locales = Path(__file__).resolve().parents[1] / "locales"
LOCALES_DIR = Path(os.getenv("LOCALES_DIR", str(_default_locales)))
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en").strip().lower() or "en"
SUPPORTED_LANGUAGES = [x.strip().lower() for x in os.getenv("SUPPORTED_LANGUAGES", "en,it").split(",") if x.strip()]

ADMIN_EMAILS = [x.strip().lower() for x in os.getenv("ADMIN_EMAILS", "").split(",") if x.strip()]

JWT_SECRET = os.getenv("JWT_SECRET", "")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "43200"))
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

USER_CODE_LENGTH = 8
USER_CODE_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZ"
USER_CODE_MAX_ATTEMPTS = int(os.getenv("USER_CODE_MAX_ATTEMPTS", "10"))

MESSAGE_MAX_LENGTH = int(os.getenv("MESSAGE_MAX_LENGTH", "2000"))
PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))

SEARCH_DEFAULTS: dict[str, Any] = {
    "min_age": int(os.getenv("SEARCH_MIN_AGE", "18")),
    "max_age": int(os.getenv("SEARCH_MAX_AGE", "99")),
    "min_compatibility": int(os.getenv("SEARCH_MIN_COMPATIBILITY", "35")),
}

STRENGTH_THRESHOLD = int(os.getenv("STRENGTH_THRESHOLD", "70"))
GROWTH_THRESHOLD = int(os.getenv("GROWTH_THRESHOLD", "40"))

DEFAULT_COUPONS: dict[str, dict[str, str]] = {
    "food_and_drink": {"company": "GustoBello Inc.", "code": "GUSTO30", "url": "https://www.gustobello.com"},
    "hobbies": {"company": "Creativus Ltd.", "code": "HOBBYFUN", "url": "https://www.creativus.com"},
    "movies_and_tv": {"company": "CineMax Stream", "code": "MOVIEPASS", "url": "https://www.cinemaxstream.com"},
    "music": {"company": "Sonoro Audio", "code": "SOUNDWAVE", "url": "https://www.sonoroaudio.com"},
    "books_and_reading": {"company": "PageTurners Co.", "code": "READMORE", "url": "https://www.pageturners.com"},
    "travel": {"company": "Global Getaways", "code": "TRAVEL24", "url": "https://www.globalgetaways.com"},
    "social_life": {"company": "ConnectSphere", "code": "SOCIAL30", "url": "https://www.connectsphere.com"},
    "home_life": {"company": "Cozy Nook", "code": "HOMEBODY", "url": "https://www.cozynook.com"},
    "health_and_wellness": {"company": "VitaPure", "code": "HEALTHYME", "url": "https://www.vitapure.com"},
    "career_and_ambition": {"company": "ProGoals", "code": "CAREERUP", "url": "https://www.progoals.com"},
    "finances": {"company": "SecureWallet", "code": "MONEYWISE", "url": "https://www.securewallet.com"},
    "technology_and_social_media": {"company": "TechVerse", "code": "DIGITAL30", "url": "https://www.techverse.com"},
    "humor": {"company": "LaughOutLoud", "code": "JOKESTER", "url": "https://www.laughoutloud.com"},
    "aesthetics_and_style": {"company": "VogueVibes", "code": "STYLEUP", "url": "https://www.voguevibes.com"},
    "nature_and_outdoors": {"company": "Evergreen Adventures", "code": "OUTDOORSY", "url": "https://www.evergreenadventures.com"},
    "communication_style": {"company": "ClearSpeak", "code": "TALKWELL", "url": "https://www.clearspeak.com"},
    "emotional_approach": {"company": "Heartfelt Moments", "code": "FEELGOOD", "url": "https://www.heartfeltmoments.com"},
    "values_and_beliefs": {"company": "TrueNorth", "code": "VALUES30", "url": "https://www.truenorth.com"},
    "relationship_dynamics": {"company": "LoveLink", "code": "COUPLEGOALS", "url": "https://www.lovelink.com"},
    "future_goals": {"company": "DreamBuilders", "code": "FUTURENOW", "url": "https://www.dreambuilders.com"},
}

COUPONS_PATH = os.getenv("COUPONS_PATH", "").strip()
if COUPONS_PATH and Path(COUPONS_PATH).is_file():
    DEFAULT_COUPONS.update(json.loads(Path(COUPONS_PATH).read_text(encoding="utf-8")))

if os.getenv("COUPONS_JSON"):
    try:
        DEFAULT_COUPONS.update(json.loads(os.getenv("COUPONS_JSON", "{}")))
    except json.JSONDecodeError:
        pass

RL_AUTH_REGISTER_LIMIT = int(os.getenv("RL_AUTH_REGISTER_LIMIT", "30"))
RL_AUTH_LOGIN_LIMIT = int(os.getenv("RL_AUTH_LOGIN_LIMIT", "30"))
RL_AUTH_ANONYMOUS_LIMIT = int(os.getenv("RL_AUTH_ANONYMOUS_LIMIT", "60"))
RL_COMPARE_LIMIT = int(os.getenv("RL_COMPARE_LIMIT", "120"))
RL_CHAT_SEND_LIMIT = int(os.getenv("RL_CHAT_SEND_LIMIT", "120"))
RL_WINDOW_SECONDS = int(os.getenv("RL_WINDOW_SECONDS", "60"))
