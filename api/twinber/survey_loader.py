import json
import logging
from functools import lru_cache
from typing import Any, Callable

from . import config
from .models import Category, Question

logger = logging.getLogger(__name__)

_CATEGORY_KEYS = {c.value for c in Category}


class LocaleError(ValueError):
    pass


def resolve_language(lang: str | None) -> str:
    value = str(lang or "").strip().lower()
    if value in config.SUPPORTED_LANGUAGES:
        return value
    return config.DEFAULT_LANGUAGE


def _validate_locale(data: Any, lang: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise LocaleError(f"Locale {lang} must be a JSON object")
    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        raise LocaleError(f"Locale {lang} has no questions")
    for idx, q in enumerate(questions, start=1):
        if not isinstance(q, dict) or not str(q.get("text") or "").strip():
            raise LocaleError(f"Locale {lang} question {idx} has no text")
        if q.get("category") not in _CATEGORY_KEYS:
            raise LocaleError(f"Locale {lang} question {idx} has unknown category {q.get('category')!r}")
    labels = data.get("categories")
    if not isinstance(labels, dict):
        raise LocaleError(f"Locale {lang} has no category labels")
    missing = sorted({q["category"] for q in questions} - set(labels))
    if missing:
        raise LocaleError(f"Locale {lang} is missing labels for: {', '.join(missing)}")
    if not isinstance(data.get("ui"), dict):
        raise LocaleError(f"Locale {lang} has no ui strings")
    return data


@lru_cache(maxsize=None)
def load_locale(lang: str) -> dict[str, Any]:
    path = config.LOCALES_DIR / f"{lang}.json"
    if not path.is_file():
        raise LocaleError(f"Locale file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return _validate_locale(json.load(f), lang)


def get_locale(lang: str | None = None) -> dict[str, Any]:
    return load_locale(resolve_language(lang))


def validate_locales() -> None:
    """Check that every supported locale asks the same questions in the same order.

    Answers are stored as a bare 0/1 vector, so a respondent who took the quiz in
    one language must be comparable with one who took it in another.
    """
    reference = [q["category"] for q in load_locale(config.DEFAULT_LANGUAGE)["questions"]]
    for lang in config.SUPPORTED_LANGUAGES:
        cats = [q["category"] for q in load_locale(lang)["questions"]]
        if len(cats) != len(reference):
            raise LocaleError(
                f"Locale {lang} has {len(cats)} questions, expected {len(reference)}"
            )
        for idx, (a, b) in enumerate(zip(cats, reference), start=1):
            if a != b:
                raise LocaleError(f"Locale {lang} question {idx} is {a}, expected {b}")
    logger.info("Loaded %d locales with %d questions each", len(config.SUPPORTED_LANGUAGES), len(reference))


def list_languages() -> list[dict[str, str]]:
    return [{"code": lang, "name": str(load_locale(lang).get("name") or lang)} for lang in config.SUPPORTED_LANGUAGES]


def get_questions(lang: str | None = None) -> list[Question]:
    return [Question(category=q["category"], text=q["text"]) for q in get_locale(lang)["questions"]]


def question_count() -> int:
    return len(load_locale(config.DEFAULT_LANGUAGE)["questions"])


def get_category_labels(lang: str | None = None) -> dict[str, str]:
    return dict(get_locale(lang)["categories"])


def get_translator(lang: str | None = None) -> Callable[..., str]:
    strings = get_locale(lang)["ui"]
    fallback = load_locale(config.DEFAULT_LANGUAGE)["ui"]

    def t(key: str, **replacements: Any) -> str:
        text = str(strings.get(key, fallback.get(key, key)))
        for name, value in replacements.items():
            text = text.replace(f"{{{name}}}", str(value))
        return text

    return t


@lru_cache(maxsize=1)
def get_country_names() -> dict[str, str]:
    path = config.LOCALES_DIR / "countries.json"
    with path.open("r", encoding="utf-8") as f:
        return {str(k).upper(): str(v) for k, v in json.load(f).items()}


def country_name(code: str, names: dict[str, str] | None = None) -> str:
    names = get_country_names() if names is None else names
    return names.get(str(code or "").upper(), code)


def get_coupon(category: str) -> dict[str, str] | None:
    coupon = config.DEFAULT_COUPONS.get(str(category))
    return dict(coupon) if isinstance(coupon, dict) else None
