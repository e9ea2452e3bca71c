import json
import random
import uuid
from collections import Counter
from typing import Any

from sqlalchemy import text

from twinber.auth.security import hash_password
from twinber.config import USER_CODE_ALPHABET, USER_CODE_LENGTH
from twinber.models import Question, UserData, UserInfo
from twinber.services.compatibility import calculate_compatibility

# probability of answering "yes", per category; anything unlisted is 0.5
CLUSTERS: dict[str, dict[str, Any]] = {
    "homebody": {
        "weight": 0.35,
        "yes": {"home_life": 0.85, "books_and_reading": 0.75, "travel": 0.3, "social_life": 0.25, "nature_and_outdoors": 0.4},
    },
    "explorer": {
        "weight": 0.35,
        "yes": {"travel": 0.9, "nature_and_outdoors": 0.85, "food_and_drink": 0.8, "home_life": 0.3, "hobbies": 0.7},
    },
    "socialite": {
        "weight": 0.30,
        "yes": {"social_life": 0.9, "technology_and_social_media": 0.8, "humor": 0.75, "music": 0.7, "books_and_reading": 0.3},
    },
}

FIRST_NAMES = {
    "female": ["Giulia", "Sofia", "Emma", "Chiara", "Olivia", "Sara", "Alice", "Martina", "Mia", "Grace"],
    "male": ["Luca", "Marco", "Liam", "Matteo", "Noah", "Andrea", "Davide", "James", "Leo", "Tommaso"],
}
COUNTRIES = ["IT", "IT", "IT", "US", "GB", "FR", "DE", "ES", "CH", "NL"]


def _pick_cluster(rng: random.Random) -> str:
    names = list(CLUSTERS)
    return rng.choices(names, weights=[CLUSTERS[n]["weight"] for n in names], k=1)[0]


def _seed_code(rng: random.Random, taken: set[str]) -> str:
    while True:
        code = "".join(rng.choice(USER_CODE_ALPHABET) for _ in range(USER_CODE_LENGTH))
        if code not in taken:
            taken.add(code)
            return code


def _generate_answers(rng: random.Random, questions: list[Question], cluster: str | None) -> list[int]:
    bias = CLUSTERS[cluster]["yes"] if cluster else {}
    return [1 if rng.random() < float(bias.get(q.category, 0.5)) else 0 for q in questions]


def _insert_respondent(db, user: UserData, *, email: str | None = None, password: str | None = None) -> None:
    db.execute(
        text(
            """
            INSERT INTO user_account (id, email, password_hash, is_anonymous, preferred_language)
            VALUES (CAST(:id AS uuid), :email, :password_hash, :is_anonymous, 'en')
            """
        ),
        {
            "id": user.uid,
            "email": email,
            "password_hash": hash_password(password) if password else None,
            "is_anonymous": email is None,
        },
    )
    db.execute(
        text(
            """
            INSERT INTO respondent (user_id, code, name, age, gender, country, answers, language)
            VALUES (CAST(:uid AS uuid), :code, :name, :age, :gender, :country, CAST(:answers AS jsonb), 'en')
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
        },
    )


def seed_dummy_data(
    db,
    questions: list[Question],
    n_users: int = 100,
    reset: bool = False,
    seed: int = 42,
    clustered: bool = False,
    include_qa_login: bool = False,
    qa_password: str = "twinber123",
) -> dict[str, Any]:
    """Fill the archive with random respondents.

    With ``clustered`` the answers are drawn from a few personality clusters so
    that searches return a realistic spread of scores instead of everyone
    sitting near 50%.
    """
    rng = random.Random(seed)

    if reset:
        db.execute(text("DELETE FROM chat_message"))
        db.execute(text("DELETE FROM conversation"))
        db.execute(text("DELETE FROM compatibility_report"))
        db.execute(text("DELETE FROM quiz_progress"))
        db.execute(text("DELETE FROM respondent"))
        db.execute(text("DELETE FROM user_account"))

    taken = {str(r["code"]) for r in db.execute(text("SELECT code FROM respondent")).mappings().all()}
    cluster_counter: Counter[str] = Counter()
    created: list[UserData] = []

    for _ in range(n_users):
        gender = rng.choice(["female", "male"])
        cluster = _pick_cluster(rng) if clustered else None
        if cluster:
            cluster_counter[cluster] += 1
        user = UserData(
            uid=str(uuid.uuid4()),
            user_info=UserInfo(
                name=rng.choice(FIRST_NAMES[gender]),
                age=rng.randint(18, 65),
                gender=gender,
                country=rng.choice(COUNTRIES),
            ),
            code=_seed_code(rng, taken),
            answers=_generate_answers(rng, questions, cluster),
        )
        _insert_respondent(db, user)
        created.append(user)

    qa_credentials: list[dict[str, str]] = []
    if include_qa_login:
        qa_user = UserData(
            uid=str(uuid.uuid4()),
            user_info=UserInfo(name="QA Tester", age=30, gender="female", country="IT"),
            code=_seed_code(rng, taken),
            answers=_generate_answers(rng, questions, None),
        )
        _insert_respondent(db, qa_user, email="qa@twinber.app", password=qa_password)
        qa_credentials.append({"email": "qa@twinber.app", "password": qa_password, "code": qa_user.code})

    db.commit()

    scores: list[int] = []
    if len(created) >= 2:
        for _ in range(min(200, len(created) * 2)):
            a, b = rng.sample(created, 2)
            scores.append(calculate_compatibility(a.answer_data(), b.answer_data(), questions).overall_score)

    return {
        "users_created": len(created),
        "cluster_distribution": dict(cluster_counter),
        "sampled_pairs": len(scores),
        "avg_compatibility": round(sum(scores) / len(scores), 1) if scores else None,
        "max_compatibility": max(scores) if scores else None,
        "clustered": clustered,
        "qa_credentials": qa_credentials,
    }
