from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Category(str, Enum):
    FOOD_AND_DRINK = "food_and_drink"
    HOBBIES = "hobbies"
    MOVIES_AND_TV = "movies_and_tv"
    MUSIC = "music"
    BOOKS_AND_READING = "books_and_reading"
    TRAVEL = "travel"
    SOCIAL_LIFE = "social_life"
    HOME_LIFE = "home_life"
    HEALTH_AND_WELLNESS = "health_and_wellness"
    CAREER_AND_AMBITION = "career_and_ambition"
    FINANCES = "finances"
    TECHNOLOGY_AND_SOCIAL_MEDIA = "technology_and_social_media"
    HUMOR = "humor"
    AESTHETICS_AND_STYLE = "aesthetics_and_style"
    NATURE_AND_OUTDOORS = "nature_and_outdoors"
    COMMUNICATION_STYLE = "communication_style"
    EMOTIONAL_APPROACH = "emotional_approach"
    VALUES_AND_BELIEFS = "values_and_beliefs"
    RELATIONSHIP_DYNAMICS = "relationship_dynamics"
    FUTURE_GOALS = "future_goals"


@dataclass(frozen=True)
class Question:
    category: str
    text: str


@dataclass
class UserInfo:
    name: str
    age: int
    gender: str
    country: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserInfo:
        return cls(
            name=str(data.get("name") or ""),
            age=int(data.get("age") or 0),
            gender=str(data.get("gender") or ""),
            country=str(data.get("country") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "age": self.age, "gender": self.gender, "country": self.country}


@dataclass
class AnswerData:
    code: str
    answers: list[int]


@dataclass
class UserData:
    uid: str
    user_info: UserInfo
    code: str
    answers: list[int]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> UserData:
        info = row.get("user_info")
        if not isinstance(info, dict):
            info = {
                "name": row.get("name"),
                "age": row.get("age"),
                "gender": row.get("gender"),
                "country": row.get("country"),
            }
        answers = row.get("answers") if isinstance(row.get("answers"), list) else []
        return cls(
            uid=str(row.get("uid") or row.get("user_id") or ""),
            user_info=UserInfo.from_dict(info),
            code=str(row.get("code") or ""),
            answers=[int(a) for a in answers],
        )

    def answer_data(self) -> AnswerData:
        return AnswerData(code=self.code, answers=list(self.answers))

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "user_info": self.user_info.to_dict(),
            "code": self.code,
            "answers": list(self.answers),
        }


@dataclass
class CompatibilityCategoryScore:
    category: str
    score: int


@dataclass
class CompatibilityReport:
    overall_score: int
    category_scores: list[CompatibilityCategoryScore]
    user1_code: str
    user2_code: str
    user1_info: UserInfo | None = None
    user2_info: UserInfo | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompatibilityReport:
        u1 = data.get("user1_info")
        u2 = data.get("user2_info")
        return cls(
            overall_score=int(data.get("overall_score") or 0),
            category_scores=[
                CompatibilityCategoryScore(category=str(c.get("category")), score=int(c.get("score") or 0))
                for c in (data.get("category_scores") or [])
            ],
            user1_code=str(data.get("user1_code") or ""),
            user2_code=str(data.get("user2_code") or ""),
            user1_info=UserInfo.from_dict(u1) if isinstance(u1, dict) else None,
            user2_info=UserInfo.from_dict(u2) if isinstance(u2, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "category_scores": [{"category": c.category, "score": c.score} for c in self.category_scores],
            "user1_code": self.user1_code,
            "user2_code": self.user2_code,
            "user1_info": self.user1_info.to_dict() if self.user1_info else None,
            "user2_info": self.user2_info.to_dict() if self.user2_info else None,
        }


@dataclass
class ArchiveCriteria:
    answer: int = 1
    question_numbers: list[int] = field(default_factory=list)
    gender: str = "any"
    min_age: int | None = None
    max_age: int | None = None
    countries: list[str] = field(default_factory=list)


@dataclass
class SearchCriteria:
    min_compatibility: int = 35
    gender: str = "any"
    min_age: int | None = 18
    max_age: int | None = 99
    countries: list[str] = field(default_factory=list)
