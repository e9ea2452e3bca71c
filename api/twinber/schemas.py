from typing import Any
from pydantic import BaseModel, Field


class AnonymousSessionRequest(BaseModel):
    language: str | None = None


class RegisterRequest(BaseModel):
    email: str
    password: str
    confirm_password: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class QuizSubmitRequest(BaseModel):
    user_info: dict[str, Any]
    answers: list[Any]
    language: str | None = None


class QuizProgressRequest(BaseModel):
    user_info: dict[str, Any]
    answers: list[Any]
    current_question_index: int = 0


class CompareRequest(BaseModel):
    code1: str
    code2: str
    language: str | None = None


class SearchRequest(BaseModel):
    code: str | None = None
    gender: str = "any"
    min_age: Any = None
    max_age: Any = None
    min_compatibility: Any = None
    countries: list[str] = Field(default_factory=list)
    language: str | None = None


class ArchiveFilterRequest(BaseModel):
    answer: Any = 1
    questions: Any = ""
    gender: str = "any"
    min_age: Any = None
    max_age: Any = None
    countries: list[str] = Field(default_factory=list)


class StartChatRequest(BaseModel):
    user1_code: str
    user2_code: str
    body: str | None = None
    language: str | None = None


class SendMessageRequest(BaseModel):
    body: str
