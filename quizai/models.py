"""Data objects shared by the quiz store, the generator and the web layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


@dataclass
class Answer:
    """One answer of a stored question, as shown to visitors."""

    id: int
    title: str
    likes: int = 0
    dislikes: int = 0
    users_answered: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.title,
            "likes": self.likes,
            "dislikes": self.dislikes,
            "users_answered": self.users_answered,
        }


@dataclass
class Question:
    """A stored question together with its answers."""

    id: int
    title: str
    likes: int = 0
    dislikes: int = 0
    answers: list[Answer] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.title,
            "likes": self.likes,
            "dislikes": self.dislikes,
            "answers": [answer.to_dict() for answer in self.answers],
        }


class Action(Enum):
    """Something a visitor did; the value is the cookie key that records it."""

    ANSWERED = "answered"
    LIKED_QUESTION = "likedQuestions"
    DISLIKED_QUESTION = "dislikedQuestions"
    LIKED_ANSWER = "likedAnswers"
    DISLIKED_ANSWER = "dislikedAnswers"


@dataclass(frozen=True)
class QuizState:
    """A single visitor action on a question or answer."""

    action: Action
    target_id: int


@dataclass
class GeneratedAnswer:
    """An answer choice as produced by the question generator."""

    answer_text: str
    is_correct: bool


@dataclass
class GeneratedQuestion:
    """A question as produced by the question generator."""

    question_text: str
    answers: list[GeneratedAnswer] = field(default_factory=list)


def _get(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ValueError(f"field {key!r} must be of type {kind.__name__}")
    return value


def _mapping(item: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(item, Mapping):
        raise ValueError(f"{what} must be an object")
    return item


def _answer_from(data: Any) -> GeneratedAnswer:
    data = _mapping(data, "answer")
    return GeneratedAnswer(
        answer_text=_get(data, "answer_text", str, ""),
        is_correct=_get(data, "is_correct", bool, False),
    )


def _question_from(data: Any) -> GeneratedQuestion:
    data = _mapping(data, "question")
    return GeneratedQuestion(
        question_text=_get(data, "question_text", str, ""),
        answers=[_answer_from(item) for item in _get(data, "answers", list, [])],
    )


@dataclass
class QuizData:
    """A batch of generated questions."""

    questions: list[GeneratedQuestion] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "QuizData":
        """Build from the decoded ``quiz_data`` document; raise ValueError if malformed."""
        data = _mapping(data, "quiz document")
        return cls(
            questions=[_question_from(item) for item in _get(data, "quiz_data", list, [])]
        )