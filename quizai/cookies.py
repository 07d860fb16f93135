"""The ``quiz_state`` cookie that remembers what a visitor has done."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from quizai.models import Action, QuizState

log = logging.getLogger(__name__)

COOKIE_NAME = "quiz_state"
COOKIE_MAX_AGE = 60 * 60 * 24

_ATTRS = {
    Action.ANSWERED: "answered",
    Action.LIKED_QUESTION: "liked_questions",
    Action.DISLIKED_QUESTION: "disliked_questions",
    Action.LIKED_ANSWER: "liked_answers",
    Action.DISLIKED_ANSWER: "disliked_answers",
}


def _id_list(value: Any, key: str) -> list[int]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    ):
        raise ValueError(f"cookie field {key!r} must be a list of integers")
    return list(value)


@dataclass
class QuizCookie:
    """Ids of the questions and answers a visitor has acted on."""

    answered: list[int] = field(default_factory=list)
    liked_questions: list[int] = field(default_factory=list)
    disliked_questions: list[int] = field(default_factory=list)
    liked_answers: list[int] = field(default_factory=list)
    disliked_answers: list[int] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {action.value: list(getattr(self, attr)) for action, attr in _ATTRS.items()},
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: str) -> "QuizCookie":
        """Parse a cookie value; raise ValueError if it is not a valid one."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("cookie must hold a JSON object")
        return cls(
            **{attr: _id_list(data.get(action.value), action.value) for action, attr in _ATTRS.items()}
        )

    def record(self, state: QuizState) -> None:
        """Add the target of ``state`` to the matching list."""
        if not state.target_id:
            raise ValueError("quiz state has no target id")
        getattr(self, _ATTRS[state.action]).append(state.target_id)


def update_quiz_cookie(raw_cookie: str | None, state: QuizState) -> str | None:
    """Return the new cookie value after ``state``, or None if none should be set."""
    try:
        cookie = QuizCookie() if raw_cookie is None else QuizCookie.from_json(raw_cookie)
        cookie.record(state)
    except ValueError as exc:
        log.warning("Error with updating cookie: %s", exc)
        return None
    return cookie.to_json()