"""Daily question generation through the generative language API."""

from __future__ import annotations

import json
import logging
import os
from datetime import date
from typing import Any

import requests
import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from quizai.models import QuizData
from quizai.schema import answers, questions

log = logging.getLogger(__name__)

API_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "gemini-2.0-flash:generateContent"
)
REQUEST_TIMEOUT = 120

PROMPT_TEXT = (
    "Generate exactly 4 distinct IT development multiple-choice questions suitable for "
    "typical junior and middle level developers. Try to be creative and try to bind "
    "current datetime to your questions. Also don't repeat your previous questions. "
    "Structure the entire output as a single JSON object with a top-level key named "
    "`quiz_data`. The value of `quiz_data` must be an array. Each element in this array "
    "represents one question and must be an object containing two keys: `question_text` "
    "(string containing the question text) and `answers` (an array). The `answers` array "
    "must contain exactly 4 answer objects. Each answer object must have two keys: "
    "`answer_text` (string containing the answer choice) and `is_correct` (a boolean "
    "value: `true` or `false`). For each question, exactly one answer object in its "
    "`answers` array must have `is_correct` set to `true`, while the other two must have "
    "`is_correct` set to `false`. Ensure the output is only the requested JSON object."
)


class GenerationError(Exception):
    """The generation service failed or returned something unusable."""


def build_payload(prompt: str) -> dict[str, Any]:
    """Return the request body asking the model for ``prompt``."""
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": 0.7,
            "maxOutputTokens": 1500,
            "responseMimeType": "application/json",
        },
    }


def parse_response(body: bytes | str) -> QuizData:
    """Extract the quiz from a generateContent response body."""
    try:
        envelope = json.loads(body)
        text = envelope["candidates"][0]["content"]["parts"][0]["text"]
        if not isinstance(text, str):
            raise TypeError("candidate text is not a string")
        return QuizData.from_dict(json.loads(text))
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise GenerationError(f"unusable response: {exc}") from exc


def has_today_questions(engine: Engine, today: date | None = None) -> bool:
    """Tell whether any question is stored for ``today``."""
    day = today or date.today()
    stmt = sa.select(questions.c.id).where(questions.c.date == day).limit(1)
    with engine.connect() as conn:
        return conn.execute(stmt).first() is not None


def save_questions(engine: Engine, quiz: QuizData) -> list[int]:
    """Store every question with its answers in one transaction; return the new ids."""
    ids = []
    with engine.begin() as conn:
        for question in quiz.questions:
            result = conn.execute(questions.insert().values(title=question.question_text))
            question_id = result.inserted_primary_key[0]
            ids.append(question_id)
            rows = [
                {
                    "title": answer.answer_text,
                    "question_id": question_id,
                    "is_correct": answer.is_correct,
                }
                for answer in question.answers
            ]
            if rows:
                conn.execute(answers.insert(), rows)
    return ids


def fetch_quiz(
    api_key: str | None = None, session: requests.Session | None = None
) -> QuizData:
    """Ask the model for a new batch of questions."""
    key = api_key if api_key is not None else os.environ.get("G_API_KEY", "")
    http = session if session is not None else requests.Session()
    try:
        response = http.post(
            API_URL,
            params={"key": key},
            json=build_payload(PROMPT_TEXT),
            timeout=REQUEST_TIMEOUT,
        )
    finally:
        if session is None:
            http.close()
    if response.status_code > 299:
        raise GenerationError(f"Problem with request, status code: {response.status_code}")
    log.info("Generation service answered %d", response.status_code)
    return parse_response(response.content)


def generate_daily_questions(
    engine: Engine,
    api_key: str | None = None,
    session: requests.Session | None = None,
) -> int:
    """Fetch and store today's questions unless present; return how many were stored."""
    try:
        if has_today_questions(engine):
            log.info("Found questions for today in db")
            return 0
    except SQLAlchemyError as exc:
        log.error("Failed to retrieve data: %s", exc)
    try:
        quiz = fetch_quiz(api_key, session)
        log.info("Generated quiz: %s", quiz)
        return len(save_questions(engine, quiz))
    except (GenerationError, requests.RequestException, SQLAlchemyError) as exc:
        log.error("Question generation failed: %s", exc)
        return 0