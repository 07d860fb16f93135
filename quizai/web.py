"""The web application: the quiz page and the JSON API for answers and votes."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Mapping

from flask import Blueprint, Flask, Response, jsonify, render_template, request
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from quizai.cookies import COOKIE_MAX_AGE, COOKIE_NAME, update_quiz_cookie
from quizai.models import Action, QuizState
from quizai.store import (
    NotFoundError,
    answer_question,
    get_today_questions,
    vote_answer,
    vote_question,
)

log = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": (
        "default-src 'self'; connect-src *; font-src *; "
        "script-src 'self' 'unsafe-inline' 'unsafe-eval' *; "
        "script-src-elem * 'unsafe-inline' *; img-src * data:; "
        "style-src * 'unsafe-inline';"
    ),
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Referrer-Policy": "strict-origin",
    "X-Content-Type-Options": "nosniff",
    "Permissions-Policy": (
        "geolocation=(),midi=(),sync-xhr=(),microphone=(),camera=(),"
        "magnetometer=(),gyroscope=(),fullscreen=(self),payment=()"
    ),
}

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_SCRIPT_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"}


@dataclass(frozen=True)
class Settings:
    """Where the site is served from, as configured in the environment."""

    origin_host: str = ""
    port: str = ""
    schema: str = ""
    mode: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            origin_host=env.get("ORIGIN", ""),
            port=env.get("PORT", ""),
            schema=env.get("SCHEMA", ""),
            mode=env.get("GIN_MODE", ""),
        )

    def host(self) -> str:
        """The value the Host header must carry."""
        if self.port == "80":
            return self.origin_host
        return f"{self.origin_host}:{self.port}"

    def origin(self) -> str:
        """The value the Origin header must carry, and that a Referer must start with."""
        return f"{self.schema}{self.host()}"

    @property
    def debug(self) -> bool:
        return self.mode == "debug"


class _ScriptJSON(str):
    """JSON text that templates insert as it is, without HTML escaping."""

    def __html__(self) -> str:
        return str(self)


def _script_json(value: Any) -> _ScriptJSON:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    for char, escape in _SCRIPT_ESCAPES.items():
        text = text.replace(char, escape)
    return _ScriptJSON(text)


def _parse_id(text: str) -> int:
    if not _ID_PATTERN.fullmatch(text):
        raise ValueError(f"invalid id {text!r}")
    return int(text)


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify(error=message), status


def create_app(
    engine: Engine,
    settings: Settings | None = None,
    template_folder: str | os.PathLike[str] | None = None,
) -> Flask:
    """Build the application serving the quiz stored in ``engine``."""
    settings = settings or Settings.from_env()
    folder = os.fspath(template_folder) if template_folder is not None else os.path.abspath("templates")
    app = Flask(__name__, template_folder=folder)
    app.debug = settings.debug

    @app.before_request
    def check_host() -> Any:
        if request.host != settings.host():
            return _error("Invalid host header", 400)
        return None

    @app.after_request
    def add_security_headers(response: Response) -> Response:
        if request.host == settings.host():
            response.headers.update(SECURITY_HEADERS)
        return response

    def remember(response: Response, state: QuizState) -> Response:
        value = update_quiz_cookie(request.cookies.get(COOKIE_NAME), state)
        if value is not None:
            response.set_cookie(
                COOKIE_NAME,
                value,
                max_age=COOKIE_MAX_AGE,
                path="/",
                domain=settings.origin_host or None,
                secure=False,
                httponly=False,
            )
        return response

    @app.get("/")
    def main_page() -> Any:
        try:
            questions = get_today_questions(engine)
        except SQLAlchemyError as exc:
            log.error("Failed to retrieve data: %s", exc)
            return _error("Failed to get questions", 500)
        return render_template(
            "index.html",
            Name="AI Quiz",
            questions=_script_json([question.to_dict() for question in questions]),
        )

    api = Blueprint("api", __name__, url_prefix="/api")

    @api.before_request
    def check_origin() -> Any:
        expected = settings.origin()
        origin = request.headers.get("Origin", "")
        referer = request.headers.get("Referer", "")
        if origin and origin != expected:
            return _error("Invalid origin", 403)
        if referer and not referer.startswith(expected):
            return _error("Invalid referer", 403)
        return None

    @api.post("/<question_id>/<answer_id>")
    def answer(question_id: str, answer_id: str) -> Any:
        try:
            qid, aid = _parse_id(question_id), _parse_id(answer_id)
            correct = answer_question(engine, qid, aid)
        except (ValueError, NotFoundError, SQLAlchemyError) as exc:
            log.warning("Error while processing: %s", exc)
            return _error("Wrong request", 422)
        response = jsonify(
            correctAnswer=json.dumps(correct.to_dict(), separators=(",", ":"), ensure_ascii=False)
        )
        return remember(response, QuizState(Action.ANSWERED, qid))

    @api.patch("/<question_id>")
    def vote_on_question(question_id: str) -> Any:
        try:
            qid = _parse_id(question_id)
        except ValueError:
            return _error("Wrong request", 422)
        dislike = "is_dislike" in request.args
        try:
            count = vote_question(engine, qid, dislike)
        except (NotFoundError, SQLAlchemyError) as exc:
            log.warning("Question vote failed: %s", exc)
            return _error("Smt wrong", 500)
        if dislike:
            return remember(jsonify(dislikes=count), QuizState(Action.DISLIKED_QUESTION, qid))
        return remember(jsonify(likes=count), QuizState(Action.LIKED_QUESTION, qid))

    @api.patch("/<question_id>/<answer_id>")
    def vote_on_answer(question_id: str, answer_id: str) -> Any:
        try:
            _parse_id(question_id)
            aid = _parse_id(answer_id)
        except ValueError:
            return _error("Wrong request", 422)
        dislike = "is_dislike" in request.args
        try:
            count = vote_answer(engine, aid, dislike)
        except (NotFoundError, SQLAlchemyError) as exc:
            log.warning("Answer vote failed: %s", exc)
            return _error("Smt wrong", 500)
        if dislike:
            return remember(jsonify(dislikes=count), QuizState(Action.DISLIKED_ANSWER, aid))
        return remember(jsonify(likes=count), QuizState(Action.LIKED_ANSWER, aid))

    app.register_blueprint(api)
    return app