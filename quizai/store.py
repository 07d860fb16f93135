"""Reading today's quiz and recording answers and votes."""

from __future__ import annotations

from datetime import date

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from quizai.models import Answer, Question
from quizai.schema import answers, questions


class NotFoundError(LookupError):
    """The requested question or answer does not exist."""


def get_today_questions(engine: Engine, today: date | None = None) -> list[Question]:
    """Return the questions of ``today`` that have answers, each with its answers."""
    day = today or date.today()
    stmt = (
        sa.select(
            questions.c.id,
            questions.c.title,
            questions.c.likes,
            questions.c.dislikes,
            answers.c.id.label("answer_id"),
            answers.c.title.label("answer_title"),
            answers.c.likes.label("answer_likes"),
            answers.c.dislikes.label("answer_dislikes"),
            answers.c.users_answered,
        )
        .select_from(questions.join(answers, answers.c.question_id == questions.c.id))
        .where(questions.c.date == day)
        .order_by(questions.c.id, answers.c.id)
    )
    grouped: dict[int, Question] = {}
    with engine.connect() as conn:
        for row in conn.execute(stmt):
            question = grouped.setdefault(
                row.id,
                Question(id=row.id, title=row.title, likes=row.likes, dislikes=row.dislikes),
            )
            question.answers.append(
                Answer(
                    id=row.answer_id,
                    title=row.answer_title,
                    likes=row.answer_likes,
                    dislikes=row.answer_dislikes,
                    users_answered=row.users_answered,
                )
            )
    return list(grouped.values())


def answer_question(engine: Engine, question_id: int | str, answer_id: int | str) -> Answer:
    """Count a visitor's answer and return the question's correct answer."""
    qid, aid = int(question_id), int(answer_id)
    with engine.begin() as conn:
        chosen = conn.execute(
            sa.select(answers.c.id, answers.c.users_answered)
            .where(answers.c.id == aid, answers.c.question_id == qid)
            .with_for_update()
        ).one_or_none()
        if chosen is None:
            raise NotFoundError(f"answer {aid} of question {qid} not found")
        conn.execute(
            sa.update(answers)
            .where(answers.c.id == chosen.id)
            .values(users_answered=chosen.users_answered + 1)
        )
    with engine.connect() as conn:
        correct = conn.execute(
            sa.select(answers.c.id, answers.c.title, answers.c.likes, answers.c.users_answered)
            .where(answers.c.question_id == qid, answers.c.is_correct.is_(True))
        ).first()
    if correct is None:
        raise NotFoundError(f"question {qid} has no correct answer")
    return Answer(
        id=correct.id,
        title=correct.title,
        likes=correct.likes,
        users_answered=correct.users_answered,
    )


def _bump(engine: Engine, table: sa.Table, row_id: int, column_name: str) -> int:
    column = table.c[column_name]
    with engine.begin() as conn:
        current = conn.execute(
            sa.select(column).where(table.c.id == row_id).with_for_update()
        ).scalar_one_or_none()
        if current is None:
            raise NotFoundError(f"{table.name} row {row_id} not found")
        conn.execute(
            sa.update(table).where(table.c.id == row_id).values({column_name: current + 1})
        )
    return current + 1


def vote_question(engine: Engine, question_id: int, dislike: bool = False) -> int:
    """Add a like (or dislike) to a question; return the new count."""
    return _bump(engine, questions, int(question_id), "dislikes" if dislike else "likes")


def vote_answer(engine: Engine, answer_id: int, dislike: bool = False) -> int:
    """Add a like (or dislike) to an answer; return the new count."""
    return _bump(engine, answers, int(answer_id), "dislikes" if dislike else "likes")