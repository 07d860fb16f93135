from datetime import date, timedelta

import pytest
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

from quizai.schema import answers, init_db, questions
from quizai.store import (
    NotFoundError,
    answer_question,
    get_today_questions,
    vote_answer,
    vote_question,
)

DAY = date(2024, 5, 1)


@pytest.fixture
def engine():
    eng = sa.create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(eng)
    yield eng
    eng.dispose()


def _add(engine, title, day, choices):
    with engine.begin() as conn:
        qid = conn.execute(
            questions.insert().values(title=title, date=day)
        ).inserted_primary_key[0]
        ids = [
            conn.execute(
                answers.insert().values(title=text, question_id=qid, is_correct=correct)
            ).inserted_primary_key[0]
            for text, correct in choices
        ]
    return qid, ids


def _value(engine, table, row_id, column):
    with engine.connect() as conn:
        return conn.execute(
            sa.select(table.c[column]).where(table.c.id == row_id)
        ).scalar_one()


def test_get_today_questions_groups_answers(engine):
    q1, a1 = _add(engine, "First", DAY, [("a", True), ("b", False)])
    q2, a2 = _add(engine, "Second", DAY, [("c", False), ("d", True)])
    _add(engine, "Old", DAY - timedelta(days=1), [("e", True)])
    _add(engine, "Empty", DAY, [])
    result = get_today_questions(engine, DAY)
    assert [q.id for q in result] == [q1, q2]
    assert [q.title for q in result] == ["First", "Second"]
    assert [a.id for a in result[0].answers] == a1
    assert [a.title for a in result[1].answers] == ["c", "d"]
    assert all(a.users_answered == 0 for q in result for a in q.answers)


def test_get_today_questions_defaults_to_today(engine):
    qid, _ = _add(engine, "Now", date.today(), [("x", True)])
    assert [q.id for q in get_today_questions(engine)] == [qid]
    assert get_today_questions(engine, DAY) == []


def test_answer_question_returns_correct_answer(engine):
    qid, (right, wrong) = _add(engine, "Q", DAY, [("right", True), ("wrong", False)])
    before = _value(engine, answers, wrong, "users_answered")
    result = answer_question(engine, qid, wrong)
    assert result.id == right
    assert result.title == "right"
    assert result.users_answered == _value(engine, answers, right, "users_answered")
    assert _value(engine, answers, wrong, "users_answered") == before + 1


def test_answer_question_accepts_strings(engine):
    qid, (right, _) = _add(engine, "Q", DAY, [("right", True), ("wrong", False)])
    result = answer_question(engine, str(qid), str(right))
    assert result.id == right
    assert result.users_answered == _value(engine, answers, right, "users_answered")


def test_answer_question_mismatched_answer(engine):
    q1, _ = _add(engine, "Q1", DAY, [("a", True)])
    _, (other,) = _add(engine, "Q2", DAY, [("b", True)])
    with pytest.raises(NotFoundError):
        answer_question(engine, q1, other)
    assert _value(engine, answers, other, "users_answered") == 0


def test_answer_question_bad_id(engine):
    with pytest.raises(ValueError):
        answer_question(engine, "abc", "1")


def test_answer_question_without_correct_answer_still_counts(engine):
    qid, (only,) = _add(engine, "Q", DAY, [("nope", False)])
    with pytest.raises(NotFoundError):
        answer_question(engine, qid, only)
    assert _value(engine, answers, only, "users_answered") == 1


def test_vote_question(engine):
    qid, _ = _add(engine, "Q", DAY, [("a", True)])
    first = vote_question(engine, qid)
    second = vote_question(engine, qid)
    assert second == first + 1
    assert _value(engine, questions, qid, "likes") == second
    disliked = vote_question(engine, qid, dislike=True)
    assert _value(engine, questions, qid, "dislikes") == disliked
    assert _value(engine, questions, qid, "likes") == second


def test_vote_answer(engine):
    _, (aid,) = _add(engine, "Q", DAY, [("a", True)])
    first = vote_answer(engine, aid, dislike=True)
    second = vote_answer(engine, aid, dislike=True)
    assert second == first + 1
    assert _value(engine, answers, aid, "dislikes") == second
    liked = vote_answer(engine, aid)
    assert _value(engine, answers, aid, "likes") == liked


def test_votes_on_missing_rows(engine):
    with pytest.raises(NotFoundError):
        vote_question(engine, 999)
    with pytest.raises(NotFoundError):
        vote_answer(engine, 999, dislike=True)