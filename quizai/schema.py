"""Database tables for questions and answers."""

from __future__ import annotations

from datetime import date

import sqlalchemy as sa
from sqlalchemy.engine import Engine

metadata = sa.MetaData()

questions = sa.Table(
    "questions",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("title", sa.Text, nullable=False),
    sa.Column(
        "date",
        sa.Date,
        nullable=False,
        default=date.today,
        server_default=sa.func.current_date(),
    ),
    sa.Column("likes", sa.Integer, nullable=False, server_default="0"),
    sa.Column("dislikes", sa.Integer, nullable=False, server_default="0"),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    ),
    sa.Index("ix_questions_date", "date"),
)

answers = sa.Table(
    "answers",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("title", sa.Text, nullable=False),
    sa.Column(
        "question_id",
        sa.Integer,
        sa.ForeignKey("questions.id", ondelete="CASCADE"),
    ),
    sa.Column("likes", sa.Integer, nullable=False, server_default="0"),
    sa.Column("dislikes", sa.Integer, nullable=False, server_default="0"),
    sa.Column("users_answered", sa.Integer, nullable=False, server_default="0"),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    ),
    sa.Column("is_correct", sa.Boolean, server_default=sa.false()),
    sa.Index("ix_answers_question_id", "question_id"),
)


def init_db(engine: Engine) -> None:
    """Create the tables and indexes that do not exist yet."""
    metadata.create_all(engine)