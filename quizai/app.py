"""Command that serves the quiz and refreshes its questions every day."""

from __future__ import annotations

import argparse
import logging
import os
from functools import partial
from urllib.parse import quote_plus

import sqlalchemy as sa
from dotenv import load_dotenv
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from quizai.generator import generate_daily_questions
from quizai.scheduler import DailyScheduler
from quizai.schema import init_db
from quizai.web import Settings, create_app

log = logging.getLogger(__name__)


def build_database_url(template: str, password: str) -> str:
    """Put the URL-escaped ``password`` in place of ``%s`` in ``template``."""
    if "%s" not in template:
        raise ValueError("database URL template must contain %s for the password")
    return template.replace("%s", quote_plus(password), 1)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="quizai", description="Serve the daily quiz.")
    parser.add_argument("--env-file", default=".env", help="file with environment settings")
    parser.add_argument("--templates", default="templates", help="folder holding index.html")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the quiz server; return the exit status."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not load_dotenv(args.env_file):
        log.warning("Error loading .env file")

    settings = Settings.from_env()
    try:
        url = build_database_url(os.environ.get("DB_URL", ""), os.environ.get("DB_PASSWORD", ""))
        engine = sa.create_engine(url)
    except (ValueError, ArgumentError, ImportError) as exc:
        log.error("Failed to connect to db: %s", exc)
        return 1

    try:
        try:
            init_db(engine)
        except SQLAlchemyError as exc:
            log.error("Error with accessing/creating table: %s", exc)
            return 1

        try:
            port = int(settings.port) if settings.port else 80
        except ValueError:
            log.error("Failed to start server: invalid port %r", settings.port)
            return 1

        scheduler = DailyScheduler(partial(generate_daily_questions, engine))
        scheduler.start()
        try:
            app = create_app(engine, settings, os.path.abspath(args.templates))
            app.run(host="0.0.0.0", port=port, debug=settings.debug, use_reloader=False)
        except OSError as exc:
            log.error("Failed to start server: %s", exc)
            return 1
        finally:
            scheduler.shutdown()
    finally:
        engine.dispose()
    return 0