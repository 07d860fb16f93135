# quizai

A small web application that serves developer-themed multiple-choice
questions each day. A generative text service is asked for a new batch of
questions, which are stored in a database. Visitors answer them, like or
dislike questions and answers, and keep their progress in a `quiz_state`
cookie.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Configuration

Settings are read from the environment. An env file (`.env` by default) is
loaded first if one is present.

| Variable      | Meaning                                                            |
|---------------|--------------------------------------------------------------------|
| `DB_URL`      | Database URL template; the first `%s` is replaced by the password  |
| `DB_PASSWORD` | Database password, URL-escaped before it goes into `DB_URL`        |
| `G_API_KEY`   | API key for the question generation service                        |
| `ORIGIN`      | Expected host name; requests for any other `Host` get a 400        |
| `PORT`        | Port to listen on (80 if unset); `80` leaves the port out of checks |
| `SCHEMA`      | Scheme prefix used in origin checks, e.g. `https://`               |
| `GIN_MODE`    | Set to `debug` to run the web application in debug mode            |

Example `.env`:

```
DB_URL=postgresql://user:%s@localhost:5432/quiz
DB_PASSWORD=password
G_API_KEY=placeholder
ORIGIN=localhost
PORT=8080
SCHEMA=http://
```

## Running

```
quizai [--env-file PATH] [--templates FOLDER]
```

This creates the `questions` and `answers` tables if they are missing, starts
a background thread that fetches new questions at 00:00 and 09:25 local time
each day (skipped when questions for today are already stored), and serves the
site on all interfaces at `PORT`. The exit status is 1 when the database URL
is invalid, the tables cannot be created, the port is not a number or the
server cannot start.

## HTTP interface

- `GET /` renders `index.html` from the templates folder, passing today's
  questions as JSON in the `questions` variable.
- `POST /api/<question_id>/<answer_id>` counts an answer and returns the
  correct answer for that question as `{"correctAnswer": "<json text>"}`.
  Unknown or non-numeric ids give 422.
- `PATCH /api/<question_id>/<answer_id>` likes an answer and returns the new
  `likes` count; add `?is_dislike` to dislike it and get `dislikes` instead.
- `PATCH /api/<question_id>` likes or dislikes a question in the same way.

Every response carries a set of security headers. Requests under `/api` are
rejected with 403 when their `Origin` differs from, or their `Referer` does
not start with, the configured scheme, host and port. Each successful action
updates the `quiz_state` cookie, which lists the answered, liked and disliked
question and answer ids.

## Using it from Python

```python
from sqlalchemy import create_engine
from quizai.schema import init_db
from quizai.web import Settings, create_app

engine = create_engine("sqlite:///quiz.db")
init_db(engine)
app = create_app(engine, Settings.from_env({"ORIGIN": "localhost", "PORT": "8080"}), "templates")
```

- `quizai.generator.generate_daily_questions(engine)` fetches and stores a
  day's questions on demand and returns how many were stored.
- `quizai.store` holds the queries the web handlers use:
  `get_today_questions`, `answer_question`, `vote_question`, `vote_answer`.
- `quizai.cookies.update_quiz_cookie` computes the next cookie value.
- `quizai.scheduler.DailyScheduler` runs any callable at fixed times of day.

## What it does not include

The package ships no `index.html` template. Point `--templates` (or
`create_app`'s `template_folder`) at a folder holding one; without it the
main page cannot be rendered.