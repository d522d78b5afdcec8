"""Shared fixtures: an in-memory stand-in for the Supabase-backed DatabaseClient."""
import random
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from examsim.errors import StoreUnavailable
from examsim.models import Attempt, Question, Session


class FakeStore:
    """Implements the DatabaseClient methods over dicts. fail_on names methods that should raise."""

    def __init__(self, questions=()):
        self.questions = {q.id: q for q in questions}
        self.sessions = {}
        self.attempts = []
        self.fail_on = set()
        self.calls = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreUnavailable(name, "simulated outage")

    # questions
    def list_active_questions(self, topic=None):
        self._call("list_active_questions")
        return [
            q for q in self.questions.values()
            if q.is_active and (topic is None or q.topic == topic)
        ]

    def get_question(self, question_id):
        self._call("get_question")
        return self.questions.get(question_id)

    def list_questions_by_ids(self, question_ids):
        self._call("list_questions_by_ids")
        return [self.questions[i] for i in question_ids if i in self.questions]

    def list_recent_questions(self, limit=20):
        self._call("list_recent_questions")
        return sorted(self.questions.values(), key=lambda q: q.id, reverse=True)[:limit]

    def insert_questions(self, rows):
        self._call("insert_questions")
        inserted = []
        for row in rows:
            new_id = max(self.questions, default=0) + 1
            q = Question.from_row({"id": new_id, **row})
            self.questions[new_id] = q
            inserted.append(q)
        return inserted

    def ping(self):
        self._call("ping")
        return True

    # sessions
    def insert_session(self, fields):
        self._call("insert_session")
        row = {"id": str(uuid4()), "finished_at": None, **fields}
        # strictly increasing start times so "latest" is well defined
        self._clock += timedelta(seconds=1)
        row["started_at"] = self._clock.isoformat()
        self.sessions[row["id"]] = row
        return Session.from_row(row)

    def update_session(self, session_id, fields):
        self._call("update_session")
        self.sessions[session_id].update(fields)
        return Session.from_row(self.sessions[session_id])

    def find_latest_open_session(self, user_id):
        self._call("find_latest_open_session")
        open_rows = [
            r for r in self.sessions.values()
            if r["user_id"] == user_id and r.get("finished_at") is None
        ]
        if not open_rows:
            return None
        return Session.from_row(max(open_rows, key=lambda r: r["started_at"]))

    # attempts
    def insert_attempt(self, fields):
        self._call("insert_attempt")
        attempt = Attempt.from_row({"id": len(self.attempts) + 1, **fields})
        self.attempts.append(attempt)
        return attempt

    def list_attempts(self, session_id):
        self._call("list_attempts")
        return [a for a in self.attempts if a.session_id == session_id]


def make_question(qid, correct_index=0, topic="Hematology", is_active=True, n_choices=4):
    return Question(
        id=qid,
        stem=f"Question {qid}?",
        choices=[f"Choice {qid}.{i}" for i in range(n_choices)],
        correct_index=correct_index,
        topic=topic,
        difficulty="Easy",
        explanation=f"Because {qid}.",
        is_active=is_active,
    )


@pytest.fixture
def questions():
    """Five active Hematology questions, one Microbiology, one inactive."""
    qs = [make_question(i, correct_index=i % 4) for i in range(1, 6)]
    qs.append(make_question(6, topic="Microbiology"))
    qs.append(make_question(7, is_active=False))
    return qs


@pytest.fixture
def store(questions):
    return FakeStore(questions)


@pytest.fixture
def user_id():
    return str(uuid4())


@pytest.fixture
def rng():
    return random.Random(1234)
