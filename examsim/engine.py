"""
Session Engine: question ordering, answer recording, scoring, resume and review.
Owns the OPEN -> CLOSED session lifecycle; the stores only persist what it decides.
"""
import logging
import random
from datetime import datetime, timezone
from typing import List, Dict, Optional, Sequence, TypeVar

from examsim.cache import QuestionCache
from examsim.errors import (
    InvalidChoice,
    NoActiveSession,
    NoOpenSession,
    NoQuestionsAvailable,
    SessionClosed,
    StaleReference,
)
from examsim.models import AnswerOutcome, Attempt, FinishOutcome, Mode, Question, Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Fisher-Yates shuffle into a new list; the input is left untouched.
    Walks from the last index down, swapping with a uniform index in [0, i].
    """
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def latest_attempts(attempts: Sequence[Attempt]) -> Dict[int, Attempt]:
    """Fold attempts (oldest first) into question_id -> newest attempt."""
    by_question: Dict[int, Attempt] = {}
    for attempt in attempts:
        by_question[attempt.question_id] = attempt
    return by_question


class SessionEngine:
    """Drives one user's active session against the question and record stores."""

    def __init__(self, store, user_id: str, rng: Optional[random.Random] = None):
        """
        Args:
            store: DatabaseClient (or anything with the same methods)
            user_id: Authenticated user id; the engine never authenticates
            rng: Random source for shuffling, mainly for tests
        """
        self.store = store
        self.user_id = str(user_id)
        self.rng = rng or random.Random()

        self.cache = QuestionCache(store)
        self.session: Optional[Session] = None
        self.attempts: Dict[int, Attempt] = {}
        self.incorrect_questions: List[Question] = []

    # ============= Intents =============

    def create_session(self, topic: Optional[str] = None, mode=Mode.EXAM) -> Session:
        """
        Start a new session over every active question matching the topic.

        Raises:
            NoQuestionsAvailable: nothing matched; no session is written
        """
        mode = Mode(mode)
        questions = self.store.list_active_questions(topic)
        if not questions:
            logger.info(f"No active questions for topic={topic!r}")
            raise NoQuestionsAvailable(topic)

        order = shuffle([q.id for q in questions], self.rng)
        session = self.store.insert_session({
            "user_id": self.user_id,
            "mode": mode.value,
            "total": len(order),
            "question_order": order,
            "current_index": 0,
            "score": 0,
            "started_at": _utcnow(),
        })

        self.cache.clear()
        self.cache.prime(questions)
        self.session = session
        self.attempts = {}
        self.incorrect_questions = []

        logger.info(f"Session {session.id}: started {mode.value} with {len(order)} questions")
        return session

    def resume_session(self) -> Session:
        """
        Rebuild state for the user's most recently started unfinished session.

        Raises:
            NoOpenSession: the user has nothing to resume
        """
        session = self.store.find_latest_open_session(self.user_id)
        if session is None:
            raise NoOpenSession(self.user_id)

        questions = self.store.list_questions_by_ids(session.question_order)
        attempts = self.store.list_attempts(session.id)

        missing = set(session.question_order) - {q.id for q in questions}
        if missing:
            logger.warning(f"Session {session.id}: {len(missing)} questions no longer in the bank: {sorted(missing)}")

        self.cache.clear()
        self.cache.prime(questions)
        self.attempts = latest_attempts(attempts)
        self.incorrect_questions = []
        self.session = session

        logger.info(
            f"Session {session.id}: resumed {session.mode.value} at {session.current_index + 1}/{session.total}, "
            f"{len(self.attempts)} answered"
        )
        return session

    def submit_answer(self, choice_index: int) -> Optional[AnswerOutcome]:
        """
        Record an answer to the question at the current position.

        Returns None when the submission is ignored (question not cached,
        or exam mode and the question is already answered).

        Raises:
            NoActiveSession, SessionClosed, InvalidChoice, StoreUnavailable
        """
        session = self._require_session()
        if session.is_finished:
            raise SessionClosed(session.id)

        question_id = session.current_question_id
        question = self.cache.peek(question_id)
        if question is None:
            logger.warning(f"Session {session.id}: question {question_id} not cached, answer ignored")
            return None

        previous = self.attempts.get(question_id)
        if previous is not None and not session.mode.allows_reanswer:
            logger.debug(f"Session {session.id}: question {question_id} already answered in exam mode")
            return None

        if isinstance(choice_index, bool) or not isinstance(choice_index, int) \
                or not 0 <= choice_index < len(question.choices):
            raise InvalidChoice(choice_index, len(question.choices))

        correct = question.is_correct(choice_index)
        attempt = self.store.insert_attempt({
            "session_id": session.id,
            "user_id": self.user_id,
            "question_id": question_id,
            "choice_index": choice_index,
            "correct": correct,
        })

        # Score counts questions whose newest attempt is correct, so a
        # practice re-answer replaces the earlier outcome instead of adding to it.
        score = session.score + int(correct) - int(previous is not None and previous.correct)
        score = max(0, min(score, session.total))

        next_index = session.current_index
        if previous is None and session.question_order[session.current_index] == question_id:
            next_index = min(session.current_index + 1, session.total - 1)

        updated = self.store.update_session(session.id, {"score": score, "current_index": next_index})

        self.attempts[question_id] = attempt
        self.session = updated

        logger.debug(
            f"Answer recorded: session={session.id} q={question_id} choice={choice_index} "
            f"correct={correct} score={updated.score}/{updated.total}"
        )
        return AnswerOutcome(session=updated, attempt=attempt)

    def navigate(self, delta: int) -> Session:
        """Move the view pointer by delta, clamped to the question range. Not persisted."""
        session = self._require_session()
        next_index = max(0, min(session.total - 1, session.current_index + delta))
        if next_index != session.current_index:
            session.current_index = next_index
        return session

    def finish_session(self) -> FinishOutcome:
        """
        Close the active session and collect incorrectly answered questions.

        Finishing an already finished session keeps its original finished_at
        and only recomputes the review list.
        """
        session = self._require_session()
        if session.is_finished:
            logger.info(f"Session {session.id} already finished at {session.finished_at}")
        else:
            session = self.store.update_session(session.id, {"finished_at": _utcnow()})
            self.session = session

        attempts = self.store.list_attempts(session.id)
        latest = latest_attempts(attempts)

        incorrect = []
        for question_id, attempt in latest.items():
            if attempt.correct:
                continue
            question = self.cache.peek(question_id)
            if question is None:
                logger.warning(f"Session {session.id}: {StaleReference(question_id)}, left out of review")
                continue
            incorrect.append(question)

        self.attempts = latest
        self.incorrect_questions = incorrect

        logger.info(
            f"Session {session.id} completed: Score={session.score}/{session.total}, "
            f"Incorrect={len(incorrect)}"
        )
        return FinishOutcome(session=session, incorrect_questions=incorrect)

    # ============= Hardening =============

    def recount_from_attempts(self) -> Session:
        """
        Re-derive score and position from the stored attempts and persist them.
        Repairs the counters after an attempt insert whose session update failed.
        """
        session = self._require_session()
        latest = latest_attempts(self.store.list_attempts(session.id))

        score = sum(1 for a in latest.values() if a.correct)
        next_index = session.total - 1
        for idx, question_id in enumerate(session.question_order):
            if question_id not in latest:
                next_index = idx
                break

        updated = self.store.update_session(session.id, {"score": score, "current_index": max(0, next_index)})
        self.attempts = latest
        self.session = updated
        logger.info(f"Session {session.id}: recounted score={score} index={updated.current_index}")
        return updated

    # ============= View state =============

    def current_question(self) -> Optional[Question]:
        if self.session is None:
            return None
        question_id = self.session.current_question_id
        if question_id is None:
            return None
        try:
            return self.cache.get(question_id)
        except StaleReference:
            logger.warning(f"Session {self.session.id}: question {question_id} is gone from the bank")
            return None

    def current_attempt(self) -> Optional[Attempt]:
        if self.session is None:
            return None
        return self.attempts.get(self.session.current_question_id)

    def can_answer(self) -> bool:
        """Whether the presentation layer should offer the choices as answerable."""
        if self.session is None or self.session.is_finished:
            return False
        return self.current_attempt() is None or self.session.mode.allows_reanswer

    def _require_session(self) -> Session:
        if self.session is None:
            raise NoActiveSession()
        return self.session
