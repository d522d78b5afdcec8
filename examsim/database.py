"""
Database operations for the exam simulator.
Handles Supabase reads and writes for questions, sessions, and attempts.
Every failure is logged and re-raised as StoreUnavailable; nothing is retried here.
"""
import logging
from typing import List, Dict, Optional, Iterable

from supabase import Client

from examsim.errors import StoreUnavailable
from examsim.models import Question, Session, Attempt

logger = logging.getLogger(__name__)

QUESTIONS_TABLE = "questions"
SESSIONS_TABLE = "sessions"
ATTEMPTS_TABLE = "attempts"


class DatabaseClient:
    """Wrapper around Supabase client with exam-simulator specific operations."""

    def __init__(self, client: Client):
        self.client = client

    def _first(self, response, operation: str) -> Dict:
        if not response.data:
            raise StoreUnavailable(operation, "no row returned")
        return response.data[0]

    # ============= Questions =============

    def list_active_questions(self, topic: Optional[str] = None) -> List[Question]:
        """Fetch every active question, optionally restricted to one topic."""
        try:
            query = self.client.table(QUESTIONS_TABLE).select("*").eq("is_active", True)
            if topic:
                query = query.eq("topic", topic)
            response = query.execute()
        except Exception as e:
            logger.error(f"Error fetching active questions (topic={topic}): {e}")
            raise StoreUnavailable("list_active_questions", e) from e
        return [Question.from_row(row) for row in response.data or []]

    def get_question(self, question_id: int) -> Optional[Question]:
        """Point lookup. Returns None when the id does not exist."""
        try:
            response = (
                self.client.table(QUESTIONS_TABLE)
                .select("*")
                .eq("id", question_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching question {question_id}: {e}")
            raise StoreUnavailable("get_question", e) from e
        if not response.data:
            return None
        return Question.from_row(response.data[0])

    def list_questions_by_ids(self, question_ids: Iterable[int]) -> List[Question]:
        ids = list(question_ids)
        if not ids:
            return []
        try:
            response = self.client.table(QUESTIONS_TABLE).select("*").in_("id", ids).execute()
        except Exception as e:
            logger.error(f"Error fetching {len(ids)} questions by id: {e}")
            raise StoreUnavailable("list_questions_by_ids", e) from e
        return [Question.from_row(row) for row in response.data or []]

    def list_recent_questions(self, limit: int = 20) -> List[Question]:
        """Newest questions first (active or not), for the question bank page."""
        try:
            response = (
                self.client.table(QUESTIONS_TABLE)
                .select("*")
                .order("id", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching recent questions: {e}")
            raise StoreUnavailable("list_recent_questions", e) from e
        return [Question.from_row(row) for row in response.data or []]

    def insert_questions(self, rows: List[Dict]) -> List[Question]:
        """Insert one or more question rows in a single request."""
        if not rows:
            return []
        try:
            response = self.client.table(QUESTIONS_TABLE).insert(rows).execute()
        except Exception as e:
            logger.error(f"Error inserting {len(rows)} questions: {e}")
            raise StoreUnavailable("insert_questions", e) from e
        logger.info(f"Inserted {len(response.data or [])} questions")
        return [Question.from_row(row) for row in response.data or []]

    def ping(self) -> bool:
        """Cheapest possible round trip against the questions table."""
        try:
            self.client.table(QUESTIONS_TABLE).select("id").limit(1).execute()
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            raise StoreUnavailable("ping", e) from e
        return True

    # ============= Sessions =============

    def insert_session(self, fields: Dict) -> Session:
        try:
            response = self.client.table(SESSIONS_TABLE).insert(fields).execute()
        except Exception as e:
            logger.error(f"Error creating session: {e}")
            raise StoreUnavailable("insert_session", e) from e
        return Session.from_row(self._first(response, "insert_session"))

    def update_session(self, session_id: str, fields: Dict) -> Session:
        try:
            response = (
                self.client.table(SESSIONS_TABLE)
                .update(fields)
                .eq("id", str(session_id))
                .execute()
            )
        except Exception as e:
            logger.error(f"Error updating session {session_id}: {e}")
            raise StoreUnavailable("update_session", e) from e
        return Session.from_row(self._first(response, "update_session"))

    def find_latest_open_session(self, user_id: str) -> Optional[Session]:
        """Most recently started session of the user that has no finished_at."""
        try:
            response = (
                self.client.table(SESSIONS_TABLE)
                .select("*")
                .eq("user_id", str(user_id))
                .is_("finished_at", "null")
                .order("started_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching open session for user {user_id}: {e}")
            raise StoreUnavailable("find_latest_open_session", e) from e
        if not response.data:
            return None
        return Session.from_row(response.data[0])

    # ============= Attempts =============

    def insert_attempt(self, fields: Dict) -> Attempt:
        try:
            response = self.client.table(ATTEMPTS_TABLE).insert(fields).execute()
        except Exception as e:
            logger.error(f"Error saving attempt: {e}")
            raise StoreUnavailable("insert_attempt", e) from e
        return Attempt.from_row(self._first(response, "insert_attempt"))

    def list_attempts(self, session_id: str) -> List[Attempt]:
        """All attempts of a session, oldest first."""
        try:
            response = (
                self.client.table(ATTEMPTS_TABLE)
                .select("*")
                .eq("session_id", str(session_id))
                .order("id")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching attempts for session {session_id}: {e}")
            raise StoreUnavailable("list_attempts", e) from e
        return [Attempt.from_row(row) for row in response.data or []]


# Singleton instance
_db_client: Optional[DatabaseClient] = None


def get_database() -> DatabaseClient:
    """Get or create database client singleton."""
    global _db_client
    if _db_client is None:
        from db import get_supabase_uncached

        _db_client = DatabaseClient(get_supabase_uncached())
    return _db_client
