"""Session-scoped question cache: question id -> Question, read-through to the store."""
import logging
from typing import Dict, Iterable, Optional

from examsim.errors import StaleReference
from examsim.models import Question

logger = logging.getLogger(__name__)


class QuestionCache:
    """
    Stands in for the join between sessions.question_order and questions.
    Never evicts; the engine clears it whenever a session is created or resumed.
    """

    def __init__(self, store):
        self._store = store
        self._questions: Dict[int, Question] = {}

    def __contains__(self, question_id) -> bool:
        return question_id in self._questions

    def __len__(self) -> int:
        return len(self._questions)

    def clear(self):
        self._questions = {}

    def prime(self, questions: Iterable[Question]):
        for q in questions:
            self._questions[q.id] = q

    def peek(self, question_id: int) -> Optional[Question]:
        """Cached question or None; never touches the store."""
        return self._questions.get(question_id)

    def get(self, question_id: int) -> Question:
        """Cached question, fetching and remembering it on a miss."""
        question = self._questions.get(question_id)
        if question is not None:
            return question
        logger.debug(f"Question cache miss for {question_id}, fetching")
        question = self._store.get_question(question_id)
        if question is None:
            raise StaleReference(question_id)
        self._questions[question.id] = question
        return question
