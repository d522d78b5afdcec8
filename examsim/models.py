"""
Row types for the questions, sessions and attempts tables.
Supabase returns plain dicts; these dataclasses normalise them once at the store boundary.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional


class Mode(str, Enum):
    """Session mode. Exam answers are final; practice answers may be repeated."""

    EXAM = "exam"
    PRACTICE = "practice"

    @property
    def allows_reanswer(self) -> bool:
        return self is Mode.PRACTICE


def _blank_to_none(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class Question:
    id: int
    stem: str
    choices: List[str]
    correct_index: int
    topic: Optional[str] = None
    difficulty: Optional[str] = None
    explanation: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Dict) -> "Question":
        """Build from a questions row. Non-string choices are dropped, blank tags become None."""
        raw_choices = row.get("choices")
        choices = [c for c in raw_choices if isinstance(c, str)] if isinstance(raw_choices, list) else []
        return cls(
            id=int(row["id"]),
            stem=row.get("stem") or "",
            choices=choices,
            correct_index=int(row.get("correct_index", 0)),
            topic=_blank_to_none(row.get("topic")),
            difficulty=_blank_to_none(row.get("difficulty")),
            explanation=_blank_to_none(row.get("explanation")),
            image_url=_blank_to_none(row.get("image_url")),
            is_active=bool(row.get("is_active", True)),
        )

    def is_correct(self, choice_index: int) -> bool:
        return choice_index == self.correct_index

    @property
    def correct_choice(self) -> Optional[str]:
        if 0 <= self.correct_index < len(self.choices):
            return self.choices[self.correct_index]
        return None


@dataclass
class Session:
    id: str
    user_id: str
    mode: Mode
    question_order: List[int]
    current_index: int = 0
    total: int = 0
    score: int = 0
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Session":
        order = [int(qid) for qid in (row.get("question_order") or [])]
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            mode=Mode(row.get("mode") or Mode.EXAM.value),
            question_order=order,
            current_index=int(row.get("current_index") or 0),
            total=int(row.get("total") if row.get("total") is not None else len(order)),
            score=int(row.get("score") or 0),
            started_at=row.get("started_at"),
            finished_at=row.get("finished_at"),
        )

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    @property
    def current_question_id(self) -> Optional[int]:
        if 0 <= self.current_index < len(self.question_order):
            return self.question_order[self.current_index]
        return None


@dataclass(frozen=True)
class Attempt:
    session_id: str
    user_id: str
    question_id: int
    choice_index: int
    correct: bool
    id: Optional[int] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Attempt":
        return cls(
            session_id=str(row["session_id"]),
            user_id=str(row.get("user_id") or ""),
            question_id=int(row["question_id"]),
            choice_index=int(row["choice_index"]),
            correct=bool(row.get("correct")),
            id=row.get("id"),
            created_at=row.get("created_at"),
        )


@dataclass
class AnswerOutcome:
    """Result of a recorded answer."""

    session: Session
    attempt: Attempt


@dataclass
class FinishOutcome:
    """Finished session plus the questions to show in the review panel."""

    session: Session
    incorrect_questions: List[Question] = field(default_factory=list)
