"""Row conversion and mode policy."""
import pytest

from examsim.models import Attempt, Mode, Question, Session


def test_mode_reanswer_policy():
    assert Mode("exam").allows_reanswer is False
    assert Mode("practice").allows_reanswer is True
    with pytest.raises(ValueError):
        Mode("timed")


def test_question_from_row_sanitises():
    q = Question.from_row({
        "id": "12",
        "stem": "Stem",
        "choices": "not a list",
        "correct_index": 0,
        "topic": "  ",
        "image_url": "https://example.com/smear.png",
    })
    assert q.id == 12
    assert q.choices == []
    assert q.topic is None
    assert q.correct_choice is None
    assert q.image_url == "https://example.com/smear.png"
    assert q.is_correct(0)
    assert not q.is_correct(1)


def test_session_from_row_defaults_total_to_order_length():
    s = Session.from_row({"id": "s", "user_id": "u", "mode": "exam", "question_order": [5, 6]})
    assert s.total == 2
    assert s.score == 0
    assert s.current_question_id == 5
    assert not s.is_finished

    s.finished_at = "2024-01-01T00:00:00+00:00"
    assert s.is_finished


def test_attempt_from_row():
    a = Attempt.from_row({"session_id": "s", "user_id": "u", "question_id": "3", "choice_index": 2, "correct": 1})
    assert a.question_id == 3
    assert a.correct is True
