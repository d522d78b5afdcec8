"""
Question authoring: validation, insertion, sample seeding and listing.
Only the question bank page and importer.py write questions; the engine never does.
"""
import logging
from typing import List, Dict

from examsim.constants import DIFFICULTIES, MAX_CHOICES, MIN_CHOICES, RECENT_QUESTIONS_LIMIT, TOPICS
from examsim.errors import InvalidQuestion, StoreUnavailable
from examsim.models import Question

logger = logging.getLogger(__name__)

SAMPLE_QUESTIONS = [
    {
        "stem": "Which of the following is the most common cause of iron deficiency anemia?",
        "choices": [
            "Chronic blood loss",
            "Inadequate dietary intake",
            "Malabsorption",
            "Increased iron requirements",
        ],
        "correct_index": 0,
        "topic": "Hematology",
        "difficulty": "Medium",
        "explanation": "Chronic blood loss is the most common cause of iron deficiency anemia in adults, "
                       "often due to GI bleeding or menstrual losses.",
    },
    {
        "stem": "What is the primary function of neutrophils?",
        "choices": [
            "Antibody production",
            "Phagocytosis of bacteria",
            "Allergic reactions",
            "Antigen presentation",
        ],
        "correct_index": 1,
        "topic": "Hematology",
        "difficulty": "Easy",
        "explanation": "Neutrophils are the primary cells responsible for phagocytosis of bacteria "
                       "and are the first responders to bacterial infections.",
    },
    {
        "stem": "Which organism is the most common cause of community-acquired pneumonia?",
        "choices": [
            "Haemophilus influenzae",
            "Streptococcus pneumoniae",
            "Staphylococcus aureus",
            "Mycoplasma pneumoniae",
        ],
        "correct_index": 1,
        "topic": "Microbiology",
        "difficulty": "Medium",
        "explanation": "Streptococcus pneumoniae (pneumococcus) is the most common bacterial cause "
                       "of community-acquired pneumonia.",
    },
]


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate_question(fields: Dict) -> Dict:
    """
    Check an authored question and return the row to insert.

    Raises:
        InvalidQuestion: blank stem or choice, too few/many choices,
            correct_index out of range, unknown topic or difficulty
    """
    stem = _clean(fields.get("stem"))
    if not stem:
        raise InvalidQuestion("Please fill in the question stem.")

    choices = fields.get("choices")
    if not isinstance(choices, list):
        raise InvalidQuestion("Choices must be a list of strings.")
    choices = [(c or "").strip() if isinstance(c, str) else "" for c in choices]
    if any(not c for c in choices):
        raise InvalidQuestion("Please fill in all answer choices.")
    if not MIN_CHOICES <= len(choices) <= MAX_CHOICES:
        raise InvalidQuestion(f"A question needs between {MIN_CHOICES} and {MAX_CHOICES} choices, got {len(choices)}.")

    correct_index = fields.get("correct_index")
    if isinstance(correct_index, bool) or not isinstance(correct_index, int) \
            or not 0 <= correct_index < len(choices):
        raise InvalidQuestion(f"Correct answer index {correct_index!r} does not match any choice.")

    topic = _clean(fields.get("topic"))
    if topic is not None and topic not in TOPICS:
        raise InvalidQuestion(f"Unknown topic {topic!r}.")
    difficulty = _clean(fields.get("difficulty"))
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise InvalidQuestion(f"Unknown difficulty {difficulty!r}.")

    return {
        "stem": stem,
        "choices": choices,
        "correct_index": correct_index,
        "topic": topic,
        "difficulty": difficulty,
        "explanation": _clean(fields.get("explanation")),
        "image_url": _clean(fields.get("image_url")),
        "is_active": bool(fields.get("is_active", True)),
    }


def add_question(db, fields: Dict) -> Question:
    row = validate_question(fields)
    inserted = db.insert_questions([row])
    if not inserted:
        raise StoreUnavailable("insert_questions", "no row returned")
    logger.info(f"Added question {inserted[0].id}: {row['stem'][:60]}")
    return inserted[0]


def add_questions(db, rows: List[Dict]) -> List[Question]:
    """Validate every row first, then insert them in one request."""
    validated = [validate_question(r) for r in rows]
    return db.insert_questions(validated)


def add_sample_questions(db) -> List[Question]:
    return add_questions(db, SAMPLE_QUESTIONS)


def list_recent_questions(db, limit: int = RECENT_QUESTIONS_LIMIT) -> List[Question]:
    return db.list_recent_questions(limit)


def check_connection(db) -> bool:
    """True when the questions table answers; StoreUnavailable otherwise."""
    return db.ping()
