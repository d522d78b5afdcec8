"""Question bank vocabulary and UI limits shared by the app, importer and authoring helpers."""

TOPICS = ["Hematology", "Microbiology", "Immunology", "Blood Banking", "Chemistry"]
DIFFICULTIES = ["Easy", "Medium", "Hard"]

CHOICE_LABELS = "ABCDEFGHIJ"
DEFAULT_CHOICE_COUNT = 4
MIN_CHOICES = 2
MAX_CHOICES = len(CHOICE_LABELS)

RECENT_QUESTIONS_LIMIT = 20
