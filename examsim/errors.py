"""Typed failures raised by the session engine and its stores."""


class ExamSimError(Exception):
    """Base class for every failure surfaced to the presentation layer."""


class NoQuestionsAvailable(ExamSimError):
    """No active question matches the requested topic filter."""

    def __init__(self, topic=None):
        self.topic = topic
        if topic:
            msg = f"No active questions found for topic {topic!r}"
        else:
            msg = "No active questions found"
        super().__init__(msg)


class NoOpenSession(ExamSimError):
    """The user has no unfinished session to resume."""

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__("No unfinished session found. Create a new one.")


class NoActiveSession(ExamSimError):
    """An intent that needs a session was issued before create/resume."""

    def __init__(self):
        super().__init__("No active session. Create or resume one first.")


class SessionClosed(ExamSimError):
    """The active session is finished and accepts no more answers."""

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is already finished")


class InvalidChoice(ExamSimError):
    """Submitted choice index does not address one of the question's choices."""

    def __init__(self, choice_index, n_choices: int):
        self.choice_index = choice_index
        self.n_choices = n_choices
        super().__init__(f"Choice index {choice_index!r} is out of range for {n_choices} choices")


class InvalidQuestion(ExamSimError):
    """Authored question failed validation."""


class StaleReference(ExamSimError):
    """A question id referenced by a session could not be resolved."""

    def __init__(self, question_id):
        self.question_id = question_id
        super().__init__(f"Question {question_id} not found")


class StoreUnavailable(ExamSimError):
    """A Supabase read or write failed. The original error is chained as __cause__."""

    def __init__(self, operation: str, detail=None):
        self.operation = operation
        msg = f"Store operation '{operation}' failed"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
