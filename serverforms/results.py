"""
Result types returned by SessionEngine.start() and SessionEngine.submit_answer()

These are the ONLY return types from the engine. Rejections are results,
not exceptions: the engine never raises for a user-caused condition.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Outcome(str, Enum):
    """
    What happened to a start/answer command.

    Success outcomes:
        STARTED: Session created, first question sent
        ADVANCED: Answer recorded, next question sent
        COMPLETED: Last answer recorded, answers persisted

    Rejections (no session state changed):
        MISSING_FIELD, DUPLICATE_SUBMISSION, SESSION_BUSY,
        NO_ACTIVE_SESSION, MALFORMED_QUESTION

    PERSISTENCE_ERROR:
        Form finished but the answer record could not be written.
        The session is already gone at this point.
    """
    STARTED = "started"
    ADVANCED = "advanced"
    COMPLETED = "completed"
    MISSING_FIELD = "missing_field"
    DUPLICATE_SUBMISSION = "duplicate_submission"
    SESSION_BUSY = "session_busy"
    NO_ACTIVE_SESSION = "no_active_session"
    MALFORMED_QUESTION = "malformed_question"
    PERSISTENCE_ERROR = "persistence_error"


SUCCESS_OUTCOMES = {Outcome.STARTED, Outcome.ADVANCED, Outcome.COMPLETED}


@dataclass(frozen=True)
class FormResult:
    """
    Result of one engine operation.

    Attributes:
        outcome: What happened
        form_name: Display name of the form involved (None if unknown)
        question_id: Question that was asked next (None when nothing is pending)
        answers: Recorded answers, only set on COMPLETED / PERSISTENCE_ERROR
    """
    outcome: Outcome
    form_name: Optional[str] = None
    question_id: Optional[str] = None
    answers: Optional[Dict[str, str]] = None

    @property
    def ok(self) -> bool:
        return self.outcome in SUCCESS_OUTCOMES

    @property
    def status_code(self) -> int:
        """Command return value: 1 on success, 0 otherwise"""
        return 1 if self.ok else 0
