"""
Form Session - one user's walk through one form

States:
- AwaitingAnswer(cursor) for 0 <= cursor < N
- Completed (cursor == N, terminal)

The cursor is the only state. has_next_question() must be checked before
current_question(); calling it in the Completed state is a programming
error and raises IllegalStateError.
"""

import logging
from typing import Dict, List, Optional, Tuple

from serverforms.contracts import FormDefinition, Question
from serverforms.errors import IllegalStateError

logger = logging.getLogger(__name__)


class FormSession:
    """Tracks progress and collected answers for a single form attempt"""

    def __init__(self, user_identity: str, form: FormDefinition, user_display_name: Optional[str] = None):
        """
        Args:
            user_identity: Stable identity of the user filling in the form
            form: Form being filled in (shared, read-only)
            user_display_name: Display name stored with the answers
        """
        self.user_identity = user_identity
        self.user_display_name = user_display_name or user_identity
        self.form = form
        self._answers: Dict[str, str] = {}
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def form_name(self) -> str:
        return self.form.display_name

    @property
    def answers(self) -> Dict[str, str]:
        """Copy of recorded answers (question id -> answer), in answer order"""
        return dict(self._answers)

    def has_next_question(self) -> bool:
        return self._cursor < self.form.question_count

    def is_complete(self) -> bool:
        return not self.has_next_question()

    def current_question(self) -> Question:
        """
        Question awaiting an answer.

        Raises:
            IllegalStateError: If the session is already complete
        """
        if not self.has_next_question():
            raise IllegalStateError(
                "No current question available. "
                "Ensure has_next_question() is true before calling this method."
            )
        return self.form.questions[self._cursor]

    def record_answer(self, answer: str):
        """
        Store answer under the current question id and advance the cursor.

        Raises:
            IllegalStateError: If the session is already complete
        """
        question = self.current_question()
        if question.id in self._answers:
            # Validated forms have unique ids; hand-built ones may not
            logger.warning(f"Question id '{question.id}' answered twice in form '{self.form_name}', overwriting")
        self._answers[question.id] = answer
        self._cursor += 1

    def ordered_answers(self) -> List[Tuple[str, str]]:
        """Recorded (question_id, answer) pairs in question order"""
        seen = set()
        ordered = []
        for question in self.form.questions:
            if question.id in self._answers and question.id not in seen:
                ordered.append((question.id, self._answers[question.id]))
                seen.add(question.id)
        return ordered
