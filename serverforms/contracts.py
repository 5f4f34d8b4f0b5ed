"""
Semantic contracts for the server forms system.

This module defines immutable data structures that serve as contracts
between modules. These are NOT validators - the Form Validator checks the
raw configuration before any of these objects are built.

Design principles:
- Frozen dataclasses (immutable after creation)
- No validation logic (contracts, not validators)
- No dependencies on other modules
- Raw JSON stays at the configuration boundary (see from_config)

Contents:
- Question: One prompt inside a form
- FormDefinition: Typed, read-only description of a form and its policy

Usage:
    from serverforms.contracts import Question, FormDefinition
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Question:
    """
    One question of a form.

    Attributes:
        id: Identifier unique within the owning form. Used as the answer key.
        text: Prompt shown to the user.

    Examples:
        >>> q = Question(id='1', text='What is your name?')
        >>> q.id
        '1'
    """
    id: str
    text: str


@dataclass(frozen=True)
class FormDefinition:
    """
    Read-only description of one form from the catalog.

    Lifecycle:
    1. Created by: ConfigLoader (after validate_forms accepted the catalog)
    2. Shared by: every FormSession started for this form
    3. Replaced (never mutated) by: ConfigLoader.reload()

    Attributes:
        form_key: Catalog key of the form
        display_name: Human-readable name, also the key in the answer record
        command_name: Command token that starts the form
        questions: Questions in interview order
        allow_multiple_responses: Whether a user may complete the form again
        return_answers: Whether answers are echoed back on completion
    """
    form_key: str
    display_name: str
    command_name: str
    questions: Tuple[Question, ...]
    allow_multiple_responses: bool = False
    return_answers: bool = False

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @staticmethod
    def from_config(form_key: str, data: Dict[str, Any]) -> "FormDefinition":
        """
        Build a FormDefinition from a validated configuration entry.

        Args:
            form_key: Catalog key
            data: Raw form object (keys: name, command, allowMultipleResponses,
                  returnAnswers, questions[{id, question}])

        Returns:
            FormDefinition
        """
        questions = tuple(
            Question(id=q['id'], text=q.get('question', ''))
            for q in data['questions']
        )
        return FormDefinition(
            form_key=form_key,
            display_name=data['name'],
            command_name=data['command'],
            questions=questions,
            allow_multiple_responses=data.get('allowMultipleResponses', False),
            return_answers=data.get('returnAnswers', False),
        )
