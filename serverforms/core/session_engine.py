"""
Session Engine - form interview orchestration

Responsibilities:
- Start a form for a user (duplicate and concurrency checks)
- Route free-text answers into the user's active FormSession
- Persist answers through the AnswerStore when a form completes
- Send every user-facing message through the acting CommandSource

Design principles:
- Thin orchestration layer (state lives in FormSession, durability in AnswerStore)
- Registry is injected, not global
- Rejections are FormResults, never exceptions
- No retries: the user reissues the command
"""

import logging
from typing import Optional

from serverforms.contracts import FormDefinition
from serverforms.core.form_session import FormSession
from serverforms.core.session_registry import SessionRegistry
from serverforms.errors import PersistenceError
from serverforms.results import FormResult, Outcome

logger = logging.getLogger(__name__)


class SessionEngine:
    """
    Coordinates SessionRegistry, FormSession and AnswerStore.

    All methods are synchronous. Per-user calls are serialized by the
    one-session-per-user rule; cross-user calls only share the registry
    (locked) and the answer store (one file per user).
    """

    def __init__(self, answer_store, messages, registry: Optional[SessionRegistry] = None):
        """
        Args:
            answer_store: AnswerStore (has_completed, save)
            messages: Message provider with get_message(key, **placeholders),
                usually the ConfigLoader
            registry: SessionRegistry to use (a fresh one when None)

        Raises:
            TypeError: If a collaborator is missing a required method
        """
        self._validate_modules(answer_store, messages)

        self.answer_store = answer_store
        self.messages = messages
        self.registry = registry if registry is not None else SessionRegistry()

        logger.info("Session Engine initialized")

    def _validate_modules(self, answer_store, messages):
        """Validate collaborator interfaces"""
        for method in ('has_completed', 'save'):
            if not callable(getattr(answer_store, method, None)):
                raise TypeError(f"answer_store must have callable {method}() method")

        if not callable(getattr(messages, 'get_message', None)):
            raise TypeError("messages must have callable get_message() method")

    # =========================================================================
    # Public API
    # =========================================================================

    def start(self, user_identity: str, user_display_name: str,
              form: FormDefinition, output) -> FormResult:
        """
        Start a form for a user and send the first question.

        Checks, in order:
        1. form has a display name            -> MISSING_FIELD
        2. form has at least one question     -> MISSING_FIELD
        3. single-response form already saved -> DUPLICATE_SUBMISSION
        4. user already has an active session -> SESSION_BUSY

        Args:
            user_identity: Stable identity (registry and record key)
            user_display_name: Current display name (stored in the record)
            form: Validated form definition
            output: CommandSource receiving messages

        Returns:
            FormResult (STARTED on success)
        """
        if not form.display_name:
            logger.error(f"Form '{form.form_key}' is missing a 'name' field: {form}")
            output.send_error(self.messages.get_message("missingName"))
            return FormResult(outcome=Outcome.MISSING_FIELD)

        form_name = form.display_name

        if form.question_count == 0:
            logger.error(f"Form '{form_name}' has no questions")
            output.send_error(self.messages.get_message("formError", form=form_name))
            return FormResult(outcome=Outcome.MISSING_FIELD, form_name=form_name)

        if not form.allow_multiple_responses and self.answer_store.has_completed(user_identity, form_name):
            logger.info(f"{user_display_name} ({user_identity}) already completed '{form_name}'")
            output.send_error(self.messages.get_message(
                "alreadyCompleted", form=form_name, player=user_display_name))
            return FormResult(outcome=Outcome.DUPLICATE_SUBMISSION, form_name=form_name)

        session = FormSession(user_identity, form, user_display_name=user_display_name)

        if not self.registry.try_begin(user_identity, session):
            active = self.registry.active_session(user_identity)
            logger.info(
                f"{user_display_name} ({user_identity}) tried to start '{form_name}' "
                f"while filling out '{active.form_name if active else '?'}'"
            )
            output.send_error(self.messages.get_message(
                "alreadyFilling", form=form_name, player=user_display_name))
            return FormResult(outcome=Outcome.SESSION_BUSY, form_name=form_name)

        logger.info(f"Started form '{form_name}' for {user_display_name} ({user_identity})")

        question = session.current_question()
        self._ask(output, question.text)
        return FormResult(outcome=Outcome.STARTED, form_name=form_name, question_id=question.id)

    def submit_answer(self, user_identity: str, raw_answer_text: str, output,
                      user_display_name: Optional[str] = None) -> FormResult:
        """
        Record an answer to the current question.

        Args:
            user_identity: Stable identity
            raw_answer_text: Answer exactly as typed
            output: CommandSource receiving messages
            user_display_name: Current display name, if it changed since start

        Returns:
            FormResult:
            - NO_ACTIVE_SESSION: nothing to answer
            - MALFORMED_QUESTION: current question has no id (session untouched)
            - ADVANCED: next question sent
            - COMPLETED: answers saved, success message (and echo) sent
            - PERSISTENCE_ERROR: form finished but saving failed
        """
        session = self.registry.active_session(user_identity)
        if session is None:
            output.send_error(self.messages.get_message("notFilling"))
            return FormResult(outcome=Outcome.NO_ACTIVE_SESSION)

        if user_display_name:
            session.user_display_name = user_display_name

        question = session.current_question()
        if not question.id:
            logger.error(f"Question at index {session.cursor} of form '{session.form_name}' has no id")
            output.send_error(self.messages.get_message("missingQuestionId", form=session.form_name))
            return FormResult(outcome=Outcome.MALFORMED_QUESTION, form_name=session.form_name)

        session.record_answer(raw_answer_text)

        if session.has_next_question():
            next_question = session.current_question()
            self._ask(output, next_question.text)
            return FormResult(
                outcome=Outcome.ADVANCED,
                form_name=session.form_name,
                question_id=next_question.id
            )

        return self._complete(session, output)

    def active_session(self, user_identity: str) -> Optional[FormSession]:
        return self.registry.active_session(user_identity)

    def active_session_count(self) -> int:
        return len(self.registry)

    # =========================================================================
    # Internals
    # =========================================================================

    def _ask(self, output, question_text: str):
        output.send_feedback(self.messages.get_message("nextQuestion", question=question_text))

    def _complete(self, session: FormSession, output) -> FormResult:
        """Unregister, persist, and report a finished session"""
        user_identity = session.user_identity
        form_name = session.form_name
        answers = session.answers

        self.registry.end(user_identity)

        try:
            self.answer_store.save(user_identity, session.user_display_name, form_name, answers)
        except PersistenceError as e:
            logger.error(f"Failed to save answers for {user_identity} ('{form_name}'): {e}")
            output.send_error(self.messages.get_message("formError", form=form_name))
            return FormResult(outcome=Outcome.PERSISTENCE_ERROR, form_name=form_name, answers=answers)

        logger.info(f"Form '{form_name}' completed by {session.user_display_name} ({user_identity})")
        output.send_feedback(self.messages.get_message(
            "formSuccess", form=form_name, player=session.user_display_name))

        if session.form.return_answers:
            for question_id, answer in session.ordered_answers():
                output.send_feedback(self.messages.get_message("answerLine", id=question_id, answer=answer))

        return FormResult(outcome=Outcome.COMPLETED, form_name=form_name, answers=answers)
