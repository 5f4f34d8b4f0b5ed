"""
Command types and the command registry.

Commands are the ONLY public interface for hosts (HTTP app, console).
A host hands a raw command line plus the acting CommandSource to
CommandRegistry.dispatch(); everything the user sees goes back through
that source.

Built-in commands:
    /<form command>               start the form bound to that command
    /answer <response...>         answer the current question
    /viewform <player> [form...]  show saved answers (latest form by default)
    /reloadforms                  re-read the forms configuration (operators)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from serverforms.core.form_validator import RESERVED_COMMANDS
from serverforms.errors import PersistenceError, PlayerNotFound, ValidationError
from serverforms.persistence import DISPLAY_NAME_KEY

logger = logging.getLogger(__name__)


# Command types

@dataclass(frozen=True)
class StartForm:
    """Start the form with this catalog key"""
    form_key: str


@dataclass(frozen=True)
class SubmitAnswer:
    """Answer the current question (raw text, may contain spaces)"""
    response: str


@dataclass(frozen=True)
class ViewForm:
    """Show a player's saved answers; form_name None means latest form"""
    player_name: str
    form_name: Optional[str] = None


@dataclass(frozen=True)
class ReloadForms:
    """Re-read and re-validate the forms configuration"""
    pass


# Command union type for type hints
Command = Union[StartForm, SubmitAnswer, ViewForm, ReloadForms]


class CommandRegistry:
    """
    Parses command lines and executes them against the engine.

    Form commands are looked up in the live catalog on every dispatch, so
    forms added by /reloadforms become invocable immediately and removed
    ones stop being invocable. Sessions already running keep the
    FormDefinition they started with.
    """

    def __init__(self, engine, config_loader, answer_store, identity_resolver):
        """
        Args:
            engine: SessionEngine
            config_loader: ConfigLoader (catalog, messages, reload)
            answer_store: AnswerStore (read directly by /viewform)
            identity_resolver: IdentityResolver (player name -> identity)
        """
        self.engine = engine
        self.config_loader = config_loader
        self.answer_store = answer_store
        self.identity_resolver = identity_resolver

        for form in config_loader.get_forms().values():
            logger.info(f"Registered form command: /{form.command_name}")

    # =========================================================================
    # Public API
    # =========================================================================

    def command_names(self) -> List[str]:
        """Built-in commands followed by every form command"""
        names = sorted(RESERVED_COMMANDS)
        names.extend(form.command_name for form in self.config_loader.get_forms().values())
        return names

    def parse(self, line: str) -> Optional[Command]:
        """
        Parse a command line ('/' prefix optional).

        Returns:
            Command, or None if the command name is unknown. Built-in
            commands with missing arguments parse to None as well; dispatch()
            reports their usage instead.
        """
        text = line.strip()
        if text.startswith("/"):
            text = text[1:]
        if not text:
            return None

        parts = text.split(None, 1)
        name = parts[0].lower()
        rest = parts[1].strip() if len(parts) > 1 else ""

        if name == "answer":
            return SubmitAnswer(response=rest) if rest else None

        if name == "viewform":
            if not rest:
                return None
            args = rest.split(None, 1)
            form_name = args[1].strip() if len(args) > 1 else None
            return ViewForm(player_name=args[0], form_name=form_name or None)

        if name == "reloadforms":
            return ReloadForms()

        form = self.config_loader.find_by_command(name)
        if form is not None:
            return StartForm(form_key=form.form_key)
        return None

    def dispatch(self, source, line: str) -> int:
        """
        Parse and execute one command line for a user.

        Never raises: unexpected errors are logged and reported as the
        generic 'formError' message.

        Args:
            source: CommandSource of the acting user
            line: Raw command line

        Returns:
            int: 1 on success, 0 otherwise
        """
        command = self.parse(line)
        if command is None:
            self._report_unparsed(source, line)
            return 0

        try:
            return self.execute(source, command)
        except Exception as e:
            logger.exception(f"Unhandled error executing '{line}' for {source.name}: {e}")
            source.send_error(self.config_loader.get_message("formError"))
            return 0

    def execute(self, source, command: Command) -> int:
        """
        Execute a parsed command.

        Returns:
            int: 1 on success, 0 otherwise
        """
        if isinstance(command, StartForm):
            return self.start_form(source, command.form_key)
        if isinstance(command, SubmitAnswer):
            return self.answer(source, command.response)
        if isinstance(command, ViewForm):
            return self.view_form(source, command.player_name, command.form_name)
        if isinstance(command, ReloadForms):
            return self.reload_forms(source)
        raise TypeError(f"Unknown command type: {type(command).__name__}")

    # =========================================================================
    # Command handlers
    # =========================================================================

    def start_form(self, source, form_key: str) -> int:
        form = self.config_loader.get_form(form_key)
        if form is None:
            source.send_error(self.config_loader.get_message("unknownCommand", text=form_key))
            return 0

        identity = self._identity_of(source)
        result = self.engine.start(identity, source.name, form, source)
        return result.status_code

    def answer(self, source, response: str) -> int:
        identity = self._identity_of(source)
        result = self.engine.submit_answer(identity, response, source, user_display_name=source.name)
        return result.status_code

    def view_form(self, source, player_name: str, form_name: Optional[str] = None) -> int:
        """
        Show a player's saved answers for one form.

        Reads the AnswerStore directly; the engine is not involved.
        Without form_name, the most recently added form in the record is shown.
        """
        try:
            identity = self.identity_resolver.resolve(player_name)
        except PlayerNotFound:
            source.send_error(self.config_loader.get_message("playerNotFound", player=player_name))
            return 0

        try:
            record = self.answer_store.load_record(identity)
        except PersistenceError as e:
            logger.error(f"Failed to read form file for player: {player_name}: {e}")
            source.send_error(self.config_loader.get_message("readError", player=player_name))
            return 0

        form_keys = [key for key in (record or {}) if key != DISPLAY_NAME_KEY]
        if not form_keys:
            source.send_error(self.config_loader.get_message("noFormsFound", player=player_name))
            return 0

        if form_name is None:
            form_name = form_keys[-1]

        answers = record.get(form_name) if form_name != DISPLAY_NAME_KEY else None
        if not isinstance(answers, dict):
            source.send_error(self.config_loader.get_message(
                "formNotFound", form=form_name, player=player_name))
            return 0

        source.send_feedback(self.config_loader.get_message(
            "viewingForm", form=form_name, player=player_name))
        for question_id, answer in answers.items():
            source.send_feedback(self.config_loader.get_message(
                "answerLine", id=question_id, answer=answer))
        return 1

    def reload_forms(self, source) -> int:
        if not source.is_operator:
            source.send_error(self.config_loader.get_message("noPermission"))
            return 0

        try:
            self.config_loader.reload()
        except ValidationError as e:
            logger.error(f"Failed to reload forms configuration: {e}")
            source.send_error(self.config_loader.get_message("reloadFailed"))
            return 0

        source.send_feedback(self.config_loader.get_message("reloadSuccess"))
        return 1

    # =========================================================================
    # Suggestions
    # =========================================================================

    def suggest_players(self) -> List[str]:
        """Player names with saved answers"""
        return self.answer_store.list_known_display_names()

    def suggest_forms(self, player_name: str) -> List[str]:
        """Form names saved for a player; empty if unknown or unreadable"""
        try:
            identity = self.identity_resolver.resolve(player_name)
            return self.answer_store.list_completed_forms(identity)
        except PlayerNotFound:
            return []
        except PersistenceError as e:
            logger.error(f"Failed to read form names for player: {player_name}: {e}")
            return []

    # =========================================================================
    # Internals
    # =========================================================================

    def _identity_of(self, source) -> str:
        """Acting user's identity, registering the player on first sight"""
        if source.identity is None:
            source.identity = self.identity_resolver.remember(source.name)
        return source.identity

    def _report_unparsed(self, source, line: str):
        name = line.strip().lstrip("/").split(None, 1)
        name = name[0].lower() if name else ""
        if name == "answer":
            source.send_error(self.config_loader.get_message("answerUsage"))
        elif name == "viewform":
            source.send_error(self.config_loader.get_message("viewformUsage"))
        else:
            source.send_error(self.config_loader.get_message("unknownCommand", text=line.strip()))
