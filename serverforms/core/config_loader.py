"""
Config Loader - forms catalog and message templates

Responsibilities:
- Read config/ServerForms.json (generate a default one when missing)
- Validate the forms section and build typed FormDefinitions
- Swap catalog + messages atomically on reload
- Look up message templates with placeholder substitution

Startup vs reload:
- At startup an unreadable or structurally broken file is replaced by the
  default configuration (logged as an error)
- On reload nothing is ever overwritten: any problem raises and the
  previous catalog stays active
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from serverforms.contracts import FormDefinition
from serverforms.core.form_validator import validate_forms
from serverforms.errors import ValidationError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")

DEFAULT_MESSAGES = {
    "formSuccess": "&aThank you for completing the form!",
    "formError": "&cAn error occurred. Please try again.",
    "playerNotFound": "&cPlayer '{player}' does not exist or has never joined the server.",
    "formNotFound": "&cForm '{form}' not found for player: {player}.",
    "viewingForm": "&aViewing form: {form} for player: {player}.",
    "noFormsFound": "&cNo forms found for player: {player}.",
    "readError": "&cAn error occurred while reading the form file.",
    "alreadyCompleted": "&cYou have already completed this form!",
    "alreadyFilling": "&cYou are already filling out a form!",
    "notFilling": "&cYou are not currently filling out a form.",
    "missingName": "&cThe form is missing a 'name' field.",
    "missingQuestionId": "&cThe current question is missing an 'id' field.",
    "nextQuestion": "&eNext question: &f{question}",
    "answerLine": "&b{id}: &f{answer}",
    "reloadSuccess": "&aForms configuration reloaded successfully!",
    "reloadFailed": "&cFailed to reload forms configuration. Check the logs for details.",
    "unknownCommand": "&cUnknown command: {text}",
    "answerUsage": "&cUsage: /answer <response>",
    "viewformUsage": "&cUsage: /viewform <player> [form]",
    "noPermission": "&cYou do not have permission to use this command.",
}


def default_config() -> Dict[str, Any]:
    """Configuration written when no config file exists"""
    return {
        "forms": {
            "single_response_form": {
                "name": "single_response_form",
                "allowMultipleResponses": False,
                "returnAnswers": True,
                "command": "single_response",
                "questions": [
                    {"id": "1", "question": "What is your name?"},
                    {"id": "2", "question": "How old are you?"},
                ],
            },
            "multiple_responses_form": {
                "name": "multiple_responses_form",
                "allowMultipleResponses": True,
                "returnAnswers": True,
                "command": "multiple_responses",
                "questions": [
                    {"id": "1", "question": "What is your favorite color?"},
                    {"id": "2", "question": "What is your favorite food?"},
                    {"id": "3", "question": "What is your favorite hobby?"},
                ],
            },
        },
        "messages": {
            "formSuccess": DEFAULT_MESSAGES["formSuccess"],
            "formError": DEFAULT_MESSAGES["formError"],
            "playerNotFound": DEFAULT_MESSAGES["playerNotFound"],
            "formNotFound": DEFAULT_MESSAGES["formNotFound"],
            "viewingForm": DEFAULT_MESSAGES["viewingForm"],
            "noFormsFound": DEFAULT_MESSAGES["noFormsFound"],
            "readError": DEFAULT_MESSAGES["readError"],
        },
    }


def substitute(template: str, **placeholders) -> str:
    """
    Replace {name} placeholders literally.

    Single pass, so braces inside substituted user text are left alone.
    Unknown placeholders stay as they are.
    """
    def replace(match):
        name = match.group(1)
        return str(placeholders[name]) if name in placeholders else match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, template)


class ConfigLoader:
    """Loads and serves the forms catalog and message templates"""

    def __init__(self, config_path: str = "config/ServerForms.json"):
        """
        Args:
            config_path: Path to ServerForms.json
        """
        self.config_path = Path(config_path)
        # (raw config, catalog) replaced as one value
        self._state = ({}, {})
        logger.info(f"ConfigLoader initialized: {self.config_path}")

    # =========================================================================
    # Loading
    # =========================================================================

    def read(self, regenerate: bool = True) -> Dict[str, Any]:
        """
        Read the raw configuration file.

        Args:
            regenerate: Write and return the default configuration when the
                file is missing, unreadable or has no 'forms' object

        Returns:
            dict: Raw configuration

        Raises:
            ValidationError: If the file is unusable and regenerate is False
        """
        if not self.config_path.exists():
            if not regenerate:
                raise ValidationError(f"Config file not found: {self.config_path}")
            logger.warning("Config file not found. Generating default config...")
            return self._generate_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except (OSError, ValueError) as e:
            if not regenerate:
                raise ValidationError(f"Failed to load config file {self.config_path}: {e}") from e
            logger.error(f"Failed to load config file: {e}. Regenerating default config...")
            return self._generate_default_config()

        if not isinstance(config, dict) or not isinstance(config.get("forms"), dict):
            if not regenerate:
                raise ValidationError("Config file is missing the 'forms' section.")
            logger.error("Config file is missing the 'forms' section. Regenerating default config...")
            return self._generate_default_config()

        logger.info("Config loaded successfully.")
        return config

    def install(self, config: Dict[str, Any]):
        """
        Validate a raw configuration and make it the active one.

        Raises:
            ValidationError: If the forms section is invalid (nothing is replaced)
        """
        forms = config.get("forms")
        validate_forms(forms)

        catalog = {
            key: FormDefinition.from_config(key, data)
            for key, data in forms.items()
        }
        self._state = (config, catalog)
        logger.info(f"Installed {len(catalog)} form(s): {', '.join(catalog)}")

    def load(self):
        """Read (regenerating if needed) and install the configuration"""
        self.install(self.read(regenerate=True))

    def reload(self):
        """
        Re-read and re-validate the configuration file.

        Raises:
            ValidationError: If the file is missing, unreadable or invalid.
                The previously installed catalog stays active.
        """
        self.install(self.read(regenerate=False))
        logger.info("Forms configuration reloaded")

    def _generate_default_config(self) -> Dict[str, Any]:
        config = default_config()
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=2)
            logger.info(f"Default forms configuration generated at: {self.config_path.absolute()}")
        except OSError as e:
            logger.error(f"Failed to generate default forms configuration: {e}")
        return config

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def config(self) -> Dict[str, Any]:
        return self._state[0]

    def get_forms(self) -> Dict[str, FormDefinition]:
        """Active catalog (form key -> FormDefinition), in config order"""
        return dict(self._state[1])

    def get_form(self, form_key: str) -> Optional[FormDefinition]:
        return self._state[1].get(form_key)

    def find_by_command(self, command_name: str) -> Optional[FormDefinition]:
        """Form bound to a command token (case-insensitive), or None"""
        token = command_name.lower()
        for form in self._state[1].values():
            if form.command_name.lower() == token:
                return form
        return None

    def get_message(self, key: str, default: Optional[str] = None, **placeholders) -> str:
        """
        Message template from config with placeholders substituted.

        Lookup order: config 'messages' -> default argument -> DEFAULT_MESSAGES.

        Args:
            key: Message key (e.g. 'formSuccess')
            default: Fallback template
            **placeholders: Values for {form}, {player}, {id}, ...

        Returns:
            str: Message with color codes still in '&' form
        """
        messages = self.config.get("messages")
        template = None
        if isinstance(messages, dict) and isinstance(messages.get(key), str):
            template = messages[key]
        if template is None:
            template = default if default is not None else DEFAULT_MESSAGES.get(key, key)
        return substitute(template, **placeholders)
