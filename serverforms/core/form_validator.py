"""
Form Validator - structural checks on the raw forms catalog

Runs on the raw JSON 'forms' object before any FormDefinition is built,
once at startup and again on every reload. Pure check: every problem is
logged, then a single ValidationError carrying all of them is raised.

Checks per form:
- form entry is an object
- 'name' present, a non-empty string, not the reserved record key
- 'command' present, a non-empty string without spaces, unique, not a built-in
- 'allowMultipleResponses' / 'returnAnswers' boolean when present
- 'questions' present, a non-empty array
- every question is an object with a non-empty string 'id' (unique in the
  form) and a string 'question'
"""

import logging
from typing import Any, Dict, List

from serverforms.errors import ValidationError
from serverforms.persistence import DISPLAY_NAME_KEY

logger = logging.getLogger(__name__)

# Commands registered by the command surface itself
RESERVED_COMMANDS = {"answer", "viewform", "reloadforms"}

BOOLEAN_FIELDS = ("allowMultipleResponses", "returnAnswers")


def validate_forms(forms: Any):
    """
    Validate the forms catalog.

    Args:
        forms: Raw 'forms' object (form key -> form object)

    Raises:
        ValidationError: If any form is invalid (errors attribute lists all)
    """
    if forms is None:
        _fail(["The 'forms' configuration is null. Ensure ServerForms.json is properly configured."])
    if not isinstance(forms, dict):
        _fail([f"The 'forms' configuration must be a JSON object, got {type(forms).__name__}."])

    errors: List[str] = []
    commands_seen: Dict[str, str] = {}

    for key, form in forms.items():
        if not isinstance(form, dict):
            errors.append(f"Form '{key}' is null or not a JSON object.")
            continue

        errors.extend(_validate_form_name(key, form))
        errors.extend(_validate_command(key, form, commands_seen))
        errors.extend(_validate_booleans(key, form))
        errors.extend(_validate_questions(key, form))

    if errors:
        _fail(errors)

    logger.info(f"Validated {len(forms)} form(s)")


def _fail(errors: List[str]):
    for error in errors:
        logger.error(error)
    message = "Forms validation failed:\n  - " + "\n  - ".join(errors)
    raise ValidationError(message, errors)


def _validate_form_name(key: str, form: Dict[str, Any]) -> List[str]:
    name = form.get("name")
    if name is None:
        return [f"Form '{key}' is missing the 'name' field."]
    if not isinstance(name, str):
        return [f"The 'name' field in form '{key}' must be a string."]
    if not name.strip():
        return [f"The 'name' field in form '{key}' must not be empty."]
    if name == DISPLAY_NAME_KEY:
        return [f"The 'name' field in form '{key}' uses the reserved value '{DISPLAY_NAME_KEY}'."]
    return []


def _validate_command(key: str, form: Dict[str, Any], commands_seen: Dict[str, str]) -> List[str]:
    command = form.get("command")
    if command is None:
        return [f"Form '{key}' is missing the 'command' field."]
    if not isinstance(command, str) or not command.strip():
        return [f"The 'command' field in form '{key}' must be a non-empty string."]
    if any(ch.isspace() for ch in command):
        return [f"The 'command' field in form '{key}' must be a single word, got '{command}'."]

    token = command.lower()
    if token in RESERVED_COMMANDS:
        return [f"Form '{key}' uses the built-in command name '{command}'."]
    if token in commands_seen:
        return [f"Form '{key}' reuses command '{command}' already bound to form '{commands_seen[token]}'."]

    commands_seen[token] = key
    return []


def _validate_booleans(key: str, form: Dict[str, Any]) -> List[str]:
    errors = []
    for field in BOOLEAN_FIELDS:
        if field in form and not isinstance(form[field], bool):
            errors.append(f"The '{field}' field in form '{key}' must be a boolean.")
    return errors


def _validate_questions(key: str, form: Dict[str, Any]) -> List[str]:
    questions = form.get("questions")
    if questions is None:
        return [f"Form '{key}' is missing the 'questions' field."]
    if not isinstance(questions, list):
        return [f"The 'questions' field in form '{key}' must be a JSON array."]
    if not questions:
        return [f"Form '{key}' has an empty 'questions' array."]

    errors = []
    seen_ids = set()
    for i, question in enumerate(questions):
        if not isinstance(question, dict):
            errors.append(f"Question at index {i} in form '{key}' must be a JSON object.")
            continue

        q_id = question.get("id")
        if not isinstance(q_id, str) or not q_id:
            errors.append(f"Question at index {i} in form '{key}' is missing a string 'id'.")
        elif q_id in seen_ids:
            errors.append(f"Duplicate question id '{q_id}' in form '{key}'.")
        else:
            seen_ids.add(q_id)

        if not isinstance(question.get("question"), str):
            errors.append(f"Question at index {i} in form '{key}' is missing a string 'question'.")
    return errors
