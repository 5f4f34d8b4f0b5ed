"""
Test ConfigLoader - catalog loading, default generation, reload, messages

Run with: pytest tests/test_config_loader.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json

import pytest

from serverforms.contracts import FormDefinition, Question
from serverforms.core.config_loader import ConfigLoader, DEFAULT_MESSAGES, substitute
from serverforms.errors import ValidationError


def write_config(path, config):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config), encoding="utf-8")


def simple_config(name="F", command="f", questions=None, messages=None):
    config = {
        "forms": {
            "F": {
                "name": name,
                "command": command,
                "allowMultipleResponses": False,
                "questions": questions or [{"id": "1", "question": "Name?"}],
            }
        }
    }
    if messages is not None:
        config["messages"] = messages
    return config


def test_missing_file_generates_default(tmp_path):
    path = tmp_path / "config" / "ServerForms.json"
    loader = ConfigLoader(str(path))
    loader.load()

    assert path.exists()
    written = json.loads(path.read_text(encoding="utf-8"))
    assert set(written["forms"]) == {"single_response_form", "multiple_responses_form"}

    forms = loader.get_forms()
    single = forms["single_response_form"]
    assert single.command_name == "single_response"
    assert single.allow_multiple_responses is False
    assert [q.text for q in single.questions] == ["What is your name?", "How old are you?"]
    assert forms["multiple_responses_form"].allow_multiple_responses is True
    assert len(forms["multiple_responses_form"].questions) == 3


def test_undecodable_file_regenerated_at_startup(tmp_path):
    path = tmp_path / "ServerForms.json"
    path.write_text("{not json", encoding="utf-8")

    loader = ConfigLoader(str(path))
    loader.load()

    assert "single_response_form" in loader.get_forms()
    assert json.loads(path.read_text(encoding="utf-8"))["forms"]


def test_missing_forms_section_regenerated(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, {"messages": {}})

    loader = ConfigLoader(str(path))
    loader.load()
    assert "multiple_responses_form" in loader.get_forms()


def test_invalid_forms_raise_validation_error(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config(questions=[{"id": "1", "question": "A?"}, {"id": "1", "question": "B?"}]))

    loader = ConfigLoader(str(path))
    with pytest.raises(ValidationError):
        loader.load()
    assert loader.get_forms() == {}


def test_typed_form_definition(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config())

    loader = ConfigLoader(str(path))
    loader.load()

    assert loader.get_form("F") == FormDefinition(
        form_key="F",
        display_name="F",
        command_name="f",
        questions=(Question(id="1", text="Name?"),),
        allow_multiple_responses=False,
        return_answers=False,
    )


def test_find_by_command_case_insensitive(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config(command="Apply"))

    loader = ConfigLoader(str(path))
    loader.load()

    assert loader.find_by_command("apply").form_key == "F"
    assert loader.find_by_command("APPLY").form_key == "F"
    assert loader.find_by_command("other") is None


def test_reload_replaces_catalog(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config())
    loader = ConfigLoader(str(path))
    loader.load()

    config = simple_config()
    config["forms"]["G"] = {"name": "G", "command": "g", "questions": [{"id": "x", "question": "X?"}]}
    write_config(path, config)
    loader.reload()

    assert set(loader.get_forms()) == {"F", "G"}


def test_failed_reload_keeps_previous_catalog(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config())
    loader = ConfigLoader(str(path))
    loader.load()
    before = loader.get_forms()

    write_config(path, simple_config(name=None))
    with pytest.raises(ValidationError):
        loader.reload()

    assert loader.get_forms() == before


def test_reload_never_overwrites_broken_file(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config())
    loader = ConfigLoader(str(path))
    loader.load()

    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(ValidationError):
        loader.reload()

    assert path.read_text(encoding="utf-8") == "{broken"
    assert "F" in loader.get_forms()


def test_reload_missing_file_fails(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config())
    loader = ConfigLoader(str(path))
    loader.load()

    path.unlink()
    with pytest.raises(ValidationError):
        loader.reload()
    assert not path.exists()


def test_get_message_from_config(tmp_path):
    path = tmp_path / "ServerForms.json"
    write_config(path, simple_config(messages={"formNotFound": "Missing {form} for {player}"}))
    loader = ConfigLoader(str(path))
    loader.load()

    assert loader.get_message("formNotFound", form="F", player="Bob") == "Missing F for Bob"


def test_get_message_fallbacks(tmp_path):
    loader = ConfigLoader(str(tmp_path / "unused.json"))

    assert loader.get_message("notFilling") == DEFAULT_MESSAGES["notFilling"]
    assert loader.get_message("custom", "&aHi {player}", player="Bob") == "&aHi Bob"
    assert loader.get_message("nonexistent") == "nonexistent"


def test_substitute_is_literal():
    """Braces in user text are not format fields"""
    assert substitute("&b{id}: &f{answer}", id="1", answer="{weird} {id}") == "&b1: &f{weird} {id}"
    assert substitute("&b{answer} {id}", answer="{id}", id="1") == "&b{id} 1"
    assert substitute("Hello {unknown}", player="Bob") == "Hello {unknown}"
    assert substitute("No placeholders") == "No placeholders"
