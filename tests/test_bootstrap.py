"""
Test ServerForms startup and shutdown sequencing

Run with: pytest tests/test_bootstrap.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import logging

from serverforms.bootstrap import ServerForms
from serverforms.utils.command_source import BufferedCommandSource


def make_system(tmp_path):
    return ServerForms(
        config_path=str(tmp_path / "config" / "ServerForms.json"),
        answers_dir=str(tmp_path / "mods" / "FormAnswers"),
        usercache_path=str(tmp_path / "usercache.json"),
    )


def test_initialize_with_defaults(tmp_path):
    system = make_system(tmp_path)

    assert system.initialize() is True
    assert system.initialized
    assert (tmp_path / "config" / "ServerForms.json").exists()
    assert (tmp_path / "mods" / "FormAnswers").is_dir()
    assert "single_response" in system.commands.command_names()


def test_validation_failure_stops_sequence(tmp_path, caplog):
    config_path = tmp_path / "config" / "ServerForms.json"
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({
        "forms": {"broken": {"name": "broken", "command": "answer", "questions": []}}
    }), encoding="utf-8")
    system = make_system(tmp_path)

    with caplog.at_level(logging.ERROR):
        assert system.initialize() is False

    assert not system.initialized
    assert system.commands is None
    assert system.engine is None
    assert "Failed to initialize Forms Validation" in caplog.text


def test_initialize_component_reports_failure(tmp_path, caplog):
    system = make_system(tmp_path)

    def broken():
        raise RuntimeError("nope")

    with caplog.at_level(logging.ERROR):
        assert system.initialize_component("Widgets", broken) is False
    assert "Failed to initialize Widgets" in caplog.text

    assert system.initialize_component("Nothing", lambda: None) is True


def test_end_to_end_default_form(tmp_path):
    system = make_system(tmp_path)
    system.initialize()
    identity = system.identity_resolver.remember("Alice")
    alice = BufferedCommandSource("Alice", identity=identity)

    for line in ["/single_response", "/answer Alice", "/answer 30"]:
        assert system.commands.dispatch(alice, line) == 1

    record = json.loads((tmp_path / "mods" / "FormAnswers" / f"{identity}.json").read_text(encoding="utf-8"))
    assert record == {
        "userDisplayName": "Alice",
        "single_response_form": {"1": "Alice", "2": "30"},
    }
    assert alice.feedback[-3:] == [
        "Thank you for completing the form!",
        "1: Alice",
        "2: 30",
    ]


def test_shutdown_warns_about_open_sessions(tmp_path, caplog):
    system = make_system(tmp_path)
    system.initialize()
    bob = BufferedCommandSource("Bob")
    system.commands.dispatch(bob, "/multiple_responses")

    with caplog.at_level(logging.WARNING):
        system.shutdown()
    assert "1 form session(s) still active at shutdown" in caplog.text


def test_shutdown_before_initialize(tmp_path):
    make_system(tmp_path).shutdown()
