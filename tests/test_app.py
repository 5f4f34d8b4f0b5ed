"""
Test the Flask HTTP surface

Run with: pytest tests/test_app.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

import app as app_module
from serverforms.bootstrap import ServerForms


BOB_UUID = "069a79f4-44e9-4726-a5be-fca90e38aaf5"


@pytest.fixture
def client(tmp_path):
    system = ServerForms(
        config_path=str(tmp_path / "config" / "ServerForms.json"),
        answers_dir=str(tmp_path / "answers"),
        usercache_path=str(tmp_path / "usercache.json"),
    )
    assert app_module.initialize_forms(system) is True
    app_module.app.config['OPERATORS'] = {"admin"}
    app_module.app.config['TESTING'] = True

    with app_module.app.test_client() as test_client:
        yield test_client

    app_module.forms_system = None
    app_module.app.config['OPERATORS'] = set()


def run(client, player, command, **extra):
    payload = {'player': player, 'command': command}
    payload.update(extra)
    return client.post('/api/command', json=payload)


def test_not_initialized_returns_503():
    app_module.forms_system = None
    with app_module.app.test_client() as test_client:
        response = test_client.post('/api/command', json={'player': 'Bob', 'command': '/answer x'})
        assert response.status_code == 503
        assert test_client.get('/api/commands').status_code == 503


def test_missing_fields_return_400(client):
    assert client.post('/api/command', json={'player': 'Bob'}).status_code == 400
    assert client.post('/api/command', json={'command': '/answer'}).status_code == 400
    assert client.post('/api/command', data='not json').status_code == 400


def test_form_flow_over_http(client):
    data = run(client, 'Bob', '/single_response').get_json()
    assert data == {
        'success': True,
        'messages': [{'text': 'Next question: What is your name?', 'error': False}],
    }

    run(client, 'Bob', '/answer Bob')
    data = run(client, 'Bob', '/answer 30').get_json()
    assert data['success'] is True
    assert [m['text'] for m in data['messages']] == [
        'Thank you for completing the form!',
        '1: Bob',
        '2: 30',
    ]

    data = run(client, 'Bob', '/single_response').get_json()
    assert data['success'] is False
    assert data['messages'] == [{'text': 'You have already completed this form!', 'error': True}]


def test_uuid_supplied_by_client(client):
    run(client, 'Bob', '/multiple_responses', uuid=BOB_UUID)
    assert app_module.forms_system.engine.active_session(BOB_UUID) is not None

    # Renamed player keeps the running session
    data = run(client, 'Robert', '/answer red', uuid=BOB_UUID).get_json()
    assert data['success'] is True
    assert data['messages'][0]['text'] == 'Next question: What is your favorite food?'


def test_invalid_uuid_rejected(client, tmp_path):
    for bad in ['../escaped', '../config/ServerForms', {'a': 1}, ['x'], 42]:
        response = run(client, 'Bob', '/multiple_responses', uuid=bad)
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    assert app_module.forms_system.engine.active_session_count() == 0
    assert app_module.forms_system.identity_resolver.known_names() == []
    assert not (tmp_path / 'escaped.json').exists()


def test_answers_written_under_answers_dir(client, tmp_path):
    run(client, 'Bob', '/single_response', uuid=BOB_UUID)
    run(client, 'Bob', '/answer Bob', uuid=BOB_UUID)
    run(client, 'Bob', '/answer 30', uuid=BOB_UUID)

    assert [p.name for p in (tmp_path / 'answers').iterdir()] == [f'{BOB_UUID}.json']


def test_viewform_over_http(client):
    run(client, 'Bob', '/multiple_responses')
    for answer in ['red', 'pizza', 'chess']:
        run(client, 'Bob', f'/answer {answer}')

    data = run(client, 'Alice', '/viewform bob').get_json()
    assert data['success'] is True
    assert [m['text'] for m in data['messages']] == [
        'Viewing form: multiple_responses_form for player: bob.',
        '1: red',
        '2: pizza',
        '3: chess',
    ]


def test_reloadforms_operator_only(client):
    data = run(client, 'Bob', '/reloadforms').get_json()
    assert data['success'] is False
    assert data['messages'][0]['text'] == 'You do not have permission to use this command.'

    data = run(client, 'Admin', '/reloadforms').get_json()
    assert data['success'] is True


def test_list_endpoints(client):
    commands = client.get('/api/commands').get_json()['commands']
    assert commands[:3] == ['answer', 'reloadforms', 'viewform']
    assert 'multiple_responses' in commands

    run(client, 'Bob', '/multiple_responses')
    for answer in ['red', 'pizza', 'chess']:
        run(client, 'Bob', f'/answer {answer}')

    assert client.get('/api/players').get_json()['players'] == ['Bob']
    assert client.get('/api/players/bob/forms').get_json()['forms'] == ['multiple_responses_form']
    assert client.get('/api/players/ghost/forms').get_json()['forms'] == []
