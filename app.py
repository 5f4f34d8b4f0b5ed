"""
Flask Web Application for Server Forms

HTTP surface over the command registry. A game server plugin (or any
client) posts the acting player and the raw command line; the response
carries every message the command produced.

Endpoints:
    POST /api/command                   run a command line for a player
    GET  /api/commands                  list invocable command names
    GET  /api/players                   player names with saved answers
    GET  /api/players/<name>/forms      form names saved for a player
"""

from flask import Flask, request, jsonify
import logging
import os
import uuid

from serverforms.bootstrap import ServerForms
from serverforms.utils.command_source import BufferedCommandSource

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config['OPERATORS'] = {
    name.strip().lower()
    for name in os.environ.get('SERVERFORMS_OPERATORS', '').split(',')
    if name.strip()
}

# Forms system (initialized once at startup)
forms_system = None


def initialize_forms(system=None):
    """
    Initialize the forms system (called once at startup)

    Args:
        system: Pre-built ServerForms (tests); default paths otherwise

    Returns:
        bool: True if initialization succeeded
    """
    global forms_system

    system = system or ServerForms()
    if not system.initialize():
        logger.error("Server Forms failed to initialize; commands are unavailable")
        forms_system = None
        return False

    forms_system = system
    return True


def _not_ready():
    return jsonify({
        'success': False,
        'error': 'Forms system is not initialized'
    }), 503


@app.route('/api/command', methods=['POST'])
def run_command():
    """Run one command line for a player"""
    if forms_system is None:
        return _not_ready()

    try:
        data = request.get_json(silent=True) or {}
        player = str(data.get('player', '')).strip()
        command = str(data.get('command', '')).strip()

        if not player or not command:
            return jsonify({
                'success': False,
                'error': "Both 'player' and 'command' are required"
            }), 400

        user_uuid = data.get('uuid')
        if user_uuid is not None:
            try:
                user_uuid = str(uuid.UUID(str(user_uuid)))
            except ValueError:
                return jsonify({
                    'success': False,
                    'error': "'uuid' must be a valid UUID"
                }), 400

        # Every request counts as the player being online
        identity = forms_system.identity_resolver.remember(player, user_uuid)

        source = BufferedCommandSource(
            name=player,
            identity=identity,
            is_operator=player.lower() in app.config['OPERATORS']
        )
        status = forms_system.commands.dispatch(source, command)

        return jsonify({
            'success': status == 1,
            'messages': [
                {'text': message.plain_text, 'error': message.is_error}
                for message in source.messages
            ]
        })

    except Exception as e:
        logger.exception(f"Error running command: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@app.route('/api/commands')
def list_commands():
    """Invocable command names"""
    if forms_system is None:
        return _not_ready()
    return jsonify({'success': True, 'commands': forms_system.commands.command_names()})


@app.route('/api/players')
def list_players():
    """Player names with saved answers (for suggestions)"""
    if forms_system is None:
        return _not_ready()
    return jsonify({'success': True, 'players': forms_system.commands.suggest_players()})


@app.route('/api/players/<player_name>/forms')
def list_player_forms(player_name):
    """Form names saved for one player (for suggestions)"""
    if forms_system is None:
        return _not_ready()
    return jsonify({'success': True, 'forms': forms_system.commands.suggest_forms(player_name)})


if __name__ == '__main__':
    if not initialize_forms():
        raise SystemExit(1)

    print("\n" + "=" * 60)
    print("SERVER FORMS - HTTP COMMAND SURFACE")
    print("=" * 60)
    print("\nServer starting on http://localhost:5000")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 60 + "\n")

    try:
        app.run(debug=False, host='0.0.0.0', port=5000)
    finally:
        forms_system.shutdown()
