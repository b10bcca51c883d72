"""
Flask web application for the single elimination bracket.
"""
import os
import threading
import yaml
from filelock import FileLock
from flask import Flask, request, jsonify
from core.bracket import BracketManager, validate_participant_count, DEFAULT_MAX_PARTICIPANTS
from core.elimination import BRACKET_FORMATS, SUPPORTED_PARTICIPANT_COUNTS
from core.errors import (
    BracketError,
    AlreadyCompleteError,
    AlreadyDecidedError,
    EmptyPairingError,
    MatchNotFoundError,
    MatchNotReadyError,
)

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.yaml')
SETTINGS_LOCK_FILE = os.path.join(DATA_DIR, '.lock')

ERROR_STATUS_CODES = {
    MatchNotFoundError: 404,
    AlreadyDecidedError: 409,
    AlreadyCompleteError: 409,
    MatchNotReadyError: 409,
    EmptyPairingError: 500,
}

# The bracket lives in memory; commands are serialised so every response
# carries a fully applied snapshot.
_bracket_lock = threading.Lock()
_bracket = None


def get_default_settings():
    """Return default settings."""
    return {
        'tournament_name': 'Championship Bracket',
        'participant_count': 8,
        'bracket_format': 'standard',
        'strict_participant_counts': False,
        'max_participants': DEFAULT_MAX_PARTICIPANTS,
        'player_name_template': 'Player {n}',
    }


def load_settings():
    """Load settings from YAML, filling in defaults for missing keys."""
    settings = get_default_settings()
    if not os.path.exists(SETTINGS_FILE):
        return settings
    try:
        with open(SETTINGS_FILE, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        app.logger.warning(f'Failed to parse {SETTINGS_FILE}: {e}')
        return settings
    if data is None:
        return settings
    if not isinstance(data, dict):
        app.logger.warning(f'Ignoring {SETTINGS_FILE}: expected a mapping')
        return settings
    validated, error = validate_settings({k: v for k, v in data.items() if k in settings}, settings)
    if error:
        app.logger.warning(f'Ignoring {SETTINGS_FILE}: {error}')
        return settings
    return validated


def save_settings(settings):
    """Save settings to YAML."""
    os.makedirs(os.path.dirname(SETTINGS_FILE), exist_ok=True)
    with FileLock(SETTINGS_LOCK_FILE, timeout=10):
        with open(SETTINGS_FILE, 'w', encoding='utf-8') as f:
            yaml.dump(settings, f, default_flow_style=False)


def validate_settings(data, current):
    """
    Merge submitted settings over current ones.

    Returns (settings, error). error is None when everything is valid.
    """
    settings = dict(current)
    if 'tournament_name' in data:
        name = str(data['tournament_name'] or '').strip()
        if not name:
            return None, 'Tournament name cannot be empty'
        settings['tournament_name'] = name
    if 'bracket_format' in data:
        if data['bracket_format'] not in BRACKET_FORMATS:
            return None, f"Bracket format must be one of: {', '.join(BRACKET_FORMATS)}"
        settings['bracket_format'] = data['bracket_format']
    if 'strict_participant_counts' in data:
        settings['strict_participant_counts'] = bool(data['strict_participant_counts'])
    if 'max_participants' in data:
        try:
            max_participants = int(data['max_participants'])
        except (TypeError, ValueError):
            return None, 'Maximum participants must be a number'
        if max_participants < 2:
            return None, 'Maximum participants must be at least 2'
        settings['max_participants'] = max_participants
    if 'player_name_template' in data:
        template = str(data['player_name_template'] or '')
        try:
            distinct = template.format(n=1) != template.format(n=2)
        except (KeyError, IndexError, ValueError, AttributeError):
            return None, 'Player name template may only use the {n} placeholder'
        if not distinct:
            return None, 'Player name template must contain {n}'
        settings['player_name_template'] = template
    if 'participant_count' in data:
        try:
            settings['participant_count'] = int(data['participant_count'])
        except (TypeError, ValueError):
            return None, 'Participant count must be a number'
    try:
        validate_participant_count(
            settings['participant_count'],
            settings['strict_participant_counts'],
            settings['max_participants'],
        )
    except BracketError as e:
        return None, str(e)
    return settings, None


def _log_snapshot(snapshot):
    stats = snapshot['stats']
    app.logger.debug(
        f"Bracket '{snapshot['name']}' updated: {stats['completed']}/{stats['total']} matches complete"
    )


def create_bracket(settings=None) -> BracketManager:
    """Build a bracket manager from settings."""
    settings = settings or load_settings()
    bracket = BracketManager(
        name=settings['tournament_name'],
        participant_count=settings['participant_count'],
        bracket_format=settings['bracket_format'],
        strict_participant_counts=settings['strict_participant_counts'],
        max_participants=settings['max_participants'],
        name_template=settings['player_name_template'],
    )
    bracket.subscribe(_log_snapshot)
    return bracket


def get_bracket() -> BracketManager:
    """Return the process-wide bracket, creating it on first use."""
    global _bracket
    if _bracket is None:
        _bracket = create_bracket()
    return _bracket


def reset_bracket_state():
    """Drop the in-memory bracket so the next request rebuilds it from settings."""
    global _bracket
    with _bracket_lock:
        _bracket = None


def _get_int(data, key):
    value = data.get(key)
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@app.errorhandler(BracketError)
def handle_bracket_error(e):
    status = ERROR_STATUS_CODES.get(type(e), 400)
    if status >= 500:
        app.logger.error(f'Bracket error: {e}')
    else:
        app.logger.info(f'Rejected bracket command: {e}')
    return jsonify({'error': str(e), 'code': e.code}), status


@app.route('/api/bracket', methods=['GET'])
def api_bracket():
    """Return the current bracket snapshot."""
    with _bracket_lock:
        return jsonify(get_bracket().to_dict())


@app.route('/api/bracket/stats', methods=['GET'])
def api_bracket_stats():
    """Return match completion statistics."""
    with _bracket_lock:
        return jsonify(get_bracket().stats())


@app.route('/api/bracket/generate', methods=['POST'])
def api_generate_bracket():
    """Generate a new bracket, optionally with a new count, format or name."""
    data = request.get_json(silent=True) or {}

    participant_count = None
    if 'participant_count' in data:
        participant_count = _get_int(data, 'participant_count')
        if participant_count is None:
            return jsonify({'error': 'Participant count must be a number'}), 400
    bracket_format = data.get('bracket_format')
    if bracket_format is not None and bracket_format not in BRACKET_FORMATS:
        return jsonify({'error': f"Bracket format must be one of: {', '.join(BRACKET_FORMATS)}"}), 400
    tournament_name = data.get('tournament_name')
    if tournament_name is not None and not str(tournament_name).strip():
        return jsonify({'error': 'Tournament name cannot be empty'}), 400

    with _bracket_lock:
        bracket = get_bracket()
        if participant_count is not None:
            validate_participant_count(
                participant_count, bracket.strict_participant_counts, bracket.max_participants)
        if tournament_name is not None:
            bracket.tournament_name = str(tournament_name).strip()
        bracket.generate(participant_count, bracket_format)
        app.logger.info(
            f'Generated bracket with {bracket.participant_count} participants ({bracket.bracket_format})'
        )
        return jsonify({'success': True, 'bracket': bracket.to_dict()})


@app.route('/api/bracket/select-winner', methods=['POST'])
def api_select_winner():
    """Declare the winner of a match and advance them."""
    data = request.get_json(silent=True) or {}
    round_index = _get_int(data, 'round')
    slot_index = _get_int(data, 'slot')
    side = data.get('side')

    if round_index is None or slot_index is None:
        return jsonify({'error': 'Missing round or slot'}), 400
    if side not in ('player1', 'player2'):
        return jsonify({'error': "Side must be 'player1' or 'player2'"}), 400

    with _bracket_lock:
        bracket = get_bracket()
        winner = bracket.select_winner(round_index, slot_index, side)
        return jsonify({
            'success': True,
            'winner': winner.to_dict(),
            'champion': bracket.champion.to_dict() if bracket.champion else None,
            'bracket': bracket.to_dict(),
        })


@app.route('/api/bracket/simulate', methods=['POST'])
def api_simulate():
    """Play out every remaining match."""
    with _bracket_lock:
        bracket = get_bracket()
        champion = bracket.simulate()
        return jsonify({
            'success': True,
            'champion': champion.to_dict() if champion else None,
            'bracket': bracket.to_dict(),
        })


@app.route('/api/bracket/reset', methods=['POST'])
def api_reset():
    """Reseed the bracket, discarding all progress."""
    with _bracket_lock:
        bracket = get_bracket()
        bracket.reset()
        return jsonify({'success': True, 'bracket': bracket.to_dict()})


@app.route('/api/bracket/clear', methods=['POST'])
def api_clear():
    """Clear all results but keep first round pairings."""
    with _bracket_lock:
        bracket = get_bracket()
        bracket.clear()
        return jsonify({'success': True, 'bracket': bracket.to_dict()})


@app.route('/api/bracket/rename', methods=['POST'])
def api_rename_participant():
    """Rename the participant in a match slot."""
    data = request.get_json(silent=True) or {}
    round_index = _get_int(data, 'round')
    slot_index = _get_int(data, 'slot')
    side = data.get('side')
    name = data.get('name')

    if round_index is None or slot_index is None:
        return jsonify({'error': 'Missing round or slot'}), 400
    if side not in ('player1', 'player2'):
        return jsonify({'error': "Side must be 'player1' or 'player2'"}), 400
    if not isinstance(name, str):
        return jsonify({'error': 'Missing name'}), 400

    with _bracket_lock:
        bracket = get_bracket()
        participant = bracket.rename_participant(round_index, slot_index, side, name)
        return jsonify({
            'success': True,
            'participant': participant.to_dict(),
            'bracket': bracket.to_dict(),
        })


@app.route('/api/bracket/participants', methods=['POST'])
def api_set_participant_count():
    """Change the participant count used by the next generate or reset."""
    data = request.get_json(silent=True) or {}
    count = _get_int(data, 'participant_count')
    if count is None:
        return jsonify({'error': 'Participant count must be a number'}), 400

    with _bracket_lock:
        bracket = get_bracket()
        bracket.set_participant_count(count)
        return jsonify({'success': True, 'participant_count': bracket.participant_count})


@app.route('/api/settings', methods=['GET'])
def api_settings():
    """Return current settings and the supported options."""
    return jsonify({
        'settings': load_settings(),
        'bracket_formats': list(BRACKET_FORMATS),
        'supported_participant_counts': list(SUPPORTED_PARTICIPANT_COUNTS),
    })


@app.route('/api/settings/update', methods=['POST'])
def api_update_settings():
    """Validate and save settings. They apply from the next generated bracket."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'No settings provided'}), 400

    settings, error = validate_settings(data, load_settings())
    if error:
        return jsonify({'error': error}), 400

    save_settings(settings)
    app.logger.info(f'Settings updated: {sorted(data.keys())}')

    with _bracket_lock:
        bracket = get_bracket()
        bracket.strict_participant_counts = settings['strict_participant_counts']
        bracket.max_participants = settings['max_participants']
        bracket.name_template = settings['player_name_template']
        bracket.set_participant_count(settings['participant_count'])
        bracket.set_bracket_format(settings['bracket_format'])
        bracket.set_tournament_name(settings['tournament_name'])

    return jsonify({'success': True, 'settings': settings})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
