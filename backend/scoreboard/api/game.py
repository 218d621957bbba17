from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from scoreboard.errors import AccessDenied, BadRequest
from scoreboard.services.auth import validate_stream_access
from scoreboard.services.games.commands import get_commands
from scoreboard.services.games.sync import get_sync_protocol

game_api = Blueprint('game_api', __name__)

SIDES = {'home': True, 'away': False}
CARD_COLORS = {'yellow': True, 'red': False}


def _streamer():
    return current_user._get_current_object()


def _body():
    return request.get_json(silent=True) or {}


def _is_home(side) -> bool:
    try:
        return SIDES[side.lower() if isinstance(side, str) else '']
    except KeyError:
        raise BadRequest("Team must be 'home' or 'away'.")


def _result(applied: bool):
    return jsonify({'success': applied})


# ---- State ----

@game_api.route('/state', methods=['GET'])
@login_required
def get_state():
    state = get_sync_protocol().read_state(_streamer())
    if state is None:
        return jsonify({'error': 'No active game found.'}), 404
    return jsonify(state)


@game_api.route('/state/<string:stream_key>', methods=['GET'])
def get_state_by_stream_key(stream_key):
    """Public overlay read; X-Stream-Token is checked when present."""
    streamer = validate_stream_access(stream_key, request.headers.get('X-Stream-Token'))
    if streamer is None:
        raise AccessDenied()
    state = get_sync_protocol().read_state(streamer)
    if state is None:
        return jsonify({'error': 'No active game.'}), 404
    return jsonify(state)


# ---- Game lifecycle ----

@game_api.route('/create', methods=['POST'])
@login_required
def create_game():
    data = _body()
    game = get_commands().create_game(
        _streamer(),
        home_team_id=data.get('home_team_id'),
        away_team_id=data.get('away_team_id'),
        home_team_name=data.get('home_team_name'),
        away_team_name=data.get('away_team_name'),
        venue=data.get('venue'),
    )
    return jsonify({'game_id': game.id}), 201


@game_api.route('/reset', methods=['POST'])
@login_required
def reset_game():
    return _result(get_commands().reset_game(_streamer()))


@game_api.route('/status', methods=['POST'])
@login_required
def set_status():
    status = _body().get('status')
    if not status:
        raise BadRequest('status is required')
    return _result(get_commands().set_status(_streamer(), status))


@game_api.route('/period', methods=['POST'])
@login_required
def set_period():
    data = _body()
    return _result(get_commands().set_period(
        _streamer(),
        data.get('current_period'),
        data.get('half_length_minutes'),
        data.get('ot_length_minutes'),
    ))


# ---- Timer ----

@game_api.route('/timer/start', methods=['POST'])
@login_required
def start_timer():
    return _result(get_commands().start_timer(_streamer()))


@game_api.route('/timer/stop', methods=['POST'])
@login_required
def stop_timer():
    return _result(get_commands().stop_timer(_streamer()))


@game_api.route('/timer/reset', methods=['POST'])
@login_required
def reset_timer():
    return _result(get_commands().reset_timer(_streamer()))


@game_api.route('/timer/set', methods=['POST'])
@login_required
def set_timer():
    return _result(get_commands().set_timer(_streamer(), _body().get('seconds', 0)))


@game_api.route('/timer/mode', methods=['POST'])
@login_required
def set_timer_mode():
    return _result(get_commands().set_timer_mode(_streamer(), bool(_body().get('count_down'))))


# ---- Scores and cards ----

@game_api.route('/score/<string:side>', methods=['POST'])
@login_required
def set_score(side):
    return _result(get_commands().update_score(_streamer(), _is_home(side), _body().get('score', 0)))


@game_api.route('/cards/<string:side>/<string:color>', methods=['POST'])
@login_required
def set_cards(side, color):
    is_home = _is_home(side)
    if color.lower() not in CARD_COLORS:
        raise BadRequest("Card color must be 'yellow' or 'red'.")
    return _result(get_commands().update_cards(
        _streamer(), is_home, CARD_COLORS[color.lower()], _body().get('count', 0)
    ))


# ---- Teams ----

@game_api.route('/team/<string:side>/name', methods=['POST'])
@login_required
def set_team_name(side):
    return _result(get_commands().update_team_name(_streamer(), _is_home(side), _body().get('name')))


@game_api.route('/team/<string:side>/appearance', methods=['POST'])
@login_required
def set_team_appearance(side):
    data = _body()
    return _result(get_commands().update_team_appearance(
        _streamer(),
        _is_home(side),
        jersey_color=data.get('jersey_color'),
        number_color=data.get('number_color'),
        logo_data=data.get('logo_data'),
    ))


# ---- Penalty shoot-out ----

@game_api.route('/penalty/record', methods=['POST'])
@login_required
def record_penalty():
    data = _body()
    return _result(get_commands().record_penalty_kick(
        _streamer(), _is_home(data.get('team')), data.get('result')
    ))


@game_api.route('/penalty/undo', methods=['POST'])
@login_required
def undo_penalty():
    return _result(get_commands().undo_penalty_kick(_streamer(), _is_home(_body().get('team'))))


@game_api.route('/penalty/reset', methods=['POST'])
@login_required
def reset_penalties():
    return _result(get_commands().reset_penalties(_streamer()))
