from flask import Blueprint, jsonify, request, current_app
from dotsboxes.services.games import operations
from dotsboxes.services.games.errors import GameError


games = Blueprint('games', __name__)


@games.errorhandler(GameError)
def handle_game_error(exc: GameError):
    current_app.logger.info(f"[rejected] path={request.path} code={exc.code} reason={exc.message}")
    return jsonify(exc.to_dict()), exc.status


def _as_int(value):
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        # Left as-is so the session rejects it as InvalidConfig
        return value


def _nickname_error(nickname):
    if not isinstance(nickname, str) or not nickname.strip():
        return 'Nickname is required'
    limit = int(current_app.config.get('NICKNAME_MAX_LENGTH', 20))
    if len(nickname.strip()) > limit:
        return f'Nickname must be at most {limit} characters'
    return None


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    nickname = data.get('nickname')
    error = _nickname_error(nickname)
    if error:
        return jsonify({'error': error, 'code': 'BadRequest'}), 400

    session_id, player_id, snapshot = operations.create_session(
        nickname.strip(),
        board_size=_as_int(data.get('board_size')),
        max_players=_as_int(data.get('max_players')),
    )
    current_app.logger.info(f"[create] game={session_id} host={player_id}")
    return jsonify({
        'message': 'New game created!',
        'session_id': session_id,
        'player_id': player_id,
        'snapshot': snapshot,
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    session_id = data.get('session_id')
    nickname = data.get('nickname')
    if not session_id:
        return jsonify({'error': 'Session id is required', 'code': 'BadRequest'}), 400
    error = _nickname_error(nickname)
    if error:
        return jsonify({'error': error, 'code': 'BadRequest'}), 400

    session_id, player_id = operations.join_session(session_id, nickname.strip())
    return jsonify({'session_id': session_id, 'player_id': player_id}), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    return jsonify(operations.get_snapshot(game_code))


@games.route('/<string:game_code>/ready', methods=['POST'])
def set_ready(game_code):
    data = request.get_json(silent=True) or {}
    ready = data.get('ready')
    if not isinstance(ready, bool):
        return jsonify({'error': 'ready must be true or false', 'code': 'BadRequest'}), 400
    operations.set_ready(game_code, data.get('player_id'), ready)
    return jsonify({'ok': True})


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    data = request.get_json(silent=True) or {}
    operations.start(game_code, data.get('player_id'))
    return jsonify({'ok': True})


@games.route('/<string:game_code>/move', methods=['POST'])
def submit_move(game_code):
    data = request.get_json(silent=True) or {}
    outcome = operations.submit_move(game_code, data.get('player_id'), data.get('edge'))
    return jsonify(outcome.to_dict())


@games.route('/<string:game_code>/rematch', methods=['POST'])
def rematch(game_code):
    data = request.get_json(silent=True) or {}
    operations.rematch(game_code, data.get('player_id'))
    return jsonify({'ok': True})


@games.route('/<string:game_code>/leave', methods=['POST'])
def leave_game(game_code):
    data = request.get_json(silent=True) or {}
    ended = operations.leave(game_code, data.get('player_id'))
    return jsonify({'ok': True, 'session_ended': ended})
