from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError

from fishinganoma import socketio
from fishinganoma.services.leaderboard import submit_score, top_scores, UNCHANGED


leaderboard = Blueprint('leaderboard', __name__)

ALLOWED_METHODS = ['GET', 'POST']

# Largest value the score column (64-bit INTEGER) can hold
MAX_SCORE = 2 ** 63 - 1


def _parse_submission(data):
    """Return (name, score, error). Rejects the falsy values the game never sends."""
    if not isinstance(data, dict):
        return None, None, 'Name and score are required'
    name = data.get('name')
    score = data.get('score')
    if not name or not score:
        return None, None, 'Name and score are required'
    if not isinstance(name, str) or not name.strip():
        return None, None, 'Name must be a non-empty string'
    # bool is an int subclass; true/false are not scores
    if isinstance(score, bool) or not isinstance(score, int) or score <= 0:
        return None, None, 'Score must be a positive integer'
    if score > MAX_SCORE:
        return None, None, 'Score is too large'
    max_len = int(current_app.config.get('PLAYER_NAME_MAX_LENGTH', 64))
    name = name.strip()
    if len(name) > max_len:
        return None, None, f'Name must be at most {max_len} characters'
    return name, score, None


def _limit() -> int:
    try:
        return int(current_app.config.get('LEADERBOARD_SIZE', 5))
    except (TypeError, ValueError):
        return 5


@leaderboard.route('/leaderboard', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
def leaderboard_resource():
    if request.method == 'POST':
        return _submit()
    if request.method == 'GET':
        return _top()
    response = current_app.response_class(f'Method {request.method} Not Allowed', status=405)
    response.headers['Allow'] = ', '.join(ALLOWED_METHODS)
    return response


def _submit():
    data = request.get_json(silent=True, force=True)
    name, score, error = _parse_submission(data)
    if error:
        return jsonify({'error': error}), 400

    try:
        result = submit_score(name, score)
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[leaderboard] submit failed name={name!r} score={score}: {exc}")
        return jsonify({'error': 'Internal server error'}), 500
    except Exception:
        current_app.logger.exception(f"[leaderboard] submit crashed name={name!r} score={score}")
        return jsonify({'error': 'Internal server error'}), 500

    current_app.logger.info(f"[leaderboard] submit name={name!r} score={score} result={result}")
    if result != UNCHANGED:
        _broadcast_top()
    return jsonify({'success': True}), 200


def _top():
    try:
        entries = top_scores(_limit())
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[leaderboard] fetch failed: {exc}")
        return jsonify({'error': 'Internal server error'}), 500
    return jsonify(entries), 200


def _broadcast_top() -> None:
    try:
        entries = top_scores(_limit())
        socketio.emit('leaderboard_update', {'entries': entries}, to='leaderboard', namespace='/ws')
    except Exception as exc:
        # Push is best effort; the write is already committed
        current_app.logger.warning(f"[leaderboard] broadcast skipped: {exc}")
