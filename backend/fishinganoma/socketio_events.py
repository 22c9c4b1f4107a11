from flask_socketio import join_room, leave_room, emit
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from fishinganoma.services.leaderboard import top_scores

LEADERBOARD_ROOM = 'leaderboard'


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_watch_leaderboard(data=None):
    """Join the leaderboard room and send the current standings right away."""
    join_room(LEADERBOARD_ROOM)
    emit('joined', {'room': LEADERBOARD_ROOM})
    try:
        limit = int(current_app.config.get('LEADERBOARD_SIZE', 5))
        emit('leaderboard_update', {'entries': top_scores(limit)})
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[ws] leaderboard snapshot failed: {exc}")
        emit('error', {'message': 'Leaderboard unavailable'})


def handle_unwatch_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('left', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from fishinganoma import socketio

    handlers = {
        'connect': handle_connect,
        'watch_leaderboard': handle_watch_leaderboard,
        'unwatch_leaderboard': handle_unwatch_leaderboard,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace='/')
