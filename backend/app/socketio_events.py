from flask_socketio import join_room, leave_room, emit
from app import socketio

RANKINGS_ROOM = 'rankings'


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_subscribe_rankings(data=None):
    join_room(RANKINGS_ROOM)
    emit('subscribed', {'room': RANKINGS_ROOM})


def handle_unsubscribe_rankings(data=None):
    leave_room(RANKINGS_ROOM)
    emit('unsubscribed', {'room': RANKINGS_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('subscribe_rankings', handle_subscribe_rankings, namespace=namespace)
        socketio.on_event('unsubscribe_rankings', handle_unsubscribe_rankings, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
