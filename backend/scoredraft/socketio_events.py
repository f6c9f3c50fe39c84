from flask_socketio import join_room, leave_room, emit


def _session_room(data):
    """Socket room for one game session, or None when the payload is incomplete."""
    room_code = (data or {}).get('room_code')
    gameweek = (data or {}).get('gameweek')
    if not room_code or gameweek is None:
        return None
    return f"session:{str(room_code).upper()}:{gameweek}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_session(data):
    room = _session_room(data)
    if not room:
        emit('error', {'message': 'room_code and gameweek are required'})
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_session(data):
    room = _session_room(data)
    if not room:
        emit('error', {'message': 'room_code and gameweek are required'})
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Viewers join ``session:<ROOM>:<gw>`` and receive ``state_update`` after
    every committed change; they re-read state over HTTP. Always register on
    namespace '/ws'. When testing is True, also mirror handlers on the
    default namespace '/' to accommodate the test harness.
    """
    from scoredraft import socketio

    namespaces = ['/ws', '/'] if testing else ['/ws']
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('join_session', handle_join_session, namespace=ns)
        socketio.on_event('leave_session', handle_leave_session, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
