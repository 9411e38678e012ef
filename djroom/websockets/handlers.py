"""
Socket.IO event handlers for the DJ room.
Clients join a room channel and receive queue, playback and reaction updates.
"""

import logging
from flask import current_app, request, session
from flask_socketio import SocketIO, emit, join_room, leave_room

from djroom.errors import SchedulerError

logger = logging.getLogger(__name__)

# SocketIO instance is created by the app factory
socketio = None


def init_socketio(app):
    """Initialize Socket.IO with the Flask app"""
    global socketio
    socketio = SocketIO(
        app,
        cors_allowed_origins="*",
        ping_timeout=120,
        ping_interval=30,
        max_http_buffer_size=16384,
        manage_session=False,  # Let Flask handle sessions
        cookie=False,
        engineio_logger=False,
        logger=False,
        async_mode="threading",
    )

    register_handlers(socketio)

    return socketio


def channel_for(room_id):
    return f"dj:{room_id}"


def emit_to_room(room_id, event, data):
    """Broadcast ``event`` to everyone listening in ``room_id``"""
    if socketio is None:
        return
    socketio.emit(event, data, to=channel_for(room_id))


def broadcast_room_state(room_id, queue_changed=True):
    """Push the current playback state (and queue) to the room channel"""
    if socketio is None:
        return
    snapshot = current_app.scheduler.get_state(room_id).to_dict()
    emit_to_room(room_id, "now_playing", snapshot)
    if queue_changed:
        emit_to_room(room_id, "queue_updated", {"room_id": room_id, "queue": snapshot["queue"]})


def emit_error(error):
    emit("error", {"message": error.message, "code": error.code, **error.details})


def register_handlers(socketio):
    """Register all Socket.IO event handlers"""

    @socketio.on("connect")
    def handle_connect(auth=None):
        user_id = session.get("user_id")
        if not user_id:
            emit("error", {"message": "Authentication required", "code": "not_authenticated"})
            return
        logger.info(f"[CONNECTION] {user_id} connected (sid: {request.sid})")
        emit("connected", {"user_id": user_id, "role": session.get("role")})

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        logger.info(f"[DISCONNECTION] {session.get('user_id', 'unknown')} disconnected (sid: {request.sid}, reason: {reason})")

    @socketio.on("join_dj_room")
    def handle_join(data):
        room_id = (data or {}).get("room_id")
        if not room_id:
            emit("error", {"message": "room_id is required", "code": "invalid_request"})
            return
        join_room(channel_for(room_id))
        emit("room_state", current_app.scheduler.get_state(room_id).to_dict())

    @socketio.on("leave_dj_room")
    def handle_leave(data):
        room_id = (data or {}).get("room_id")
        if room_id:
            leave_room(channel_for(room_id))

    @socketio.on("queue_add")
    def handle_queue_add(data):
        """Submit a track - any authenticated user"""
        user_id = session.get("user_id")
        if not user_id:
            emit("error", {"message": "You must be logged in to add tracks", "code": "not_authenticated"})
            return

        data = data or {}
        room_id = data.get("room_id")
        source_ref = data.get("source_ref") or data.get("url")
        if not room_id or not source_ref:
            emit("error", {"message": "Missing room or track information", "code": "invalid_request"})
            return

        try:
            result = current_app.scheduler.submit(room_id, user_id, source_ref, data.get("dedication"))
        except SchedulerError as e:
            emit_error(e)
            return

        emit("queue_add_success", result.to_dict())
        broadcast_room_state(room_id)

    @socketio.on("react")
    def handle_react(data):
        user_id = session.get("user_id")
        if not user_id:
            emit("error", {"message": "You must be logged in to react", "code": "not_authenticated"})
            return

        data = data or {}
        room_id = data.get("room_id")
        try:
            result = current_app.scheduler.react(room_id, data.get("track_id"), user_id, data.get("kind"))
        except SchedulerError as e:
            emit_error(e)
            return

        payload = result.to_dict()
        payload["room_id"] = room_id
        emit_to_room(room_id, "reaction_updated", payload)

    @socketio.on("advance")
    def handle_advance(data):
        user_id = session.get("user_id")
        if not user_id:
            emit("error", {"message": "You must be logged in", "code": "not_authenticated"})
            return

        room_id = (data or {}).get("room_id")
        try:
            result = current_app.scheduler.advance(room_id, user_id)
        except SchedulerError as e:
            emit_error(e)
            return

        emit("advance_result", result.to_dict())
        broadcast_room_state(room_id)

    @socketio.on_error_default
    def default_error_handler(e):
        logger.error(f"[SOCKET ERROR] {request.event}: {e}")
        emit("error", {"message": "Internal error", "code": "internal_error"})
