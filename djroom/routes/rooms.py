"""
DJ room routes: queue, playback and reactions.
"""

import logging
from flask import Blueprint, current_app, jsonify, request

from djroom.auth.roles import current_user_id, is_moderator, login_required, moderator_required
from djroom.websockets.handlers import broadcast_room_state, emit_to_room

logger = logging.getLogger(__name__)

rooms_bp = Blueprint('rooms', __name__)


@rooms_bp.route("/<room_id>/queue", methods=["POST"])
@login_required
def submit_track(room_id):
    """Submit a track to the room queue"""
    data = request.get_json(silent=True) or {}
    source_ref = data.get("source_ref") or data.get("url")
    result = current_app.scheduler.submit(room_id, current_user_id(), source_ref, data.get("dedication"))
    broadcast_room_state(room_id)
    return jsonify(result.to_dict())


@rooms_bp.route("/<room_id>/queue", methods=["GET"])
def get_queue(room_id):
    """Get the pending queue in play order"""
    items = [item.to_dict() for item in current_app.scheduler.list_queue(room_id)]
    return jsonify({"room_id": room_id, "queue": items, "count": len(items)})


@rooms_bp.route("/<room_id>/queue/position", methods=["GET"])
@login_required
def queue_position(room_id):
    """Where the caller's next track sits in the queue"""
    return jsonify(current_app.scheduler.queue_position(room_id, current_user_id()))


@rooms_bp.route("/<room_id>/queue/<int:track_id>", methods=["DELETE"])
@login_required
def remove_track(room_id, track_id):
    """Remove a queued track - contributor or moderator"""
    result = current_app.scheduler.remove(room_id, track_id, current_user_id(), moderator=is_moderator())
    broadcast_room_state(room_id, queue_changed=True)
    return jsonify(result.to_dict())


@rooms_bp.route("/<room_id>/advance", methods=["POST"])
@login_required
def advance(room_id):
    """Finish the current track and start the next one"""
    result = current_app.scheduler.advance(room_id, current_user_id())
    broadcast_room_state(room_id)
    return jsonify(result.to_dict())


@rooms_bp.route("/<room_id>/tracks/<int:track_id>/react", methods=["POST"])
@login_required
def react(room_id, track_id):
    """Toggle a like/dislike on a track"""
    data = request.get_json(silent=True) or {}
    kind = data.get("kind") or data.get("reaction_type")
    result = current_app.scheduler.react(room_id, track_id, current_user_id(), kind)

    payload = result.to_dict()
    emit_to_room(room_id, "reaction_updated", dict(payload, room_id=room_id))
    return jsonify(payload)


@rooms_bp.route("/<room_id>/state", methods=["GET"])
def get_state(room_id):
    return jsonify(current_app.scheduler.get_state(room_id).to_dict())


@rooms_bp.route("/<room_id>/history", methods=["GET"])
def get_history(room_id):
    limit = request.args.get("limit", default=50, type=int)
    limit = max(1, min(limit, 200))
    records = current_app.scheduler.history(room_id, limit=limit)
    return jsonify({"room_id": room_id, "history": records, "count": len(records)})


@rooms_bp.route("/<room_id>/pause", methods=["POST"])
@moderator_required
def pause(room_id):
    snapshot = current_app.scheduler.pause(room_id, current_user_id())
    broadcast_room_state(room_id, queue_changed=False)
    return jsonify(snapshot.to_dict())


@rooms_bp.route("/<room_id>/resume", methods=["POST"])
@moderator_required
def resume(room_id):
    snapshot = current_app.scheduler.resume(room_id, current_user_id())
    broadcast_room_state(room_id, queue_changed=False)
    return jsonify(snapshot.to_dict())


@rooms_bp.route("/<room_id>/seek", methods=["POST"])
@moderator_required
def seek(room_id):
    data = request.get_json(silent=True) or {}
    snapshot = current_app.scheduler.seek(room_id, data.get("position_ms"), current_user_id())
    broadcast_room_state(room_id, queue_changed=False)
    return jsonify(snapshot.to_dict())


@rooms_bp.route("/<room_id>/stop", methods=["POST"])
@moderator_required
def stop(room_id):
    snapshot = current_app.scheduler.stop(room_id, current_user_id())
    broadcast_room_state(room_id, queue_changed=False)
    return jsonify(snapshot.to_dict())
