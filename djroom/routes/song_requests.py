"""
Song request inbox routes. Listeners leave requests, moderators accept them
into the fair queue in one batch.
"""

from flask import Blueprint, current_app, jsonify, request

from djroom.auth.roles import current_user_id, login_required, moderator_required
from djroom.websockets.handlers import broadcast_room_state, emit_to_room

song_requests_bp = Blueprint('song_requests', __name__)


@song_requests_bp.route("/<room_id>/requests", methods=["GET"])
def list_requests(room_id):
    status = request.args.get("status", "pending")
    if status == "all":
        status = None
    items = current_app.scheduler.list_requests(room_id, status=status)
    return jsonify({"room_id": room_id, "requests": items, "count": len(items)})


@song_requests_bp.route("/<room_id>/requests", methods=["POST"])
@login_required
def create_request(room_id):
    data = request.get_json(silent=True) or {}
    item = current_app.scheduler.submit_request(
        room_id,
        current_user_id(),
        data.get("song_title"),
        artist=data.get("artist"),
        link=data.get("link"),
        dedication=data.get("dedication"),
    )
    emit_to_room(room_id, "requests_updated", {"room_id": room_id})
    return jsonify(item), 201


@song_requests_bp.route("/<room_id>/requests/process", methods=["POST"])
@moderator_required
def process_requests(room_id):
    result = current_app.scheduler.process_requests(room_id, current_user_id())
    emit_to_room(room_id, "requests_updated", {"room_id": room_id})
    if result.processed:
        broadcast_room_state(room_id)
    return jsonify(result.to_dict())


@song_requests_bp.route("/<room_id>/requests/<int:request_id>/reject", methods=["POST"])
@moderator_required
def reject_request(room_id, request_id):
    data = request.get_json(silent=True) or {}
    item = current_app.scheduler.reject_request(room_id, request_id, current_user_id(), reason=data.get("reason"))
    emit_to_room(room_id, "requests_updated", {"room_id": room_id})
    return jsonify(item)
