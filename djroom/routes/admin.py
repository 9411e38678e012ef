"""
DJ room moderation routes: settings, mutes, user stats and the fallback ring.
"""

from flask import Blueprint, current_app, jsonify, request

from djroom.auth.roles import current_user_id, moderator_required
from djroom.websockets.handlers import emit_to_room

admin_bp = Blueprint('admin', __name__)


@admin_bp.route("/<room_id>/settings", methods=["GET"])
def get_settings(room_id):
    return jsonify(dict(current_app.scheduler.get_settings(room_id), room_id=room_id))


@admin_bp.route("/<room_id>/settings", methods=["PUT"])
@moderator_required
def update_settings(room_id):
    data = request.get_json(silent=True) or {}
    settings = current_app.scheduler.update_settings(
        room_id,
        current_user_id(),
        max_queue_per_user=data.get("max_queue_per_user"),
        fallback_enabled=data.get("fallback_enabled"),
        mute_duration_minutes=data.get("mute_duration_minutes"),
    )
    return jsonify(dict(settings, room_id=room_id))


@admin_bp.route("/<room_id>/stats", methods=["GET"])
@moderator_required
def user_stats(room_id):
    stats = current_app.scheduler.user_stats(room_id)
    return jsonify({"room_id": room_id, "users": stats})


@admin_bp.route("/<room_id>/mutes/<user_id>", methods=["POST"])
@moderator_required
def mute_user(room_id, user_id):
    data = request.get_json(silent=True) or {}
    stats = current_app.scheduler.mute_user(room_id, user_id, current_user_id(), minutes=data.get("minutes"))
    return jsonify(stats)


@admin_bp.route("/<room_id>/mutes/<user_id>", methods=["DELETE"])
@moderator_required
def unmute_user(room_id, user_id):
    return jsonify(current_app.scheduler.unmute_user(room_id, user_id, current_user_id()))


@admin_bp.route("/<room_id>/fallback", methods=["GET"])
def list_fallback(room_id):
    entries = current_app.scheduler.list_fallback(room_id)
    return jsonify({"room_id": room_id, "fallback": entries, "count": len(entries)})


@admin_bp.route("/<room_id>/fallback", methods=["POST"])
@moderator_required
def add_fallback(room_id):
    data = request.get_json(silent=True) or {}
    entry = current_app.scheduler.add_fallback(room_id, data.get("source_ref") or data.get("url"), current_user_id())
    emit_to_room(room_id, "fallback_updated", {"room_id": room_id})
    return jsonify(entry), 201


@admin_bp.route("/<room_id>/fallback/<int:entry_id>", methods=["DELETE"])
@moderator_required
def remove_fallback(room_id, entry_id):
    result = current_app.scheduler.remove_fallback(room_id, entry_id, current_user_id())
    emit_to_room(room_id, "fallback_updated", {"room_id": room_id})
    return jsonify(result)
