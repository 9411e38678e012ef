"""
Request identity for the DJ room routes.
Identity is established elsewhere (login flow) and read from the session.
"""

from functools import wraps
from flask import current_app, jsonify, session


def current_user_id():
    return session.get("user_id")


def is_moderator():
    return session.get("role") in current_app.config.get("MODERATOR_ROLES", [])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user_id():
            return jsonify({"error": "Not authenticated"}), 401
        return view(*args, **kwargs)
    return wrapper


def moderator_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user_id():
            return jsonify({"error": "Not authenticated"}), 401
        if not is_moderator():
            return jsonify({
                "error": "Moderators only",
                "required_role": "moderator",
                "current_role": session.get("role"),
            }), 403
        return view(*args, **kwargs)
    return wrapper
