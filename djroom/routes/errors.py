"""
JSON error responses for the DJ room routes.
"""

import logging
from flask import jsonify

from djroom.errors import SchedulerError

logger = logging.getLogger(__name__)


def handle_scheduler_error(error):
    return jsonify(error.to_dict()), error.status


def handle_internal_error(error):
    original = getattr(error, "original_exception", None) or error
    logger.error(f"Unhandled error: {original}", exc_info=original)
    return jsonify({"error": "Internal server error", "code": "internal_error"}), 500


def register_error_handlers(app):
    app.register_error_handler(SchedulerError, handle_scheduler_error)
    app.register_error_handler(500, handle_internal_error)
