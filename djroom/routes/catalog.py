"""
Catalog lookup route: preview metadata for a video link before queueing it.
"""

from flask import Blueprint, current_app, jsonify, request

catalog_bp = Blueprint('catalog', __name__)


@catalog_bp.route("/info")
def get_info():
    info = current_app.scheduler.lookup_info(request.args.get("url", ""))
    return jsonify(info)
