"""
DJ room server: Flask app factory wiring configuration, storage, the
scheduler, HTTP routes and Socket.IO together.
"""

import os
import logging
from flask import Flask, jsonify

from djroom.api.youtube import YouTubeCatalog
from djroom.models import SessionLocal, configure, init_db
from djroom.routes.admin import admin_bp
from djroom.routes.catalog import catalog_bp
from djroom.routes.errors import register_error_handlers
from djroom.routes.rooms import rooms_bp
from djroom.routes.song_requests import song_requests_bp
from djroom.scheduler import RoomPolicy, Scheduler, build_room_locks
from djroom.utils.config import init_app
from djroom.websockets.handlers import init_socketio

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(config_overrides=None, catalog=None):
    """Create and configure the Flask application"""
    app = Flask(__name__)
    cache, redis_client = init_app(app, config_overrides)

    configure(app.config["DATABASE_URL"])
    init_db()

    if catalog is None:
        catalog = YouTubeCatalog(
            api_key=app.config["YOUTUBE_API_KEY"],
            timeout=app.config["CATALOG_TIMEOUT_SECONDS"],
            cache=cache,
            cache_seconds=app.config["CATALOG_CACHE_SECONDS"],
        )

    locks = build_room_locks(
        app.config["ROOM_LOCK_BACKEND"],
        redis_client,
        timeout=app.config["ROOM_LOCK_TIMEOUT_SECONDS"],
    )
    app.scheduler = Scheduler(
        SessionLocal,
        catalog=catalog,
        locks=locks,
        defaults=RoomPolicy.from_config(app.config),
    )

    app.register_blueprint(rooms_bp, url_prefix="/rooms")
    app.register_blueprint(admin_bp, url_prefix="/rooms")
    app.register_blueprint(song_requests_bp, url_prefix="/rooms")
    app.register_blueprint(catalog_bp, url_prefix="/catalog")
    register_error_handlers(app)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    app.socketio = init_socketio(app)

    logger.info("DJ room app initialized")
    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.socketio.run(app, host="0.0.0.0", port=port, debug=False, allow_unsafe_werkzeug=True)
