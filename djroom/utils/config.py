"""
Configuration module for the DJ room scheduler.
Handles app configuration, session storage, and cache initialization.
"""

import os
import logging
import tempfile
from datetime import timedelta
from urllib.parse import urlparse

import redis
from cachelib.file import FileSystemCache
from dotenv import load_dotenv
from flask_caching import Cache
from flask_session import Session

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings():
    """Read configuration from the environment"""
    return {
        "SECRET_KEY": os.getenv("SECRET_KEY", "your-secret-key-change-in-production"),
        "ENV_NAME": os.getenv("FLASK_ENV", "development"),
        "DATABASE_URL": os.getenv("DATABASE_URL"),
        "REDIS_URL": os.getenv("REDIS_URL"),
        "YOUTUBE_API_KEY": os.getenv("YOUTUBE_API_KEY"),
        "CATALOG_TIMEOUT_SECONDS": float(os.getenv("CATALOG_TIMEOUT_SECONDS", "5")),
        "CATALOG_CACHE_SECONDS": int(os.getenv("CATALOG_CACHE_SECONDS", "3600")),
        "DEFAULT_MAX_QUEUE_PER_USER": int(os.getenv("DEFAULT_MAX_QUEUE_PER_USER", "3")),
        "DEFAULT_FALLBACK_ENABLED": env_bool("DEFAULT_FALLBACK_ENABLED", True),
        "DEFAULT_MUTE_DURATION_MINUTES": int(os.getenv("DEFAULT_MUTE_DURATION_MINUTES", str(24 * 60))),
        "ROOM_LOCK_BACKEND": os.getenv("ROOM_LOCK_BACKEND", "local"),
        "ROOM_LOCK_TIMEOUT_SECONDS": float(os.getenv("ROOM_LOCK_TIMEOUT_SECONDS", "10")),
        "MODERATOR_ROLES": [
            role.strip()
            for role in os.getenv("MODERATOR_ROLES", "host,admin,super_admin").split(",")
            if role.strip()
        ],
    }


def create_redis_client(redis_url):
    """Create a Redis client with short timeouts, or None when Redis is not reachable"""
    if not redis_url:
        logger.info("No REDIS_URL configured, running without Redis")
        return None

    try:
        parsed = urlparse(redis_url)
        client = redis.Redis(
            host=parsed.hostname,
            port=parsed.port or 6379,
            password=parsed.password,
            ssl=parsed.scheme == "rediss",
            ssl_cert_reqs=None,
            socket_connect_timeout=3,
            socket_timeout=3,
            retry_on_timeout=False,
        )
        client.ping()
        logger.info(f"Redis client connected successfully to {parsed.hostname}:{parsed.port}")
        return client
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed: {e}")
        return None


def configure_session_storage(app, redis_client):
    """Server side sessions: Redis in production when reachable, filesystem otherwise"""
    app.config["SESSION_PERMANENT"] = True
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=24)
    app.config["SESSION_KEY_PREFIX"] = "djroom:"
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_NAME"] = "djroom_session"

    if app.config["ENV_NAME"] == "production" and redis_client is not None:
        app.config["SESSION_TYPE"] = "redis"
        app.config["SESSION_REDIS"] = redis_client
        app.config["SESSION_COOKIE_SECURE"] = True
        logger.info("Using Redis for session storage (production)")
        return True

    session_dir = app.config.get("SESSION_FILE_DIR") or tempfile.mkdtemp(prefix="djroom_sessions_")
    app.config["SESSION_TYPE"] = "cachelib"
    app.config["SESSION_CACHELIB"] = FileSystemCache(cache_dir=session_dir, threshold=500)
    app.config["SESSION_COOKIE_SECURE"] = False
    logger.info(f"Using filesystem for session storage: {session_dir}")
    return False


def configure_cache(app, redis_client):
    if redis_client is not None:
        app.config["CACHE_TYPE"] = "RedisCache"
        app.config["CACHE_REDIS_URL"] = app.config["REDIS_URL"]
        logger.info("Using Redis for caching")
    else:
        app.config["CACHE_TYPE"] = "SimpleCache"
        logger.info("Redis not available for caching, using simple memory cache")
    app.config["CACHE_DEFAULT_TIMEOUT"] = 300
    return Cache(app)


def init_app(app, overrides=None):
    """Apply configuration to the Flask app and return (cache, redis_client)"""
    app.config.update(load_settings())
    app.config.update(overrides or {})

    redis_client = create_redis_client(app.config["REDIS_URL"])

    configure_session_storage(app, redis_client)
    Session(app)

    cache = configure_cache(app, redis_client)

    logger.info("Configuration and caching initialized successfully")
    return cache, redis_client
