"""
Database configuration and session management for the DJ room scheduler.
"""

import os
import logging
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///database/djroom.db"

Base = declarative_base()
SessionLocal = sessionmaker(autocommit=False, autoflush=False)
engine = None


def normalize_database_url(database_url):
    """Fix Heroku style Postgres URLs for SQLAlchemy 2.0"""
    if database_url and database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def make_engine(database_url=None):
    """Create an engine, with SQLite and pooled-server settings as appropriate"""
    database_url = normalize_database_url(database_url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL)

    if database_url.startswith("sqlite"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            return create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )

        path = database_url.split("sqlite:///", 1)[-1]
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return create_engine(database_url, echo=False, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def make_session_factory(bind):
    return sessionmaker(bind=bind, autocommit=False, autoflush=False)


def configure(database_url=None):
    """Bind the module level SessionLocal to a (new) engine"""
    global engine
    engine = make_engine(database_url)
    SessionLocal.configure(bind=engine)
    logger.info(f"Database configured: {engine.url.render_as_string(hide_password=True)}")
    return engine


def init_db(bind=None):
    """Initialize database tables"""
    bind = bind or engine
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created successfully")


@contextmanager
def get_db(session_factory=None):
    """Context manager for database sessions with automatic commit/rollback"""
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
