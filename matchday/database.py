"""
Database connection and session management for Matchday.

This module sets up the database connection using SQLAlchemy. SQLite is the
default backend; any URL SQLAlchemy understands can be supplied through the
DATABASE_URL environment variable.
"""

import logging
import os
import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from matchday.config import config, DEFAULT_DATABASE_DIR, DEFAULT_DATABASE_URL

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = config.DATABASE_URL

# Ensure the default database directory exists
if SQLALCHEMY_DATABASE_URL == DEFAULT_DATABASE_URL:
    os.makedirs(DEFAULT_DATABASE_DIR, exist_ok=True)

connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}  # Needed for SQLite

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=connect_args,
    echo=False  # Set to True for SQL query logging during development
)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for ORM models
Base = declarative_base()

# Serializes read-modify-write work on users, matches and seasons within
# this process. Settlement, ledger adjustments and season closure all hold it.
write_lock = threading.RLock()


def get_db():
    """
    Dependency function to get database session.
    Use this in FastAPI routes to get a database session.

    Example:
        @router.get("/")
        def read_root(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """
    Initialize the database by creating all tables.

    Also seeds season 1 when no season exists yet and registers the admins
    listed in configuration. Safe to call on every startup.

    Args:
        bind: Optional engine to use instead of the configured one
    """
    # Import models to ensure they're registered with Base
    from matchday import models
    from matchday.admins import bootstrap_admins
    from matchday.seasons import ensure_initial_season

    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)

    db = sessionmaker(autocommit=False, autoflush=False, bind=target)()
    try:
        ensure_initial_season(db)
        bootstrap_admins(db)
    finally:
        db.close()

    logger.info("Database initialized at %s", target.url)
