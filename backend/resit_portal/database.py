"""
Engine, session factory and the request-scoped session dependency.

DATABASE_URL selects the backend: PostgreSQL in deployment, a SQLite
file for local runs, in-memory SQLite ("sqlite://") for the test suite.
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./resit_portal.db")

IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:")


def engine_options(url: str) -> dict:
    """Keyword arguments for create_engine, by backend."""
    if url.startswith("postgresql"):
        return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Request handlers run on a thread pool
        options = {"connect_args": {"check_same_thread": False}}
        if url in IN_MEMORY_SQLITE:
            # One shared connection, otherwise every session sees an empty database
            options["poolclass"] = StaticPool
        return options
    return {}


engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))

if DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if DATABASE_URL not in IN_MEMORY_SQLITE:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """FastAPI dependency: one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create the schema directly. PostgreSQL deployments use alembic instead."""
    import resit_portal.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_tables():
    import resit_portal.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)
