"""Database configuration and session management."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


# Base class for ORM models
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create the engine for the local store.

    SQLite only enforces ON DELETE CASCADE when the foreign_keys pragma is
    enabled on every connection, so it is switched on at connect time.
    """
    connect_args: dict = {}
    engine_kwargs: dict = {"echo": echo}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,  # Prevent lazy loading errors after commit
    )


# Dependency for FastAPI routes
def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    The session factory is owned by the application and created in its
    lifespan, so every request gets a session from the same engine.

    Yields:
        Session: SQLAlchemy database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
