"""Engine and session factory construction."""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.core.config import Settings
from marketplace.db.base import Base
from marketplace.db import models  # noqa: F401  (registers tables on Base.metadata)


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections get foreign keys enforced."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def engine_from_settings(settings: Settings) -> Engine:
    return create_db_engine(settings.database_url)


def init_db(engine: Engine) -> None:
    """Create all tables. Schema migrations are managed outside this service."""
    Base.metadata.create_all(bind=engine)
