"""
Database session management
"""
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker, Session
from typing import Optional

from lead_router.core.config import settings
from lead_router.database.connection import DatabasePool
from lead_router.models.base import Base


# Session factory - will be initialized after pool is ready
SessionLocal: Optional[sessionmaker] = None


def init_session_factory() -> None:
    """
    Initialize the session factory with the database engine.
    Should be called after DatabasePool.initialize()
    """
    global SessionLocal
    if SessionLocal is None:
        engine = DatabasePool.get_engine()
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        if settings.database.is_sqlite:
            @event.listens_for(engine, "connect")
            def enable_foreign_keys(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
        elif settings.database.schema and settings.database.schema != "public":
            @event.listens_for(engine, "connect")
            def set_search_path(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute(f"SET search_path TO {settings.database.schema}, public")
                cursor.close()


def init_db() -> None:
    """
    Initialize database tables.
    Creates all tables defined in models.
    """
    import lead_router.models  # noqa: F401  registers every model on Base.metadata

    engine = DatabasePool.get_engine()
    Base.metadata.create_all(bind=engine)


def get_session() -> Session:
    """
    Get a new database session from the pool.
    Use this for manual session management outside of FastAPI dependencies.

    Raises:
        RuntimeError: If session factory is not initialized
    """
    if SessionLocal is None:
        init_session_factory()

    if SessionLocal is None:
        raise RuntimeError("Session factory not initialized. Call DatabasePool.initialize() first.")

    return SessionLocal()
