"""
Database session management
"""
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker, Session
from typing import Optional

from pricemyfloor.core.config import settings
from pricemyfloor.database.connection import DatabasePool
from pricemyfloor.database.models import Base


# Session factory - will be initialized after pool is ready
SessionLocal: Optional[sessionmaker] = None


def init_session_factory() -> None:
    """
    Initialize the session factory with the database engine.
    Should be called after DatabasePool.initialize()
    Sets the schema search path for all PostgreSQL connections.
    """
    global SessionLocal
    if SessionLocal is None:
        engine = DatabasePool.get_engine()
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

        schema_name = settings.database.schema_name
        if not settings.database.is_sqlite and schema_name and schema_name != "public":
            @event.listens_for(engine, "connect")
            def set_search_path(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute(f"SET search_path TO {schema_name}, public")
                cursor.close()


def reset_session_factory() -> None:
    """Forget the session factory so the next call rebinds to a fresh engine"""
    global SessionLocal
    SessionLocal = None


def init_db() -> None:
    """
    Initialize database tables.
    Creates every table registered on the declarative Base.
    """
    engine = DatabasePool.get_engine()
    Base.metadata.create_all(bind=engine)


def drop_db() -> None:
    """Drop every table registered on the declarative Base"""
    engine = DatabasePool.get_engine()
    Base.metadata.drop_all(bind=engine)


def get_session() -> Session:
    """
    Get a new database session from the pool.
    Use this for manual session management outside of FastAPI dependencies.

    Returns:
        Session: Database session

    Raises:
        RuntimeError: If session factory is not initialized
    """
    if SessionLocal is None:
        init_session_factory()

    if SessionLocal is None:
        raise RuntimeError("Session factory not initialized. Call DatabasePool.initialize() first.")

    return SessionLocal()
