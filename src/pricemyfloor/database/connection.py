"""
Database Connection Pool Manager
Uses SQLAlchemy for connection pooling
"""
from sqlalchemy import create_engine, Engine
from sqlalchemy.pool import Pool, StaticPool
from typing import Optional
from pricemyfloor.core.config import settings
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)


class DatabasePool:
    """
    Connection pool manager using SQLAlchemy.
    Manages a single shared connection pool for all database operations.
    PostgreSQL in production, SQLite (single static connection) for tests.
    """

    _engine: Optional[Engine] = None
    _pool: Optional[Pool] = None
    _initialized: bool = False

    @classmethod
    def _create_engine(cls) -> Engine:
        db_config = settings.database
        pool_config = db_config.pool

        if db_config.is_sqlite:
            # One shared connection so in-memory databases survive across sessions
            return create_engine(
                db_config.url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=pool_config.echo,
            )

        return create_engine(
            db_config.url,
            pool_pre_ping=True,  # Verify connections before using
            pool_size=pool_config.size,
            max_overflow=pool_config.max_overflow,
            pool_timeout=pool_config.timeout,
            pool_recycle=pool_config.recycle,
            echo=pool_config.echo,
            connect_args={
                "options": f"-csearch_path={db_config.schema_name}"
            } if db_config.schema_name else {},
        )

    @classmethod
    def initialize(cls) -> None:
        """
        Initialize the database connection pool.
        Should be called at application startup.
        """
        if cls._initialized:
            logger.warning("Database pool already initialized")
            return

        try:
            cls._engine = cls._create_engine()
            cls._pool = cls._engine.pool
            cls._initialized = True

            pool_config = settings.database.pool
            if settings.database.is_sqlite:
                logger.info("[green]Database pool initialized:[/green] [cyan]sqlite (static)[/cyan]")
            else:
                logger.info(
                    f"[green]Database pool initialized:[/green] "
                    f"[cyan]size={pool_config.size}[/cyan], [cyan]max_overflow={pool_config.max_overflow}[/cyan], "
                    f"[cyan]timeout={pool_config.timeout}s[/cyan], [cyan]recycle={pool_config.recycle}s[/cyan]"
                )
        except Exception as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    @classmethod
    def get_engine(cls) -> Engine:
        """
        Get the database engine.
        Initializes the pool if not already initialized.

        Returns:
            Engine: SQLAlchemy engine instance

        Raises:
            RuntimeError: If pool is not initialized
        """
        if not cls._initialized:
            cls.initialize()

        if cls._engine is None:
            raise RuntimeError("Database pool not initialized")

        return cls._engine

    @classmethod
    def close(cls) -> None:
        """
        Close the database connection pool.
        Should be called at application shutdown.
        """
        if cls._engine is not None:
            try:
                cls._engine.dispose()
                logger.info("[green]Database pool closed successfully[/green]")
            except Exception as e:
                logger.error(f"Error closing database pool: {e}")
            finally:
                cls._engine = None
                cls._pool = None
                cls._initialized = False

    @classmethod
    def get_pool_status(cls) -> dict:
        """
        Get the current status of the connection pool.

        Returns:
            dict: Pool status information
        """
        if not cls._initialized or cls._pool is None:
            return {
                "initialized": False,
                "size": 0,
                "checked_in": 0,
                "checked_out": 0,
                "overflow": 0,
            }

        # StaticPool exposes none of the QueuePool counters
        pool = cls._pool
        return {
            "initialized": True,
            "size": pool.size() if hasattr(pool, "size") else 1,
            "checked_in": pool.checkedin() if hasattr(pool, "checkedin") else 0,
            "checked_out": pool.checkedout() if hasattr(pool, "checkedout") else 0,
            "overflow": pool.overflow() if hasattr(pool, "overflow") else 0,
        }
