"""Database session. SQLite compatible with connection pooling."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def _enable_sqlite_write_serialization(engine: Engine) -> None:
    """Make SQLite enforce foreign keys and take the write lock at BEGIN.

    pysqlite's deferred transactions can fail with "database is locked" when two
    writers upgrade their locks at once; BEGIN IMMEDIATE makes them queue instead.

    Trade-off: every session transaction takes the lock, read-only requests
    included (the current-user lookup opens the transaction before the route
    knows whether it writes). On SQLite all requests therefore run one at a
    time. Deployments that need concurrent reads should use PostgreSQL, where
    this hook is not installed and ledger writes rely on row locks and
    conditional UPDATEs instead.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine for ``database_url`` with the pool settings used by the app."""
    if database_url.startswith("sqlite"):
        # SQLite: Use NullPool for thread-safety unless the caller picks a pool
        from sqlalchemy.pool import NullPool
        kwargs.setdefault("poolclass", NullPool)
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", settings.SQLITE_BUSY_TIMEOUT)
        engine = create_engine(database_url, connect_args=connect_args, **kwargs)
        _enable_sqlite_write_serialization(engine)
        return engine

    # PostgreSQL/MySQL: Use QueuePool with sensible defaults
    kwargs.setdefault("pool_size", 5)
    kwargs.setdefault("max_overflow", 10)
    kwargs.setdefault("pool_timeout", 30)
    kwargs.setdefault("pool_recycle", 3600)
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **kwargs)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
