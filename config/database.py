"""
Supermarket - Database Configuration
=====================================
Engine, SessionLocal, Base, and get_db dependency.
All models across all modules inherit from this Base.
"""

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from config.settings import DATABASE_URL, LOCK_WAIT_TIMEOUT_SECONDS


def build_engine(url: str = DATABASE_URL, lock_timeout: int = LOCK_WAIT_TIMEOUT_SECONDS):
    """
    Create an engine for `url`.

    SQLite has no row-level locks, so every transaction is opened with
    BEGIN IMMEDIATE: writers are serialized database-wide and wait up to
    `lock_timeout` seconds for the write lock before failing.
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": lock_timeout},
        )

        @event.listens_for(engine, "connect")
        def _sqlite_connect(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself
            dbapi_connection.isolation_level = None
            dbapi_connection.execute("PRAGMA foreign_keys=ON")

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    engine = create_engine(
        url,
        pool_size=20,
        max_overflow=40,
        pool_timeout=30,
        pool_recycle=1800,  # Refresh connections every 30 minutes
    )
    if url.startswith("mysql"):
        event.listen(engine, "connect", mysql_lock_timeout_listener(lock_timeout))
    return engine


def mysql_lock_timeout_listener(seconds: int):
    """
    MySQL has no transaction-scoped lock timeout, so innodb_lock_wait_timeout
    is set once per pooled connection and holds for every transaction on it.
    """
    def _mysql_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {int(seconds)}")
        finally:
            cursor.close()
    return _mysql_connect


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session, auto-closes after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def apply_lock_timeout(db: Session, seconds: int = LOCK_WAIT_TIMEOUT_SECONDS):
    """Bound how long the current transaction waits for row locks."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        db.execute(text(f"SET LOCAL lock_timeout = '{int(seconds)}s'"))
    # mysql: set per connection (mysql_lock_timeout_listener)
    # sqlite: enforced by the connection busy timeout (see build_engine)
