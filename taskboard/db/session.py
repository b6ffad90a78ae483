from contextlib import contextmanager
from sqlalchemy import event
from sqlmodel import create_engine, Session, SQLModel
from ..core.config import settings

# Helper function to ensure URL format is correct
def get_db_url():
    url = settings.DATABASE_URL
    if not url:
        return "sqlite:///taskboard.db"
    # Sync engine only: strip async drivers left over from other deployments
    url = url.replace("postgres://", "postgresql://")
    return url.replace("+asyncpg", "").replace("+aiosqlite", "")


def build_engine(db_url: str, **kwargs):
    # --- CONFIGURATION FOR SQLITE ---
    if db_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(db_url, echo=settings.SQL_ECHO, **kwargs)

        # SQLite ignores ON DELETE rules unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # --- CONFIGURATION FOR POSTGRESQL ---
    return create_engine(
        db_url,
        echo=settings.SQL_ECHO,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        **kwargs,
    )


engine = build_engine(get_db_url())


def create_db_and_tables(bind=None):
    # Import the models package so every table is registered on the metadata
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session):
    """Commit everything done inside the block, or nothing.

    Usage:
        with atomic(session):
            session.add(task)
            session.add(activity)
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
