from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .schema import create_all


def get_engine(sqlite_path: str):
    engine_url = f"sqlite:///{sqlite_path}"
    engine = create_engine(engine_url, future=True)
    create_all(engine_url)
    return engine


def get_session(sqlite_path: str) -> Session:
    """Get a SQLAlchemy session (caller must close it)."""
    engine = get_engine(sqlite_path)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)()


@contextmanager
def session_context(sqlite_path: str) -> Generator[Session, None, None]:
    """
    Context manager for request-scoped SQLAlchemy sessions.

    Rolls back on error and always closes the session. Commits are explicit:
    write paths commit through ``transaction``.

    Usage:
        with session_context(sqlite_path) as session:
            result = courses_api.get_courses(session, query)
    """
    session = get_session(sqlite_path)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def transaction(session: Session) -> Generator[Session, None, None]:
    """
    Run a multi-step write atomically on ``session``.

    Everything added or changed inside the block is flushed and committed
    together; any exception rolls the whole block back and is re-raised.
    """
    try:
        yield session
        session.flush()
        session.commit()
    except Exception:
        session.rollback()
        raise
