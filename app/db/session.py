import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.orm import sessionmaker, Session
from app.core import config
from app.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

DATABASE_URL = config.DATABASE_URL


def build_engine(database_url: str):
    """Create an engine; SQLite gets a busy timeout so concurrent writers queue instead of failing."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database session dependency, one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Commit on success, roll back on any error.

    Connectivity failures surface as ServiceUnavailableError so callers never
    see a half-applied write.
    """
    try:
        yield db
        db.commit()
    except (OperationalError, InterfaceError) as e:
        db.rollback()
        logger.error(f"Database unavailable, transaction rolled back: {e}")
        raise ServiceUnavailableError("The placement database is currently unavailable") from e
    except Exception:
        db.rollback()
        raise
