import logging
from typing import Callable, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from config import DATABASE_URL
from utils.errors import Conflict, Transient

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _build_engine(url: str):
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine
    return create_engine(url, pool_pre_ping=True)


engine = _build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_in_transaction(db: Session, operation: Callable[[Session], T]) -> T:
    """Run ``operation`` as one all-or-nothing unit and commit it.

    A lost connection is retried exactly once by rolling back and re-running
    the whole operation, never just the failed statement. A second loss is
    reported as ``Transient``; unique/foreign-key violations as ``Conflict``.
    """
    for attempt in (1, 2):
        try:
            result = operation(db)
            db.commit()
            return result
        except IntegrityError as exc:
            db.rollback()
            raise Conflict("The change conflicts with existing data") from exc
        except DBAPIError as exc:
            db.rollback()
            if not exc.connection_invalidated:
                raise
            if attempt == 1:
                logger.warning("Database connection lost, re-running operation once")
                continue
            raise Transient("Database connection lost") from exc
        except Exception:
            db.rollback()
            raise
