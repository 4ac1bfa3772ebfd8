import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from exceptions import DatabaseConnectionError, WriteError

logger = logging.getLogger(__name__)

# SQLSTATE for serialization failures ("restart transaction" on CockroachDB)
RETRYABLE_SQLSTATE = "40001"


class Base(DeclarativeBase):
    pass


# Bound to an engine at startup
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def create_db_engine(url: str):
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Keep a single in-memory database across sessions
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(url, connect_args=connect_args)
    return create_engine(url, pool_pre_ping=True)


def connect(engine) -> Session:
    """
    Open the long-lived session used by the poller and verify the connection.
    """
    session = Session(bind=engine, autoflush=False)
    try:
        session.execute(text("SELECT 1"))
        session.commit()
    except SQLAlchemyError as e:
        session.close()
        logger.error(f"Error connecting to the database: {e}")
        raise DatabaseConnectionError(f"Error connecting to the database: {e}") from e
    logger.info("Successfully connected to the database")
    return session


def is_retryable(error: DBAPIError) -> bool:
    orig = getattr(error, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return code == RETRYABLE_SQLSTATE


# Run callback(db) in a transaction, retrying it on serialization failures
def run_transaction(db: Session, callback, max_retries: int = 5, backoff: float = 0.1, sleep=time.sleep):
    attempt = 0
    while True:
        attempt += 1
        try:
            result = callback(db)
            db.commit()
            return result
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Integrity error in transaction: {e}")
            raise WriteError(f"Constraint violation: {e}") from e
        except DBAPIError as e:
            db.rollback()
            if not is_retryable(e):
                logger.error(f"Database error in transaction: {e}")
                raise WriteError(f"Database error: {e}") from e
            if attempt > max_retries:
                logger.error(f"Transaction still conflicting after {max_retries} retries")
                raise WriteError(f"Transaction failed after {max_retries} retries: {e}") from e
            delay = backoff * 2 ** (attempt - 1)
            logger.warning(f"Serialization failure, retrying transaction ({attempt}/{max_retries}) in {delay:.2f}s")
            sleep(delay)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error in transaction: {e}")
            raise WriteError(f"Database error: {e}") from e
