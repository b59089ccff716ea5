import random
import time

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

import errors
from config import settings
from logger import logger

WRITE_OPTIONS = {"begin_immediate": True}


def build_engine(url, lock_timeout_ms=None):
    lock_timeout_ms = settings.lock_timeout_ms if lock_timeout_ms is None else lock_timeout_ms
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": lock_timeout_ms / 1000})

    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        # hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        # readers keep their snapshot without blocking writers
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        # writers take the write lock up front so check-then-insert cannot interleave
        if conn.get_execution_options().get("begin_immediate"):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


engine = build_engine(settings.sqlalchemy_database_url)
SessionLocal = sessionmaker(bind = engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def begin_write(db):
    """Open a write transaction on ``db`` with a bounded wait for locks held by other writers."""
    if db.in_transaction():
        # a read left open by the caller holds a snapshot that may already be stale
        db.commit()
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        db.execute(text("SET LOCAL lock_timeout = %d" % int(settings.lock_timeout_ms)))
    elif dialect == "sqlite":
        # SQLite waits through the driver timeout set in build_engine
        db.connection(execution_options=WRITE_OPTIONS)


def run_in_transaction(db, work, description, subject="record", busy_error=errors.BusyError):
    """
    Run ``work`` in a write transaction and commit it.

    The whole transaction is retried on lock timeouts, deadlocks and
    serialization failures, with jittered exponential backoff. Every other
    database failure leaves as a ``StoreError``.
    """
    attempts = max(1, settings.booking_max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            begin_write(db)
            result = work()
            db.commit()
            return result
        except errors.StoreError:
            db.rollback()
            raise
        except IntegrityError as exc:
            db.rollback()
            raise errors.from_integrity_error(exc, subject) from exc
        except OperationalError as exc:
            db.rollback()
            if not errors.is_transient(exc):
                logger.error("%s: storage failure (%s)", description, exc.orig)
                raise errors.StorageError(f"Could not {description}: storage failure") from exc
            if attempt == attempts:
                logger.error("%s: gave up after %d attempts (%s)", description, attempts, exc.orig)
                raise busy_error(f"Could not {description}: the data is locked, please retry", attempts=attempts) from exc
            delay = settings.booking_retry_backoff_seconds * (2 ** (attempt - 1)) * random.uniform(0.5, 1.5)
            logger.warning("%s: transient failure on attempt %d, retrying in %.3fs", description, attempt, delay)
            time.sleep(delay)
