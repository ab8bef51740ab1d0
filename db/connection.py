"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool because scheduled jobs run their
blocking work in worker threads while the bot keeps serving commands.
"""

from contextlib import contextmanager

import psycopg2
from psycopg2 import pool

from config import DATABASE_URL, DB_POOL_MAX, DB_POOL_MIN, DB_STATEMENT_TIMEOUT_MS
from utils.errors import PersistenceError
from utils.logger import get_logger

logger = get_logger(__name__)

_pool: pool.ThreadedConnectionPool | None = None


def init_pool(min_conn: int = DB_POOL_MIN, max_conn: int = DB_POOL_MAX) -> None:
    """
    Initialize the database connection pool.

    Every pooled connection carries a ``statement_timeout`` so that no single
    query can hang a job run indefinitely.

    Raises:
        psycopg2.OperationalError: If the database is unreachable.
    """
    global _pool
    if _pool is not None:
        return
    try:
        _pool = pool.ThreadedConnectionPool(
            min_conn,
            max_conn,
            DATABASE_URL,
            options=f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}",
        )
        logger.info("Database connection pool initialized successfully.")
    except psycopg2.OperationalError as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise


def get_connection():
    """
    Get a connection from the pool.

    Raises:
        RuntimeError: If the pool has not been initialized.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    """Return a connection back to the pool; broken connections are discarded."""
    if _pool is None:
        return
    try:
        _pool.putconn(conn, close=bool(conn.closed))
    except psycopg2.Error as e:
        logger.warning(f"Could not return connection to the pool: {e}")


def _rollback(conn) -> None:
    # A dropped connection cannot roll back; the error that got us here wins.
    try:
        conn.rollback()
    except psycopg2.Error as e:
        logger.warning(f"Rollback failed: {e}")


@contextmanager
def cursor():
    """
    Yield a cursor inside a single transaction.

    Commits when the block exits cleanly, rolls back otherwise. Driver
    errors, including failures to check a connection out of the pool, are
    re-raised as PersistenceError; the connection always goes back to the
    pool.

    Usage:
        with cursor() as cur:
            cur.execute("SELECT 1;")
    """
    try:
        conn = get_connection()
    except psycopg2.Error as e:
        logger.error(f"Could not get a database connection: {e}")
        raise PersistenceError(str(e).strip()) from e

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except psycopg2.Error as e:
        _rollback(conn)
        logger.error(f"Database error: {e}")
        raise PersistenceError(str(e).strip()) from e
    except Exception:
        _rollback(conn)
        raise
    finally:
        release_connection(conn)


def close_pool() -> None:
    """Close all connections in the pool."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None
        logger.info("Database connection pool closed.")
