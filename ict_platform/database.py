"""ICT Platform Database Module.

Provides the PostgreSQL connection pool and cursor helpers used by every
repository in the platform.
"""
import os
import logging
import threading

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor


logger = logging.getLogger('ict_platform.database')

# PostgreSQL connection - DATABASE_URL is required
DATABASE_URL = os.environ.get('DATABASE_URL')

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required. Set it to your PostgreSQL connection string.")

_connection_pool = None
_pool_lock = threading.Lock()

POOL_MIN_CONN = int(os.environ.get('DB_POOL_MIN_CONN', '2'))
POOL_MAX_CONN = int(os.environ.get('DB_POOL_MAX_CONN', '8'))


def _get_pool():
    """Get or create the connection pool (lazy initialization, thread-safe)."""
    global _connection_pool
    if _connection_pool is None:
        with _pool_lock:
            if _connection_pool is None:
                _connection_pool = pool.ThreadedConnectionPool(
                    minconn=POOL_MIN_CONN,
                    maxconn=POOL_MAX_CONN,
                    dsn=DATABASE_URL,
                    keepalives=1,
                    keepalives_idle=30,
                    keepalives_interval=10,
                    keepalives_count=5,
                    connect_timeout=5,
                )
                logger.info(f'Connection pool created: min={POOL_MIN_CONN}, max={POOL_MAX_CONN}')
    return _connection_pool


def get_db():
    """Get PostgreSQL database connection from pool.

    Validates connection health before returning. Stale connections are
    discarded and up to 3 attempts are made. An exhausted pool raises
    psycopg2.pool.PoolError immediately.
    """
    max_retries = 3
    last_error = None

    for attempt in range(max_retries):
        conn = _get_pool().getconn()

        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            conn.rollback()
            conn.autocommit = True
            return conn
        except (psycopg2.OperationalError, psycopg2.InterfaceError, psycopg2.DatabaseError) as e:
            last_error = e
            logger.warning(f'Stale connection discarded (attempt {attempt + 1}/{max_retries}): {e}')
            try:
                _get_pool().putconn(conn, close=True)
            except Exception:
                pass

    raise psycopg2.OperationalError(f"Failed to get valid connection after {max_retries} attempts: {last_error}")


def release_db(conn):
    """Return connection to pool, closing it if it is broken."""
    if conn and _connection_pool:
        try:
            if conn.closed:
                try:
                    _connection_pool.putconn(conn, close=True)
                except Exception:
                    pass
                return
            conn.autocommit = False
            _connection_pool.putconn(conn)
        except Exception:
            try:
                _connection_pool.putconn(conn, close=True)
            except Exception:
                pass


def ping_db():
    """Ping the database. Returns True if successful, False otherwise."""
    try:
        conn = get_db()
        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            return True
        finally:
            release_db(conn)
    except Exception:
        return False


def get_cursor(conn):
    """Get cursor with dict row factory."""
    return conn.cursor(cursor_factory=RealDictCursor)


def init_db():
    """Create the approval tables if they are missing.

    Skips when `po_approval_rules` already exists so worker startup stays cheap.
    """
    conn = get_db()
    cursor = get_cursor(conn)
    try:
        cursor.execute("""
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_schema = 'public' AND table_name = 'po_approval_rules'
            )
        """)
        if cursor.fetchone()['exists']:
            logger.info('Database schema already initialized — skipping init_db()')
            return

        from ict_platform.migrations.init_schema import create_schema
        conn.autocommit = False
        create_schema(conn, cursor)
        conn.commit()
        logger.info('Database schema initialized successfully')
    finally:
        release_db(conn)


def dict_from_row(row):
    """Convert a database row to a dictionary with ISO-formatted dates."""
    if row is None:
        return None
    result = dict(row)
    for key, value in result.items():
        if hasattr(value, 'isoformat'):
            result[key] = value.isoformat()
    return result
