"""
DatabaseManager: read-only access to the Supabase Postgres tables that
map users to schools and schools to their external integrations.

"""

import logging
from contextlib import contextmanager
from typing import Dict, Optional

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from prime_hub.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, database_url: str, min_pool_size: int = 1, max_pool_size: int = 10):
        self.connection_params = psycopg2.extensions.parse_dsn(database_url)
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None and not self._pool.closed

    def _init_pool(self):
        """Initialize connection pool."""
        try:
            self._pool = pool.ThreadedConnectionPool(
                self.min_pool_size, self.max_pool_size, **self.connection_params
            )
        except Exception as e:
            raise DatabaseError(f"Failed to initialize connection pool: {e}")

    @contextmanager
    def _get_connection(self):
        """Get a connection from the pool with automatic cleanup."""
        if self._pool is None:
            self._init_pool()
        conn = None
        try:
            conn = self._pool.getconn()
            yield conn
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Database connection error: {e}")
        finally:
            if conn:
                self._pool.putconn(conn)

    def close(self):
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None

    #        Caller Lookups
    # -------------------------------
    def get_caller_profile(self, user_id: str) -> Optional[Dict]:
        with self._get_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    """
                    SELECT user_id, name, email, role, school_id
                    FROM profiles
                    WHERE user_id = %s
                    LIMIT 1
                """,
                    (user_id,),
                )
                row = cur.fetchone()
        return dict(row) if row else None

    def get_school_customization(self, school_id: str) -> Optional[Dict]:
        with self._get_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    """
                    SELECT id, school_name, proesc_id,
                           zendesk_integration_url, zendesk_external_id
                    FROM school_customizations
                    WHERE id = %s
                    LIMIT 1
                """,
                    (school_id,),
                )
                row = cur.fetchone()
        return dict(row) if row else None
