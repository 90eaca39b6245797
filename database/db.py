"""
Database connection and query module.

Provides a clean interface for database operations with support
for both PostgreSQL and SQLite backends.
"""

import logging
import os
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import asyncpg
import aiosqlite

from config import config

logger = logging.getLogger(__name__)


class Database:
    """
    Async database connection manager.

    Supports PostgreSQL (production) and SQLite (development).
    Provides connection pooling and query execution methods.
    """

    def __init__(self, database_url: Optional[str] = None):
        """
        Initialize database manager.

        Args:
            database_url: Database connection URL. Uses config if not provided.
        """
        self.database_url = database_url or config.database.url
        self._pool = None
        self._sqlite_conn = None
        self._is_postgres = self.database_url.startswith(('postgresql', 'postgres://'))

    async def connect(self) -> None:
        """Establish database connection(s)."""
        if self._is_postgres:
            logger.info("Connecting to PostgreSQL database...")
            self._pool = await asyncpg.create_pool(
                self.database_url,
                min_size=2,
                max_size=10,
                command_timeout=60
            )
        else:
            # SQLite for development
            db_path = self.database_url.replace('sqlite:///', '')
            logger.info(f"Connecting to SQLite database: {db_path}")
            self._sqlite_conn = await aiosqlite.connect(db_path)
            self._sqlite_conn.row_factory = aiosqlite.Row

        logger.info("Database connection established")

    async def disconnect(self) -> None:
        """Close database connection(s)."""
        if self._is_postgres and self._pool:
            await self._pool.close()
            self._pool = None
        elif self._sqlite_conn:
            await self._sqlite_conn.close()
            self._sqlite_conn = None

        logger.info("Database connection closed")

    async def execute(self, query: str, *args) -> str:
        """
        Execute a query without returning results.

        Args:
            query: SQL query to execute
            *args: Query parameters

        Returns:
            Status message from database
        """
        if self._is_postgres:
            async with self._pool.acquire() as conn:
                return await conn.execute(query, *args)
        else:
            await self._sqlite_conn.execute(self._convert_params(query), args)
            await self._sqlite_conn.commit()
            return "OK"

    async def fetch_one(self, query: str, *args) -> Optional[Dict[str, Any]]:
        """
        Execute a query and fetch one row.

        Args:
            query: SQL query to execute
            *args: Query parameters

        Returns:
            Row as dictionary or None if no results
        """
        if self._is_postgres:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(query, *args)
                return dict(row) if row else None
        else:
            cursor = await self._sqlite_conn.execute(self._convert_params(query), args)
            row = await cursor.fetchone()
            if row:
                columns = [d[0] for d in cursor.description]
                return dict(zip(columns, row))
            return None

    async def fetch_all(self, query: str, *args) -> List[Dict[str, Any]]:
        """
        Execute a query and fetch all rows.

        Args:
            query: SQL query to execute
            *args: Query parameters

        Returns:
            List of rows as dictionaries
        """
        if self._is_postgres:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, *args)
                return [dict(row) for row in rows]
        else:
            cursor = await self._sqlite_conn.execute(self._convert_params(query), args)
            rows = await cursor.fetchall()
            if rows:
                columns = [d[0] for d in cursor.description]
                return [dict(zip(columns, row)) for row in rows]
            return []

    def _convert_params(self, query: str) -> str:
        """Convert PostgreSQL $1, $2 style params to SQLite ? style."""
        return re.sub(r'\$\d+', '?', query)

    async def init_schema(self) -> None:
        """Initialize database schema from schema.sql file."""
        schema_path = os.path.join(os.path.dirname(__file__), 'schema.sql')

        with open(schema_path, 'r') as f:
            schema = f.read()

        # Split by semicolons and execute each statement
        statements = [s.strip() for s in schema.split(';') if s.strip()]

        for statement in statements:
            if not self._is_postgres:
                statement = statement.replace('SERIAL', 'INTEGER')
                statement = statement.replace('TIMESTAMP', 'TEXT')

            if self._is_postgres:
                async with self._pool.acquire() as conn:
                    await conn.execute(statement)
            else:
                await self._sqlite_conn.execute(statement)

        if not self._is_postgres:
            await self._sqlite_conn.commit()

        logger.info("Database schema initialized")

    # -------------------------------------------------------------------------
    # Notification Operations
    # -------------------------------------------------------------------------

    async def save_notification(
        self,
        psp_reference: Optional[str],
        event_code: str,
        success: Optional[str],
        payload: str,
        original_reference: Optional[str] = None,
        merchant_reference: Optional[str] = None,
        merchant_account_code: Optional[str] = None,
        event_date: Optional[str] = None,
        live: Optional[str] = None,
        payment_method: Optional[str] = None,
        reason: Optional[str] = None,
        request_headers: Optional[str] = None,
        received_at: Optional[datetime] = None
    ) -> None:
        """Save a notification, ignoring a duplicate delivery of the same event."""
        received_at = received_at or datetime.utcnow()

        if self._is_postgres:
            await self.execute(
                """
                INSERT INTO notifications
                    (psp_reference, event_code, success, original_reference,
                     merchant_reference, merchant_account_code, event_date, live,
                     payment_method, reason, payload, request_headers, received_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
                ON CONFLICT (psp_reference, event_code, success) DO NOTHING
                """,
                psp_reference, event_code, success, original_reference,
                merchant_reference, merchant_account_code, event_date, live,
                payment_method, reason, payload, request_headers, received_at
            )
        else:
            await self.execute(
                """
                INSERT OR IGNORE INTO notifications
                    (psp_reference, event_code, success, original_reference,
                     merchant_reference, merchant_account_code, event_date, live,
                     payment_method, reason, payload, request_headers, received_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
                """,
                psp_reference, event_code, success, original_reference,
                merchant_reference, merchant_account_code, event_date, live,
                payment_method, reason, payload, request_headers,
                received_at.isoformat()
            )

    async def get_notifications(
        self,
        psp_reference: Optional[str] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Get stored notifications in the order they were received.

        Read side of the notifications table, for operators inspecting what
        the receiver has stored.

        Args:
            psp_reference: Only return notifications for this reference
            limit: Maximum number of rows

        Returns:
            List of notification rows
        """
        if psp_reference is not None:
            return await self.fetch_all(
                """
                SELECT * FROM notifications
                WHERE psp_reference = $1
                ORDER BY id
                LIMIT $2
                """,
                psp_reference, limit
            )
        return await self.fetch_all(
            "SELECT * FROM notifications ORDER BY id LIMIT $1",
            limit
        )

    async def count_notifications(self) -> int:
        """Count stored notifications, including ones without a pspReference."""
        result = await self.fetch_one("SELECT COUNT(*) AS total FROM notifications")
        return int(result['total']) if result else 0


# Global database instance
_db: Optional[Database] = None


async def get_db() -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database()
        await _db.connect()
    return _db


async def close_db() -> None:
    """Close the global database connection."""
    global _db
    if _db is not None:
        await _db.disconnect()
        _db = None
