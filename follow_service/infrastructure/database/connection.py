"""
Database connection and unit of work
"""
import asyncpg
from typing import Optional
import logging

from ...config import settings
from ...domain.repositories import IUnitOfWork
from .schema import SCHEMA_SQL
from .repositories import (
    AccountRepository,
    RelationshipRepository,
    NotificationRepository,
)

logger = logging.getLogger(__name__)


class Database:
    """PostgreSQL database connection manager using asyncpg"""

    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Create database connection pool"""
        try:
            self.pool = await asyncpg.create_pool(
                settings.DATABASE_URL,
                min_size=1,
                max_size=settings.DB_POOL_SIZE,
                command_timeout=settings.DB_COMMAND_TIMEOUT,
            )
            logger.info("Database connection pool created successfully")
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    async def disconnect(self):
        """Close database connection pool"""
        if self.pool:
            await self.pool.close()
            logger.info("Database connection pool closed")

    async def create_schema(self):
        """Create tables, constraints and indexes if missing"""
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("Database schema ensured")

    def unit_of_work(self) -> "PostgresUnitOfWork":
        """New transaction-scoped unit of work"""
        return PostgresUnitOfWork(self)


class PostgresUnitOfWork(IUnitOfWork):
    """One pooled connection, one transaction"""

    def __init__(self, db: Database):
        self.db = db
        self.conn: Optional[asyncpg.Connection] = None
        self.transaction = None

    async def __aenter__(self) -> "PostgresUnitOfWork":
        self.conn = await self.db.pool.acquire()
        self.transaction = self.conn.transaction()
        await self.transaction.start()

        self.accounts = AccountRepository(self.conn)
        self.relationships = RelationshipRepository(self.conn)
        self.notifications = NotificationRepository(self.conn)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                await self.transaction.commit()
            else:
                await self.transaction.rollback()
        finally:
            await self.db.pool.release(self.conn)
            self.conn = None
            self.transaction = None


# Global database instance
db = Database()
