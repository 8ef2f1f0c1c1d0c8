"""
Database connection and pool management
"""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Optional

import asyncpg

from user_registry.config import settings
from user_registry.database.schema import ensure_schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how many times to retry the initial database connection"""
    delay: float = 5.0
    max_attempts: Optional[int] = None  # None retries forever

    def allows(self, attempts: int) -> bool:
        return self.max_attempts is None or attempts < self.max_attempts


class Database:
    """Owns the asyncpg pool and the supervised reconnect task"""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        min_size: int = settings.DB_POOL_MIN_SIZE,
        max_size: int = settings.DB_POOL_MAX_SIZE,
        command_timeout: float = settings.DB_COMMAND_TIMEOUT,
        acquire_timeout: Optional[float] = settings.DB_ACQUIRE_TIMEOUT,
        retry_policy: Optional[RetryPolicy] = None,
        pool_factory=asyncpg.create_pool,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.name = database
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.acquire_timeout = acquire_timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._pool_factory = pool_factory
        self._pool = None
        self._retry_task: Optional[asyncio.Task] = None
        self.attempts = 0
        self.last_error: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "Database":
        """Build a Database from environment configuration"""
        return cls(
            host=settings.DB_HOST,
            port=settings.DB_PORT,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            database=settings.DB_NAME,
            retry_policy=RetryPolicy(
                delay=settings.DB_RETRY_DELAY,
                max_attempts=settings.DB_MAX_RETRIES,
            ),
        )

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}/{self.name}"

    @property
    def retrying(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    def is_ready(self) -> bool:
        """True once the pool exists and the schema has been ensured"""
        return self._pool is not None

    async def initialize(self) -> bool:
        """
        Make a single attempt to create the pool and ensure the schema

        Returns:
            True if the database is ready, False if the attempt failed
        """
        if self._pool is not None:
            return True

        self.attempts += 1
        logger.info(f"Connecting to PostgreSQL at {self.target} (attempt {self.attempts})")

        pool = None
        try:
            pool = await self._pool_factory(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.name,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
            )
            async with pool.acquire(timeout=self.acquire_timeout) as conn:
                await ensure_schema(conn)
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Error connecting to PostgreSQL: {e}")
            if pool is not None:
                pool.terminate()
            return False
        except BaseException:
            # Cancelled mid-attempt, usually by close() during shutdown
            if pool is not None:
                pool.terminate()
            raise

        self._pool = pool
        self.last_error = None
        logger.info("Connected to PostgreSQL, usuarios table verified")
        return True

    async def start(self) -> None:
        """Try to connect once, falling back to a background retry task"""
        if await self.initialize():
            return
        if not self.retry_policy.allows(self.attempts):
            logger.error(f"Giving up on database connection after {self.attempts} attempts")
            return
        self._retry_task = asyncio.create_task(self._retry_loop(), name="database-reconnect")

    async def _retry_loop(self) -> None:
        while not self.is_ready():
            if not self.retry_policy.allows(self.attempts):
                logger.error(f"Giving up on database connection after {self.attempts} attempts")
                return
            logger.warning(f"Retrying database connection in {self.retry_policy.delay}s")
            await asyncio.sleep(self.retry_policy.delay)
            await self.initialize()

    def acquire(self):
        """Acquire a pooled connection (use as an async context manager)"""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized")
        return self._pool.acquire(timeout=self.acquire_timeout)

    async def ping(self) -> None:
        """Round-trip a trivial query, raising if the database is unreachable"""
        async with self.acquire() as conn:
            await conn.fetchval("SELECT 1")

    async def close(self) -> None:
        """Cancel any pending reconnect and close the pool"""
        if self._retry_task is not None:
            self._retry_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._retry_task
            self._retry_task = None

        if self._pool is not None:
            await self._pool.close()
            self._pool = None
        logger.info("Database connections closed")
