"""
Users service - data access for the usuarios table
"""

import logging
from datetime import timedelta

import asyncpg

from user_registry.database.connection import Database
from user_registry.services.base_service import (
    DATABASE_ERRORS,
    BaseService,
    ErrorType,
    ServiceResult,
)

logger = logging.getLogger(__name__)

USER_FIELDS = "id, nombre, email, telefono, fecha_creacion"


class UsersService(BaseService):
    """Service for user record operations"""

    def __init__(self, database: Database):
        super().__init__(database, "usuarios")

    async def list_users(self) -> ServiceResult:
        """
        List every user, newest first

        Returns:
            ServiceResult with all user records
        """
        if not self.is_ready():
            return self._not_ready()

        try:
            async with self.database.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {USER_FIELDS} FROM usuarios ORDER BY fecha_creacion DESC, id DESC"
                )
        except DATABASE_ERRORS as e:
            return self._database_failure("list", e)

        return ServiceResult.ok([self._serialize_row(row) for row in rows])

    async def get_user(self, user_id: int) -> ServiceResult:
        """
        Get a user by its ID

        Args:
            user_id: Primary key of the user

        Returns:
            ServiceResult with a single user, or RESOURCE_NOT_FOUND
        """
        if not self.is_ready():
            return self._not_ready()

        try:
            async with self.database.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {USER_FIELDS} FROM usuarios WHERE id = $1", user_id
                )
        except DATABASE_ERRORS as e:
            return self._database_failure("read", e)

        if row is None:
            return ServiceResult.failure(
                ErrorType.RESOURCE_NOT_FOUND, f"User not found with ID: {user_id}"
            )
        return ServiceResult.ok([self._serialize_row(row)])

    async def create_user(self, nombre: str, email: str, telefono: str) -> ServiceResult:
        """
        Insert a new user with trimmed field values

        Args:
            nombre: Display name
            email: Email address, unique across users
            telefono: Phone number

        Returns:
            ServiceResult with the persisted user, or CONFLICT on a duplicate email
        """
        if not self.is_ready():
            return self._not_ready()

        values = (nombre.strip(), email.strip(), telefono.strip())
        logger.info(f"Creating new user: {values[1]}")

        try:
            async with self.database.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO usuarios (nombre, email, telefono)
                    VALUES ($1, $2, $3)
                    RETURNING {USER_FIELDS}
                    """,
                    *values,
                )
        except asyncpg.UniqueViolationError as e:
            logger.warning(f"Unique constraint violation: {e}")
            return ServiceResult.failure(ErrorType.CONFLICT, "A user with that email already exists")
        except DATABASE_ERRORS as e:
            return self._database_failure("insert", e)

        return ServiceResult.ok([self._serialize_row(row)])

    async def delete_user(self, user_id: int) -> ServiceResult:
        """
        Delete a user, returning the id and name it had before deletion

        Args:
            user_id: Primary key of the user

        Returns:
            ServiceResult with {id, nombre}, or RESOURCE_NOT_FOUND
        """
        if not self.is_ready():
            return self._not_ready()

        logger.info(f"Deleting user {user_id}")
        try:
            async with self.database.acquire() as conn:
                row = await conn.fetchrow(
                    "DELETE FROM usuarios WHERE id = $1 RETURNING id, nombre", user_id
                )
        except DATABASE_ERRORS as e:
            return self._database_failure("delete", e)

        if row is None:
            return ServiceResult.failure(
                ErrorType.RESOURCE_NOT_FOUND, f"User not found with ID: {user_id}"
            )
        return ServiceResult.ok([dict(row)])

    async def count_users(self) -> ServiceResult:
        """Count all users"""
        if not self.is_ready():
            return self._not_ready()

        try:
            async with self.database.acquire() as conn:
                total = await conn.fetchval("SELECT COUNT(*) FROM usuarios")
        except DATABASE_ERRORS as e:
            return self._database_failure("count", e)

        return ServiceResult(success=True, data=[{"total": total}], count=total)

    async def count_recent_users(self, window: timedelta) -> ServiceResult:
        """Count users created within the trailing window ending now"""
        if not self.is_ready():
            return self._not_ready()

        try:
            async with self.database.acquire() as conn:
                recent = await conn.fetchval(
                    "SELECT COUNT(*) FROM usuarios WHERE fecha_creacion >= NOW() - $1::interval",
                    window,
                )
        except DATABASE_ERRORS as e:
            return self._database_failure("count", e)

        return ServiceResult(success=True, data=[{"recent": recent}], count=recent)
