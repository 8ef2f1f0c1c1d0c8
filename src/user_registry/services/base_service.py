"""
Base service layer for database-backed operations
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import asyncpg

from user_registry.database.connection import Database

logger = logging.getLogger(__name__)

# Failures that originate in the database or the connection to it
DATABASE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class ErrorType:
    NOT_READY = "NOT_READY"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"


@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, data: List[Dict[str, Any]]) -> "ServiceResult":
        return cls(success=True, data=data, count=len(data))

    @classmethod
    def failure(cls, error_type: str, error: str) -> "ServiceResult":
        return cls(success=False, error=error, error_type=error_type)


class BaseService:
    """Shared plumbing for services that query a single table"""

    def __init__(self, database: Database, resource_name: str):
        self.database = database
        self.resource_name = resource_name
        logger.info(f"Service initialized for resource: {resource_name}")

    def is_ready(self) -> bool:
        return self.database.is_ready()

    def _not_ready(self) -> ServiceResult:
        return ServiceResult.failure(ErrorType.NOT_READY, "Database pool not initialized")

    def _database_failure(self, operation: str, e: Exception) -> ServiceResult:
        logger.error(f"{operation} operation failed for {self.resource_name}: {e}", exc_info=True)
        return ServiceResult.failure(ErrorType.DATABASE_ERROR, f"Database {operation} failed")

    @staticmethod
    def _serialize_row(row) -> Dict[str, Any]:
        """Convert a record to a plain dict with ISO-formatted timestamps"""
        data = dict(row)
        for key, value in data.items():
            if hasattr(value, 'isoformat'):
                data[key] = value.isoformat()
        return data
