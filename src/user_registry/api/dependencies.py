"""
Request dependencies shared by the API routes
"""

import time

from fastapi import Depends, Request

from user_registry.database.connection import Database
from user_registry.services.base_service import ErrorType, ServiceResult
from user_registry.services.users_service import UsersService
from user_registry.utils.error_handling import (
    ConflictError,
    InternalError,
    NotFoundError,
    NotReadyError,
)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_users_service(request: Request) -> UsersService:
    return request.app.state.users_service


def require_database(database: Database = Depends(get_database)) -> bool:
    """Reject data routes with 503 until the database has been initialized"""
    if not database.is_ready():
        raise NotReadyError()
    return True


def get_uptime(request: Request) -> float:
    """Seconds since the application started"""
    return time.monotonic() - request.app.state.started_at


def raise_for_result(result: ServiceResult, failure_message: str, not_found_message: str = "") -> None:
    """Translate a failed ServiceResult into the matching API error"""
    if result.success:
        return
    if result.error_type == ErrorType.NOT_READY:
        raise NotReadyError()
    if result.error_type == ErrorType.RESOURCE_NOT_FOUND:
        raise NotFoundError(not_found_message)
    if result.error_type == ErrorType.CONFLICT:
        raise ConflictError()
    raise InternalError(failure_message)
