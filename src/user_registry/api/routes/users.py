"""
User management API routes
All database access goes through the users service.
"""

import json
import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from user_registry.api.dependencies import get_users_service, raise_for_result, require_database
from user_registry.models.user import (
    UserCreatedResponse,
    UserCreateRequest,
    UserDeletedResponse,
    UserResponse,
)
from user_registry.services.users_service import UsersService
from user_registry.utils.error_handling import NotFoundError
from user_registry.utils.validation import clean_user_fields

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_USER_ID = 2 ** 31 - 1  # SERIAL column range


def _parse_user_id(raw_id: str) -> int:
    """Path IDs that cannot name a row are reported as missing users"""
    if raw_id.isascii() and raw_id.isdigit():
        user_id = int(raw_id)
        if 0 < user_id <= MAX_USER_ID:
            return user_id
    raise NotFoundError(f"No se encontró un usuario con ID {raw_id}")


@router.get("", response_model=List[UserResponse])
async def list_users(
    _: bool = Depends(require_database),
    users_service: UsersService = Depends(get_users_service),
):
    """List all users, most recent first"""
    result = await users_service.list_users()
    raise_for_result(result, "No se pudieron obtener los usuarios")
    return result.data


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    _: bool = Depends(require_database),
    users_service: UsersService = Depends(get_users_service),
):
    """Get a single user"""
    result = await users_service.get_user(_parse_user_id(user_id))
    raise_for_result(
        result,
        "No se pudo obtener el usuario",
        not_found_message=f"No se encontró un usuario con ID {user_id}",
    )
    return result.data[0]


async def _read_create_request(request: Request) -> UserCreateRequest:
    """
    Decode the POST body by hand so that it is only read once the readiness
    gate has passed. An empty or null body counts as one with no fields.
    """
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body) if raw_body else None
    except ValueError as e:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": f"JSON decode error: {e}", "input": {}}]
        )

    try:
        return UserCreateRequest.model_validate({} if payload is None else payload)
    except ValidationError as e:
        errors = [{**error, "loc": ("body", *error["loc"])} for error in e.errors(include_url=False)]
        raise RequestValidationError(errors, body=payload)


@router.post(
    "",
    status_code=201,
    response_model=UserCreatedResponse,
    openapi_extra={
        "requestBody": {
            "required": False,
            "content": {"application/json": {"schema": UserCreateRequest.model_json_schema()}},
        }
    },
)
async def create_user(
    http_request: Request,
    _: bool = Depends(require_database),
    users_service: UsersService = Depends(get_users_service),
):
    """Create a new user"""
    request = await _read_create_request(http_request)
    nombre, email, telefono = clean_user_fields(request.nombre, request.email, request.telefono)

    result = await users_service.create_user(nombre, email, telefono)
    raise_for_result(result, "No se pudo crear el usuario")

    return {
        "message": "Usuario creado exitosamente",
        "user": result.data[0],
    }


@router.delete("/{user_id}", response_model=UserDeletedResponse)
async def delete_user(
    user_id: str,
    _: bool = Depends(require_database),
    users_service: UsersService = Depends(get_users_service),
):
    """Delete a user and report which one was removed"""
    result = await users_service.delete_user(_parse_user_id(user_id))
    raise_for_result(
        result,
        "No se pudo eliminar el usuario",
        not_found_message=f"No se encontró un usuario con ID {user_id}",
    )

    return {
        "message": "Usuario eliminado exitosamente",
        "deletedUser": result.data[0],
    }
