"""
Centralized Error Handling and Logging System
Maps service failures to HTTP errors, logs unexpected failures as structured
records and keeps a single bad request from taking the server down.
"""

import json
import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
from contextvars import ContextVar

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

# Context variables for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)


class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    SANITIZE_SENSITIVE_FIELDS = True
    SENSITIVE_FIELD_PATTERNS = [
        'password', 'token', 'key', 'secret', 'authorization',
        'auth', 'bearer', 'credential', 'cookie'
    ]
    MAX_VALUE_LOG_SIZE = 2000

    INCLUDE_TRACE_ID = True
    INCLUDE_TIMESTAMP = True

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        """Check if a field contains sensitive data"""
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Union[Dict, str, Any]) -> Any:
        """Recursively sanitize sensitive data from logs"""
        if not cls.SANITIZE_SENSITIVE_FIELDS:
            return data

        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(key) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        elif isinstance(data, str) and len(data) > cls.MAX_VALUE_LOG_SIZE:
            return data[:cls.MAX_VALUE_LOG_SIZE] + "...[TRUNCATED]"
        else:
            return data


class StructuredLogger:
    """Structured logging with consistent format and context"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[Exception] = None,
        include_traceback: bool = True
    ) -> str:
        """Log structured error with full context, returning its trace ID"""

        trace_id = request_id_var.get('') or str(uuid.uuid4())[:8]

        log_entry = {
            "timestamp": utc_timestamp(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": "ERROR"
        }

        if request:
            headers = dict(request.headers)
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "headers": ErrorHandlingConfig.sanitize_data(headers),
                "client_ip": request.client.host if request.client else None,
            }

        if exception:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": str(exception),
                "module": getattr(exception, '__module__', 'unknown')
            }
            if include_traceback:
                log_entry["exception"]["traceback"] = "".join(
                    traceback.format_exception(type(exception), exception, exception.__traceback__)
                )

        logger.error(json.dumps(log_entry, indent=2, default=str))

        return trace_id


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# Error taxonomy

class ApiError(Exception):
    """Error with a client-safe error/message pair and an HTTP status"""
    status_code = 500
    error = "Error interno del servidor"
    message = "Ocurrió un error inesperado"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.message
        self.error = error or self.error
        super().__init__(self.message)


class NotReadyError(ApiError):
    status_code = 503
    error = "Base de datos no disponible"
    message = "El servidor está iniciando, por favor intente nuevamente"


class NotFoundError(ApiError):
    status_code = 404
    error = "Usuario no encontrado"
    message = "No se encontró el recurso solicitado"


class ValidationFailedError(ApiError):
    status_code = 400
    error = "Datos inválidos"


class ConflictError(ApiError):
    status_code = 409
    error = "Email duplicado"
    message = "Ya existe un usuario con ese email"


class InternalError(ApiError):
    status_code = 500


class RouteNotFoundError(ApiError):
    status_code = 404
    error = "Ruta no encontrada"


def error_response(status_code: int, error: str, message: str, trace_id: Optional[str] = None, **extra) -> JSONResponse:
    """Build the JSON body shared by every failure path"""
    content = {"error": error, "message": message, **extra}

    if ErrorHandlingConfig.INCLUDE_TRACE_ID and trace_id:
        content["trace_id"] = trace_id

    if ErrorHandlingConfig.INCLUDE_TIMESTAMP:
        content["timestamp"] = utc_timestamp()

    return JSONResponse(status_code=status_code, content=content)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Adds request IDs and acts as the last-resort error boundary"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        request_id_var.set(trace_id)
        request.state.trace_id = trace_id

        try:
            response = await call_next(request)
        except Exception as e:
            StructuredLogger.log_error(
                "unhandled_exception",
                f"Unhandled exception in request processing: {e}",
                request=request,
                exception=e,
            )
            response = error_response(
                500,
                InternalError.error,
                InternalError.message,
                trace_id=trace_id,
            )

        response.headers["X-Trace-ID"] = trace_id
        return response


# Global Exception Handlers

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render taxonomy errors raised by routes"""
    trace_id = None
    if exc.status_code >= 500:
        trace_id = StructuredLogger.log_error(
            f"http_{exc.status_code}",
            f"HTTP {exc.status_code}: {exc.message}",
            request=request,
            exception=exc,
            include_traceback=False
        )
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error}")

    return error_response(exc.status_code, exc.error, exc.message, trace_id=trace_id)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing and framework HTTP exceptions"""

    # Unknown paths and unsupported methods on known paths are both "no such route"
    if exc.status_code in (404, 405):
        return error_response(
            404,
            RouteNotFoundError.error,
            f"La ruta {request.url.path} no existe",
        )

    trace_id = None
    if exc.status_code >= 500:
        trace_id = StructuredLogger.log_error(
            f"http_{exc.status_code}",
            f"HTTP {exc.status_code}: {exc.detail}",
            request=request,
            exception=exc,
            include_traceback=False
        )

    return error_response(exc.status_code, f"HTTP {exc.status_code}", str(exc.detail), trace_id=trace_id)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies as client errors (HTTP 400)"""

    validation_details = [
        {
            "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
        }
        for error in exc.errors()
    ]

    logger.info(
        f"{request.method} {request.url.path} -> 400 request validation failed: "
        f"{len(validation_details)} errors"
    )

    return error_response(
        400,
        ValidationFailedError.error,
        "El cuerpo de la solicitud no es válido",
        detail=validation_details,
    )


def setup_error_handling(app):
    """Setup error handling for FastAPI app"""

    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    logger.info("Centralized error handling initialized")
