"""
Health check API routes
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from user_registry.api.dependencies import get_database, get_uptime
from user_registry.database.connection import Database
from user_registry.utils.error_handling import utc_timestamp

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(uptime: float = Depends(get_uptime)):
    """Liveness of the HTTP server, independent of the database"""
    return {
        "status": "OK",
        "message": "Servidor funcionando correctamente",
        "timestamp": utc_timestamp(),
        "uptime": uptime,
    }


@router.get("/db-status")
async def database_status(database: Database = Depends(get_database)):
    """Round-trip the database and report whether it answered"""
    try:
        if not database.is_ready():
            raise RuntimeError("Database pool not initialized")
        await database.ping()
    except Exception as e:
        logger.error(f"Database status check failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "status": "ERROR",
                "message": "Error de conexión a la base de datos",
                "error": "Base de datos no disponible",
            },
        )

    return {
        "status": "OK",
        "message": "Base de datos conectada",
        "database": database.name,
    }
