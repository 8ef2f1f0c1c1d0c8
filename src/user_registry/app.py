"""
User Registry API Server
Core functionality: create, list, fetch and delete user records
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from user_registry import __version__
from user_registry.api.routes import frontend, health, stats, users
from user_registry.config.settings import ALLOWED_ORIGINS
from user_registry.database.connection import Database
from user_registry.services.users_service import UsersService
from user_registry.utils.error_handling import setup_error_handling

logger = logging.getLogger(__name__)


def create_app(
    database: Optional[Database] = None,
    users_service: Optional[UsersService] = None,
) -> FastAPI:
    """
    Build the application around explicitly constructed storage components

    Args:
        database: Pool owner; built from environment settings when omitted
        users_service: Data access service; built on top of ``database`` when omitted
    """
    database = database or Database.from_settings()
    users_service = users_service or UsersService(database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        await database.start()
        yield
        logger.info("Shutting down, closing database pool")
        await database.close()

    app = FastAPI(
        title="User Registry",
        description="Backend API for creating, listing and deleting users",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.users_service = users_service
    app.state.started_at = time.monotonic()

    # Error handling goes in first so CORS headers also wrap its responses
    setup_error_handling(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(stats.router, prefix="/api", tags=["Stats"])
    app.include_router(frontend.router, tags=["Frontend"])
    app.mount("/static", StaticFiles(directory=frontend.STATIC_DIR), name="static")

    return app
