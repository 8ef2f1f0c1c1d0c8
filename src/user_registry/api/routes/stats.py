"""
Statistics API route
"""

from datetime import timedelta

from fastapi import APIRouter, Depends

from user_registry.api.dependencies import (
    get_uptime,
    get_users_service,
    raise_for_result,
    require_database,
)
from user_registry.config.settings import RECENT_USERS_WINDOW_DAYS
from user_registry.models.user import StatsResponse
from user_registry.services.users_service import UsersService
from user_registry.utils.error_handling import utc_timestamp

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    _: bool = Depends(require_database),
    users_service: UsersService = Depends(get_users_service),
    uptime: float = Depends(get_uptime),
):
    """Total users, users created in the last week and server uptime"""
    total = await users_service.count_users()
    raise_for_result(total, "No se pudieron obtener las estadísticas")

    recent = await users_service.count_recent_users(timedelta(days=RECENT_USERS_WINDOW_DAYS))
    raise_for_result(recent, "No se pudieron obtener las estadísticas")

    return {
        "totalUsers": total.count,
        "recentUsers": recent.count,
        "serverUptime": uptime,
        "timestamp": utc_timestamp(),
    }
