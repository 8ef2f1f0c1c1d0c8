"""
User-related Pydantic models
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class UserCreateRequest(BaseModel):
    # Optional so that missing fields reach the route's own 400 check
    nombre: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    nombre: str
    email: str
    telefono: str
    fecha_creacion: datetime


class UserCreatedResponse(BaseModel):
    message: str
    user: UserResponse


class DeletedUserSummary(BaseModel):
    id: int
    nombre: str


class UserDeletedResponse(BaseModel):
    message: str
    deletedUser: DeletedUserSummary


class StatsResponse(BaseModel):
    totalUsers: int
    recentUsers: int
    serverUptime: float
    timestamp: datetime
