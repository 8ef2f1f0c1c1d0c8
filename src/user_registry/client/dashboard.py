"""
Client-side state for the user list: system status, users, form and feedback
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

from user_registry.client.api_client import ApiClientError, UsersApiClient
from user_registry.config.settings import (
    MESSAGE_LIFETIME,
    STATUS_REFRESH_INTERVAL,
    USERS_REFRESH_INTERVAL,
)

logger = logging.getLogger(__name__)


class Indicator(str, Enum):
    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"
    ERROR = "error"
    NO_CONNECTION = "no connection"


class MessageKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Message:
    text: str
    kind: MessageKind
    expires_at: float


@dataclass
class UserForm:
    nombre: str = ""
    email: str = ""
    telefono: str = ""


class Dashboard:
    """
    Mirrors what the browser page shows.

    Two independent indicators track whether the backend and the database are
    reachable. The user list is reloaded on a timer and after every successful
    mutation. At most one feedback message is visible, and it expires after
    ``message_lifetime`` seconds.
    """

    def __init__(
        self,
        api: UsersApiClient,
        message_lifetime: float = MESSAGE_LIFETIME,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.message_lifetime = message_lifetime
        self.clock = clock
        self.backend_status = Indicator.UNKNOWN
        self.database_status = Indicator.UNKNOWN
        self.users: List[Dict[str, Any]] = []
        self.load_error: Optional[str] = None
        self.form = UserForm()
        self._message: Optional[Message] = None

    @property
    def message(self) -> Optional[Message]:
        if self._message is not None and self.clock() >= self._message.expires_at:
            self._message = None
        return self._message

    def show_message(self, text: str, kind: MessageKind) -> None:
        """Replace any visible message with a new one"""
        self._message = Message(text, kind, self.clock() + self.message_lifetime)

    async def check_system_status(self) -> None:
        try:
            if await self.api.health():
                self.backend_status = Indicator.ONLINE
                self.database_status = (
                    Indicator.ONLINE if await self.api.db_status() else Indicator.ERROR
                )
            else:
                self.backend_status = Indicator.OFFLINE
                self.database_status = Indicator.NO_CONNECTION
        except httpx.HTTPError as e:
            logger.warning(f"Error checking system status: {e}")
            self.backend_status = Indicator.ERROR
            self.database_status = Indicator.NO_CONNECTION

    async def load_users(self) -> None:
        try:
            self.users = await self.api.list_users()
            self.load_error = None
        except (ApiClientError, httpx.HTTPError) as e:
            logger.warning(f"Error loading users: {e}")
            self.users = []
            self.load_error = str(e)

    async def add_user(self) -> bool:
        """Submit the form; empty fields are rejected without calling the API"""
        nombre = self.form.nombre.strip()
        email = self.form.email.strip()
        telefono = self.form.telefono.strip()

        if not nombre or not email or not telefono:
            self.show_message("Por favor, complete todos los campos", MessageKind.ERROR)
            return False

        try:
            await self.api.create_user(nombre, email, telefono)
        except (ApiClientError, httpx.HTTPError) as e:
            logger.warning(f"Error adding user: {e}")
            self.show_message(f"Error al agregar usuario: {e}", MessageKind.ERROR)
            return False

        self.show_message("Usuario agregado exitosamente", MessageKind.SUCCESS)
        self.form = UserForm()
        await self.load_users()
        return True

    async def delete_user(self, user_id: int, confirm: Callable[[], bool]) -> bool:
        """Delete a user once ``confirm`` approves it"""
        if not confirm():
            return False

        try:
            await self.api.delete_user(user_id)
        except (ApiClientError, httpx.HTTPError) as e:
            logger.warning(f"Error deleting user: {e}")
            self.show_message(f"Error al eliminar usuario: {e}", MessageKind.ERROR)
            return False

        self.show_message("Usuario eliminado exitosamente", MessageKind.SUCCESS)
        await self.load_users()
        return True

    def render(self) -> str:
        lines = [
            f"Backend: {self.backend_status.value}    Base de datos: {self.database_status.value}",
            "",
        ]

        message = self.message
        if message is not None:
            lines.extend([f"[{message.kind.value}] {message.text}", ""])

        if self.load_error:
            lines.append(f"Error al cargar usuarios: {self.load_error}")
        elif not self.users:
            lines.append("No hay usuarios registrados")
        else:
            for user in self.users:
                lines.append(f"{user['id']:>6}  {user['nombre']:<30} {user['email']:<35} {user['telefono']}")

        return "\n".join(lines)

    async def run(
        self,
        on_change: Callable[["Dashboard"], None],
        users_interval: float = USERS_REFRESH_INTERVAL,
        status_interval: float = STATUS_REFRESH_INTERVAL,
    ) -> None:
        """Poll status and users on independent timers until cancelled"""

        async def every(interval: float, refresh) -> None:
            while True:
                await refresh()
                on_change(self)
                await asyncio.sleep(interval)

        await asyncio.gather(
            every(status_interval, self.check_system_status),
            every(users_interval, self.load_users),
        )
