"""
Console client for the User Registry API

Usage:
    user-registry status
    user-registry list
    user-registry add NOMBRE EMAIL TELEFONO
    user-registry delete ID [--yes]
    user-registry watch
"""

import argparse
import asyncio
import logging
import sys

from user_registry.client.api_client import UsersApiClient
from user_registry.client.dashboard import Dashboard
from user_registry.config.settings import API_BASE_URL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="user-registry", description="User Registry console client")
    parser.add_argument("--api-url", default=API_BASE_URL, help="Base URL of the /api endpoints")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("status", help="Show backend and database status")
    subparsers.add_parser("list", help="List users")

    add = subparsers.add_parser("add", help="Create a user")
    add.add_argument("nombre")
    add.add_argument("email")
    add.add_argument("telefono")

    delete = subparsers.add_parser("delete", help="Delete a user")
    delete.add_argument("id", type=int)
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    subparsers.add_parser("watch", help="Keep the status and user list on screen")
    return parser


def confirm_delete() -> bool:
    answer = input("¿Está seguro de que desea eliminar este usuario? [s/N] ")
    return answer.strip().lower() in ("s", "si", "sí", "y", "yes")


def _print(dashboard: Dashboard) -> None:
    print(dashboard.render())


def _clear_and_print(dashboard: Dashboard) -> None:
    print("\033[2J\033[H" + dashboard.render(), flush=True)


async def run_command(args: argparse.Namespace, api: UsersApiClient) -> int:
    dashboard = Dashboard(api)

    if args.command == "status":
        await dashboard.check_system_status()
        print(f"Backend: {dashboard.backend_status.value}")
        print(f"Base de datos: {dashboard.database_status.value}")
        return 0

    if args.command == "list":
        await dashboard.load_users()
        _print(dashboard)
        return 1 if dashboard.load_error else 0

    if args.command == "add":
        dashboard.form.nombre = args.nombre
        dashboard.form.email = args.email
        dashboard.form.telefono = args.telefono
        ok = await dashboard.add_user()
        _print(dashboard)
        return 0 if ok else 1

    if args.command == "delete":
        confirm = (lambda: True) if args.yes else confirm_delete
        ok = await dashboard.delete_user(args.id, confirm)
        if dashboard.message is not None:
            _print(dashboard)
        return 0 if ok else 1

    await dashboard.run(_clear_and_print)
    return 0


async def _main(args: argparse.Namespace) -> int:
    async with UsersApiClient(args.api_url) as api:
        return await run_command(args, api)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.WARNING)
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(_main(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
