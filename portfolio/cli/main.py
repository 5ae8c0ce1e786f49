#!/usr/bin/env python3
"""``portfolio`` command line: project setup, server and admin maintenance."""

import argparse
import asyncio
import getpass
import secrets
import sys
from collections.abc import Awaitable
from pathlib import Path

from portfolio.settings import settings
from portfolio.utils.db_manager import db_manager
from portfolio.utils.logger import logger
from portfolio.utils.passwords import hash_password

MIN_PASSWORD_LENGTH = 6

SETTINGS_TEMPLATE = """\
# Portfolio settings. Environment variables (PORTFOLIO_*) take precedence.

host = "127.0.0.1"
port = 8000
debug = false

database_driver = "sqlite"
database_name = "portfolio"
# SQLite file, uploaded CV and logs
storage_path = "./data"

jwt_secret_key = "{secret}"

# Used once to create the first admin; change the password after logging in
admin_username = "admin"
admin_password = "changeme"
"""


def init_project(path: str) -> None:
    """Create ``settings.toml`` with a freshly generated signing secret."""
    project_path = Path(path).resolve()
    (project_path / "data").mkdir(parents=True, exist_ok=True)

    settings_file = project_path / "settings.toml"
    if settings_file.exists():
        logger.warning(f"Settings file already exists, leaving it untouched: {settings_file}")
        return

    settings_file.write_text(SETTINGS_TEMPLATE.format(secret=secrets.token_urlsafe(48)))
    logger.info(f"Created {settings_file}")


def run_server(host: str | None = None, port: int | None = None) -> None:
    import uvicorn

    host = host or settings.host
    port = port or settings.port
    logger.info(f"Starting portfolio server at http://{host}:{port}")

    uvicorn.run(
        "portfolio.api.app:app",
        host=host,
        port=port,
        reload=settings.debug,
        root_path=settings.root_url.rstrip("/"),
        log_level="info" if settings.debug else "warning",
    )


async def _with_database[T](operation: Awaitable[T]) -> T:
    try:
        return await operation
    finally:
        await db_manager.dispose()


async def init_database() -> None:
    """Create tables and the bootstrap admin."""
    from portfolio.utils.admin import ensure_admin_exists

    await db_manager.create_tables()
    await ensure_admin_exists(settings.admin_username, settings.admin_password)
    logger.info("Database initialized")


def prompt_new_password() -> str:
    """Ask for a new password twice; exit on mismatch or a too short value."""
    password = getpass.getpass("Enter new password: ")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        logger.error("Passwords do not match")
        sys.exit(1)
    if len(password) < MIN_PASSWORD_LENGTH:
        logger.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        sys.exit(1)
    return password


def _cmd_init(args: argparse.Namespace) -> None:
    init_project(args.path)


def _cmd_run(args: argparse.Namespace) -> None:
    run_server(args.host, args.port)


def _cmd_init_db(_: argparse.Namespace) -> None:
    asyncio.run(_with_database(init_database()))


def _cmd_reset_password(args: argparse.Namespace) -> None:
    from portfolio.utils.admin import reset_admin_password

    password = prompt_new_password()
    if not asyncio.run(_with_database(reset_admin_password(args.username, password))):
        sys.exit(1)


def _cmd_hash_password(_: argparse.Namespace) -> None:
    print(hash_password(prompt_new_password()))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portfolio", description="Portfolio backend CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init", help="Create settings.toml with a new secret")
    init_parser.add_argument("path", nargs="?", default=".", help="Project directory (default: .)")
    init_parser.set_defaults(handler=_cmd_init)

    run_parser = subparsers.add_parser("run", help="Run the server")
    run_parser.add_argument("--host", type=str, default=None, help="Host to bind to")
    run_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    run_parser.set_defaults(handler=_cmd_run)

    init_db_parser = subparsers.add_parser(
        "init-db", help="Create database tables and the bootstrap admin"
    )
    init_db_parser.set_defaults(handler=_cmd_init_db)

    reset_parser = subparsers.add_parser("reset-password", help="Reset an admin password")
    reset_parser.add_argument("username", type=str, help="Admin username to reset")
    reset_parser.set_defaults(handler=_cmd_reset_password)

    hash_parser = subparsers.add_parser("hash-password", help="Print a bcrypt hash for a password")
    hash_parser.set_defaults(handler=_cmd_hash_password)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return
    handler(args)


if __name__ == "__main__":
    main()
