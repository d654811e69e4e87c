"""Command-line interface for the Affiliate Hub API."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

from affiliate_hub.config import Settings
from affiliate_hub.database import Database
from affiliate_hub.errors import PersistenceError

logger = logging.getLogger("affiliate_hub.main")


def _parse_args(argv: Sequence[str] | None, settings: Settings | None = None) -> argparse.Namespace:
    default_port = settings.port if settings is not None else Settings.port

    parser = argparse.ArgumentParser(description="Affiliate Hub API utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the database indexes")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=default_port,
        help=f"Port for the HTTP API (default: {default_port})",
    )
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> None:
    database = Database.connect(settings.mongo_uri, settings.mongo_db_name)
    try:
        database.initialize()
    finally:
        database.close()
    logger.info("Database %s initialised", settings.mongo_db_name)


def _serve(*, settings: Settings, host: str, port: int, reload: bool) -> None:
    import uvicorn

    settings.require_jwt_secret()
    logger.info("Starting Affiliate Hub API on http://%s:%s", host, port)

    if reload:
        uvicorn.run(
            "affiliate_hub:create_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            log_level=settings.log_level.lower(),
        )
        return

    from affiliate_hub import create_app

    uvicorn.run(
        create_app(settings=settings),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    args = _parse_args(argv, settings)

    if args.command == "serve":
        _serve(settings=settings, host=args.host, port=args.port, reload=args.reload)
    elif args.command == "init-db":
        try:
            _initialise_database(settings)
        except PersistenceError as exc:
            raise SystemExit(f"Database initialisation failed: {exc.__cause__ or exc}") from exc
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
