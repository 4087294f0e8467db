#!/usr/bin/env python3
"""
Digital Library -- personal library tracker API.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py check-config

Environment variables (or .env):
  SECRET_KEY            Token signing key, at least 32 characters. Required unless DEBUG=true.
  JWT_ISSUER            Token issuer name. Required unless DEBUG=true.
  JWT_AUDIENCE          Token audience name. Required unless DEBUG=true.
  TOKEN_EXPIRE_MINUTES  Token lifetime in minutes (default 60).
  DATABASE_URL          SQLAlchemy URL (default: SQLite file next to this script).
  DEBUG                 true = development mode with generated signing settings.
"""

import argparse
import sys

from pydantic import ValidationError

from core.config import get_settings


def _check_config() -> int:
    """Load settings the same way the server does and report the outcome.

    Exit code 0 when the configuration would let the server start, 1 otherwise.
    """
    try:
        settings = get_settings()
    except ValidationError as exc:
        print("  [!] Configuration invalid:")
        for error in exc.errors():
            print(f"      {error['msg']}")
        return 1
    print("Configuration OK.")
    print(f"  mode:          {'development' if settings.debug else 'production'}")
    print(f"  issuer:        {settings.jwt_issuer}")
    print(f"  audience:      {settings.jwt_audience}")
    print(f"  token expiry:  {settings.token_expire_minutes} minutes")
    print(f"  database:      {settings.database_url}")
    return 0


def _serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=host, port=port, reload=reload)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="digital-library",
        description="Personal library tracker API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")

    sub.add_parser("check-config", help="Validate signing and database settings without starting the server")

    args = parser.parse_args()

    if args.command == "serve":
        sys.exit(_serve(args.host, args.port, args.reload))
    elif args.command == "check-config":
        sys.exit(_check_config())
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
