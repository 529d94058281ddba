#!/usr/bin/env python3
"""
Account API -- user accounts with password login and signed bearer tokens.

Usage:
  python main.py
  python main.py --host 0.0.0.0 --port 8080
  python main.py --reload

Environment variables (see core/config.py):
  SECRET_KEY      Required. Token signing secret, at least 32 characters.
  BCRYPT_ROUNDS   bcrypt cost factor (default 10).
  DATABASE_URL    SQLAlchemy URL (default: SQLite file under auth/).
  LOG_LEVEL       Logging level name (default INFO).
"""

import argparse
import sys

import uvicorn
from pydantic import ValidationError

from core.config import get_settings


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the Account API server.")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    args = parser.parse_args()

    # Validate configuration before uvicorn imports the app, so a missing
    # SECRET_KEY is a clean startup error rather than an import traceback.
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"  [!] Invalid configuration:\n{e}", file=sys.stderr)
        return 1

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
