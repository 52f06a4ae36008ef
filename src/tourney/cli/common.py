"""Shared argparse flags and startup wiring for the tourney CLIs."""

from __future__ import annotations

import argparse
import os
from typing import Optional

from sqlalchemy.engine import Engine

from tourney import __version__
from tourney.core.config import load_env_file
from tourney.core.logging import setup_logging
from tourney.core.sentry import init_sentry
from tourney.sql import create_engine as tourney_create_engine
from tourney.sql import with_sslmode

SSLMODES = [
    "disable",
    "allow",
    "prefer",
    "require",
    "verify-ca",
    "verify-full",
]


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add ``--db-url``, ``--sslmode``, ``--log-level`` and ``--dotenv``."""
    parser.add_argument(
        "--db-url",
        type=str,
        default=None,
        help="Database URL (overrides TOURNEY_DATABASE_URL/DATABASE_URL)",
    )
    parser.add_argument(
        "--sslmode",
        type=str,
        choices=SSLMODES,
        default=None,
        help="Set libpq sslmode in the connection URL (e.g., disable for local dev)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: TOURNEY_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--dotenv",
        type=str,
        default=".env",
        help="Path to a .env file whose values seed unset env vars",
    )


def init_cli(args: argparse.Namespace, context: str) -> None:
    """Load .env, configure logging and start Sentry for a CLI run."""
    load_env_file(args.dotenv)
    level = args.log_level or os.getenv("TOURNEY_LOG_LEVEL", "INFO")
    fmt = os.getenv("TOURNEY_LOG_FORMAT", "detailed")
    setup_logging(level=level, format_style=fmt)
    init_sentry(context=context, release=__version__)


def build_engine(args: argparse.Namespace) -> Engine:
    """Create the engine from ``--db-url``/``--sslmode`` or the environment."""
    db_url: Optional[str] = (
        args.db_url
        or os.getenv("TOURNEY_DATABASE_URL")
        or os.getenv("DATABASE_URL")
    )
    if db_url and args.sslmode:
        db_url = with_sslmode(db_url, args.sslmode)
    # Component env vars pick up sslmode when no URL is given
    if not db_url and args.sslmode:
        os.environ["TOURNEY_DB_SSLMODE"] = args.sslmode
    return tourney_create_engine(db_url)
