from __future__ import annotations

import os
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _build_url_from_env() -> str | None:
    """Construct a Postgres URL from component env vars.

    Recognized variables (TOURNEY_DB_* preferred, falls back to POSTGRES_*):
      - HOST, PORT (default 5432)
      - NAME (database name; default 'tourney')
      - USER, PASSWORD
      - SSLMODE (optional; ``PGSSL=true`` implies ``require``)
    """
    host = _env("TOURNEY_DB_HOST", "POSTGRES_HOST", "PGHOST")
    user = _env("TOURNEY_DB_USER", "POSTGRES_USER", "PGUSER")
    if not host or not user:
        return None
    port = _env("TOURNEY_DB_PORT", "POSTGRES_PORT", "PGPORT") or "5432"
    name = _env("TOURNEY_DB_NAME", "POSTGRES_DB", "PGDATABASE") or "tourney"
    password = (
        _env("TOURNEY_DB_PASSWORD", "POSTGRES_PASSWORD", "PGPASSWORD") or ""
    )
    sslmode = _env("TOURNEY_DB_SSLMODE", "POSTGRES_SSLMODE")
    if not sslmode and os.getenv("PGSSL", "").lower() == "true":
        sslmode = "require"

    auth = f"{user}:{password}" if password != "" else f"{user}"
    url = f"postgresql://{auth}@{host}:{port}/{name}"
    if sslmode:
        url = f"{url}?sslmode={sslmode}"
    return url


def with_sslmode(url: str, sslmode: Optional[str]) -> str:
    """Append or override the libpq ``sslmode`` query param of ``url``."""
    if not sslmode:
        return url
    parts = urlparse(url)
    q = dict(parse_qsl(parts.query, keep_blank_values=True))
    q["sslmode"] = sslmode
    return urlunparse(parts._replace(query=urlencode(q)))


def resolve_database_url(url: Optional[str] = None) -> Optional[str]:
    """Resolve the database URL.

    Resolution order:
    - explicit ``url`` arg
    - env ``TOURNEY_DATABASE_URL``
    - env ``DATABASE_URL``
    - component env vars (see ``_build_url_from_env``)
    """
    return (
        url
        or os.getenv("TOURNEY_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or _build_url_from_env()
    )


def create_engine(url: Optional[str] = None, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine from an explicit URL or the environment."""
    database_url = resolve_database_url(url)
    if not database_url:
        raise RuntimeError(
            "No database URL provided. Set TOURNEY_DATABASE_URL or DATABASE_URL, "
            "or provide component env vars (TOURNEY_DB_HOST/USER/[PASSWORD]/[NAME]/[PORT]/[SSLMODE])."
        )
    return _sa_create_engine(database_url, echo=echo, future=True)


def create_all(engine: Engine) -> None:
    """Create all tables (idempotent)."""
    from . import models  # noqa: F401 - ensure models are imported

    Base.metadata.create_all(engine)
