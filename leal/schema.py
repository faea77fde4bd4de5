"""Database connection settings and schema creation."""

from __future__ import annotations

import os
from collections.abc import Mapping

from sqlalchemy import URL, create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from leal.entities import User


def database_url(environ: Mapping[str, str] | None = None) -> str:
    """Build the database URL from DATABASE_URL or the POSTGRES_* variables."""
    env = os.environ if environ is None else environ
    explicit = env.get("DATABASE_URL")
    if explicit:
        return explicit
    port_text = env.get("POSTGRES_PORT") or None
    try:
        port = int(port_text) if port_text else None
    except ValueError:
        raise ValueError(f"invalid POSTGRES_PORT: {port_text!r}") from None
    url = URL.create(
        "postgresql",
        username=env.get("POSTGRES_USER") or None,
        password=env.get("POSTGRES_PASSWORD") or None,
        host=env.get("POSTGRES_HOST") or None,
        port=port,
        database=env.get("POSTGRES_DB") or None,
        query={"sslmode": "disable"},
    )
    return url.render_as_string(hide_password=False)


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_database(url: str) -> Engine:
    """Open the database and create every table that is missing."""
    parsed = make_url(url)
    options = {}
    if parsed.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    engine = create_engine(parsed, **options)
    if parsed.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    User.metadata.create_all(engine)
    return engine