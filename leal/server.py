"""Wiring of database, services and HTTP application, and the server command."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Mapping
from typing import Optional, Sequence

from dotenv import load_dotenv
from flask import Flask

from leal.api import create_app
from leal.repository import SqlRepository
from leal.schema import database_url, init_database
from leal.services import LoyaltyService
from leal.transactions import TransactionService

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6060
WORKER_COUNT = 50


def build_app(environ: Optional[Mapping[str, str]] = None) -> Flask:
    """Open the database from the environment and build the application.

    The engine, repository and transaction service are kept in
    ``app.extensions["leal"]``.
    """
    env = os.environ if environ is None else environ
    engine = init_database(database_url(env))
    repository = SqlRepository(engine)
    transaction_service = TransactionService(repository, WORKER_COUNT)
    app = create_app(LoyaltyService(repository), transaction_service)
    app.extensions["leal"] = {
        "engine": engine,
        "repository": repository,
        "transaction_service": transaction_service,
    }
    return app


def _load_env_file() -> None:
    if os.environ.get("APP_ENV") == "production":
        return
    if not load_dotenv(".env"):
        logger.warning("No se pudo cargar el archivo .env, usando variables del sistema")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the loyalty API server."""
    parser = argparse.ArgumentParser(prog="leal", description="Loyalty programme HTTP API.")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument("--log-file", default="error.log", help="file the log is appended to")
    args = parser.parse_args(argv)

    root = logging.getLogger()
    previous_level = root.level
    handler = logging.FileHandler(args.log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    try:
        _load_env_file()
        try:
            app = build_app()
        except Exception:
            logger.exception("cannot open the database")
            return 1
        try:
            app.run(host=args.host, port=args.port)
        finally:
            app.extensions["leal"]["transaction_service"].shutdown()
        return 0
    finally:
        root.removeHandler(handler)
        handler.close()
        root.setLevel(previous_level)


if __name__ == "__main__":
    raise SystemExit(main())