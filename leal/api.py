"""HTTP routes of the loyalty API."""

from __future__ import annotations

import functools
import json
import logging
import re
from typing import Any, Callable

from flask import Blueprint, Flask, jsonify, request

from leal.errors import LogError, parse_error
from leal.ports import Service
from leal.requests import (
    CreateBranch,
    CreateBusiness,
    CreateCampaign,
    CreateReward,
    CreateUser,
    ProcessTransaction,
    RedeemPoints,
    parse_request,
)
from leal.transactions import TransactionService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


class _QueryError(Exception):
    """A query parameter that is missing or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _log_error(err: LogError) -> None:
    record = {
        "level": "error",
        "type": err.type.value,
        "message": err.message,
        "log_message": err.log_message,
    }
    logger.error("%s", json.dumps(record, ensure_ascii=False))


def _tax_id_param() -> int:
    raw = request.args.get("tax_id", "")
    if raw == "":
        raise _QueryError("tax_id es requerido")
    if not _INTEGER.fullmatch(raw):
        raise _QueryError("ID inválido")
    value = int(raw)
    if not _INT_MIN <= value <= _INT_MAX:
        raise _QueryError("ID inválido")
    return value


def _body(kind: type) -> Any:
    return parse_request(kind, request.get_data())


def _handled(view: Callable[..., Any]) -> Callable[..., Any]:
    """Turn any failure of a view into a LogError for the error handler."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return view(*args, **kwargs)
        except (_QueryError, LogError):
            raise
        except Exception as exc:
            raise parse_error(exc) from exc

    return wrapper


def create_app(service: Service, transaction_service: TransactionService) -> Flask:
    """Build the Flask application exposing the loyalty operations."""
    app = Flask(__name__)
    app.json.ensure_ascii = False
    api = Blueprint("api_v1", __name__, url_prefix=API_PREFIX)

    @api.post("/users/", strict_slashes=False)
    @api.get("/users/<user>/balance")
    @_handled
    def create_user(**_path: Any) -> Any:
        service.create_user(_body(CreateUser))
        return jsonify(message="Usuario creado correctamente")

    @api.post("/campaigns/", strict_slashes=False)
    @_handled
    def create_campaign() -> Any:
        service.create_campaign(_body(CreateCampaign))
        return jsonify(message="Campaña ha sido creada correctamente")

    @api.get("/campaigns/", strict_slashes=False)
    @_handled
    def obtain_campaign() -> Any:
        tax_id = _tax_id_param()
        campaigns = service.obtain_campaign(tax_id)
        return jsonify({"campañas": [campaign.to_dict() for campaign in campaigns]})

    @api.post("/branches/", strict_slashes=False)
    @_handled
    def create_branch() -> Any:
        service.create_branch(_body(CreateBranch))
        return jsonify(message="Sucursal creada correctamente")

    @api.get("/branches/", strict_slashes=False)
    @_handled
    def obtain_branches() -> Any:
        tax_id = _tax_id_param()
        branches = service.obtain_branches(tax_id)
        return jsonify(sucursales=[branch.to_dict() for branch in branches])

    @api.post("/redemptions/points")
    @_handled
    def redeem_points() -> Any:
        points = service.redeem_points(_body(RedeemPoints))
        return jsonify(message="Premio redimido correctamente", puntos_redimidos=points)

    @api.post("/transactions")
    @_handled
    def process_transaction() -> Any:
        transaction_service.add_transaction(_body(ProcessTransaction))
        return jsonify(message="Transacción encolada")

    @api.post("/rewards")
    @_handled
    def create_reward() -> Any:
        service.create_reward(_body(CreateReward))
        return jsonify(message="Premio creado correctamente")

    @api.post("/business")
    @_handled
    def create_business() -> Any:
        service.create_business(_body(CreateBusiness))
        return jsonify(message="Empresa creada correctamente")

    app.register_blueprint(api)

    @app.errorhandler(_QueryError)
    def _query_error(err: _QueryError) -> Any:
        return jsonify(error=err.message), 400

    @app.errorhandler(LogError)
    def _log_error_response(err: LogError) -> Any:
        _log_error(err)
        return jsonify(error=err.to_app_error().to_dict()), err.status_code

    @app.errorhandler(500)
    def _internal_error(_err: Any) -> Any:
        return jsonify(error="Internal server error"), 500

    return app