"""Request bodies accepted by the API and their JSON decoding."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from typing import Any, TypeVar

from leal.errors import BadRequestError

T = TypeVar("T")

_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


def _json(name: str, default: Any = MISSING, default_factory: Any = MISSING) -> Any:
    return field(default=default, default_factory=default_factory, metadata={"json": name})


@dataclass(frozen=True)
class CreateUser:
    name: str = _json("nombre", "")
    document_number: int = _json("numero_documento", 0)
    email: str = _json("correo", "")


@dataclass(frozen=True)
class CreateCampaign:
    tax_id: int = _json("nit_empresa", 0)
    branch_id: int = _json("id_sucursal", 0)
    start_date: str = _json("fecha_inicio", "")
    end_date: str = _json("fecha_fin", "")
    points_multiplier: float = _json("multiplicador_puntos", 0.0)
    cashback_multiplier: float = _json("multiplicador_cashback", 0.0)
    min_purchase_amount: float = _json("compra_minima", 0.0)


@dataclass(frozen=True)
class ConversionFactor:
    min_amount: float = _json("valor_minimo", 0.0)
    points_per_currency: float = _json("puntos_por_unidad", 0.0)
    cashback_per_currency: float = _json("cashback_por_unidad", 0.0)


@dataclass(frozen=True)
class CreateBusiness:
    razon_social: str = _json("razon_social", "")
    nit: int = _json("nit", 0)
    telefono: int = _json("telefono", 0)
    correo: str = _json("correo", "")
    conversion_factor: ConversionFactor = _json("valor_conversion", default_factory=ConversionFactor)


@dataclass(frozen=True)
class CreateBranch:
    nit_empresa: int = _json("nit_empresa", 0)
    nombre_sucursal: str = _json("nombre_sucursal", "")
    conversion_factor: ConversionFactor = _json("valor_conversion", default_factory=ConversionFactor)


@dataclass(frozen=True)
class ProcessTransaction:
    user: CreateUser = _json("usuario", default_factory=CreateUser)
    branch_id: int = _json("id_sucursal", 0)
    valor: float = _json("valor", 0.0)


@dataclass(frozen=True)
class CreateReward:
    name: str = _json("nombre", "")
    description: str = _json("descripcion", "")
    points_required: int = _json("puntos_requeridos", 0)
    business_tax_id: int = _json("nit_empresa", 0)


@dataclass(frozen=True)
class RedeemPoints:
    user: CreateUser = _json("usuario", default_factory=CreateUser)
    business_tax_id: int = _json("nit_empresa", 0)
    reward_id: int = _json("id_premio", 0)


def parse_request(kind: type[T], payload: Any) -> T:
    """Decode a JSON body (text, bytes or already decoded) into a request dataclass.

    Missing or null fields keep their zero value, unknown fields are ignored,
    keys match case-insensitively, and values of the wrong type raise BadRequestError.
    """
    if not is_dataclass(kind):
        raise TypeError(f"{kind!r} is not a request type")
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise BadRequestError(f"invalid JSON: {exc}") from exc
    return _build(kind, payload, kind.__name__)


def _lookup(payload: Mapping[str, Any], key: str) -> Any:
    if key in payload:
        return payload[key]
    lowered = key.lower()
    for name, value in payload.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return None


def _build(kind: type[T], payload: Any, path: str) -> T:
    if not isinstance(payload, Mapping):
        raise BadRequestError(f"{path}: expected a JSON object")
    values = {}
    for item in fields(kind):
        key = item.metadata["json"]
        raw = _lookup(payload, key)
        if raw is None:
            continue
        values[item.name] = _coerce(item.type, raw, f"{path}.{key}")
    return kind(**values)


def _coerce(target: Any, value: Any, path: str) -> Any:
    if isinstance(target, str):
        target = {"int": int, "float": float, "str": str}.get(target, target)
    if target is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise BadRequestError(f"{path}: expected an integer")
        if not _INT_MIN <= value <= _INT_MAX:
            raise BadRequestError(f"{path}: integer out of range")
        return value
    if target is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise BadRequestError(f"{path}: expected a number")
        return float(value)
    if target is str:
        if not isinstance(value, str):
            raise BadRequestError(f"{path}: expected a string")
        return value
    if is_dataclass(target):
        return _build(target, value, path)
    raise TypeError(f"unsupported field type {target!r}")