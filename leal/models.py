"""Views returned to API clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Branch:
    id: int
    nombre: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "nombre": self.nombre}


@dataclass(frozen=True)
class Campaign:
    id: int
    branch_id: int
    start_date: str
    end_date: str
    points_multiplier: float
    cashback_multiplier: float
    min_purchase_amount: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sucursal_id": self.branch_id,
            "fecha_inicio": self.start_date,
            "fecha_fin": self.end_date,
            "multiplicador_puntos": self.points_multiplier,
            "multiplicador_cashback": self.cashback_multiplier,
            "valor_minimo": self.min_purchase_amount,
        }