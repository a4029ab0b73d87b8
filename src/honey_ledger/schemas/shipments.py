from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from honey_ledger.enums import Classification


class ShipmentLineRequest(BaseModel):
    honey_type_id: int
    classification: Classification
    requested_kg: Decimal

    model_config = ConfigDict(extra="forbid")


class CreateShipmentRequest(BaseModel):
    driver_id: str | None = None
    dispatch_date: date_type | None = None
    notes: str | None = None
    lines: list[ShipmentLineRequest] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class CancelShipmentRequest(BaseModel):
    reason: str | None = None

    model_config = ConfigDict(extra="forbid")


class InventoryRow(BaseModel):
    """
    Row contract for the availability summary.
    """

    honey_type_id: int
    classification: Classification
    available_kg: Decimal
    lot_count: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid")


class StockCheckResult(BaseModel):
    honey_type_id: int
    classification: Classification
    requested_kg: Decimal
    available_kg: Decimal
    sufficient: bool

    model_config = ConfigDict(extra="forbid")
