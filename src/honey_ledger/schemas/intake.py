from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class IntakeLotRequest(BaseModel):
    """
    One weighed line of an intake.

    Quantity and moisture are range-checked by the registry, not here, so the
    caller receives InvalidQuantity / InvalidInput rather than a schema error.
    """

    honey_type_id: int
    moisture_percent: Decimal
    quantity_kg: Decimal
    unit_price: Decimal | None = None

    model_config = ConfigDict(extra="forbid")


class CreateIntakeRequest(BaseModel):
    beekeeper_id: str = Field(min_length=1)
    received_on: date_type
    notes: str | None = None
    lots: list[IntakeLotRequest] = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")


class CancelIntakeRequest(BaseModel):
    reason: str

    model_config = ConfigDict(extra="forbid")
