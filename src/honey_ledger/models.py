"""
Entities tracked by the ledger.

Quantities are Decimal kilograms so capacity checks at the 350 kg ceiling
are exact. Only ``state`` and the binding ids of a Lot change after it is
registered.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from honey_ledger.enums import (
    Classification,
    DrumState,
    IntakeState,
    LotState,
    MoistureBand,
    ShipmentState,
)


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class Lot(BaseModel):
    """One weighed line item of an intake; the smallest unit of inventory."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    intake_id: str
    arrival_sequence: int = Field(ge=1)
    honey_type_id: int
    moisture_percent: Decimal
    classification: Classification
    moisture_band: MoistureBand
    quantity_kg: Decimal = Field(gt=0)
    unit_price: Decimal | None = None
    state: LotState = LotState.AVAILABLE
    container_id: str | None = None
    shipment_id: str | None = None
    arrived_at: datetime = Field(default_factory=utcnow)
    cancellation_reason: str | None = None

    @property
    def cost_total(self) -> Decimal:
        if self.unit_price is None:
            return Decimal("0")
        return self.quantity_kg * self.unit_price

    @property
    def stock_key(self) -> tuple[int, Classification]:
        return (self.honey_type_id, self.classification)


class Intake(BaseModel):
    """An "entrada": one delivery from a beekeeper, split into lots."""

    id: str = Field(default_factory=new_id)
    folio: str
    beekeeper_id: str
    received_on: date
    state: IntakeState = IntakeState.ACTIVE
    notes: str | None = None
    lot_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None


class Drum(BaseModel):
    """A committed, homogeneous consolidation of lots."""

    id: str = Field(default_factory=new_id)
    folio: str
    lot_ids: list[str]
    honey_type_id: int
    classification: Classification
    moisture_band: MoistureBand
    total_quantity_kg: Decimal
    total_cost: Decimal = Decimal("0")
    average_moisture: Decimal | None = None
    over_warning_threshold: bool = False
    state: DrumState = DrumState.ACTIVE
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None


class ShipmentLine(BaseModel):
    id: str = Field(default_factory=new_id)
    honey_type_id: int
    classification: Classification
    requested_kg: Decimal

    @property
    def stock_key(self) -> tuple[int, Classification]:
        return (self.honey_type_id, self.classification)


@dataclass(frozen=True)
class AllocationItem:
    """One whole lot taken by a shipment line."""

    lot_id: str
    quantity_kg: Decimal
    line_id: str | None = None


class Shipment(BaseModel):
    """A "salida": outbound delivery consuming inventory in FIFO order."""

    id: str = Field(default_factory=new_id)
    folio: str
    driver_id: str | None = None
    dispatch_date: date | None = None
    notes: str | None = None
    state: ShipmentState = ShipmentState.DRAFT
    lines: list[ShipmentLine] = Field(default_factory=list)
    consumed_lot_ids: list[str] = Field(default_factory=list)
    allocations: list[AllocationItem] = Field(default_factory=list)
    total_kg: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    created_at: datetime = Field(default_factory=utcnow)
    finalized_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
