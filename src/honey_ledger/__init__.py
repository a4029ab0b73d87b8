"""Lot consolidation and FIFO inventory allocation for raw-honey intake."""

from honey_ledger.classifier import classify, moisture_band
from honey_ledger.consolidation import BatchCommitResult, DrumConsolidator, DrumDraft
from honey_ledger.engine import HoneyLedger
from honey_ledger.enums import (
    BatchMode,
    Classification,
    DraftState,
    DrumState,
    IntakeState,
    LotState,
    MoistureBand,
    ShipmentState,
)
from honey_ledger.exceptions import (
    AlreadyConsumed,
    CapacityExceeded,
    ConcurrentModification,
    IncompatibleLot,
    InsufficientStock,
    InvalidInput,
    InvalidQuantity,
    InvalidTransition,
    LedgerError,
    LotAlreadyConsumed,
    LotUnavailable,
    NotFound,
)
from honey_ledger.models import AllocationItem, Drum, Intake, Lot, Shipment, ShipmentLine

__all__ = [
    "AllocationItem",
    "AlreadyConsumed",
    "BatchCommitResult",
    "BatchMode",
    "CapacityExceeded",
    "Classification",
    "ConcurrentModification",
    "DraftState",
    "Drum",
    "DrumConsolidator",
    "DrumDraft",
    "DrumState",
    "HoneyLedger",
    "IncompatibleLot",
    "InsufficientStock",
    "Intake",
    "IntakeState",
    "InvalidInput",
    "InvalidQuantity",
    "InvalidTransition",
    "LedgerError",
    "Lot",
    "LotAlreadyConsumed",
    "LotState",
    "LotUnavailable",
    "MoistureBand",
    "NotFound",
    "Shipment",
    "ShipmentLine",
    "ShipmentState",
    "classify",
    "moisture_band",
]
