from honey_ledger.schemas.drums import CancelDrumRequest, CreateDrumRequest
from honey_ledger.schemas.intake import CancelIntakeRequest, CreateIntakeRequest, IntakeLotRequest
from honey_ledger.schemas.shipments import (
    CancelShipmentRequest,
    CreateShipmentRequest,
    InventoryRow,
    ShipmentLineRequest,
    StockCheckResult,
)

__all__ = [
    "CancelDrumRequest",
    "CancelIntakeRequest",
    "CancelShipmentRequest",
    "CreateDrumRequest",
    "CreateIntakeRequest",
    "CreateShipmentRequest",
    "IntakeLotRequest",
    "InventoryRow",
    "ShipmentLineRequest",
    "StockCheckResult",
]
