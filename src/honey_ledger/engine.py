"""
HoneyLedger: the single owner of intakes, lots, drums and shipments.

Every operation goes through one instance; no module keeps shared mutable
state of its own. An embedding service creates one ledger per authoritative
store and hands the instance to whatever handles a request.

Example:
    ```python
    from datetime import date
    from decimal import Decimal

    from honey_ledger import Classification, HoneyLedger
    from honey_ledger.schemas import CreateDrumRequest, CreateIntakeRequest, IntakeLotRequest

    ledger = HoneyLedger(price_list={(1, Classification.EXPORT): Decimal("62.50")})
    intake = ledger.register_intake(
        CreateIntakeRequest(
            beekeeper_id="apc-17",
            received_on=date(2025, 3, 4),
            lots=[IntakeLotRequest(honey_type_id=1, moisture_percent=18, quantity_kg=120)],
        )
    )
    drum = ledger.create_drum(CreateDrumRequest(lot_ids=intake.lot_ids))
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal

from honey_ledger.allocation import ShipmentAllocator
from honey_ledger.classifier import classify, moisture_band
from honey_ledger.config_schema import Settings
from honey_ledger.consolidation import BatchCommitResult, DrumConsolidator, DrumDraft
from honey_ledger.enums import BatchMode, Classification, LotState, MoistureBand
from honey_ledger.folios import FolioSequence
from honey_ledger.ledger import InventoryLedger
from honey_ledger.logging import get_logger
from honey_ledger.models import AllocationItem, Drum, Intake, Lot, Shipment, ShipmentLine
from honey_ledger.pricing import PriceList, as_price_list
from honey_ledger.registry import LotRegistry
from honey_ledger.schemas.drums import CancelDrumRequest, CreateDrumRequest
from honey_ledger.schemas.intake import CancelIntakeRequest, CreateIntakeRequest
from honey_ledger.schemas.shipments import (
    CancelShipmentRequest,
    CreateShipmentRequest,
    InventoryRow,
    ShipmentLineRequest,
    StockCheckResult,
)

logger = get_logger(__name__)


class HoneyLedger:
    def __init__(
        self,
        settings: Settings | None = None,
        price_list: PriceList | Callable | Mapping | None = None,
    ) -> None:
        self.settings = settings or Settings()
        folios = self.settings.folios
        self.registry = LotRegistry(
            price_list=as_price_list(price_list),
            intake_config=self.settings.intake,
            intake_folios=FolioSequence(folios.intake_prefix, folios.width),
        )
        self.drums = DrumConsolidator(
            self.registry,
            config=self.settings.drums,
            folios=FolioSequence(folios.drum_prefix, folios.width),
        )
        self.inventory = InventoryLedger(self.registry)
        self.shipments = ShipmentAllocator(
            self.registry,
            folios=FolioSequence(folios.shipment_prefix, folios.width),
        )
        logger.debug("honey_ledger_initialized", capacity_kg=str(self.settings.drums.capacity_kg))

    # ----------------- classification -----------------

    @staticmethod
    def classify(moisture_percent: object) -> Classification:
        return classify(moisture_percent)

    @staticmethod
    def moisture_band(moisture_percent: object) -> MoistureBand:
        return moisture_band(moisture_percent)

    # ----------------- intake / lots -----------------

    def register_intake(self, request: CreateIntakeRequest) -> Intake:
        return self.registry.register_intake(request)

    def register_lot(
        self,
        *,
        intake_id: str,
        honey_type_id: int,
        moisture_percent: object,
        quantity_kg: object,
        unit_price: Decimal | None = None,
    ) -> str:
        return self.registry.register(
            intake_id=intake_id,
            honey_type_id=honey_type_id,
            moisture_percent=moisture_percent,
            quantity_kg=quantity_kg,
            unit_price=unit_price,
        )

    def cancel_intake(
        self, intake_id: str, reason: str | CancelIntakeRequest | None = None
    ) -> list[Lot]:
        return self.registry.cancel(intake_id, _reason(reason))

    def cancel_lot(self, lot_id: str, reason: str | None = None) -> Lot:
        return self.registry.cancel_lot(lot_id, reason)

    def lot(self, lot_id: str) -> Lot:
        return self.registry.get(lot_id)

    def query_available(
        self,
        honey_type_id: int | None = None,
        classification: Classification | None = None,
    ) -> list[Lot]:
        return self.registry.query_available(honey_type_id, classification)

    def transition(self, lot_id: str, from_state: LotState, to_state: LotState) -> Lot:
        return self.registry.transition(lot_id, from_state, to_state)

    # ----------------- drums -----------------

    def new_draft(self, notes: str | None = None) -> DrumDraft:
        return self.drums.new_draft(notes)

    def add_lot(self, draft: DrumDraft, lot: Lot | str) -> DrumDraft:
        return self.drums.add_lot(draft, lot)

    def remove_lot(self, draft: DrumDraft, lot_id: str) -> DrumDraft:
        return self.drums.remove_lot(draft, lot_id)

    def discard_draft(self, draft: DrumDraft) -> None:
        self.drums.discard(draft)

    def commit_drum(self, draft: DrumDraft) -> Drum:
        return self.drums.commit(draft)

    def commit_drums(
        self,
        drafts: Iterable[DrumDraft],
        mode: BatchMode | str | None = None,
    ) -> BatchCommitResult:
        return self.drums.commit_batch(drafts, mode)

    def create_drum(self, request: CreateDrumRequest) -> Drum:
        return self.drums.create(request.lot_ids, notes=request.notes)

    def cancel_drum(self, drum_id: str, reason: str | CancelDrumRequest | None = None) -> Drum:
        return self.drums.cancel(drum_id, _reason(reason))

    # ----------------- inventory -----------------

    def summary(self) -> dict[tuple[int, Classification], Decimal]:
        return self.inventory.summary()

    def inventory_rows(self) -> list[InventoryRow]:
        return self.inventory.rows()

    def check_sufficient(
        self,
        honey_type_id: int,
        classification: Classification,
        requested_kg: object,
    ) -> StockCheckResult:
        return self.inventory.check_sufficient(honey_type_id, classification, requested_kg)

    # ----------------- shipments -----------------

    def create_shipment(self, request: CreateShipmentRequest | None = None) -> Shipment:
        return self.shipments.create(request)

    def add_line(self, shipment_id: str, line: ShipmentLineRequest) -> ShipmentLine:
        return self.shipments.add_line(shipment_id, line)

    def remove_line(self, shipment_id: str, line_id: str) -> Shipment:
        return self.shipments.remove_line(shipment_id, line_id)

    def plan_allocation(self, line: ShipmentLine | ShipmentLineRequest) -> list[AllocationItem]:
        return self.shipments.plan_allocation(line)

    def preview_shipment(self, shipment_id: str) -> list[AllocationItem]:
        return self.shipments.preview(shipment_id)

    def finalize_shipment(self, shipment_id: str) -> Shipment:
        return self.shipments.finalize(shipment_id)

    def cancel_shipment(
        self, shipment_id: str, reason: str | CancelShipmentRequest | None = None
    ) -> Shipment:
        return self.shipments.cancel(shipment_id, _reason(reason))


def _reason(
    value: str | CancelIntakeRequest | CancelDrumRequest | CancelShipmentRequest | None,
) -> str | None:
    """Cancel operations take either a bare reason or its request schema."""
    if value is None or isinstance(value, str):
        return value
    return value.reason
