"""
Shipment Allocator.

Outbound shipments ("salidas") consume whole lots, oldest arrival first.
A plan is only ever a preview: ``finalize`` plans every line again against
the registry as it is at that moment, and either consumes every planned lot
or nothing at all.

Because lots are never split, a line can be served with more kilograms than
it asked for when the last lot taken overshoots.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from honey_ledger.enums import LotState, ShipmentState
from honey_ledger.exceptions import (
    InsufficientStock,
    InvalidInput,
    InvalidQuantity,
    InvalidTransition,
    LedgerError,
    NotFound,
)
from honey_ledger.folios import FolioSequence
from honey_ledger.logging import get_logger
from honey_ledger.models import AllocationItem, Lot, Shipment, ShipmentLine, utcnow
from honey_ledger.registry import LotRegistry, to_classification, to_quantity
from honey_ledger.schemas.shipments import CreateShipmentRequest, ShipmentLineRequest

logger = get_logger(__name__)


class ShipmentAllocator:
    def __init__(self, registry: LotRegistry, *, folios: FolioSequence | None = None):
        self.registry = registry
        self.folios = folios or FolioSequence("SAL")
        self._shipments: dict[str, Shipment] = {}

    # ----------------- lookups -----------------

    def get(self, shipment_id: str) -> Shipment:
        try:
            return self._shipments[shipment_id]
        except KeyError:
            raise NotFound("Shipment", shipment_id) from None

    def shipments(self, state: ShipmentState | None = None) -> list[Shipment]:
        return [s for s in self._shipments.values() if state is None or s.state == state]

    def shipment_lots(self, shipment_id: str) -> list[Lot]:
        self.get(shipment_id)
        return self.registry.lots_in_shipment(shipment_id)

    # ----------------- draft editing -----------------

    def create(self, request: CreateShipmentRequest | None = None) -> Shipment:
        request = request or CreateShipmentRequest()
        shipment = Shipment(
            folio=self.folios.next(request.dispatch_date),
            driver_id=request.driver_id,
            dispatch_date=request.dispatch_date,
            notes=request.notes,
        )
        for line in request.lines:
            shipment.lines.append(self._build_line(line))
        self._shipments[shipment.id] = shipment
        logger.info("shipment_created", shipment_id=shipment.id, folio=shipment.folio)
        return shipment

    def add_line(self, shipment_id: str, line: ShipmentLineRequest) -> ShipmentLine:
        shipment = self._require_draft(shipment_id, ShipmentState.DRAFT)
        built = self._build_line(line)
        shipment.lines.append(built)
        return built

    def remove_line(self, shipment_id: str, line_id: str) -> Shipment:
        shipment = self._require_draft(shipment_id, ShipmentState.DRAFT)
        remaining = [line for line in shipment.lines if line.id != line_id]
        if len(remaining) == len(shipment.lines):
            raise NotFound("Shipment line", line_id)
        shipment.lines = remaining
        return shipment

    def _build_line(self, line: ShipmentLineRequest) -> ShipmentLine:
        requested = to_quantity(line.requested_kg)
        if requested <= 0:
            raise InvalidQuantity(requested)
        return ShipmentLine(
            honey_type_id=line.honey_type_id,
            classification=line.classification,
            requested_kg=requested,
        )

    def _require_draft(self, shipment_id: str, target: ShipmentState) -> Shipment:
        shipment = self.get(shipment_id)
        if shipment.state != ShipmentState.DRAFT:
            raise InvalidTransition("Shipment", shipment.id, shipment.state, ShipmentState.DRAFT, target)
        return shipment

    # ----------------- planning -----------------

    def plan_allocation(
        self,
        line: ShipmentLine | ShipmentLineRequest,
        *,
        exclude: Iterable[str] = (),
    ) -> list[AllocationItem]:
        """
        Whole lots for one line in ascending arrival order, stopping as soon
        as the requested kilograms are reached or passed.

        ``exclude`` holds lot ids already claimed by earlier lines of the
        same shipment.
        """
        requested = to_quantity(line.requested_kg)
        if requested <= 0:
            raise InvalidQuantity(requested)
        classification = to_classification(line.classification)
        excluded = set(exclude)
        candidates = [
            lot
            for lot in self.registry.query_available(line.honey_type_id, classification)
            if lot.id not in excluded
        ]
        available = sum((lot.quantity_kg for lot in candidates), Decimal("0"))
        if available < requested:
            raise InsufficientStock(line.honey_type_id, classification, requested, available)

        line_id = getattr(line, "id", None)
        plan: list[AllocationItem] = []
        taken = Decimal("0")
        for lot in candidates:
            if taken >= requested:
                break
            plan.append(AllocationItem(lot_id=lot.id, quantity_kg=lot.quantity_kg, line_id=line_id))
            taken += lot.quantity_kg

        logger.debug(
            "allocation_planned",
            honey_type_id=line.honey_type_id,
            classification=classification.value,
            requested_kg=str(requested),
            planned_kg=str(taken),
            lot_count=len(plan),
        )
        return plan

    def preview(self, shipment_id: str) -> list[AllocationItem]:
        """Plan every line under current state without changing anything."""
        return self._plan_shipment(self.get(shipment_id))

    def _plan_shipment(self, shipment: Shipment) -> list[AllocationItem]:
        plan: list[AllocationItem] = []
        claimed: set[str] = set()
        for line in shipment.lines:
            items = self.plan_allocation(line, exclude=claimed)
            claimed.update(item.lot_id for item in items)
            plan.extend(items)
        return plan

    # ----------------- state changes -----------------

    def finalize(self, shipment_id: str) -> Shipment:
        """
        Consume the planned lots and put the shipment IN_TRANSIT.

        Any line without enough stock aborts the whole shipment and leaves
        every lot untouched. There is no way back from here in this engine.
        """
        shipment = self._require_draft(shipment_id, ShipmentState.IN_TRANSIT)
        if not shipment.lines:
            raise InvalidInput("A shipment needs at least one line to be finalized", shipment_id=shipment.id)

        try:
            plan = self._plan_shipment(shipment)
        except LedgerError as e:
            logger.warning(
                "shipment_finalize_rejected",
                shipment_id=shipment.id,
                error_code=e.error_code,
                error=e.message,
            )
            raise

        consumed = self.registry.transition_many(
            [item.lot_id for item in plan],
            LotState.AVAILABLE,
            LotState.CONSUMED,
            shipment_id=shipment.id,
        )
        shipment.allocations = plan
        shipment.consumed_lot_ids = [lot.id for lot in consumed]
        shipment.total_kg = sum((lot.quantity_kg for lot in consumed), Decimal("0"))
        shipment.total_cost = sum((lot.cost_total for lot in consumed), Decimal("0"))
        shipment.state = ShipmentState.IN_TRANSIT
        shipment.finalized_at = utcnow()

        logger.info(
            "shipment_finalized",
            shipment_id=shipment.id,
            folio=shipment.folio,
            lot_count=len(consumed),
            total_kg=str(shipment.total_kg),
        )
        return shipment

    def cancel(self, shipment_id: str, reason: str | None = None) -> Shipment:
        """Cancel a DRAFT shipment; drafts never hold lots, so stock is unaffected."""
        shipment = self._require_draft(shipment_id, ShipmentState.CANCELLED)
        shipment.state = ShipmentState.CANCELLED
        shipment.cancelled_at = utcnow()
        shipment.cancellation_reason = reason
        logger.info("shipment_cancelled", shipment_id=shipment.id)
        return shipment
