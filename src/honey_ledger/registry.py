"""
Lot Registry.

Authoritative in-memory record of intakes and their lots. Every other
component reads lot state through this registry and changes it only via
guarded transitions, so a caller holding a stale copy of a lot is detected
by the ``from_state`` check instead of silently overwriting newer state.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation

from honey_ledger.classifier import classify, moisture_band, validate_moisture
from honey_ledger.config_schema import IntakeConfig
from honey_ledger.enums import Classification, IntakeState, LotState
from honey_ledger.exceptions import (
    AlreadyConsumed,
    InvalidInput,
    InvalidQuantity,
    InvalidTransition,
    NotFound,
)
from honey_ledger.folios import FolioSequence
from honey_ledger.logging import get_logger
from honey_ledger.models import Intake, Lot, utcnow
from honey_ledger.pricing import PriceList, StaticPriceList
from honey_ledger.schemas.intake import CreateIntakeRequest

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[LotState, frozenset[LotState]] = {
    LotState.AVAILABLE: frozenset({LotState.ASSIGNED, LotState.CONSUMED, LotState.CANCELLED}),
    LotState.ASSIGNED: frozenset({LotState.AVAILABLE, LotState.CONSUMED, LotState.CANCELLED}),
    LotState.CONSUMED: frozenset(),
    LotState.CANCELLED: frozenset(),
}

_UNSET = object()


def to_quantity(value: object) -> Decimal:
    """Coerce a kilogram amount to Decimal, rejecting non-numbers."""
    if isinstance(value, bool):
        raise InvalidInput("Quantity must be a number", quantity_kg=repr(value))
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidInput("Quantity must be a number", quantity_kg=repr(value)) from e
    if not quantity.is_finite():
        raise InvalidInput("Quantity must be finite", quantity_kg=str(value))
    return quantity


def to_classification(value: object) -> Classification:
    """Coerce a classification name, rejecting anything outside the enum."""
    try:
        return Classification(value)
    except ValueError as e:
        raise InvalidInput("Unknown classification", classification=repr(value)) from e


class LotRegistry:
    """
    Owns every Lot and Intake.

    Arrival sequences are assigned here and only here; they strictly increase
    in registration order and define the FIFO contract of ``query_available``.
    """

    def __init__(
        self,
        *,
        price_list: PriceList | None = None,
        intake_config: IntakeConfig | None = None,
        intake_folios: FolioSequence | None = None,
    ) -> None:
        self.price_list = price_list or StaticPriceList()
        self.intake_config = intake_config or IntakeConfig()
        self.intake_folios = intake_folios or FolioSequence("ENT")
        self._lots: dict[str, Lot] = {}
        self._intakes: dict[str, Intake] = {}
        self._sequence = 0

    # ----------------- lookups -----------------

    def get(self, lot_id: str) -> Lot:
        try:
            return self._lots[lot_id]
        except KeyError:
            raise NotFound("Lot", lot_id) from None

    def get_intake(self, intake_id: str) -> Intake:
        try:
            return self._intakes[intake_id]
        except KeyError:
            raise NotFound("Intake", intake_id) from None

    def lots(self) -> list[Lot]:
        return sorted(self._lots.values(), key=lambda lot: lot.arrival_sequence)

    def lots_of_intake(self, intake_id: str) -> list[Lot]:
        return [lot for lot in self.lots() if lot.intake_id == intake_id]

    def lots_in_shipment(self, shipment_id: str) -> list[Lot]:
        return [lot for lot in self.lots() if lot.shipment_id == shipment_id]

    def query_available(
        self,
        honey_type_id: int | None = None,
        classification: Classification | None = None,
    ) -> list[Lot]:
        """AVAILABLE lots matching the optional filters, oldest arrival first."""
        if classification is not None:
            classification = to_classification(classification)
        matches = [
            lot
            for lot in self.lots()
            if lot.state == LotState.AVAILABLE
            and (honey_type_id is None or lot.honey_type_id == honey_type_id)
            and (classification is None or lot.classification == classification)
        ]
        logger.debug(
            "available_lots_queried",
            honey_type_id=honey_type_id,
            classification=classification.value if classification else None,
            count=len(matches),
        )
        return matches

    # ----------------- registration -----------------

    def register(
        self,
        *,
        intake_id: str,
        honey_type_id: int,
        moisture_percent: object,
        quantity_kg: object,
        unit_price: Decimal | None = None,
    ) -> str:
        """Insert one AVAILABLE lot and return its id."""
        intake = self._intakes.get(intake_id)
        if intake is not None and intake.state == IntakeState.CANCELLED:
            raise InvalidTransition("Intake", intake_id, intake.state, IntakeState.ACTIVE, "register_lot")
        fields = self._validate_line(honey_type_id, moisture_percent, quantity_kg, unit_price)
        lot = self._store(intake_id, fields)
        if intake is not None:
            intake.lot_ids.append(lot.id)
        return lot.id

    def register_intake(self, request: CreateIntakeRequest) -> Intake:
        """
        Record a whole intake. Every line is validated before any lot is
        stored, so a bad line leaves the registry untouched.
        """
        validated = [
            self._validate_line(
                line.honey_type_id, line.moisture_percent, line.quantity_kg, line.unit_price
            )
            for line in request.lots
        ]

        intake = Intake(
            folio=self.intake_folios.next(request.received_on),
            beekeeper_id=request.beekeeper_id,
            received_on=request.received_on,
            notes=request.notes,
        )
        self._intakes[intake.id] = intake
        for fields in validated:
            intake.lot_ids.append(self._store(intake.id, fields).id)

        logger.info(
            "intake_registered",
            intake_id=intake.id,
            folio=intake.folio,
            lot_count=len(intake.lot_ids),
        )
        return intake

    def _validate_line(
        self,
        honey_type_id: object,
        moisture_percent: object,
        quantity_kg: object,
        unit_price: object,
    ) -> dict:
        if isinstance(honey_type_id, bool) or not isinstance(honey_type_id, int):
            raise InvalidInput("Honey type id must be an integer", honey_type_id=repr(honey_type_id))
        moisture = validate_moisture(moisture_percent)
        quantity = to_quantity(quantity_kg)
        if quantity <= 0:
            raise InvalidQuantity(quantity)

        classification = classify(moisture)
        if unit_price is None:
            price = self.price_list.price(honey_type_id, classification)
        else:
            price = to_quantity(unit_price)
            if price < 0:
                raise InvalidInput("Unit price cannot be negative", unit_price=str(unit_price))

        return {
            "honey_type_id": honey_type_id,
            "moisture_percent": moisture,
            "classification": classification,
            "moisture_band": moisture_band(moisture),
            "quantity_kg": quantity,
            "unit_price": price,
        }

    def _store(self, intake_id: str, fields: dict) -> Lot:
        self._sequence += 1
        lot = Lot(intake_id=intake_id, arrival_sequence=self._sequence, **fields)
        self._lots[lot.id] = lot
        logger.info(
            "lot_registered",
            lot_id=lot.id,
            intake_id=lot.intake_id,
            arrival_sequence=lot.arrival_sequence,
            classification=lot.classification.value,
            quantity_kg=str(lot.quantity_kg),
        )
        return lot

    # ----------------- cancellation -----------------

    def cancel(self, intake_id: str, reason: str | None = None) -> list[Lot]:
        """
        Cancel every lot of an intake.

        Lots already CANCELLED are left as they are. If any lot was already
        CONSUMED the whole cancellation is rejected and nothing changes.
        """
        if reason is not None:
            self._validate_reason(reason)
        lots = self.lots_of_intake(intake_id)
        intake = self._intakes.get(intake_id)
        if intake is None and not lots:
            raise NotFound("Intake", intake_id)

        consumed = [lot for lot in lots if lot.state == LotState.CONSUMED]
        if consumed:
            logger.warning(
                "intake_cancel_rejected",
                intake_id=intake_id,
                consumed_lot_ids=[lot.id for lot in consumed],
            )
            raise AlreadyConsumed(consumed[0].id, consumed[0].shipment_id)

        changed = self._cancel_lots(lots, reason)
        if intake is not None and intake.state != IntakeState.CANCELLED:
            intake.state = IntakeState.CANCELLED
            intake.cancelled_at = utcnow()
            intake.cancellation_reason = reason

        logger.info("intake_cancelled", intake_id=intake_id, cancelled_lots=len(changed))
        return changed

    def cancel_lot(self, lot_id: str, reason: str | None = None) -> Lot:
        """
        Cancel a single line item. The intake closes once none of its lots
        is left uncancelled.
        """
        if reason is not None:
            self._validate_reason(reason)
        lot = self.get(lot_id)
        if lot.state == LotState.CONSUMED:
            raise AlreadyConsumed(lot.id, lot.shipment_id)
        self._cancel_lots([lot], reason)
        logger.info("lot_cancelled", lot_id=lot_id)

        intake = self._intakes.get(lot.intake_id)
        if (
            intake is not None
            and intake.state != IntakeState.CANCELLED
            and all(other.state == LotState.CANCELLED for other in self.lots_of_intake(intake.id))
        ):
            intake.state = IntakeState.CANCELLED
            intake.cancelled_at = utcnow()
            intake.cancellation_reason = reason
            logger.info("intake_cancelled", intake_id=intake.id, cancelled_lots=1)
        return lot

    def _cancel_lots(self, lots: Iterable[Lot], reason: str | None) -> list[Lot]:
        changed = []
        for lot in lots:
            if lot.state == LotState.CANCELLED:
                continue
            lot.state = LotState.CANCELLED
            lot.container_id = None
            lot.cancellation_reason = reason
            changed.append(lot)
        return changed

    def _validate_reason(self, reason: str) -> None:
        cfg = self.intake_config
        length = len(reason.strip())
        if length < cfg.cancellation_reason_min_length or length > cfg.cancellation_reason_max_length:
            raise InvalidInput(
                f"Cancellation reason must be between {cfg.cancellation_reason_min_length} "
                f"and {cfg.cancellation_reason_max_length} characters",
                length=length,
            )

    # ----------------- transitions -----------------

    def transition(
        self,
        lot_id: str,
        from_state: LotState,
        to_state: LotState,
        *,
        container_id: str | None | object = _UNSET,
        shipment_id: str | None | object = _UNSET,
    ) -> Lot:
        """Move one lot between states, guarded by its expected current state."""
        lot = self.get(lot_id)
        self._check_transition(lot, from_state, to_state)
        self._apply(lot, to_state, container_id, shipment_id)
        return lot

    def transition_many(
        self,
        lot_ids: Iterable[str],
        from_state: LotState,
        to_state: LotState,
        *,
        container_id: str | None | object = _UNSET,
        shipment_id: str | None | object = _UNSET,
    ) -> list[Lot]:
        """Guarded bulk transition: every lot is checked before any is changed."""
        lots = [self.get(lot_id) for lot_id in lot_ids]
        for lot in lots:
            self._check_transition(lot, from_state, to_state)
        for lot in lots:
            self._apply(lot, to_state, container_id, shipment_id)
        return lots

    def _check_transition(self, lot: Lot, from_state: LotState, to_state: LotState) -> None:
        if lot.state != from_state or to_state not in ALLOWED_TRANSITIONS[from_state]:
            raise InvalidTransition("Lot", lot.id, lot.state, from_state, to_state)

    def _apply(
        self,
        lot: Lot,
        to_state: LotState,
        container_id: str | None | object,
        shipment_id: str | None | object,
    ) -> None:
        lot.state = to_state
        if container_id is not _UNSET:
            lot.container_id = container_id
        if shipment_id is not _UNSET:
            lot.shipment_id = shipment_id
        if to_state in (LotState.AVAILABLE, LotState.CANCELLED):
            lot.container_id = None
            lot.shipment_id = None
