"""
End-to-end flow through the HoneyLedger facade: intake, drum, shipment.
"""

from datetime import date
from decimal import Decimal

import pytest
from honey_ledger import (
    Classification,
    DrumState,
    HoneyLedger,
    InsufficientStock,
    LotState,
    ShipmentState,
)
from honey_ledger.config_schema import DrumsConfig, Settings
from honey_ledger.schemas import (
    CancelDrumRequest,
    CancelIntakeRequest,
    CancelShipmentRequest,
    CreateDrumRequest,
    CreateIntakeRequest,
    CreateShipmentRequest,
    IntakeLotRequest,
    ShipmentLineRequest,
)


def _lots(*pairs):
    return [
        IntakeLotRequest(honey_type_id=1, moisture_percent=Decimal(m), quantity_kg=Decimal(kg))
        for m, kg in pairs
    ]


class TestHoneyLedger:
    def test_intake_to_shipment(self, ledger):
        intake = ledger.register_intake(
            CreateIntakeRequest(
                beekeeper_id="apc-003",
                received_on=date(2025, 4, 2),
                lots=_lots(("17", "120"), ("18", "90"), ("19", "70"), ("18.5", "40")),
            )
        )
        first, second, third, fourth = intake.lot_ids

        drum = ledger.create_drum(CreateDrumRequest(lot_ids=[first, second]))
        assert ledger.summary()[(1, Classification.EXPORT)] == Decimal("110")

        shipment = ledger.create_shipment(
            CreateShipmentRequest(
                dispatch_date=date(2025, 4, 10),
                lines=[ShipmentLineRequest(honey_type_id=1, classification="export", requested_kg="75")],
            )
        )
        ledger.finalize_shipment(shipment.id)

        assert shipment.state == ShipmentState.IN_TRANSIT
        assert shipment.folio == "SAL-2025-0001"
        assert shipment.consumed_lot_ids == [third, fourth]
        assert ledger.lot(first).state == LotState.ASSIGNED
        assert (1, Classification.EXPORT) not in ledger.summary()

        ledger.cancel_drum(drum.id, CancelDrumRequest(reason="re-packing"))
        assert ledger.drums.get(drum.id).state == DrumState.CANCELLED
        assert ledger.summary()[(1, Classification.EXPORT)] == Decimal("210")

    def test_errors_serialise_for_callers(self, ledger, lot_factory):
        lot_factory(quantity_kg="100")

        with pytest.raises(InsufficientStock) as exc:
            ledger.plan_allocation(
                ShipmentLineRequest(honey_type_id=1, classification="export", requested_kg="150")
            )

        assert exc.value.to_dict() == {
            "error_code": "INSUFFICIENT_STOCK",
            "message": exc.value.message,
            "details": {
                "honey_type_id": 1,
                "classification": "export",
                "requested": "150",
                "available": "100",
                "shortfall": "50",
            },
        }

    def test_configured_capacity_is_used(self):
        ledger = HoneyLedger(Settings(drums=DrumsConfig(capacity_kg=Decimal("100"), warning_kg=Decimal("80"))))
        intake = ledger.register_intake(
            CreateIntakeRequest(beekeeper_id="apc-5", received_on=date(2025, 1, 1), lots=_lots(("18", "90")))
        )

        drum = ledger.create_drum(CreateDrumRequest(lot_ids=intake.lot_ids))

        assert drum.over_warning_threshold

    def test_callable_price_list(self):
        ledger = HoneyLedger(price_list=lambda honey_type_id, classification: Decimal("10"))
        intake = ledger.register_intake(
            CreateIntakeRequest(beekeeper_id="apc-5", received_on=date(2025, 1, 1), lots=_lots(("25", "3")))
        )
        assert ledger.lot(intake.lot_ids[0]).cost_total == Decimal("30")

    def test_cancel_requests_carry_reasons(self, ledger):
        intake = ledger.register_intake(
            CreateIntakeRequest(beekeeper_id="apc-8", received_on=date(2025, 2, 1), lots=_lots(("18", "5")))
        )
        shipment = ledger.create_shipment()

        ledger.cancel_intake(intake.id, CancelIntakeRequest(reason="Duplicated weighing ticket"))
        ledger.cancel_shipment(shipment.id, CancelShipmentRequest(reason="Truck unavailable"))

        assert ledger.registry.get_intake(intake.id).cancellation_reason == "Duplicated weighing ticket"
        assert ledger.lot(intake.lot_ids[0]).cancellation_reason == "Duplicated weighing ticket"
        assert shipment.cancellation_reason == "Truck unavailable"

    def test_classification_passthrough(self):
        assert HoneyLedger.classify(22) == Classification.INDUSTRIAL
        assert HoneyLedger.moisture_band(22).value == "high"
