from decimal import Decimal

import pytest
from honey_ledger import (
    Classification,
    InsufficientStock,
    InvalidInput,
    InvalidQuantity,
    InvalidTransition,
    LotState,
    NotFound,
    ShipmentState,
)
from honey_ledger.schemas import CreateShipmentRequest, ShipmentLineRequest


def _line(requested_kg, honey_type_id=1, classification=Classification.EXPORT) -> ShipmentLineRequest:
    return ShipmentLineRequest(
        honey_type_id=honey_type_id,
        classification=classification,
        requested_kg=Decimal(str(requested_kg)),
    )


@pytest.fixture
def three_lots(lot_factory):
    """A, B and C of 50 kg each, in arrival order."""
    return [lot_factory(quantity_kg="50") for _ in range(3)]


class TestPlanAllocation:
    def test_takes_oldest_lots_until_request_is_met(self, ledger, three_lots):
        a, b, _ = three_lots

        plan = ledger.plan_allocation(_line(80))

        assert [item.lot_id for item in plan] == [a.id, b.id]
        assert sum(item.quantity_kg for item in plan) == Decimal("100")

    def test_exact_fit_stops_at_the_lot_that_meets_it(self, ledger, three_lots):
        plan = ledger.plan_allocation(_line(100))
        assert [item.lot_id for item in plan] == [lot.id for lot in three_lots[:2]]

    def test_insufficient_stock_reports_shortfall(self, ledger, lot_factory):
        lot_factory(quantity_kg="50")
        lot_factory(quantity_kg="50")

        with pytest.raises(InsufficientStock) as exc:
            ledger.plan_allocation(_line(150))

        assert exc.value.available_kg == Decimal("100")
        assert exc.value.requested_kg == Decimal("150")
        assert exc.value.shortfall_kg == Decimal("50")

    def test_only_matching_classification_counts(self, ledger, lot_factory):
        lot_factory(moisture_percent="18")
        domestic = lot_factory(moisture_percent="21")

        plan = ledger.plan_allocation(_line(10, classification=Classification.DOMESTIC))

        assert [item.lot_id for item in plan] == [domestic.id]

    def test_lots_in_drums_are_not_offered(self, ledger, three_lots):
        a, b, _ = three_lots
        draft = ledger.new_draft()
        ledger.add_lot(draft, a)
        ledger.commit_drum(draft)

        plan = ledger.plan_allocation(_line(50))

        assert [item.lot_id for item in plan] == [b.id]

    def test_planning_changes_nothing(self, ledger, three_lots):
        before = ledger.summary()
        ledger.plan_allocation(_line(120))
        assert ledger.summary() == before

    def test_unvalidated_line_with_unknown_classification(self, ledger, three_lots):
        line = ShipmentLineRequest.model_construct(
            honey_type_id=1, classification="EXPORT", requested_kg=Decimal("10")
        )
        with pytest.raises(InvalidInput):
            ledger.plan_allocation(line)

    @pytest.mark.parametrize("requested", ["0", "-10"])
    def test_non_positive_request(self, ledger, three_lots, requested):
        with pytest.raises(InvalidQuantity):
            ledger.plan_allocation(_line(requested))


class TestShipmentDraft:
    def test_create_with_lines(self, ledger):
        shipment = ledger.create_shipment(
            CreateShipmentRequest(driver_id="drv-7", lines=[_line(30), _line(20, honey_type_id=2)])
        )
        assert shipment.state == ShipmentState.DRAFT
        assert shipment.folio.startswith("SAL-")
        assert [line.requested_kg for line in shipment.lines] == [Decimal("30"), Decimal("20")]

    def test_add_and_remove_line(self, ledger):
        shipment = ledger.create_shipment()
        line = ledger.add_line(shipment.id, _line(30))
        ledger.remove_line(shipment.id, line.id)
        assert shipment.lines == []

    def test_remove_unknown_line(self, ledger):
        shipment = ledger.create_shipment()
        with pytest.raises(NotFound):
            ledger.remove_line(shipment.id, "nope")

    def test_zero_line_is_rejected(self, ledger):
        shipment = ledger.create_shipment()
        with pytest.raises(InvalidQuantity):
            ledger.add_line(shipment.id, _line(0))

    def test_cancel_draft(self, ledger, three_lots):
        shipment = ledger.create_shipment(CreateShipmentRequest(lines=[_line(50)]))

        ledger.cancel_shipment(shipment.id, "customer postponed")

        assert shipment.state == ShipmentState.CANCELLED
        assert all(ledger.lot(lot.id).state == LotState.AVAILABLE for lot in three_lots)

    def test_preview_is_side_effect_free(self, ledger, three_lots):
        shipment = ledger.create_shipment(CreateShipmentRequest(lines=[_line(50), _line(50)]))

        plan = ledger.preview_shipment(shipment.id)

        assert [item.lot_id for item in plan] == [three_lots[0].id, three_lots[1].id]
        assert shipment.state == ShipmentState.DRAFT
        assert all(ledger.lot(lot.id).state == LotState.AVAILABLE for lot in three_lots)


class TestFinalize:
    def test_consumes_planned_lots(self, ledger, three_lots):
        a, b, c = three_lots
        shipment = ledger.create_shipment(CreateShipmentRequest(lines=[_line(80)]))

        done = ledger.finalize_shipment(shipment.id)

        assert done.state == ShipmentState.IN_TRANSIT
        assert done.consumed_lot_ids == [a.id, b.id]
        assert done.total_kg == Decimal("100")
        assert done.total_cost == Decimal("6000")
        assert done.finalized_at is not None
        assert ledger.lot(a.id).state == LotState.CONSUMED
        assert ledger.lot(a.id).shipment_id == shipment.id
        assert ledger.lot(c.id).state == LotState.AVAILABLE
        assert [lot.id for lot in ledger.shipments.shipment_lots(shipment.id)] == [a.id, b.id]

    def test_lines_claim_lots_cumulatively(self, ledger, three_lots):
        a, b, c = three_lots
        shipment = ledger.create_shipment(CreateShipmentRequest(lines=[_line(50), _line(50)]))

        done = ledger.finalize_shipment(shipment.id)

        first, second = done.lines
        assert [(i.lot_id, i.line_id) for i in done.allocations] == [(a.id, first.id), (b.id, second.id)]
        assert ledger.lot(c.id).state == LotState.AVAILABLE

    def test_one_short_line_aborts_everything(self, ledger, three_lots):
        shipment = ledger.create_shipment(
            CreateShipmentRequest(lines=[_line(50), _line(10, honey_type_id=2)])
        )

        with pytest.raises(InsufficientStock):
            ledger.finalize_shipment(shipment.id)

        assert shipment.state == ShipmentState.DRAFT
        assert all(ledger.lot(lot.id).state == LotState.AVAILABLE for lot in three_lots)

    def test_cumulative_shortage_is_detected(self, ledger, three_lots):
        """Each line alone fits; together they need more than exists"""
        shipment = ledger.create_shipment(CreateShipmentRequest(lines=[_line(100), _line(60)]))

        with pytest.raises(InsufficientStock) as exc:
            ledger.finalize_shipment(shipment.id)

        assert exc.value.available_kg == Decimal("50")

    def test_shipment_without_lines(self, ledger):
        shipment = ledger.create_shipment()
        with pytest.raises(InvalidInput):
            ledger.finalize_shipment(shipment.id)

    def test_finalized_shipment_is_frozen(self, ledger, three_lots):
        shipment = ledger.create_shipment(CreateShipmentRequest(lines=[_line(50)]))
        ledger.finalize_shipment(shipment.id)

        with pytest.raises(InvalidTransition):
            ledger.add_line(shipment.id, _line(10))
        with pytest.raises(InvalidTransition):
            ledger.finalize_shipment(shipment.id)
        with pytest.raises(InvalidTransition):
            ledger.cancel_shipment(shipment.id)
