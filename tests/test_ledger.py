from decimal import Decimal

import pytest
from honey_ledger import Classification, InvalidInput, LotState


class TestInventoryLedger:
    def test_summary_groups_by_type_and_classification(self, ledger, lot_factory):
        lot_factory(quantity_kg="50", moisture_percent="18")
        lot_factory(quantity_kg="25.5", moisture_percent="19")
        lot_factory(quantity_kg="30", moisture_percent="22")
        lot_factory(quantity_kg="10", moisture_percent="18", honey_type_id=2)

        summary = ledger.summary()

        assert summary[(1, Classification.EXPORT)] == Decimal("75.5")
        assert summary[(1, Classification.INDUSTRIAL)] == Decimal("30")
        assert summary[(2, Classification.EXPORT)] == Decimal("10")
        assert (1, Classification.DOMESTIC) not in summary

    def test_only_available_lots_count(self, ledger, lot_factory):
        kept = lot_factory(quantity_kg="40")
        gone = lot_factory(quantity_kg="60")
        ledger.transition(gone.id, LotState.AVAILABLE, LotState.ASSIGNED)

        assert ledger.summary()[(1, Classification.EXPORT)] == kept.quantity_kg

    def test_rows_are_sorted_and_counted(self, ledger, lot_factory):
        lot_factory(honey_type_id=2)
        lot_factory(moisture_percent="21")
        lot_factory()
        lot_factory()

        rows = [
            (row.honey_type_id, row.classification, row.lot_count)
            for row in ledger.inventory_rows()
            if row.honey_type_id in (1, 2)
        ]

        assert rows == [
            (1, Classification.DOMESTIC, 1),
            (1, Classification.EXPORT, 2),
            (2, Classification.EXPORT, 1),
        ]

    @pytest.mark.parametrize(
        "requested, sufficient",
        [("99.99", True), ("100", True), ("100.01", False)],
    )
    def test_check_sufficient(self, ledger, lot_factory, requested, sufficient):
        lot_factory(quantity_kg="60")
        lot_factory(quantity_kg="40")

        result = ledger.check_sufficient(1, Classification.EXPORT, Decimal(requested))

        assert result.sufficient is sufficient
        assert result.available_kg == Decimal("100")

    def test_check_for_unknown_stock(self, ledger):
        result = ledger.check_sufficient(42, Classification.DOMESTIC, 1)
        assert result.available_kg == 0
        assert not result.sufficient

    @pytest.mark.parametrize("classification", ["EXPORT", "premium", None])
    def test_unknown_classification_is_invalid_input(self, ledger, classification):
        with pytest.raises(InvalidInput) as exc:
            ledger.check_sufficient(1, classification, 10)
        assert exc.value.to_dict()["error_code"] == "INVALID_INPUT"

    def test_query_rejects_unknown_classification(self, ledger):
        with pytest.raises(InvalidInput):
            ledger.query_available(1, "EXPORT")
