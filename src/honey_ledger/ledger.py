"""
Inventory Ledger.

Read-only view of what can still be shipped. Totals are recomputed from lot
state on every call and never stored, so they cannot drift from the
registry. A result is a snapshot: re-check right before a consuming commit.
"""

from collections import defaultdict
from decimal import Decimal

from honey_ledger.enums import Classification
from honey_ledger.logging import get_logger
from honey_ledger.registry import LotRegistry, to_classification, to_quantity
from honey_ledger.schemas.shipments import InventoryRow, StockCheckResult

logger = get_logger(__name__)

StockKey = tuple[int, Classification]


class InventoryLedger:
    def __init__(self, registry: LotRegistry):
        self.registry = registry

    def summary(self) -> dict[StockKey, Decimal]:
        """Available kilograms per (honey type, classification)."""
        totals: dict[StockKey, Decimal] = defaultdict(lambda: Decimal("0"))
        for lot in self.registry.query_available():
            totals[lot.stock_key] += lot.quantity_kg
        return dict(totals)

    def rows(self) -> list[InventoryRow]:
        totals: dict[StockKey, Decimal] = defaultdict(lambda: Decimal("0"))
        counts: dict[StockKey, int] = defaultdict(int)
        for lot in self.registry.query_available():
            totals[lot.stock_key] += lot.quantity_kg
            counts[lot.stock_key] += 1
        return [
            InventoryRow(
                honey_type_id=honey_type_id,
                classification=classification,
                available_kg=totals[(honey_type_id, classification)],
                lot_count=counts[(honey_type_id, classification)],
            )
            for honey_type_id, classification in sorted(totals, key=lambda k: (k[0], k[1].value))
        ]

    def available_kg(self, honey_type_id: int, classification: Classification) -> Decimal:
        return sum(
            (lot.quantity_kg for lot in self.registry.query_available(honey_type_id, classification)),
            Decimal("0"),
        )

    def check_sufficient(
        self,
        honey_type_id: int,
        classification: Classification,
        requested_kg: object,
    ) -> StockCheckResult:
        requested = to_quantity(requested_kg)
        classification = to_classification(classification)
        available = self.available_kg(honey_type_id, classification)
        result = StockCheckResult(
            honey_type_id=honey_type_id,
            classification=classification,
            requested_kg=requested,
            available_kg=available,
            sufficient=available >= requested,
        )
        logger.debug(
            "stock_checked",
            honey_type_id=honey_type_id,
            classification=classification.value,
            requested_kg=str(requested),
            available_kg=str(available),
            sufficient=result.sufficient,
        )
        return result
