"""
Shared fixtures for the ledger test-suite.

Lots are registered through the public engine so every test exercises the
same arrival-sequence and classification path production code uses.
"""

from collections.abc import Callable
from datetime import date
from decimal import Decimal

import pytest
from honey_ledger import Classification, HoneyLedger, Lot
from honey_ledger.config_schema import Settings
from honey_ledger.schemas import CreateIntakeRequest, IntakeLotRequest

LotFactory = Callable[..., Lot]


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def prices() -> dict[tuple[int, Classification], Decimal]:
    return {
        (1, Classification.EXPORT): Decimal("60.00"),
        (1, Classification.DOMESTIC): Decimal("48.00"),
        (1, Classification.INDUSTRIAL): Decimal("40.00"),
        (2, Classification.EXPORT): Decimal("65.00"),
    }


@pytest.fixture
def ledger(settings: Settings, prices) -> HoneyLedger:
    return HoneyLedger(settings=settings, price_list=prices)


@pytest.fixture
def intake(ledger: HoneyLedger):
    """An intake holding one type-9 seed lot; lot_factory appends to it."""
    return ledger.register_intake(
        CreateIntakeRequest(
            beekeeper_id="apc-001",
            received_on=date(2025, 3, 4),
            lots=[IntakeLotRequest(honey_type_id=9, moisture_percent=Decimal("18"), quantity_kg=Decimal("1"))],
        )
    )


@pytest.fixture
def lot_factory(ledger: HoneyLedger, intake) -> LotFactory:
    def make(
        quantity_kg="50",
        moisture_percent="18",
        honey_type_id: int = 1,
        intake_id: str | None = None,
    ) -> Lot:
        lot_id = ledger.register_lot(
            intake_id=intake_id or intake.id,
            honey_type_id=honey_type_id,
            moisture_percent=Decimal(str(moisture_percent)),
            quantity_kg=Decimal(str(quantity_kg)),
        )
        return ledger.lot(lot_id)

    return make
