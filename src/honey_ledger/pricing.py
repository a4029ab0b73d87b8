"""
Price-list collaborator.

The ledger only reads prices to pre-fill a lot's unit price at intake; a
declared price is never checked against the list.
"""

from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Protocol, runtime_checkable

from honey_ledger.enums import Classification


@runtime_checkable
class PriceList(Protocol):
    def price(self, honey_type_id: int, classification: Classification) -> Decimal | None: ...


class StaticPriceList:
    """In-memory price list keyed by (honey type, classification)."""

    def __init__(self, prices: Mapping[tuple[int, Classification], Decimal] | None = None):
        self._prices = {key: Decimal(value) for key, value in (prices or {}).items()}

    def price(self, honey_type_id: int, classification: Classification) -> Decimal | None:
        return self._prices.get((honey_type_id, Classification(classification)))

    def set_price(self, honey_type_id: int, classification: Classification, amount: Decimal) -> None:
        self._prices[(honey_type_id, Classification(classification))] = Decimal(amount)


class CallablePriceList:
    """Adapts a bare ``price(type, classification)`` function."""

    def __init__(self, func: Callable[[int, Classification], Decimal | None]):
        self._func = func

    def price(self, honey_type_id: int, classification: Classification) -> Decimal | None:
        amount = self._func(honey_type_id, classification)
        return None if amount is None else Decimal(amount)


def as_price_list(source: PriceList | Callable | Mapping | None) -> PriceList:
    if source is None:
        return StaticPriceList()
    if isinstance(source, PriceList):
        return source
    if isinstance(source, Mapping):
        return StaticPriceList(source)
    if callable(source):
        return CallablePriceList(source)
    raise TypeError(f"Unsupported price list source: {type(source).__name__}")
