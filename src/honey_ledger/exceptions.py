from decimal import Decimal
from typing import Any


class LedgerError(Exception):
    """Base exception for every rule the ledger refuses to break"""

    def __init__(self, message: str, error_code: str = "LEDGER_ERROR", **details: Any):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Payload for the calling layer to surface verbatim."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": {k: _plain(v) for k, v in self.details.items()},
        }


class InvalidInput(LedgerError, ValueError):
    """Malformed numeric or enum input; a caller bug rather than a business rule"""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, error_code="INVALID_INPUT", **details)


class InvalidQuantity(LedgerError):
    def __init__(self, quantity_kg: Any):
        super().__init__(
            f"Quantity must be greater than zero, got {quantity_kg}",
            error_code="INVALID_QUANTITY",
            quantity_kg=quantity_kg,
        )


class NotFound(LedgerError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} '{entity_id}' not found",
            error_code="NOT_FOUND",
            entity=entity,
            entity_id=entity_id,
        )


class IncompatibleLot(LedgerError):
    """Raised when a lot would break drum homogeneity"""

    def __init__(self, lot_id: str, field: str, expected: Any, actual: Any):
        super().__init__(
            f"Lot '{lot_id}' does not match the drum on {field}: expected {expected}, got {actual}",
            error_code="INCOMPATIBLE_LOT",
            lot_id=lot_id,
            field=field,
            expected=expected,
            actual=actual,
        )


class CapacityExceeded(LedgerError):
    def __init__(self, total_kg: Decimal, capacity_kg: Decimal, lot_id: str | None = None):
        super().__init__(
            f"Drum would hold {total_kg} kg, capacity is {capacity_kg} kg",
            error_code="CAPACITY_EXCEEDED",
            total_kg=total_kg,
            capacity_kg=capacity_kg,
            lot_id=lot_id,
        )


class LotUnavailable(LedgerError):
    def __init__(self, lot_id: str, reason: str):
        super().__init__(
            f"Lot '{lot_id}' is not available: {reason}",
            error_code="LOT_UNAVAILABLE",
            lot_id=lot_id,
            reason=reason,
        )


class LotAlreadyConsumed(LedgerError):
    """Raised when a shipped lot would be reverted or cancelled"""

    def __init__(self, lot_id: str, shipment_id: str | None = None):
        super().__init__(
            f"Lot '{lot_id}' was already consumed by a shipment",
            error_code="LOT_ALREADY_CONSUMED",
            lot_id=lot_id,
            shipment_id=shipment_id,
        )


# Intake cancellation names the same failure from the intake side.
AlreadyConsumed = LotAlreadyConsumed


class InvalidTransition(LedgerError):
    def __init__(self, entity: str, entity_id: str, current: Any, expected: Any, target: Any):
        super().__init__(
            f"{entity} '{entity_id}' is {_plain(current)}, expected {_plain(expected)} "
            f"to move to {_plain(target)}",
            error_code="INVALID_TRANSITION",
            entity=entity,
            entity_id=entity_id,
            current=current,
            expected=expected,
            target=target,
        )


class InsufficientStock(LedgerError):
    def __init__(
        self,
        honey_type_id: int,
        classification: Any,
        requested_kg: Decimal,
        available_kg: Decimal,
    ):
        self.requested_kg = requested_kg
        self.available_kg = available_kg
        self.shortfall_kg = requested_kg - available_kg
        super().__init__(
            f"Requested {requested_kg} kg of type {honey_type_id}/{_plain(classification)}, "
            f"only {available_kg} kg available",
            error_code="INSUFFICIENT_STOCK",
            honey_type_id=honey_type_id,
            classification=classification,
            requested=requested_kg,
            available=available_kg,
            shortfall=self.shortfall_kg,
        )


class ConcurrentModification(LedgerError):
    def __init__(self, entity_id: str, lot_ids: list[str]):
        super().__init__(
            f"Lots {lot_ids} changed state before '{entity_id}' could be committed",
            error_code="CONCURRENT_MODIFICATION",
            entity_id=entity_id,
            lot_ids=lot_ids,
        )


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value
