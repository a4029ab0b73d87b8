import enum


class Classification(str, enum.Enum):
    EXPORT = "export"
    DOMESTIC = "domestic"
    INDUSTRIAL = "industrial"


class MoistureBand(str, enum.Enum):
    LOW = "low"
    HIGH = "high"


class IntakeState(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class LotState(str, enum.Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    CONSUMED = "consumed"
    CANCELLED = "cancelled"


class DraftState(str, enum.Enum):
    EMPTY = "empty"
    BUILDING = "building"
    READY_TO_COMMIT = "ready_to_commit"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class DrumState(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class ShipmentState(str, enum.Enum):
    DRAFT = "draft"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class BatchMode(str, enum.Enum):
    SEQUENTIAL = "sequential"
    ATOMIC = "atomic"
