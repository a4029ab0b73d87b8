from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreateDrumRequest(BaseModel):
    """
    Request contract for building and committing a drum in one call.
    Lot ids are added in the given order; the first defines the reference.
    """

    lot_ids: list[str] = Field(min_length=1)
    notes: str | None = None

    model_config = ConfigDict(extra="forbid")


class CancelDrumRequest(BaseModel):
    reason: str

    model_config = ConfigDict(extra="forbid")
