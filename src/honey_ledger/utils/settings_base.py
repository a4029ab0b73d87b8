from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSettings(BaseModel):
    """
    Shared root settings model for the ledger configuration schema.
    Unknown keys are rejected so typos in YAML fail loudly.
    """

    model_config = ConfigDict(extra="forbid")
