from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from honey_ledger.utils.settings_base import BaseSettings


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="honey-ledger")
    env: Literal["dev", "prod", "local"] = Field(default="local")


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")


class DrumsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    capacity_kg: Decimal = Field(default=Decimal("350"), gt=0)
    warning_kg: Decimal = Field(default=Decimal("300"), gt=0)
    batch_mode: Literal["sequential", "atomic"] = Field(default="sequential")

    @model_validator(mode="after")
    def validate_thresholds(self) -> DrumsConfig:
        if self.warning_kg > self.capacity_kg:
            raise ValueError("warning_kg must not exceed capacity_kg")
        return self


class IntakeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cancellation_reason_min_length: int = Field(default=10, ge=0)
    cancellation_reason_max_length: int = Field(default=500, ge=1)

    @model_validator(mode="after")
    def validate_reason_bounds(self) -> IntakeConfig:
        if self.cancellation_reason_min_length > self.cancellation_reason_max_length:
            raise ValueError("cancellation_reason_min_length exceeds the max length")
        return self


class FoliosConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    intake_prefix: str = Field(default="ENT", min_length=1)
    drum_prefix: str = Field(default="TAMB", min_length=1)
    shipment_prefix: str = Field(default="SAL", min_length=1)
    width: int = Field(default=4, ge=1, le=10)


class Settings(BaseSettings):
    """
    Root config schema for the honey ledger.
    Matches YAML structure in config/*.yaml
    """

    app: AppConfig = Field(default_factory=AppConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    drums: DrumsConfig = Field(default_factory=DrumsConfig)
    intake: IntakeConfig = Field(default_factory=IntakeConfig)
    folios: FoliosConfig = Field(default_factory=FoliosConfig)
