"""
Configuration data models with validation.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...domain.consts import (
    DEFAULT_CONTROL_INTERVAL_SECONDS,
    MAX_RAMP_DOWN_STEP,
    MAX_RAMP_UP_STEP,
    POLICY_NAME_RAMA,
)
from ...domain.models import IncreaseAggregation, RegionType


class PIDParametersConfiguration(BaseModel):
    """Response parameters of one indicator."""
    kpp: float = Field(ge=0)
    kpn: float = Field(ge=0)
    kdp: float = Field(default=0.0, ge=0)
    kdn: float = Field(default=0.0, ge=0)
    adjustment_upper_bound: float = MAX_RAMP_UP_STEP
    adjustment_lower_bound: float = -MAX_RAMP_DOWN_STEP
    deadband_lower_pct: float = Field(default=0.0, ge=0, le=1)
    deadband_upper_pct: float = Field(default=0.0, ge=0)

    @model_validator(mode='after')
    def validate_adjustment_bounds(self):
        """Per-cycle bounds must straddle zero."""
        if self.adjustment_lower_bound > 0:
            raise ValueError("adjustment_lower_bound must not be positive")
        if self.adjustment_upper_bound < 0:
            raise ValueError("adjustment_upper_bound must not be negative")
        return self


class IndicatorTargetConfiguration(BaseModel):
    """Target an indicator is regulated towards. Without a target it is never evaluated."""
    name: str = Field(min_length=1)
    target: Optional[float] = None

    @field_validator('target')
    @classmethod
    def validate_target(cls, v):
        if v is not None and v <= 0:
            raise ValueError("target must be positive")
        return v


class PolicyRamaConfiguration(BaseModel):
    """Rama policy parameters keyed by indicator name."""
    pid_parameters: Dict[str, PIDParametersConfiguration] = Field(default_factory=dict)


class ProvisionConfiguration(BaseModel):
    """Provisioning controller configuration with cross-field validation."""
    policy: str = POLICY_NAME_RAMA
    control_interval: float = Field(default=DEFAULT_CONTROL_INTERVAL_SECONDS, gt=0)
    increase_aggregation: IncreaseAggregation = IncreaseAggregation.MAX
    evict_empty_regions: bool = True
    region_indicators: Dict[RegionType, List[str]] = Field(default_factory=dict)
    indicator_targets: List[IndicatorTargetConfiguration] = Field(default_factory=list)
    rama: PolicyRamaConfiguration = Field(default_factory=PolicyRamaConfiguration)

    @field_validator('indicator_targets')
    @classmethod
    def validate_unique_targets(cls, v):
        names = [t.name for t in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate indicator targets: {', '.join(duplicates)}")
        return v

    @model_validator(mode='after')
    def validate_indicator_mapping(self):
        """Every indicator a region type references needs response parameters."""
        for region_type, indicators in self.region_indicators.items():
            missing = [name for name in indicators if name not in self.rama.pid_parameters]
            if missing:
                raise ValueError(
                    f"Region type {region_type.value} references indicators without "
                    f"pid_parameters: {', '.join(missing)}"
                )
        return self

    def targets(self) -> Dict[str, Optional[float]]:
        return {t.name: t.target for t in self.indicator_targets}


class LoggingConfiguration(BaseModel):
    """Logging system configuration with validation."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="json", pattern="^(json|text)$")
    output: str = Field(default="console", pattern="^(console|file|both)$")
    file_path: Optional[str] = None

    @model_validator(mode='after')
    def validate_file_path(self):
        """Validate file path when file output is used."""
        if self.output in ('file', 'both') and not self.file_path:
            raise ValueError("file_path is required when output is 'file' or 'both'")
        return self


class RootConfiguration(BaseModel):
    """Whole configuration document."""
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)
    provision: ProvisionConfiguration = Field(default_factory=ProvisionConfiguration)
