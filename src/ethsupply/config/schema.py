"""Pydantic schema for configuration validation."""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(v: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons against series timestamps work."""
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class ProjectionParameters(BaseModel):
    """Assumptions for one daily supply projection run."""
    model_config = ConfigDict(frozen=True)

    target_staked_amount: float = Field(ge=0, description="Staked ETH the projection moves toward")
    assumed_base_fee: float = Field(ge=0, description="Sustained base fee in Gwei")
    transition_date: datetime = Field(description="Date proof-of-work issuance stops (the merge)")

    @field_validator("transition_date")
    @classmethod
    def coerce_transition_date(cls, v):
        """Store the transition date as an aware UTC datetime."""
        return _as_utc(v)


class EquilibriumParameters(BaseModel):
    """Slider-controlled assumptions for the equilibrium solver."""
    model_config = ConfigDict(frozen=True)

    staking_apr_fraction: float = Field(gt=0, le=1, description="Yearly staking APR as a fraction")
    non_staked_burn_fraction: float = Field(
        ge=0, le=1,
        description="Fraction of non-staked supply burned per year"
    )


class ProjectionSettings(BaseModel):
    """Model constants for the daily projector."""
    sample_stride_days: int = Field(default=7, gt=0, description="Emit one point every N days")
    pow_daily_issuance: float = Field(
        default=13_500.0, ge=0,
        description="Proof-of-work ETH issued per day before the transition date"
    )
    fee_burn_activation_date: datetime = Field(
        default=datetime(2021, 8, 4, tzinfo=timezone.utc),
        description="Date fee burning starts (London hard fork)"
    )
    horizon_fraction: float = Field(
        default=0.5, gt=0, le=10.0,
        description="Projection length as a fraction of the historical span"
    )

    @field_validator("fee_burn_activation_date")
    @classmethod
    def coerce_activation_date(cls, v):
        """Store the activation date as an aware UTC datetime."""
        return _as_utc(v)


class EquilibriumSettings(BaseModel):
    """Model constants for the equilibrium solver."""
    iterations: int = Field(default=300, gt=0, description="Number of yearly steps simulated")
    convergence_tolerance: float = Field(
        default=0.01, gt=0,
        description="Relative burn/issuance gap accepted as converged by the sanity checks"
    )


class Config(BaseModel):
    """Complete configuration for a projection and equilibrium run."""
    projection: ProjectionParameters
    equilibrium: EquilibriumParameters
    projection_settings: ProjectionSettings = Field(default_factory=ProjectionSettings)
    equilibrium_settings: EquilibriumSettings = Field(default_factory=EquilibriumSettings)

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump(mode="json")
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
