"""Daily supply projector - Step total and staked supply forward one day at a time.

Key Concepts:
- History is sampled every `sample_stride_days` (plus the final day) into a
  staked / in-contract / in-addresses breakdown
- The projection continues from the last historical point for half the
  historical span (configurable via `horizon_fraction`)
- Each day: staked moves toward the target within the churn limit, PoS
  issuance (plus PoW issuance before the transition) is added, and the fee
  burn is removed once fee burning is active
- Supply never goes negative and is never reported below the staked amount
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Optional

import pandas as pd

from ..config.schema import ProjectionParameters, ProjectionSettings
from .burn import daily_fee_burn
from .issuance import daily_issuance, daily_stake_change
from .series import HistoricalInputs, Series, TimePoint, find_peak_supply, series_to_map

logger = logging.getLogger(__name__)

# Addresses may not drop below half of what sits in contracts.
MIN_ADDRESS_TO_CONTRACT_RATIO = 0.5


@dataclass
class SupplyBreakdown:
    """Supply split into staked, in-contract and in-address buckets."""
    supply: Series = field(default_factory=list)
    staked: Series = field(default_factory=list)
    in_contract: Series = field(default_factory=list)
    in_addresses: Series = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """Return the breakdown as a DataFrame indexed by timestamp."""
        columns = {
            'supply': self.supply,
            'staked': self.staked,
            'in_contract': self.in_contract,
            'in_addresses': self.in_addresses,
        }
        frame = pd.DataFrame({
            name: pd.Series(
                [p.value for p in points],
                index=pd.DatetimeIndex([p.timestamp for p in points], tz='UTC'),
                dtype=float,
            )
            for name, points in columns.items()
        })
        frame.index.name = 'timestamp'
        return frame


@dataclass
class ProjectedSeries(SupplyBreakdown):
    """Projection output.

    The four inherited series hold the projected points, each starting with
    the last historical point as an anchor. `historical` holds the sampled
    history; `supply_by_timestamp` covers both.
    """
    historical: SupplyBreakdown = field(default_factory=SupplyBreakdown)
    supply_by_timestamp: Dict[datetime, float] = field(default_factory=dict)
    peak_supply: Optional[TimePoint] = None
    horizon_days: int = 0

    def supply_at(self, timestamp: datetime) -> Optional[float]:
        """Total supply at an emitted timestamp, historical or projected."""
        return self.supply_by_timestamp.get(timestamp)


@dataclass(frozen=True)
class DailyProjectionState:
    """Accumulator folded through the daily loop."""
    supply: float
    staked: float


def _move_toward(staked: float, target: float) -> float:
    """Move staked one day's churn toward target without overshooting."""
    if staked < target:
        return min(target, staked + daily_stake_change(staked))
    if staked > target:
        return max(target, staked - daily_stake_change(staked))
    return staked


class DailySupplyProjector:
    """Daily supply projection engine.

    Holds only settings; every call to `project` builds its own state.
    """

    def __init__(self, settings: Optional[ProjectionSettings] = None):
        """
        Initialize projector.

        Args:
            settings: Model constants (defaults to ProjectionSettings())
        """
        self.settings = settings or ProjectionSettings()

    def horizon_days(self, historical: HistoricalInputs) -> int:
        """Number of days to project: a fraction of the historical span, at least one."""
        span = historical.last_date - historical.first_date
        days_of_data = span.total_seconds() / 86400
        return max(1, math.floor(days_of_data * self.settings.horizon_fraction))

    def sample_history(self, historical: HistoricalInputs) -> SupplyBreakdown:
        """
        Sample history into the four-bucket breakdown.

        In-contract data counts staked ETH as well, so staked is subtracted
        from it. Dates without a contract measurement report zero.
        """
        stride = self.settings.sample_stride_days
        staked_by_date = series_to_map(historical.staked_supply)
        fraction_by_date = series_to_map(historical.in_contract_fraction)
        last_index = len(historical.total_supply) - 1

        breakdown = SupplyBreakdown()
        for i, point in enumerate(historical.total_supply):
            if i % stride != 0 and i < last_index:
                continue

            staked = staked_by_date.get(point.timestamp, 0.0)
            non_staked = point.value - staked
            if staked:
                breakdown.staked.append(TimePoint(point.timestamp, staked))

            fraction = fraction_by_date.get(point.timestamp)
            in_contract = fraction * point.value - staked if fraction is not None else 0.0

            breakdown.in_contract.append(TimePoint(point.timestamp, in_contract))
            breakdown.in_addresses.append(TimePoint(point.timestamp, non_staked - in_contract))
            breakdown.supply.append(TimePoint(point.timestamp, point.value))

        return breakdown

    def step(
        self,
        state: DailyProjectionState,
        date: datetime,
        params: ProjectionParameters
    ) -> DailyProjectionState:
        """
        Advance the projection by one day.

        Args:
            state: State at the end of the previous day
            date: Date being projected
            params: Projection assumptions

        Returns:
            State at the end of `date`
        """
        staked = _move_toward(state.staked, params.target_staked_amount)

        new_issuance = daily_issuance(staked)
        if date < params.transition_date:
            new_issuance += self.settings.pow_daily_issuance

        burn = 0.0
        if date >= self.settings.fee_burn_activation_date:
            burn = daily_fee_burn(params.assumed_base_fee)

        supply = max(state.supply + new_issuance - burn, 0.0)
        return replace(state, supply=supply, staked=staked)

    def project(self, historical: HistoricalInputs, params: ProjectionParameters) -> ProjectedSeries:
        """
        Project supply forward from history.

        Args:
            historical: Daily history, at least two supply points
            params: Projection assumptions

        Returns:
            ProjectedSeries with sampled history and projection

        Raises:
            InvalidInputError: If the history violates a precondition
        """
        historical.validate()
        stride = self.settings.sample_stride_days

        history = self.sample_history(historical)
        result = ProjectedSeries(historical=history)
        result.supply_by_timestamp = series_to_map(history.supply)
        result.peak_supply = find_peak_supply(historical.total_supply)

        # Anchor the projection on the last sampled history point.
        result.supply.append(history.supply[-1])
        result.staked.append(
            history.staked[-1] if history.staked
            else TimePoint(historical.staked_supply[-1].timestamp, historical.last_staked)
        )
        result.in_contract.append(history.in_contract[-1])
        result.in_addresses.append(history.in_addresses[-1])
        last_contract = history.in_contract[-1].value

        horizon = self.horizon_days(historical)
        result.horizon_days = horizon
        start = historical.last_date.replace(hour=0, minute=0, second=0, microsecond=0)
        state = DailyProjectionState(supply=historical.last_supply, staked=historical.last_staked)
        logger.debug(
            "Projecting %d days from %s (supply=%.0f, staked=%.0f, target=%.0f)",
            horizon, start.date(), state.supply, state.staked, params.target_staked_amount
        )

        for i in range(horizon):
            proj_date = start + timedelta(days=i + 1)
            state = self.step(state, proj_date, params)

            if i % stride != 0 and i < horizon - 1:
                continue

            non_staked = max(state.supply - state.staked, 0.0)
            in_contract = min(last_contract, non_staked)
            in_addresses = non_staked - in_contract
            if in_addresses < in_contract * MIN_ADDRESS_TO_CONTRACT_RATIO:
                in_contract = math.floor(non_staked * 2 / 3)
                in_addresses = non_staked - in_contract

            adjusted_supply = max(state.supply, state.staked)

            result.in_contract.append(TimePoint(proj_date, in_contract))
            result.in_addresses.append(TimePoint(proj_date, in_addresses))
            result.staked.append(TimePoint(proj_date, state.staked))
            result.supply.append(TimePoint(proj_date, adjusted_supply))
            result.supply_by_timestamp[proj_date] = adjusted_supply

        logger.debug(
            "Projection finished: %d points, final supply=%.0f, final staked=%.0f",
            len(result.supply) - 1, state.supply, state.staked
        )
        return result


def project_supply(
    historical: HistoricalInputs,
    params: ProjectionParameters,
    settings: Optional[ProjectionSettings] = None
) -> ProjectedSeries:
    """Run a single projection with the given (or default) settings."""
    return DailySupplyProjector(settings).project(historical, params)
