"""Equilibrium solver - Long-horizon supply under fixed staking and burn assumptions.

Key Concepts:
- Staked amount is derived once from the staking APR and held fixed
- Yearly issuance is constant: issuance_per_year(staked)
- Yearly burn is a fixed fraction of non-staked supply, so non-staked supply
  approaches issuance / burn_fraction
- The fixed point is approximated by simulating `iterations` years (300 by
  default). This is a modelling choice that converges for realistic
  parameter ranges, not a guaranteed convergence bound.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from ..config.schema import EquilibriumParameters, EquilibriumSettings
from ..errors import DegenerateInputError, InvalidInputError
from .burn import burn_from_fraction, fraction_from_burn_rate
from .issuance import issuance_apr, issuance_per_year, staked_amount_from_apr
from .series import HistoricalInputs, Series, TimePoint, series_to_map, validate_series

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EquilibriumResult:
    """Equilibrium solver output."""
    series: Series
    supply_equilibrium: float
    non_staked_supply_equilibrium: float
    staked_equilibrium: float
    cash_flows_equilibrium_issuance: float
    yearly_issuance_fraction: float
    non_staked_burn_fraction: float
    supply_by_timestamp: Dict[datetime, float] = field(default_factory=dict)

    @property
    def analytic_non_staked_equilibrium(self) -> Optional[float]:
        """Non-staked supply at which burn exactly matches issuance, if burn is non-zero."""
        if self.non_staked_burn_fraction <= 0:
            return None
        return self.cash_flows_equilibrium_issuance / self.non_staked_burn_fraction


def monthly_points(series: Series) -> Series:
    """Keep the first point of each calendar month."""
    points: Series = []
    for point in series:
        if points:
            last = points[-1].timestamp
            if (last.year, last.month) == (point.timestamp.year, point.timestamp.month):
                continue
        points.append(point)
    return points


def _add_year(timestamp: datetime) -> datetime:
    """Same date next year; Feb 29 becomes Feb 28."""
    try:
        return timestamp.replace(year=timestamp.year + 1)
    except ValueError:
        return timestamp.replace(year=timestamp.year + 1, day=28)


class EquilibriumSolver:
    """Simulates supply year by year until issuance and burn approximately balance."""

    def __init__(self, settings: Optional[EquilibriumSettings] = None):
        self.settings = settings or EquilibriumSettings()

    def solve(self, supply_series: Series, params: EquilibriumParameters) -> EquilibriumResult:
        """
        Solve for the supply equilibrium.

        Args:
            supply_series: Historical total supply, time-ascending
            params: Staking APR and burn fraction assumptions

        Returns:
            EquilibriumResult with monthly history followed by the yearly horizon

        Raises:
            InvalidInputError: If the supply series is empty, unordered or non-finite
            DegenerateInputError: If the APR implies more stake than the latest
                supply, which would start non-staked supply below zero
        """
        validate_series(supply_series, "supply_series", min_points=1)

        series = monthly_points(supply_series)
        supply = series[-1]
        staked = staked_amount_from_apr(params.staking_apr_fraction)
        if staked > supply.value:
            raise DegenerateInputError(
                f"Staking APR {params.staking_apr_fraction} implies {staked:,.0f} ETH staked, "
                f"more than the latest supply of {supply.value:,.0f}"
            )
        non_staked = supply.value - staked
        issuance = issuance_per_year(staked)
        logger.debug(
            "Solving equilibrium: apr=%.4f burn_fraction=%.4f staked=%.0f issuance=%.0f/yr",
            params.staking_apr_fraction, params.non_staked_burn_fraction, staked, issuance
        )

        for _ in range(self.settings.iterations):
            burn = burn_from_fraction(params.non_staked_burn_fraction, non_staked)
            supply = TimePoint(_add_year(supply.timestamp), supply.value + issuance - burn)
            series.append(supply)
            non_staked = supply.value - staked

        logger.debug(
            "Equilibrium after %d years: supply=%.0f non_staked=%.0f",
            self.settings.iterations, supply.value, non_staked
        )

        return EquilibriumResult(
            series=series,
            supply_equilibrium=supply.value,
            non_staked_supply_equilibrium=non_staked,
            staked_equilibrium=staked,
            cash_flows_equilibrium_issuance=issuance,
            yearly_issuance_fraction=issuance_apr(staked),
            non_staked_burn_fraction=params.non_staked_burn_fraction,
            supply_by_timestamp=series_to_map(series),
        )


def solve_equilibrium(
    supply_series: Series,
    params: EquilibriumParameters,
    settings: Optional[EquilibriumSettings] = None
) -> EquilibriumResult:
    """Run the equilibrium solver with the given (or default) settings."""
    return EquilibriumSolver(settings).solve(supply_series, params)


def initial_equilibrium_parameters(
    historical: HistoricalInputs,
    burn_rate_wei_per_minute: float
) -> EquilibriumParameters:
    """
    Starting slider values derived from the current state of the chain.

    Args:
        historical: History whose last points give current supply and stake
        burn_rate_wei_per_minute: Observed average burn rate

    Returns:
        EquilibriumParameters matching today's APR and burn rate

    Raises:
        InvalidInputError: If there is no supply or staking history, or the
            derived APR or burn fraction falls outside (0, 1] / [0, 1]
        DegenerateInputError: If nothing is staked or everything is staked
    """
    if not historical.total_supply or not historical.staked_supply:
        raise InvalidInputError("Initial equilibrium parameters need supply and staking history")

    apr = issuance_apr(historical.last_staked)
    if apr > 1:
        raise InvalidInputError(
            f"Staked amount {historical.last_staked:,.0f} ETH gives an APR of {apr:.2f}, above 100%"
        )
    burn_fraction = fraction_from_burn_rate(historical.non_staked_supply, burn_rate_wei_per_minute)
    if not 0 <= burn_fraction <= 1:
        raise InvalidInputError(
            f"Burn rate {burn_rate_wei_per_minute:g} wei/min is {burn_fraction:.2f} of "
            f"non-staked supply per year, outside [0, 1]"
        )

    return EquilibriumParameters(staking_apr_fraction=apr, non_staked_burn_fraction=burn_fraction)
