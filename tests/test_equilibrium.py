"""Tests for the equilibrium solver."""

import math
import pytest
import sys
import os
from datetime import timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from ethsupply.config.schema import EquilibriumParameters, EquilibriumSettings
from ethsupply.engine.burn import burn_from_fraction
from ethsupply.engine.equilibrium import (
    EquilibriumSolver,
    initial_equilibrium_parameters,
    monthly_points,
    solve_equilibrium,
)
from ethsupply.engine.issuance import issuance_apr, issuance_per_year, staked_amount_from_apr
from ethsupply.engine.series import TimePoint
from ethsupply.errors import DegenerateInputError, InvalidInputError
from ethsupply.validation import SanityChecker

from helpers import make_history, utc


def daily_supply(days=90, start=None, supply0=120_000_000.0):
    start = start or utc(2023, 1, 1)
    return [TimePoint(start + timedelta(days=i), supply0) for i in range(days)]


class TestMonthlyPoints:
    """Reduction of history to one point per month."""

    def test_first_point_of_each_month(self):
        points = monthly_points(daily_supply(days=90))
        assert [p.timestamp for p in points] == [utc(2023, 1, 1), utc(2023, 2, 1), utc(2023, 3, 1)]

    def test_same_month_next_year_is_kept(self):
        series = [TimePoint(utc(2022, 1, 15), 1.0), TimePoint(utc(2023, 1, 15), 2.0)]
        assert monthly_points(series) == series

    def test_input_not_mutated(self):
        series = daily_supply(days=40)
        monthly_points(series)
        assert len(series) == 40


class TestSteadyState:
    """Long-horizon balance of issuance and burn."""

    def test_issuance_matches_burn_at_equilibrium(self):
        """5% APR and 2% burn from 120M: burn on final non-staked supply matches issuance."""
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.02)
        result = solve_equilibrium(daily_supply(days=1), params)
        burn = burn_from_fraction(0.02, result.non_staked_supply_equilibrium)
        assert issuance_per_year(result.staked_equilibrium) == pytest.approx(burn, rel=0.01)

    def test_close_to_analytic_fixed_point(self):
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.02)
        result = solve_equilibrium(daily_supply(days=1), params)
        assert result.non_staked_supply_equilibrium == pytest.approx(
            result.analytic_non_staked_equilibrium, rel=0.01
        )

    def test_sanity_checker_sees_convergence(self):
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.02)
        result = solve_equilibrium(daily_supply(days=1), params)
        assert SanityChecker().check_equilibrium(result) == []

    def test_short_horizon_flagged_as_unconverged(self):
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.02)
        result = EquilibriumSolver(EquilibriumSettings(iterations=5)).solve(daily_supply(days=1), params)
        warnings = SanityChecker().check_equilibrium(result)
        assert [w.category for w in warnings] == ["convergence"]

    def test_no_burn_grows_every_year(self):
        params = EquilibriumParameters(staking_apr_fraction=0.04, non_staked_burn_fraction=0.0)
        result = solve_equilibrium(daily_supply(days=1), params)
        values = [p.value for p in result.series]
        assert all(b > a for a, b in zip(values, values[1:]))
        assert result.analytic_non_staked_equilibrium is None


class TestResult:
    """Shape and scalar readouts of the result."""

    @pytest.fixture
    def params(self):
        return EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.01)

    def test_series_is_monthly_history_then_yearly_horizon(self, params):
        result = solve_equilibrium(daily_supply(days=90), params)
        assert len(result.series) == 3 + 300
        assert result.series[3].timestamp == utc(2024, 3, 1)
        assert result.series[-1].timestamp == utc(2023 + 300, 3, 1)

    def test_iterations_configurable(self, params):
        solver = EquilibriumSolver(EquilibriumSettings(iterations=10))
        result = solver.solve(daily_supply(days=1), params)
        assert len(result.series) == 11

    def test_staked_fixed_by_apr(self, params):
        result = solve_equilibrium(daily_supply(days=1), params)
        assert result.staked_equilibrium == staked_amount_from_apr(0.05)
        assert result.cash_flows_equilibrium_issuance == issuance_per_year(result.staked_equilibrium)
        assert result.yearly_issuance_fraction == issuance_apr(result.staked_equilibrium)
        assert result.yearly_issuance_fraction == pytest.approx(0.05, rel=1e-6)

    def test_final_values(self, params):
        result = solve_equilibrium(daily_supply(days=1), params)
        assert result.supply_equilibrium == result.series[-1].value
        assert result.non_staked_supply_equilibrium == pytest.approx(
            result.supply_equilibrium - result.staked_equilibrium
        )

    def test_supply_lookup(self, params):
        result = solve_equilibrium(daily_supply(days=90), params)
        for point in result.series:
            assert result.supply_by_timestamp[point.timestamp] == point.value

    def test_leap_day_advances_to_feb_28(self, params):
        series = [TimePoint(utc(2024, 2, 29), 120_000_000.0)]
        result = EquilibriumSolver(EquilibriumSettings(iterations=1)).solve(series, params)
        assert result.series[-1].timestamp == utc(2025, 2, 28)


class TestPreconditions:
    """Invalid inputs fail fast."""

    def test_empty_series_rejected(self):
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.01)
        with pytest.raises(InvalidInputError):
            solve_equilibrium([], params)

    def test_unordered_series_rejected(self):
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.01)
        with pytest.raises(InvalidInputError):
            solve_equilibrium(list(reversed(daily_supply(days=3))), params)

    def test_nan_supply_rejected(self):
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.01)
        with pytest.raises(InvalidInputError):
            solve_equilibrium([TimePoint(utc(2023, 1, 1), math.nan)], params)

    def test_infinite_supply_rejected(self):
        params = EquilibriumParameters(staking_apr_fraction=0.05, non_staked_burn_fraction=0.01)
        series = daily_supply(days=3) + [TimePoint(utc(2023, 1, 4), math.inf)]
        with pytest.raises(InvalidInputError):
            solve_equilibrium(series, params)

    def test_stake_above_supply_is_degenerate(self):
        """1% APR needs about 277M staked, more than a 120M supply."""
        params = EquilibriumParameters(staking_apr_fraction=0.01, non_staked_burn_fraction=0.01)
        assert staked_amount_from_apr(0.01) > 120_000_000
        with pytest.raises(DegenerateInputError):
            solve_equilibrium(daily_supply(days=3), params)


class TestInitialParameters:
    """Starting slider values from the current chain state."""

    def test_matches_current_apr_and_burn(self):
        historical = make_history(staked=20_000_000)
        params = initial_equilibrium_parameters(historical, burn_rate_wei_per_minute=2e18)
        non_staked = historical.last_supply - 20_000_000
        assert params.staking_apr_fraction == issuance_apr(20_000_000)
        assert params.non_staked_burn_fraction == pytest.approx(2 * 365.25 * 24 * 60 / non_staked)

    def test_everything_staked_is_degenerate(self):
        historical = make_history(supply0=10_000_000, daily_growth=0, staked=10_000_000)
        with pytest.raises(DegenerateInputError):
            initial_equilibrium_parameters(historical, burn_rate_wei_per_minute=1e18)

    def test_tiny_stake_apr_above_one_rejected(self):
        """1 ETH staked earns far more than 100% a year."""
        historical = make_history(staked=1)
        assert issuance_apr(1) > 1
        with pytest.raises(InvalidInputError):
            initial_equilibrium_parameters(historical, burn_rate_wei_per_minute=2e18)

    def test_burn_above_non_staked_supply_rejected(self):
        """1000 ETH/min burns several times the non-staked supply per year."""
        historical = make_history()
        with pytest.raises(InvalidInputError):
            initial_equilibrium_parameters(historical, burn_rate_wei_per_minute=1e21)

    def test_negative_burn_rate_rejected(self):
        with pytest.raises(InvalidInputError):
            initial_equilibrium_parameters(make_history(), burn_rate_wei_per_minute=-1e18)
