"""Shared builders for test histories."""

from datetime import datetime, timedelta, timezone

from ethsupply.engine.series import HistoricalInputs, TimePoint


def utc(year, month, day):
    return datetime(year, month, day, tzinfo=timezone.utc)


def make_history(
    days=61,
    start=None,
    supply0=120_000_000.0,
    daily_growth=2_000.0,
    staked=10_000_000.0,
    contract_fraction=0.3,
):
    """Daily history with linear supply growth, constant stake and contract share."""
    start = start or utc(2023, 1, 1)
    dates = [start + timedelta(days=i) for i in range(days)]
    supply = [TimePoint(d, supply0 + i * daily_growth) for i, d in enumerate(dates)]
    staking = [TimePoint(d, staked) for d in dates]
    contracts = (
        [TimePoint(d, contract_fraction) for d in dates]
        if contract_fraction is not None else []
    )
    return HistoricalInputs(
        total_supply=supply,
        staked_supply=staking,
        in_contract_fraction=contracts,
    )
