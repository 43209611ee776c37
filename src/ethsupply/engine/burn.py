"""Burn model - Supply destroyed by EIP-1559 fee burning."""

from ..errors import DegenerateInputError, InvalidInputError
from .issuance import GWEI_PER_ETH, SECONDS_PER_SLOT

WEI_PER_ETH = 1e18
MINUTES_PER_YEAR = 365.25 * 24 * 60

GAS_PER_BLOCK = 15_000_000  # EIP-1559 gas target
BLOCKS_PER_DAY = 24 * 60 * 60 / SECONDS_PER_SLOT
GAS_PER_DAY = GAS_PER_BLOCK * BLOCKS_PER_DAY


def daily_fee_burn(base_fee: float) -> float:
    """
    Estimate ETH burned per day at a sustained base fee.

    Assumes every block uses the gas target.

    Args:
        base_fee: Base fee in Gwei per gas

    Returns:
        ETH burned per day
    """
    if base_fee < 0:
        raise InvalidInputError(f"Base fee must be non-negative, got {base_fee}")
    return base_fee * GAS_PER_DAY / GWEI_PER_ETH


def burn_from_fraction(yearly_fraction: float, non_staked_supply: float) -> float:
    """ETH burned in a year when a fixed fraction of non-staked supply burns."""
    return yearly_fraction * non_staked_supply


def fraction_from_burn_rate(non_staked_supply: float, wei_per_minute: float) -> float:
    """
    Annualise an observed burn rate as a fraction of non-staked supply.

    Args:
        non_staked_supply: ETH not staked
        wei_per_minute: Observed burn rate in Wei per minute

    Raises:
        DegenerateInputError: If non_staked_supply is not positive
    """
    if non_staked_supply <= 0:
        raise DegenerateInputError(
            f"Burn fraction is undefined for non-staked supply {non_staked_supply}"
        )
    return (wei_per_minute / WEI_PER_ETH) * MINUTES_PER_YEAR / non_staked_supply
