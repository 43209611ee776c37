"""Issuance/APR model - Proof-of-stake issuance as a function of staked ETH.

Key Concepts:
- Balances are converted to Gwei, the unit the consensus layer accounts in
- Max issuance per epoch: trunc(BASE_REWARD_FACTOR * b / floor(sqrt(b)))
- Per-validator yield falls with the square root of total stake
- The APR -> staked inverse is approximate; the forward formula floors and
  truncates, so the round trip is only accurate to roughly 1e-8 relative
"""

import math

from ..errors import DegenerateInputError, InvalidInputError

GWEI_PER_ETH = 1e9

BASE_REWARD_FACTOR = 64
BASE_REWARDS_PER_EPOCH = 4
MAX_EFFECTIVE_BALANCE_ETH = 32
MAX_EFFECTIVE_BALANCE = MAX_EFFECTIVE_BALANCE_ETH * GWEI_PER_ETH  # Gwei

SECONDS_PER_SLOT = 12
SLOTS_PER_EPOCH = 32
EPOCHS_PER_DAY = (24 * 60 * 60) / SLOTS_PER_EPOCH / SECONDS_PER_SLOT
EPOCHS_PER_YEAR = 365.25 * EPOCHS_PER_DAY
DAYS_PER_YEAR = 365.25

# Validator churn limit
MIN_PER_EPOCH_CHURN_LIMIT = 4
CHURN_LIMIT_QUOTIENT = 65536


def _check_stake(staked_amount: float) -> None:
    if staked_amount < 0:
        raise InvalidInputError(f"Staked amount must be non-negative, got {staked_amount}")


def _max_issuance_per_epoch(balance_gwei: float) -> float:
    return math.trunc(BASE_REWARD_FACTOR * balance_gwei / math.floor(math.sqrt(balance_gwei)))


def issuance_per_year(staked_amount: float) -> float:
    """
    Annual proof-of-stake issuance for a given total stake.

    Args:
        staked_amount: Total effective balance staked, in ETH

    Returns:
        ETH issued per year. Zero when less than one Gwei is staked.
    """
    _check_stake(staked_amount)
    balance_gwei = staked_amount * GWEI_PER_ETH
    if balance_gwei < 1:
        return 0.0
    return _max_issuance_per_epoch(balance_gwei) * EPOCHS_PER_YEAR / GWEI_PER_ETH


def issuance_apr(staked_amount: float) -> float:
    """
    Yearly issuance as a fraction of the staked amount.

    Raises:
        DegenerateInputError: If nothing is staked
    """
    _check_stake(staked_amount)
    balance_gwei = staked_amount * GWEI_PER_ETH
    if balance_gwei < 1:
        raise DegenerateInputError("Issuance APR is undefined when nothing is staked")
    return _max_issuance_per_epoch(balance_gwei) * EPOCHS_PER_YEAR / balance_gwei


def staked_amount_from_apr(apr_fraction: float) -> float:
    """
    Staked ETH at which issuance pays the given APR.

    Inverts the reward curve through the per-validator base reward. The
    floor/sqrt/trunc chain in the forward formula is not inverted, so
    `issuance_apr(staked_amount_from_apr(x))` only approximates `x`.

    Args:
        apr_fraction: Target APR, e.g. 0.05 for 5%

    Returns:
        Total staked amount in ETH

    Raises:
        DegenerateInputError: If apr_fraction is not positive
    """
    if not apr_fraction > 0:
        raise DegenerateInputError(f"APR must be positive, got {apr_fraction}")

    base_reward = apr_fraction * MAX_EFFECTIVE_BALANCE / BASE_REWARDS_PER_EPOCH / EPOCHS_PER_YEAR
    active_validators = (
        (MAX_EFFECTIVE_BALANCE * BASE_REWARD_FACTOR / BASE_REWARDS_PER_EPOCH / base_reward) ** 2
        / MAX_EFFECTIVE_BALANCE
    )
    return active_validators * MAX_EFFECTIVE_BALANCE_ETH


def daily_issuance(staked_amount: float) -> float:
    """ETH issued per day at the given stake."""
    return issuance_per_year(staked_amount) / DAYS_PER_YEAR


def daily_stake_change(staked_amount: float) -> float:
    """
    Maximum ETH that can enter or leave staking in one day.

    Bounded by the validator churn limit, which grows with the number of
    active validators: max(4, validators // 65536) per epoch.
    """
    _check_stake(staked_amount)
    active_validators = staked_amount / MAX_EFFECTIVE_BALANCE_ETH
    churn_per_epoch = max(MIN_PER_EPOCH_CHURN_LIMIT, math.floor(active_validators / CHURN_LIMIT_QUOTIENT))
    return churn_per_epoch * EPOCHS_PER_DAY * MAX_EFFECTIVE_BALANCE_ETH
