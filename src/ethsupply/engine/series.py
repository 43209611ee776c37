"""Time series primitives shared by the projector and the equilibrium solver.

A series is a plain list of `TimePoint`, time-ascending, one point per
timestamp. Timestamps are aware UTC datetimes.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from ..errors import InvalidInputError

TimestampLike = Union[datetime, str, int, float, pd.Timestamp]


def to_utc_datetime(value: TimestampLike) -> datetime:
    """
    Convert an ISO-8601 string, Unix seconds or datetime into an aware UTC datetime.

    Naive datetimes are taken to be UTC.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert("UTC").to_pydatetime()


@dataclass(frozen=True)
class TimePoint:
    """A single (timestamp, value) observation."""
    timestamp: datetime
    value: float

    @property
    def unix(self) -> int:
        """Timestamp as Unix seconds."""
        return int(self.timestamp.timestamp())


Series = List[TimePoint]


def series_from_pairs(pairs: Iterable[Tuple[TimestampLike, float]]) -> Series:
    """Build a series from (timestamp, value) pairs."""
    return [TimePoint(to_utc_datetime(t), float(v)) for t, v in pairs]


def series_from_records(records: Iterable[Mapping[str, Any]]) -> Series:
    """Build a series from `{"t": ..., "v": ...}` records as served by the supply API."""
    return [TimePoint(to_utc_datetime(r["t"]), float(r["v"])) for r in records]


def validate_series(series: Series, name: str, min_points: int = 1) -> None:
    """
    Check a series is long enough, finite and strictly time-ascending.

    Raises:
        InvalidInputError: On too few points, NaN/Inf values or non-increasing timestamps
    """
    if len(series) < min_points:
        raise InvalidInputError(
            f"{name} needs at least {min_points} point(s), got {len(series)}"
        )
    for point in series:
        if not math.isfinite(point.value):
            raise InvalidInputError(
                f"{name} has a non-finite value at {point.timestamp.isoformat()}: {point.value}"
            )
    for prev, point in zip(series, series[1:]):
        if point.timestamp <= prev.timestamp:
            raise InvalidInputError(
                f"{name} timestamps must be strictly ascending: "
                f"{point.timestamp.isoformat()} follows {prev.timestamp.isoformat()}"
            )


def series_to_map(series: Series) -> Dict[datetime, float]:
    """Index a series by timestamp."""
    return {p.timestamp: p.value for p in series}


def find_peak_supply(series: Series) -> Optional[TimePoint]:
    """
    Return the highest supply point, but only once supply has fallen below it.

    A series that has only ever grown has no peak yet and yields None.
    """
    peak: Optional[TimePoint] = None
    declined = False
    for point in series:
        if peak is None or point.value > peak.value:
            peak = point
            declined = False
        elif point.value < peak.value:
            declined = True
    return peak if declined else None


@dataclass
class HistoricalInputs:
    """Pre-fetched daily history the projection starts from.

    `staked_supply` and `in_contract_fraction` may cover only part of the
    `total_supply` range; dates without data read as "not measured".
    """
    total_supply: Series
    staked_supply: Series
    in_contract_fraction: Series = field(default_factory=list)

    def validate(self) -> None:
        """
        Check the history satisfies the projector's preconditions.

        Raises:
            InvalidInputError: If a series is too short, unordered, or staked exceeds supply
        """
        validate_series(self.total_supply, "total_supply", min_points=2)
        validate_series(self.staked_supply, "staked_supply", min_points=1)
        validate_series(self.in_contract_fraction, "in_contract_fraction", min_points=0)

        supply_by_date = series_to_map(self.total_supply)
        for point in self.staked_supply:
            supply = supply_by_date.get(point.timestamp)
            if point.value < 0:
                raise InvalidInputError(
                    f"Negative staked supply at {point.timestamp.isoformat()}: {point.value}"
                )
            if supply is not None and point.value > supply:
                raise InvalidInputError(
                    f"Staked supply exceeds total supply at {point.timestamp.isoformat()}: "
                    f"{point.value:,.0f} > {supply:,.0f}"
                )

    @property
    def first_date(self) -> datetime:
        return self.total_supply[0].timestamp

    @property
    def last_date(self) -> datetime:
        return self.total_supply[-1].timestamp

    @property
    def last_supply(self) -> float:
        return self.total_supply[-1].value

    @property
    def last_staked(self) -> float:
        return self.staked_supply[-1].value

    @property
    def non_staked_supply(self) -> float:
        """Latest total supply minus latest staked supply."""
        return self.last_supply - self.last_staked
