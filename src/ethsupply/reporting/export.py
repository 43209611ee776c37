"""Export functionality for CSV and JSON."""

import json
from typing import Any, Dict, Optional

import pandas as pd

from ..config.schema import Config
from ..engine.equilibrium import EquilibriumResult
from ..engine.projection import ProjectedSeries


def projection_frame(projected: ProjectedSeries) -> pd.DataFrame:
    """Historical and projected breakdown in one frame, flagged by `projected`."""
    historical = projected.historical.to_frame()
    historical['projected'] = False
    # Projected series open with the last historical point; keep only later rows.
    future = projected.to_frame()
    future = future[future.index > historical.index.max()].copy()
    future['projected'] = True
    return pd.concat([historical, future])


def export_csv(projected: ProjectedSeries, filepath: str):
    """Export the supply breakdown to CSV."""
    df = projection_frame(projected).reset_index()
    df.insert(1, 'unix', df['timestamp'].map(lambda ts: int(ts.timestamp())))
    df.to_csv(filepath, index=False)


def _points(series) -> list:
    return [{'t': p.timestamp.isoformat(), 'v': p.value} for p in series]


def equilibrium_summary(result: EquilibriumResult) -> Dict[str, Any]:
    """Scalar readouts of an equilibrium run."""
    return {
        'supply_equilibrium': result.supply_equilibrium,
        'non_staked_supply_equilibrium': result.non_staked_supply_equilibrium,
        'staked_equilibrium': result.staked_equilibrium,
        'cash_flows_equilibrium_issuance': result.cash_flows_equilibrium_issuance,
        'yearly_issuance_fraction': result.yearly_issuance_fraction,
        'analytic_non_staked_equilibrium': result.analytic_non_staked_equilibrium,
    }


def export_json(
    projected: ProjectedSeries,
    filepath: str,
    equilibrium: Optional[EquilibriumResult] = None,
    config: Optional[Config] = None
):
    """Export projection (and optionally equilibrium) results to JSON."""
    export_data = {
        'historical': {
            'supply': _points(projected.historical.supply),
            'staked': _points(projected.historical.staked),
            'in_contract': _points(projected.historical.in_contract),
            'in_addresses': _points(projected.historical.in_addresses),
        },
        'projected': {
            'supply': _points(projected.supply),
            'staked': _points(projected.staked),
            'in_contract': _points(projected.in_contract),
            'in_addresses': _points(projected.in_addresses),
        },
        'peak_supply': (
            {'t': projected.peak_supply.timestamp.isoformat(), 'v': projected.peak_supply.value}
            if projected.peak_supply else None
        ),
    }
    if equilibrium is not None:
        export_data['equilibrium'] = {
            'series': _points(equilibrium.series),
            **equilibrium_summary(equilibrium),
        }
    if config is not None:
        export_data['config'] = config.model_dump(mode='json')
        export_data['config_hash'] = config.compute_hash()

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)
