"""ethsupply - ETH supply projection and equilibrium engine."""

from .config.schema import (
    Config,
    EquilibriumParameters,
    EquilibriumSettings,
    ProjectionParameters,
    ProjectionSettings,
)
from .engine.equilibrium import EquilibriumResult, EquilibriumSolver, solve_equilibrium
from .engine.projection import DailySupplyProjector, ProjectedSeries, project_supply
from .engine.series import HistoricalInputs, TimePoint
from .errors import DegenerateInputError, InvalidInputError

__version__ = "0.3.0"

__all__ = [
    "Config",
    "DailySupplyProjector",
    "DegenerateInputError",
    "EquilibriumParameters",
    "EquilibriumResult",
    "EquilibriumSettings",
    "EquilibriumSolver",
    "HistoricalInputs",
    "InvalidInputError",
    "ProjectedSeries",
    "ProjectionParameters",
    "ProjectionSettings",
    "TimePoint",
    "project_supply",
    "solve_equilibrium",
]
