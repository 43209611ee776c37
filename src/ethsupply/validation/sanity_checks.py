"""Sanity checks for projection and equilibrium outputs."""

import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..config.schema import EquilibriumSettings
from ..engine.burn import burn_from_fraction
from ..engine.equilibrium import EquilibriumResult
from ..engine.projection import ProjectedSeries, SupplyBreakdown
from ..engine.series import series_to_map


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "bounds", "conservation", "convergence"
    message: str
    details: Optional[str] = None


class SanityChecker:
    """Run sanity checks on engine outputs."""

    def __init__(self, settings: Optional[EquilibriumSettings] = None, tolerance: float = 1e-6):
        """Initialize with equilibrium settings and an absolute ETH tolerance."""
        self.settings = settings or EquilibriumSettings()
        self.tolerance = tolerance

    def check_breakdown(self, breakdown: SupplyBreakdown, label: str) -> List[ValidationWarning]:
        """
        Check supply, staked and bucket invariants at every sampled timestamp.

        Args:
            breakdown: Series to check
            label: "historical" or "projected", used in messages

        Returns:
            List of validation warnings
        """
        warnings = []
        staked_by_date = series_to_map(breakdown.staked)
        contract_by_date = series_to_map(breakdown.in_contract)
        address_by_date = series_to_map(breakdown.in_addresses)

        values = np.array([p.value for p in breakdown.supply], dtype=float)
        if values.size and not np.all(np.isfinite(values)):
            warnings.append(ValidationWarning(
                severity="error",
                category="nan",
                message=f"Invalid {label} supply values detected",
                details=f"{int(np.sum(~np.isfinite(values)))} non-finite point(s)"
            ))
            return warnings

        if values.size and values.min() < -self.tolerance:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"{label.capitalize()} supply went negative",
                details=f"Minimum: {values.min():,.0f} ETH"
            ))

        for point in breakdown.supply:
            staked = staked_by_date.get(point.timestamp)
            if staked is None:
                continue
            when = point.timestamp.date().isoformat()

            if point.value < staked - self.tolerance:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="bounds",
                    message=f"{label.capitalize()} supply below staked on {when}",
                    details=f"Supply: {point.value:,.0f} ETH, Staked: {staked:,.0f} ETH"
                ))

            in_contract = contract_by_date.get(point.timestamp)
            in_addresses = address_by_date.get(point.timestamp)
            if in_contract is None or in_addresses is None:
                continue
            expected = point.value - staked
            scaled_tolerance = max(self.tolerance, abs(point.value) * 1e-9)
            if abs(in_contract + in_addresses - expected) > scaled_tolerance:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"{label.capitalize()} buckets don't sum to non-staked supply on {when}",
                    details=(
                        f"Contracts + addresses = {in_contract + in_addresses:,.2f} ETH, "
                        f"supply - staked = {expected:,.2f} ETH"
                    )
                ))

        return warnings

    def check_projection(self, projected: ProjectedSeries) -> List[ValidationWarning]:
        """Check the projected series (the historical breakdown is input data and not checked)."""
        return self.check_breakdown(projected, "projected")

    def check_equilibrium(self, result: EquilibriumResult) -> List[ValidationWarning]:
        """
        Check equilibrium scalars and whether the horizon reached steady state.

        Args:
            result: Solver output

        Returns:
            List of validation warnings
        """
        warnings = []

        scalars = [
            ("supply_equilibrium", result.supply_equilibrium),
            ("non_staked_supply_equilibrium", result.non_staked_supply_equilibrium),
            ("staked_equilibrium", result.staked_equilibrium),
            ("cash_flows_equilibrium_issuance", result.cash_flows_equilibrium_issuance),
        ]
        for name, value in scalars:
            if math.isnan(value) or math.isinf(value):
                warnings.append(ValidationWarning(
                    severity="error",
                    category="nan",
                    message=f"Invalid equilibrium value for {name}",
                    details=f"Value: {value}"
                ))
        if warnings:
            return warnings

        if result.non_staked_supply_equilibrium < 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message="Non-staked supply equilibrium is negative",
                details=(
                    f"Staked {result.staked_equilibrium:,.0f} ETH exceeds the "
                    f"equilibrium supply of {result.supply_equilibrium:,.0f} ETH"
                )
            ))

        issuance = result.cash_flows_equilibrium_issuance
        if issuance > 0 and result.non_staked_burn_fraction > 0:
            burn = burn_from_fraction(
                result.non_staked_burn_fraction, result.non_staked_supply_equilibrium
            )
            gap = abs(burn - issuance) / issuance
            if gap > self.settings.convergence_tolerance:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="convergence",
                    message=f"Burn and issuance still differ by {gap*100:.1f}% at the end of the horizon",
                    details=(
                        f"Burn: {burn:,.0f} ETH/yr, Issuance: {issuance:,.0f} ETH/yr. "
                        "Consider more iterations."
                    )
                ))

        return warnings


def validate_projection_results(
    projected: ProjectedSeries,
    equilibrium: Optional[EquilibriumResult] = None,
    settings: Optional[EquilibriumSettings] = None
) -> List[ValidationWarning]:
    """
    Validate complete engine results.

    Args:
        projected: Daily projector output
        equilibrium: Optional equilibrium solver output
        settings: Equilibrium settings providing the convergence tolerance

    Returns:
        List of all validation warnings
    """
    checker = SanityChecker(settings)
    warnings = checker.check_projection(projected)
    if equilibrium is not None:
        warnings.extend(checker.check_equilibrium(equilibrium))
    return warnings
