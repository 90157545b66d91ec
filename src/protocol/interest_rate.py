"""Aave V3 piecewise linear interest rate curve.

Replicates DefaultReserveInterestRateStrategyV2 for listing review. The curve
itself is stored in basis points; floats appear only in the preview model.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from src.data.constants import BPS


@dataclass(frozen=True)
class InterestRateCurve:
    """Rate strategy inputs in basis points (e.g. 80_00 = 80%)."""

    optimal_usage_ratio: int
    base_variable_borrow_rate: int
    variable_rate_slope1: int
    variable_rate_slope2: int

    # Diagnostic names, as the configuration engine spells them
    FIELD_NAMES = {
        "optimal_usage_ratio": "optimalUsageRatio",
        "base_variable_borrow_rate": "baseVariableBorrowRate",
        "variable_rate_slope1": "variableRateSlope1",
        "variable_rate_slope2": "variableRateSlope2",
    }

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, attr) for attr, name in self.FIELD_NAMES.items()}


class InterestRateModel:
    """Variable rate preview for a listed curve (kinked model)."""

    def __init__(self, curve: InterestRateCurve, reserve_factor: int = 0) -> None:
        self.curve = curve
        self.reserve_factor = reserve_factor

    @property
    def optimal_utilization(self) -> float:
        return self.curve.optimal_usage_ratio / BPS

    def variable_borrow_rate(self, utilization: float) -> float:
        """Compute variable borrow rate for a given utilization.

        Args:
            utilization: Pool utilization ratio in [0, 1].

        Returns:
            Annual borrow rate as a decimal (e.g. 0.05 = 5%).
        """
        c = self.curve
        base = c.base_variable_borrow_rate / BPS
        slope1 = c.variable_rate_slope1 / BPS
        slope2 = c.variable_rate_slope2 / BPS
        optimal = self.optimal_utilization

        if utilization <= 0:
            return base
        if utilization >= 1.0:
            utilization = 1.0

        if optimal >= 1.0:
            return base + utilization * slope1
        if optimal <= 0.0:
            return base + slope1 + utilization * slope2
        if utilization <= optimal:
            return base + (utilization / optimal) * slope1
        excess = (utilization - optimal) / (1.0 - optimal)
        return base + slope1 + excess * slope2

    def supply_rate(self, utilization: float) -> float:
        """Compute supply (deposit) rate.

        R_supply = R_borrow * U * (1 - reserve_factor)
        """
        utilization = max(0.0, min(1.0, utilization))
        borrow_rate = self.variable_borrow_rate(utilization)
        return borrow_rate * utilization * (1.0 - self.reserve_factor / BPS)

    def rate_curve(self, n_points: int = 200) -> pd.DataFrame:
        """Generate the full rate curve for plotting.

        Returns:
            DataFrame with columns: utilization, borrow_rate, supply_rate
        """
        utilizations = np.linspace(0, 1, n_points)
        borrow_rates = [self.variable_borrow_rate(u) for u in utilizations]
        supply_rates = [self.supply_rate(u) for u in utilizations]

        return pd.DataFrame(
            {
                "utilization": utilizations,
                "borrow_rate": borrow_rates,
                "supply_rate": supply_rates,
            }
        )

    def key_points(self) -> pd.DataFrame:
        """Rates at zero, optimal and full utilization."""
        points = [0.0, self.optimal_utilization, 1.0]
        return pd.DataFrame(
            {
                "utilization": points,
                "borrow_rate": [self.variable_borrow_rate(u) for u in points],
                "supply_rate": [self.supply_rate(u) for u in points],
            }
        )
