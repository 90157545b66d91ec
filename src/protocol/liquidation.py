"""Aave V3 liquidation arithmetic on basis-point parameters.

All computations are integer-only so that validation and encoding can never
disagree through rounding.
"""

from dataclasses import dataclass

from src.data.constants import BPS


@dataclass(frozen=True)
class LiquidationParams:
    """Collateral parameters of a reserve, in basis points."""

    ltv: int
    liquidation_threshold: int
    liquidation_bonus: int  # e.g. 5_00 = 5% paid to the liquidator


class LiquidationModel:
    """Liquidation checks for a single reserve."""

    def __init__(self, params: LiquidationParams) -> None:
        self.ltv = params.ltv
        self.liquidation_threshold = params.liquidation_threshold
        self.liquidation_bonus = params.liquidation_bonus

    @property
    def usable_as_collateral(self) -> bool:
        """A zero liquidation threshold disables the asset as collateral."""
        return self.liquidation_threshold > 0

    def liquidation_buffer(self) -> int:
        """Gap between LTV and liquidation threshold, in bps.

        A position opened at max LTV must lose this much collateral value
        before it becomes liquidatable.
        """
        return self.liquidation_threshold - self.ltv

    def has_liquidation_buffer(self) -> bool:
        if not self.usable_as_collateral:
            return True
        return self.ltv < self.liquidation_threshold

    def worst_case_seizure(self) -> int:
        """Collateral seized per unit of collateral value at the threshold, in bps.

        seizure = liq_threshold * (1 + liq_bonus), floored.
        """
        return self.liquidation_threshold * (BPS + self.liquidation_bonus) // BPS

    def is_solvent(self) -> bool:
        """True if a liquidation at the threshold never seizes more than 100%.

        Compared on the unfloored product:
        liq_threshold * (10000 + liq_bonus) <= 10000 * 10000
        """
        return self.liquidation_threshold * (BPS + self.liquidation_bonus) <= BPS * BPS

    def max_liquidation_bonus(self) -> int:
        """Largest bonus, in bps, that keeps the reserve solvent."""
        if self.liquidation_threshold <= 0:
            return BPS
        return BPS * BPS // self.liquidation_threshold - BPS
