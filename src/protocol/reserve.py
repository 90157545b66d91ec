"""Reserve listing and market group dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.data.constants import ADDRESS_LENGTH
from src.protocol.flags import EngineFlag
from src.protocol.interest_rate import InterestRateCurve
from src.protocol.liquidation import LiquidationParams


@dataclass(frozen=True, order=True)
class Address:
    """Opaque on-chain address.

    Holds the raw bytes as given; a wrong length is kept so that it can be
    reported rather than rejected at construction.
    """

    raw: bytes

    @classmethod
    def from_hex(cls, value: str) -> Address:
        if not isinstance(value, str):
            raise ValueError(f"Address must be a hex string: {value!r}")
        text = value.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        if len(text) % 2:
            raise ValueError(f"Odd-length hex address: {value!r}")
        return cls(bytes.fromhex(text))

    @property
    def is_well_formed(self) -> bool:
        return len(self.raw) == ADDRESS_LENGTH

    @property
    def is_zero(self) -> bool:
        return not any(self.raw)

    def to_hex(self) -> str:
        return "0x" + self.raw.hex()

    def __str__(self) -> str:
        return self.to_hex()


class ReserveRole(Enum):
    """Role of a listing inside its market, derived from its flags."""

    BORROW = "borrow"
    COLLATERAL = "collateral"
    INERT = "inert"


# Python attribute -> configuration engine field name
FIELD_NAMES: dict[str, str] = {
    "asset": "asset",
    "asset_symbol": "assetSymbol",
    "price_feed": "priceFeed",
    "rate_strategy_params": "rateStrategyParams",
    "enabled_to_borrow": "enabledToBorrow",
    "flashloanable": "flashloanable",
    "stable_rate_mode_enabled": "stableRateModeEnabled",
    "borrowable_in_isolation": "borrowableInIsolation",
    "with_siloed_borrowing": "withSiloedBorrowing",
    "ltv": "ltv",
    "liq_threshold": "liqThreshold",
    "liq_bonus": "liqBonus",
    "reserve_factor": "reserveFactor",
    "supply_cap": "supplyCap",
    "borrow_cap": "borrowCap",
    "debt_ceiling": "debtCeiling",
    "liq_protocol_fee": "liqProtocolFee",
    "emode_category": "eModeCategory",
}

FLAG_FIELDS = (
    "enabled_to_borrow",
    "flashloanable",
    "stable_rate_mode_enabled",
    "borrowable_in_isolation",
    "with_siloed_borrowing",
)
RISK_BPS_FIELDS = ("ltv", "liq_threshold", "liq_bonus", "reserve_factor", "liq_protocol_fee")
CAPACITY_FIELDS = ("supply_cap", "borrow_cap", "debt_ceiling")


@dataclass(frozen=True)
class ReserveListing:
    """A single reserve to be listed or updated through the config engine."""

    asset: Address
    asset_symbol: str
    price_feed: Address
    rate_strategy_params: InterestRateCurve
    enabled_to_borrow: EngineFlag
    flashloanable: EngineFlag
    stable_rate_mode_enabled: EngineFlag
    borrowable_in_isolation: EngineFlag
    with_siloed_borrowing: EngineFlag
    ltv: int
    liq_threshold: int
    liq_bonus: int
    reserve_factor: int
    supply_cap: int
    borrow_cap: int
    debt_ceiling: int  # USD, 2 decimals
    liq_protocol_fee: int
    emode_category: int = 0

    @property
    def role(self) -> ReserveRole:
        if self.enabled_to_borrow is EngineFlag.ENABLED:
            return ReserveRole.BORROW
        if self.ltv > 0 or self.liq_threshold > 0:
            return ReserveRole.COLLATERAL
        return ReserveRole.INERT

    @property
    def liquidation_params(self) -> LiquidationParams:
        return LiquidationParams(
            ltv=self.ltv,
            liquidation_threshold=self.liq_threshold,
            liquidation_bonus=self.liq_bonus,
        )


@dataclass(frozen=True)
class MarketGroup:
    """A named trading pair; listing order is presentation only."""

    name: str
    listings: tuple[ReserveListing, ...]

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "listings", tuple(self.listings))

    def borrowable(self) -> list[ReserveListing]:
        return [entry for entry in self.listings if entry.role is ReserveRole.BORROW]
