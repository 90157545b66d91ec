"""Shared fixtures: listing builders and the sample markets."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

import pytest

from src.data.sample_listing import load_sample
from src.protocol.flags import EngineFlag
from src.protocol.interest_rate import InterestRateCurve
from src.protocol.reserve import Address, MarketGroup, ReserveListing

ENABLED = EngineFlag.ENABLED
DISABLED = EngineFlag.DISABLED

DEFAULT_CURVE = InterestRateCurve(
    optimal_usage_ratio=80_00,
    base_variable_borrow_rate=25,
    variable_rate_slope1=4_00,
    variable_rate_slope2=75_00,
)


def address(n: int) -> Address:
    return Address(bytes([n]) * 20)


@pytest.fixture
def make_listing() -> Callable[..., ReserveListing]:
    """Build a valid collateral listing; keyword arguments override fields."""

    def _make(n: int = 1, symbol: str = "TKN", **overrides: Any) -> ReserveListing:
        base = ReserveListing(
            asset=address(n),
            asset_symbol=symbol,
            price_feed=address(100 + n),
            rate_strategy_params=DEFAULT_CURVE,
            enabled_to_borrow=DISABLED,
            flashloanable=DISABLED,
            stable_rate_mode_enabled=DISABLED,
            borrowable_in_isolation=DISABLED,
            with_siloed_borrowing=DISABLED,
            ltv=75_00,
            liq_threshold=80_00,
            liq_bonus=5_00,
            reserve_factor=10_00,
            supply_cap=1_000_000,
            borrow_cap=0,
            debt_ceiling=0,
            liq_protocol_fee=10_00,
            emode_category=0,
        )
        return replace(base, **overrides)

    return _make


@pytest.fixture
def make_pair(make_listing: Callable[..., ReserveListing]) -> Callable[..., MarketGroup]:
    """Build a valid borrow/collateral group from two asset ids."""

    def _make(name: str = "AAA/BBB", borrow: int = 1, collateral: int = 2) -> MarketGroup:
        borrow_symbol, collateral_symbol = name.split("/")
        return MarketGroup(
            name=name,
            listings=(
                make_listing(
                    borrow,
                    borrow_symbol,
                    enabled_to_borrow=ENABLED,
                    borrow_cap=500_000,
                    ltv=0,
                    liq_threshold=0,
                ),
                make_listing(collateral, collateral_symbol),
            ),
        )

    return _make


@pytest.fixture
def sample_groups() -> list[MarketGroup]:
    parsed = load_sample()
    assert parsed.ok
    return parsed.groups


@pytest.fixture
def valid_sample_groups(sample_groups: list[MarketGroup]) -> list[MarketGroup]:
    """The sample markets with the contradictory collateral borrow caps zeroed."""
    return [
        MarketGroup(
            group.name,
            tuple(
                entry if entry.enabled_to_borrow is ENABLED else replace(entry, borrow_cap=0)
                for entry in group.listings
            ),
        )
        for group in sample_groups
    ]
