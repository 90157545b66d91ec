"""Sample listing configuration: USDC/USDT and DAI/WETH markets."""

from __future__ import annotations

import copy
from typing import Any

from src.data.loader import ParsedConfig, parse_config

USDC = "0xea237441c92cae6fc17caaf9a7acb3f953be4bd1"
USDT = "0x4632403a83fb736ab2c76b4c32fac9f81e2cfce2"
DAI = "0x1aa70741167155e08bd319be096c94ee54c6ca19"
WETH = "0x99835d80000f6998015ada61fb88f6f94f3759fe"

USD_STABLE_FEED = "0x34d75eb977f06a53362900d3f09f7edee324afe8"
WETH_FEED = "0x32c3be69beb6628ebbbf2a826d862d68e77dbdc9"

# --- Parameters as submitted to the config engine (bps unless noted) ---

_SAMPLE_CONFIG: dict[str, list[dict[str, Any]]] = {
    "USDC/USDT": [
        {
            "asset": USDC,
            "assetSymbol": "USDC",
            "priceFeed": USD_STABLE_FEED,
            "rateStrategyParams": {
                "optimalUsageRatio": 80_00,
                "baseVariableBorrowRate": 25,  # 0.25%
                "variableRateSlope1": 4_00,
                "variableRateSlope2": 75_00,
            },
            "enabledToBorrow": "ENABLED",
            "flashloanable": "DISABLED",
            "stableRateModeEnabled": "ENABLED",
            "borrowableInIsolation": "DISABLED",
            "withSiloedBorrowing": "DISABLED",
            "ltv": 80_00,
            "liqThreshold": 0,  # not usable as collateral
            "liqBonus": 5_00,
            "reserveFactor": 10_00,
            "supplyCap": 50_000_000_000,
            "borrowCap": 50_000_000_00,
            "debtCeiling": 0,
            "liqProtocolFee": 10_00,
            "eModeCategory": 0,
        },
        {
            "asset": USDT,
            "assetSymbol": "USDT",
            "priceFeed": USD_STABLE_FEED,
            "rateStrategyParams": {
                "optimalUsageRatio": 90_00,
                "baseVariableBorrowRate": 25,
                "variableRateSlope1": 3_00,
                "variableRateSlope2": 60_00,
            },
            "enabledToBorrow": "DISABLED",
            "flashloanable": "DISABLED",
            "stableRateModeEnabled": "DISABLED",
            "borrowableInIsolation": "DISABLED",
            "withSiloedBorrowing": "DISABLED",
            "ltv": 90_00,
            "liqThreshold": 90_50,
            "liqBonus": 5_00,
            "reserveFactor": 10_00,
            "supplyCap": 50_000_000_000,
            "borrowCap": 10,
            "debtCeiling": 0,
            "liqProtocolFee": 10_00,
            "eModeCategory": 0,
        },
    ],
    "DAI/WETH": [
        {
            "asset": DAI,
            "assetSymbol": "DAI",
            "priceFeed": USD_STABLE_FEED,
            "rateStrategyParams": {
                "optimalUsageRatio": 80_00,
                "baseVariableBorrowRate": 55,
                "variableRateSlope1": 4_00,
                "variableRateSlope2": 75_00,
            },
            "enabledToBorrow": "ENABLED",
            "flashloanable": "DISABLED",
            "stableRateModeEnabled": "DISABLED",
            "borrowableInIsolation": "DISABLED",
            "withSiloedBorrowing": "DISABLED",
            "ltv": 80_00,
            "liqThreshold": 0,
            "liqBonus": 5_00,
            "reserveFactor": 10_00,
            "supplyCap": 50_000_000_000,
            "borrowCap": 50_000_000_00,
            "debtCeiling": 0,
            "liqProtocolFee": 10_00,
            "eModeCategory": 0,
        },
        {
            "asset": WETH,
            "assetSymbol": "WETH",
            "priceFeed": WETH_FEED,
            "rateStrategyParams": {
                "optimalUsageRatio": 80_00,
                "baseVariableBorrowRate": 55,
                "variableRateSlope1": 3_00,
                "variableRateSlope2": 60_00,
            },
            "enabledToBorrow": "DISABLED",
            "flashloanable": "DISABLED",
            "stableRateModeEnabled": "DISABLED",
            "borrowableInIsolation": "DISABLED",
            "withSiloedBorrowing": "DISABLED",
            "ltv": 80_00,
            "liqThreshold": 80_50,
            "liqBonus": 10_00,
            "reserveFactor": 10_00,
            "supplyCap": 50_000_000_000,
            "borrowCap": 10,
            "debtCeiling": 0,
            "liqProtocolFee": 10_00,
            "eModeCategory": 0,
        },
    ],
}


def sample_document() -> dict[str, list[dict[str, Any]]]:
    """A fresh, mutable copy of the sample configuration document."""
    return copy.deepcopy(_SAMPLE_CONFIG)


def load_sample() -> ParsedConfig:
    return parse_config(sample_document())
