"""Reserve listing validator.

Runs in two phases over the whole batch:

1. Structural checks (group shape, field types, address lengths). Any
   structural error ends validation; invariant checks assume well-typed input.
2. Invariant checks, in group order and then listing order within a group.

``validate`` never raises and never mutates its input.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from src.data.constants import BPS, STABLECOIN_PEGS
from src.listing.report import IssueCollector, Report
from src.protocol.flags import EngineFlag
from src.protocol.interest_rate import InterestRateCurve
from src.protocol.liquidation import LiquidationModel
from src.protocol.reserve import (
    CAPACITY_FIELDS,
    FIELD_NAMES,
    FLAG_FIELDS,
    RISK_BPS_FIELDS,
    Address,
    MarketGroup,
    ReserveListing,
)

logger = logging.getLogger(__name__)

GROUP_SIZE = 2
RATE_PREFIX = "rateStrategyParams."


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _rate_field(attr: str) -> str:
    return RATE_PREFIX + InterestRateCurve.FIELD_NAMES[attr]


# ---------------------------------------------------------------------------
# Phase 1: structure
# ---------------------------------------------------------------------------

def _check_structure(groups: Sequence[MarketGroup], out: IssueCollector) -> None:
    for group in groups:
        if not isinstance(group, MarketGroup):
            out.error(
                str(group), "", "group",
                "entry is not a market group",
                value=type(group).__name__,
                expected="MarketGroup",
            )
            continue
        if not group.name:
            out.error("", "", "group", "market group name is empty")
        if len(group.listings) != GROUP_SIZE:
            out.error(
                group.name, "", "listings",
                "group must contain a borrow/collateral pair",
                value=len(group.listings),
                expected=f"exactly {GROUP_SIZE} listings",
            )
        for listing in group.listings:
            if isinstance(listing, ReserveListing):
                _check_listing_structure(group.name, listing, out)
            else:
                out.error(
                    group.name, "", "listings",
                    "entry is not a reserve listing",
                    value=type(listing).__name__,
                    expected="ReserveListing",
                )


def _check_listing_structure(group: str, listing: ReserveListing, out: IssueCollector) -> None:
    symbol = listing.asset_symbol if isinstance(listing.asset_symbol, str) else ""
    if not isinstance(listing.asset_symbol, str) or not listing.asset_symbol:
        out.error(group, symbol, "assetSymbol", "asset symbol is missing")

    for attr in ("asset", "price_feed"):
        address = getattr(listing, attr)
        name = FIELD_NAMES[attr]
        if not isinstance(address, Address):
            out.error(group, symbol, name, "not an address", value=address, expected="20-byte address")
        elif not address.is_well_formed:
            out.error(
                group, symbol, name,
                "malformed address",
                value=address.to_hex(),
                expected=f"20 bytes, got {len(address.raw)}",
            )

    for attr in FLAG_FIELDS:
        flag = getattr(listing, attr)
        if not isinstance(flag, EngineFlag):
            out.error(
                group, symbol, FIELD_NAMES[attr],
                "flag must be ENABLED or DISABLED",
                value=flag,
                expected="EngineFlag",
            )

    for attr in RISK_BPS_FIELDS + CAPACITY_FIELDS + ("emode_category",):
        value = getattr(listing, attr)
        if not _is_int(value):
            out.error(
                group, symbol, FIELD_NAMES[attr],
                "value must be an integer",
                value=value,
                expected="int",
            )

    curve = listing.rate_strategy_params
    if not isinstance(curve, InterestRateCurve):
        out.error(
            group, symbol, "rateStrategyParams",
            "missing interest rate curve",
            value=curve,
            expected="InterestRateCurve",
        )
        return
    for attr in InterestRateCurve.FIELD_NAMES:
        value = getattr(curve, attr)
        if not _is_int(value):
            out.error(
                group, symbol, _rate_field(attr),
                "value must be an integer",
                value=value,
                expected="int",
            )


# ---------------------------------------------------------------------------
# Phase 2: invariants
# ---------------------------------------------------------------------------

def _check_range(
    out: IssueCollector,
    group: str,
    symbol: str,
    name: str,
    value: int,
    upper: int,
) -> None:
    if value < 0 or value > upper:
        out.error(
            group, symbol, name,
            "basis points out of range",
            value=value,
            expected=f"0 <= value <= {upper}",
        )


def _check_rate_curve(group: str, symbol: str, curve: InterestRateCurve, out: IssueCollector) -> None:
    for attr in InterestRateCurve.FIELD_NAMES:
        _check_range(out, group, symbol, _rate_field(attr), getattr(curve, attr), BPS)

    if curve.variable_rate_slope2 < curve.variable_rate_slope1:
        out.warning(
            group, symbol, _rate_field("variable_rate_slope2"),
            "slope above the kink is flatter than below it",
            value=curve.variable_rate_slope2,
            expected=f">= variableRateSlope1 ({curve.variable_rate_slope1})",
            related_fields=(_rate_field("variable_rate_slope1"),),
        )


def _check_listing(group: str, listing: ReserveListing, out: IssueCollector) -> None:
    symbol = listing.asset_symbol

    for attr in RISK_BPS_FIELDS:
        _check_range(out, group, symbol, FIELD_NAMES[attr], getattr(listing, attr), BPS)

    model = LiquidationModel(listing.liquidation_params)
    if not model.has_liquidation_buffer():
        out.error(
            group, symbol, "ltv",
            "LTV leaves no buffer below the liquidation threshold",
            value=listing.ltv,
            expected=f"< liqThreshold ({listing.liq_threshold})",
            related_fields=("liqThreshold",),
        )
    if not model.is_solvent():
        out.warning(
            group, symbol, "liqBonus",
            "liquidation at the threshold can seize more than 100% of collateral",
            value=listing.liq_bonus,
            expected=f"<= {model.max_liquidation_bonus()} for liqThreshold {listing.liq_threshold}",
            related_fields=("liqThreshold",),
        )

    _check_rate_curve(group, symbol, listing.rate_strategy_params, out)

    for attr in CAPACITY_FIELDS:
        value = getattr(listing, attr)
        if value < 0:
            out.error(
                group, symbol, FIELD_NAMES[attr],
                "capacity must not be negative",
                value=value,
                expected=">= 0",
            )

    if listing.borrow_cap > 0 and listing.enabled_to_borrow is not EngineFlag.ENABLED:
        out.error(
            group, symbol, "borrowCap",
            "non-zero borrow cap on an asset with borrowing disabled",
            value=listing.borrow_cap,
            expected="0 while enabledToBorrow is DISABLED",
            related_fields=("enabledToBorrow",),
        )

    if listing.emode_category < 0:
        out.error(
            group, symbol, "eModeCategory",
            "e-mode category must not be negative",
            value=listing.emode_category,
            expected=">= 0",
        )

    if listing.price_feed.is_zero:
        out.error(
            group, symbol, "priceFeed",
            "price feed is the zero address",
            value=listing.price_feed.to_hex(),
            expected="non-zero address",
        )


def _check_group_roles(group: MarketGroup, out: IssueCollector) -> None:
    if not group.borrowable():
        out.warning(
            group.name, "", "enabledToBorrow",
            "pair has no borrowable asset: "
            + "/".join(entry.asset_symbol for entry in group.listings),
            expected="one listing with enabledToBorrow ENABLED",
        )


class _BatchChecks:
    """Cross-listing checks: unique assets and shared price feeds.

    Listings are fed in visiting order, so each issue lands at the listing
    that triggers it.
    """

    def __init__(self, out: IssueCollector) -> None:
        self.out = out
        self.first_seen: dict[Address, str] = {}
        self.feed_users: dict[Address, list[ReserveListing]] = {}

    def visit(self, group: str, listing: ReserveListing) -> None:
        previous = self.first_seen.get(listing.asset)
        if previous is not None:
            self.out.error(
                group, listing.asset_symbol, "asset",
                f"asset already listed in group {previous!r}",
                value=listing.asset.to_hex(),
                expected="unique asset per submission",
                related_groups=(previous,),
            )
            return
        self.first_seen[listing.asset] = group

        sharing = [
            other for other in self.feed_users.get(listing.price_feed, [])
            if other.asset != listing.asset
        ]
        if sharing and not _same_peg([listing, *sharing]):
            self.out.warning(
                group, listing.asset_symbol, "priceFeed",
                "price feed shared with "
                + ", ".join(other.asset_symbol for other in sharing),
                value=listing.price_feed.to_hex(),
                expected="distinct feeds unless stablecoins of the same peg",
            )
        self.feed_users.setdefault(listing.price_feed, []).append(listing)


def _same_peg(listings: Iterable[ReserveListing]) -> bool:
    pegs = {STABLECOIN_PEGS.get(entry.asset_symbol.upper()) for entry in listings}
    return len(pegs) == 1 and None not in pegs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate(groups: Sequence[MarketGroup]) -> Report:
    """Validate a batch of market groups.

    Args:
        groups: Ordered market groups, each expected to hold a
            borrow/collateral pair.

    Returns:
        Report with every hard error and warning found, in group order and
        then listing order within a group.
    """
    out = IssueCollector()
    groups = list(groups)

    _check_structure(groups, out)
    if out.has_errors:
        report = out.report()
        logger.debug("Structural validation failed with %d error(s)", len(report.errors))
        return report

    batch = _BatchChecks(out)
    for group in groups:
        for listing in group.listings:
            _check_listing(group.name, listing, out)
            batch.visit(group.name, listing)
        _check_group_roles(group, out)

    report = out.report()
    logger.debug(
        "Validated %d group(s): %d error(s), %d warning(s)",
        len(groups), len(report.errors), len(report.warnings),
    )
    return report


def validate_listings(listings: Sequence[ReserveListing], scope: str) -> Report:
    """Validate ungrouped listings, e.g. a decoded submission.

    Per-listing invariants and cross-listing checks run as for groups; the
    pair-shape checks do not apply.
    """
    out = IssueCollector()
    for listing in listings:
        _check_listing_structure(scope, listing, out)
    if out.has_errors:
        return out.report()

    batch = _BatchChecks(out)
    for listing in listings:
        _check_listing(scope, listing, out)
        batch.visit(scope, listing)
    return out.report()
