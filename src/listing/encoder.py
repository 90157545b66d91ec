"""Canonical encoding of a validated listing batch.

The configuration engine works per asset, so groups are flattened into a
mapping keyed by asset address. The serialized form is canonical: reserves
sorted by address, keys sorted, compact separators, flags as engine integers.
Two batches describing the same per-asset parameters encode to identical
bytes regardless of grouping or order.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from src.listing.report import SUBMISSION_SCOPE, Report
from src.listing.validator import validate, validate_listings
from src.protocol.flags import EngineFlag
from src.protocol.interest_rate import InterestRateCurve
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

FORMAT_VERSION = 1

_INT_FIELDS = RISK_BPS_FIELDS + CAPACITY_FIELDS + ("emode_category",)


class ValidationError(ValueError):
    """Raised by ``encode`` when the batch has at least one hard error."""

    def __init__(self, report: Report) -> None:
        self.report = report
        super().__init__(
            f"Listing validation failed with {len(report.errors)} error(s)"
        )


@dataclass(frozen=True)
class CanonicalSubmission:
    """Validated reserves, one per asset, sorted by asset address."""

    reserves: tuple[ReserveListing, ...]
    report: Report = Report()

    def __getitem__(self, asset: str | Address) -> ReserveListing:
        key = asset if isinstance(asset, Address) else Address.from_hex(asset)
        for listing in self.reserves:
            if listing.asset == key:
                return listing
        raise KeyError(str(asset))

    def __len__(self) -> int:
        return len(self.reserves)

    @property
    def assets(self) -> list[str]:
        return [listing.asset.to_hex() for listing in self.reserves]

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": FORMAT_VERSION,
            "reserves": {
                listing.asset.to_hex(): _encode_listing(listing)
                for listing in self.reserves
            },
        }

    def to_json(self) -> bytes:
        """Canonical serialized form."""
        return json.dumps(
            self.to_dict(), sort_keys=True, separators=(",", ":")
        ).encode("utf-8")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CanonicalSubmission):
            return NotImplemented
        return self.to_json() == other.to_json()

    def __hash__(self) -> int:
        return hash(self.to_json())


def _encode_listing(listing: ReserveListing) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "asset": listing.asset.to_hex(),
        "assetSymbol": listing.asset_symbol,
        "priceFeed": listing.price_feed.to_hex(),
        "rateStrategyParams": listing.rate_strategy_params.to_dict(),
        "role": listing.role.value,
    }
    for attr in FLAG_FIELDS:
        payload[FIELD_NAMES[attr]] = getattr(listing, attr).value
    for attr in _INT_FIELDS:
        payload[FIELD_NAMES[attr]] = int(getattr(listing, attr))
    return payload


def _strict_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected integer, got {value!r}")
    return value


def _decode_listing(payload: dict[str, Any]) -> ReserveListing:
    curve_data = payload["rateStrategyParams"]
    curve = InterestRateCurve(
        **{attr: _strict_int(curve_data[name]) for attr, name in InterestRateCurve.FIELD_NAMES.items()}
    )
    kwargs: dict[str, Any] = {
        "asset": Address.from_hex(payload["asset"]),
        "asset_symbol": payload["assetSymbol"],
        "price_feed": Address.from_hex(payload["priceFeed"]),
        "rate_strategy_params": curve,
    }
    for attr in FLAG_FIELDS:
        kwargs[attr] = EngineFlag(payload[FIELD_NAMES[attr]])
    for attr in _INT_FIELDS:
        kwargs[attr] = _strict_int(payload[FIELD_NAMES[attr]])
    return ReserveListing(**kwargs)


def _canonicalize(listings: Sequence[ReserveListing], report: Report) -> CanonicalSubmission:
    ordered = tuple(sorted(listings, key=lambda entry: entry.asset.raw))
    return CanonicalSubmission(reserves=ordered, report=report)


def encode(groups: Iterable[MarketGroup] | CanonicalSubmission) -> CanonicalSubmission:
    """Validate and encode a batch for the configuration engine.

    Args:
        groups: Market groups, or a previously decoded submission.

    Returns:
        The canonical submission. Warnings are kept on ``submission.report``.

    Raises:
        ValidationError: If validation found any hard error. Nothing is
            encoded in that case.
    """
    if isinstance(groups, CanonicalSubmission):
        listings = list(groups.reserves)
        report = validate_listings(listings, scope=SUBMISSION_SCOPE)
    else:
        groups = list(groups)
        report = validate(groups)
        listings = [] if not report.ok else [
            listing for group in groups for listing in group.listings
        ]

    if not report.ok:
        logger.info("Refusing to encode: %d hard error(s)", len(report.errors))
        raise ValidationError(report)

    submission = _canonicalize(listings, report)
    logger.info(
        "Encoded %d reserve(s) with %d warning(s)", len(submission), len(report.warnings)
    )
    return submission


def decode(data: bytes | str) -> CanonicalSubmission:
    """Parse the serialized form produced by ``CanonicalSubmission.to_json``.

    Raises:
        ValueError: If the payload is not a canonical submission.
    """
    try:
        document = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Submission is not valid JSON: {exc}") from exc

    if not isinstance(document, dict) or document.get("version") != FORMAT_VERSION:
        raise ValueError(f"Unsupported submission format, expected version {FORMAT_VERSION}")

    reserves = document.get("reserves")
    if not isinstance(reserves, dict):
        raise ValueError("Submission has no reserves mapping")

    listings = []
    for key, payload in reserves.items():
        try:
            listing = _decode_listing(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed reserve {key}: {exc}") from exc
        if listing.asset != Address.from_hex(key):
            raise ValueError(f"Reserve key {key} does not match asset {listing.asset}")
        listings.append(listing)

    return _canonicalize(listings, Report())
