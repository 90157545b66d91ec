"""Configuration document loading.

A document maps market group names to arrays of listing objects using the
configuration engine's field names::

    {
      "USDC/USDT": [
        {"asset": "0xea23...", "assetSymbol": "USDC", "ltv": "80_00", ...},
        {...}
      ]
    }

Every field is required, and a JSON null counts as missing. The exception is
``eModeCategory``, which defaults to 0 (no category) when absent or null.

Malformed entries are reported as structural issues instead of raising, so an
operator sees every problem in one pass.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from src.listing.encoder import CanonicalSubmission, ValidationError, encode
from src.listing.report import IssueCollector, Report
from src.listing.validator import validate
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

_INT_FIELDS = RISK_BPS_FIELDS + CAPACITY_FIELDS
_KNOWN_KEYS = set(FIELD_NAMES.values())


class ConfigError(ValueError):
    """The configuration document could not be read at all."""


@dataclass
class ParsedConfig:
    """Groups parsed from a document plus any structural issues found."""

    groups: list[MarketGroup] = field(default_factory=list)
    report: Report = field(default_factory=Report)

    @property
    def ok(self) -> bool:
        return self.report.ok

    def validate(self) -> Report:
        """Structural issues from parsing, then the full validation pass.

        Parse errors end validation, as structural errors do in ``validate``.
        """
        if not self.report.ok:
            return self.report
        return self.report.merge(validate(self.groups))

    def encode(self) -> CanonicalSubmission:
        """Encode the parsed groups.

        Raises:
            ValidationError: On any parse or validation error.
        """
        if not self.report.ok:
            raise ValidationError(self.report)
        try:
            submission = encode(self.groups)
        except ValidationError as exc:
            raise ValidationError(self.report.merge(exc.report)) from None
        return replace(submission, report=self.report.merge(submission.report))


def _parse_int(raw: Any) -> int:
    """Accept JSON integers or digit strings with ``_`` separators."""
    if isinstance(raw, bool):
        raise ValueError(f"expected integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        return int(raw.strip(), 10)
    raise ValueError(f"expected integer, got {raw!r}")


class _ListingParser:
    def __init__(self, group: str, out: IssueCollector) -> None:
        self.group = group
        self.out = out
        self.symbol = ""
        self.failed = False

    def _fail(self, name: str, message: str, value: Any = None, expected: str = "") -> None:
        self.failed = True
        self.out.error(self.group, self.symbol, name, message, value=value, expected=expected)

    def _take(self, data: Mapping[str, Any], name: str, label: str | None = None) -> Any:
        if data.get(name) is None:
            self._fail(label or name, "missing required field")
            return None
        return data[name]

    def _address(self, data: Mapping[str, Any], name: str) -> Address | None:
        raw = self._take(data, name)
        if raw is None:
            return None
        try:
            return Address.from_hex(raw)
        except ValueError:
            self._fail(name, "not a hex address", value=raw, expected="0x-prefixed 20-byte hex")
            return None

    def _integer(
        self,
        data: Mapping[str, Any],
        name: str,
        default: int | None = None,
        label: str | None = None,
    ) -> int | None:
        if data.get(name) is None and default is not None:
            return default
        raw = self._take(data, name, label)
        if raw is None:
            return None
        try:
            return _parse_int(raw)
        except ValueError:
            self._fail(label or name, "value must be an integer", value=raw, expected="int")
            return None

    def _flag(self, data: Mapping[str, Any], name: str) -> EngineFlag | None:
        raw = self._take(data, name)
        if raw is None:
            return None
        if isinstance(raw, str):
            try:
                return EngineFlag.parse(raw)
            except ValueError:
                pass
        self._fail(name, "flag must be ENABLED or DISABLED", value=raw, expected="ENABLED | DISABLED")
        return None

    def _curve(self, data: Mapping[str, Any]) -> InterestRateCurve | None:
        raw = self._take(data, "rateStrategyParams")
        if raw is None:
            return None
        if not isinstance(raw, Mapping):
            self._fail("rateStrategyParams", "must be an object", value=raw)
            return None
        values = {
            attr: self._integer(raw, name, label=f"rateStrategyParams.{name}")
            for attr, name in InterestRateCurve.FIELD_NAMES.items()
        }
        if any(v is None for v in values.values()):
            return None
        return InterestRateCurve(**values)

    def parse(self, data: Any) -> ReserveListing | None:
        if not isinstance(data, Mapping):
            self._fail("listings", "listing must be an object", value=data)
            return None

        symbol = data.get("assetSymbol")
        self.symbol = symbol if isinstance(symbol, str) else ""
        if not self.symbol:
            self._fail("assetSymbol", "asset symbol is missing", value=symbol)

        values: dict[str, Any] = {
            "asset": self._address(data, "asset"),
            "asset_symbol": self.symbol,
            "price_feed": self._address(data, "priceFeed"),
            "rate_strategy_params": self._curve(data),
        }
        for attr in FLAG_FIELDS:
            values[attr] = self._flag(data, FIELD_NAMES[attr])
        for attr in _INT_FIELDS:
            values[attr] = self._integer(data, FIELD_NAMES[attr])
        values["emode_category"] = self._integer(data, "eModeCategory", default=0)

        for key in sorted(set(data) - _KNOWN_KEYS):
            self.out.warning(self.group, self.symbol, key, "unknown field ignored")

        if self.failed:
            return None
        return ReserveListing(**values)


def parse_config(document: Any) -> ParsedConfig:
    """Build market groups from a decoded configuration document.

    Groups keep document order. A listing that cannot be built is dropped and
    reported; its group is still returned so the pair-shape check applies.
    """
    out = IssueCollector()
    groups: list[MarketGroup] = []

    if not isinstance(document, Mapping):
        out.error("", "", "document", "configuration must map group names to listings",
                  value=type(document).__name__, expected="object")
        return ParsedConfig(groups, out.report())

    for name, entries in document.items():
        if not isinstance(entries, list):
            out.error(name, "", "listings", "group must be an array of listings",
                      value=type(entries).__name__, expected="array")
            continue
        listings = []
        for entry in entries:
            listing = _ListingParser(name, out).parse(entry)
            if listing is not None:
                listings.append(listing)
        groups.append(MarketGroup(name=name, listings=tuple(listings)))

    parsed = ParsedConfig(groups, out.report())
    logger.debug(
        "Parsed %d group(s) with %d structural error(s)", len(groups), len(parsed.report.errors)
    )
    return parsed


def load_config(path: str | Path) -> ParsedConfig:
    """Read and parse a JSON configuration document.

    Raises:
        ConfigError: If the file cannot be read or is not valid JSON.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc
    logger.info("Loaded listing configuration from %s", path)
    return parse_config(document)
