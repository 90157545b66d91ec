"""Price-feed registry collaborator.

Feeds are checked only after a submission has been encoded. Every finding is
a warning: the registry cannot confirm or refute a listing on its own.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from src.data.constants import EXPECTED_FEED_DECIMALS, FEED_MAX_AGE_SECONDS
from src.data.contracts import CHAINLINK_FEED_ABI
from src.listing.report import SUBMISSION_SCOPE, IssueCollector, Report
from src.protocol.reserve import Address

if TYPE_CHECKING:
    from src.listing.encoder import CanonicalSubmission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedInfo:
    """Latest state of a price feed."""

    decimals: int
    answer: int  # raw answer, scaled by 10**decimals
    updated_at: int  # unix seconds
    description: str = ""

    @property
    def price(self) -> float:
        return self.answer / (10**self.decimals)


class PriceFeedRegistry(ABC):
    """Abstract source of price-feed state."""

    @abstractmethod
    def describe_feed(self, feed: Address) -> FeedInfo:
        """Latest round of *feed*.

        Raises:
            LookupError: If the feed is unknown or unreachable.
        """


class StaticPriceFeedRegistry(PriceFeedRegistry):
    """In-memory registry, e.g. a snapshot of known feeds."""

    def __init__(self, feeds: dict[Address, FeedInfo] | None = None) -> None:
        self._feeds = dict(feeds or {})

    def register(self, feed: Address, info: FeedInfo) -> None:
        self._feeds[feed] = info

    def describe_feed(self, feed: Address) -> FeedInfo:
        try:
            return self._feeds[feed]
        except KeyError:
            raise LookupError(f"Unknown price feed: {feed}") from None


# ---------------------------------------------------------------------------
# TTL cache
# ---------------------------------------------------------------------------

class _TTLCache:
    """Simple dict-based cache with per-entry TTL expiry."""

    def __init__(self, ttl: float) -> None:
        self._ttl = ttl
        self._store: dict[Any, tuple[float, Any]] = {}

    def get(self, key: Any) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        ts, value = entry
        if time.monotonic() - ts > self._ttl:
            del self._store[key]
            return None
        return value

    def set(self, key: Any, value: Any) -> None:
        self._store[key] = (time.monotonic(), value)

    def clear(self) -> None:
        self._store.clear()


class OnChainPriceFeedRegistry(PriceFeedRegistry):
    """Reads Chainlink aggregators via web3.py.

    Parameters
    ----------
    rpc_url : str
        JSON-RPC endpoint URL.
    cache_ttl : float
        Seconds before a cached feed state expires (default 60).
    fallback : PriceFeedRegistry | None
        Optional registry consulted when an RPC call fails.
    """

    def __init__(
        self,
        rpc_url: str,
        cache_ttl: float = 60.0,
        fallback: PriceFeedRegistry | None = None,
    ) -> None:
        from web3 import Web3

        self._w3 = Web3(Web3.HTTPProvider(rpc_url))
        self._cache = _TTLCache(cache_ttl)
        self._fallback = fallback

    def _contract(self, feed: Address) -> Any:
        return self._w3.eth.contract(
            address=self._w3.to_checksum_address(feed.to_hex()),
            abi=CHAINLINK_FEED_ABI,
        )

    def _fetch(self, feed: Address) -> FeedInfo:
        contract = self._contract(feed)
        decimals = contract.functions.decimals().call()
        round_data = contract.functions.latestRoundData().call()
        try:
            description = contract.functions.description().call()
        except Exception:
            description = ""
        return FeedInfo(
            decimals=int(decimals),
            answer=int(round_data[1]),
            updated_at=int(round_data[3]),
            description=description,
        )

    def describe_feed(self, feed: Address) -> FeedInfo:
        """Cache → RPC → fallback pipeline."""
        cached = self._cache.get(feed)
        if cached is not None:
            return cached

        try:
            info = self._fetch(feed)
            self._cache.set(feed, info)
            return info
        except Exception:
            logger.warning("RPC call failed for feed=%s, using fallback", feed, exc_info=True)

        if self._fallback is not None:
            return self._fallback.describe_feed(feed)

        raise LookupError(f"Price feed {feed} unreachable and no fallback available")

    def refresh(self) -> None:
        """Invalidate all cached values, forcing fresh RPC calls."""
        self._cache.clear()

    @property
    def is_connected(self) -> bool:
        try:
            return self._w3.is_connected()
        except Exception:
            return False


def check_price_feeds(
    submission: CanonicalSubmission,
    registry: PriceFeedRegistry,
    now: float | None = None,
    max_age: int = FEED_MAX_AGE_SECONDS,
) -> Report:
    """Best-effort sanity check of every feed referenced by *submission*.

    Each distinct feed is queried once; findings are reported against every
    reserve that uses it.
    """
    now = time.time() if now is None else now
    out = IssueCollector()
    seen: dict[Address, FeedInfo | str] = {}

    for listing in submission.reserves:
        feed = listing.price_feed
        if feed not in seen:
            try:
                seen[feed] = registry.describe_feed(feed)
            except LookupError as exc:
                seen[feed] = str(exc)
        info = seen[feed]
        symbol = listing.asset_symbol

        if isinstance(info, str):
            out.warning(SUBMISSION_SCOPE, symbol, "priceFeed", f"feed could not be checked: {info}",
                        value=feed.to_hex())
            continue
        if info.answer <= 0:
            out.warning(SUBMISSION_SCOPE, symbol, "priceFeed", "feed reports a non-positive price",
                        value=info.answer, expected="> 0")
        if info.decimals not in EXPECTED_FEED_DECIMALS:
            out.warning(SUBMISSION_SCOPE, symbol, "priceFeed", "feed has unexpected decimals",
                        value=info.decimals,
                        expected=" or ".join(str(d) for d in sorted(EXPECTED_FEED_DECIMALS)))
        age = int(now) - info.updated_at
        if age > max_age:
            out.warning(SUBMISSION_SCOPE, symbol, "priceFeed", "feed answer is stale",
                        value=age, expected=f"updated within {max_age}s")

    report = out.report()
    logger.info("Checked %d price feed(s): %d warning(s)", len(seen), len(report.warnings))
    return report
