"""Factory for creating the appropriate PriceFeedRegistry."""

from __future__ import annotations

import logging
import os

from src.data.price_feeds import (
    OnChainPriceFeedRegistry,
    PriceFeedRegistry,
    StaticPriceFeedRegistry,
)

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60.0


def _cache_ttl_from_env() -> float:
    raw = os.environ.get("FEED_CACHE_TTL", "")
    if not raw:
        return DEFAULT_CACHE_TTL
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid FEED_CACHE_TTL=%r", raw)
        return DEFAULT_CACHE_TTL


def create_registry(
    use_onchain: bool = False,
    rpc_url: str | None = None,
    cache_ttl: float | None = None,
    fallback: PriceFeedRegistry | None = None,
) -> PriceFeedRegistry:
    """Create a price-feed registry, selecting static or on-chain.

    Parameters
    ----------
    use_onchain : bool
        If True, attempt to create an ``OnChainPriceFeedRegistry``.
    rpc_url : str | None
        JSON-RPC URL.  Falls back to the ``ETH_RPC_URL`` environment
        variable when not supplied.
    cache_ttl : float | None
        TTL in seconds for the on-chain cache.  Falls back to
        ``FEED_CACHE_TTL``, then 60.
    fallback : PriceFeedRegistry | None
        Registry used when on-chain lookups fail; also returned when the
        on-chain registry cannot be created.

    Returns
    -------
    PriceFeedRegistry
        ``OnChainPriceFeedRegistry`` when requested and available, otherwise
        the fallback (an empty ``StaticPriceFeedRegistry`` by default).
    """
    static = fallback if fallback is not None else StaticPriceFeedRegistry()
    if not use_onchain:
        return static

    resolved_url = rpc_url or os.environ.get("ETH_RPC_URL")
    if not resolved_url:
        logger.warning("On-chain feed checks requested but no RPC URL provided; using static registry")
        return static

    ttl = cache_ttl if cache_ttl is not None else _cache_ttl_from_env()
    try:
        return OnChainPriceFeedRegistry(
            rpc_url=resolved_url,
            cache_ttl=ttl,
            fallback=static,
        )
    except Exception:
        logger.warning("Failed to create OnChainPriceFeedRegistry; using static registry", exc_info=True)
        return static
