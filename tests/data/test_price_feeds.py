"""Tests for the price-feed registry and feed checks."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from src.data.price_feeds import (
    FeedInfo,
    OnChainPriceFeedRegistry,
    PriceFeedRegistry,
    StaticPriceFeedRegistry,
    _TTLCache,
    check_price_feeds,
)
from src.data.registry_factory import create_registry
from src.data.sample_listing import USD_STABLE_FEED, WETH_FEED
from src.listing.encoder import encode
from src.protocol.reserve import Address

NOW = 1_700_000_000

STABLE = Address.from_hex(USD_STABLE_FEED)
ETH = Address.from_hex(WETH_FEED)

HEALTHY = FeedInfo(decimals=8, answer=100_000_000, updated_at=NOW - 60, description="USDC / USD")


@pytest.fixture
def submission(valid_sample_groups):
    return encode(valid_sample_groups)


# ======================================================================
# 1. TTL cache
# ======================================================================


class TestTTLCache:
    def test_set_and_get(self):
        cache = _TTLCache(ttl=60.0)
        cache.set("key", "value")
        assert cache.get("key") == "value"

    def test_miss_returns_none(self):
        assert _TTLCache(ttl=60.0).get("missing") is None

    def test_expired_entry(self):
        cache = _TTLCache(ttl=-1.0)
        cache.set("key", "value")
        assert cache.get("key") is None

    def test_clear(self):
        cache = _TTLCache(ttl=60.0)
        cache.set("a", 1)
        cache.clear()
        assert cache.get("a") is None


# ======================================================================
# 2. Static registry and feed checks
# ======================================================================


class TestStaticRegistry:
    def test_known_feed(self):
        registry = StaticPriceFeedRegistry({STABLE: HEALTHY})
        assert registry.describe_feed(STABLE) is HEALTHY
        assert HEALTHY.price == pytest.approx(1.0)

    def test_unknown_feed(self):
        with pytest.raises(LookupError):
            StaticPriceFeedRegistry().describe_feed(STABLE)

    def test_register(self):
        registry = StaticPriceFeedRegistry()
        registry.register(ETH, HEALTHY)
        assert registry.describe_feed(ETH) is HEALTHY

    def test_is_registry(self):
        assert isinstance(StaticPriceFeedRegistry(), PriceFeedRegistry)


class TestCheckPriceFeeds:
    def test_healthy_feeds(self, submission):
        registry = StaticPriceFeedRegistry({
            STABLE: HEALTHY,
            ETH: FeedInfo(decimals=8, answer=3_000 * 10**8, updated_at=NOW - 60),
        })
        report = check_price_feeds(submission, registry, now=NOW)
        assert report.ok
        assert report.warnings == ()

    def test_unknown_feed_only_warns(self, submission):
        registry = StaticPriceFeedRegistry({STABLE: HEALTHY})
        report = check_price_feeds(submission, registry, now=NOW)
        assert report.ok
        (warning,) = report.warnings
        assert warning.tag == ("(submission)", "WETH", "priceFeed")

    def test_shared_feed_queried_once(self, submission):
        registry = MagicMock(spec=PriceFeedRegistry)
        registry.describe_feed.return_value = HEALTHY
        check_price_feeds(submission, registry, now=NOW)
        assert registry.describe_feed.call_count == 2

    def test_bad_feed_state(self, submission):
        registry = StaticPriceFeedRegistry({
            STABLE: HEALTHY,
            ETH: FeedInfo(decimals=6, answer=0, updated_at=NOW - 3 * 24 * 3600),
        })
        report = check_price_feeds(submission, registry, now=NOW)
        messages = [w.message for w in report.warnings]
        assert messages == [
            "feed reports a non-positive price",
            "feed has unexpected decimals",
            "feed answer is stale",
        ]


# ======================================================================
# 3. On-chain registry with mocked Web3
# ======================================================================


def _make_registry(**kwargs) -> OnChainPriceFeedRegistry:
    with patch("web3.Web3") as mock_web3:
        mock_w3 = MagicMock()
        mock_w3.to_checksum_address = lambda addr: addr
        mock_web3.return_value = mock_w3
        return OnChainPriceFeedRegistry(rpc_url="http://localhost:8545", **kwargs)


def _feed_contract(decimals=8, answer=100_000_000, updated_at=NOW):
    contract = MagicMock()
    contract.functions.decimals.return_value.call.return_value = decimals
    contract.functions.latestRoundData.return_value.call.return_value = (
        1, answer, updated_at - 10, updated_at, 1,
    )
    contract.functions.description.return_value.call.return_value = "USDC / USD"
    return contract


class TestOnChainRegistry:
    def test_describe_feed(self):
        registry = _make_registry()
        registry._w3.eth.contract.return_value = _feed_contract()

        info = registry.describe_feed(STABLE)
        assert info == FeedInfo(decimals=8, answer=100_000_000, updated_at=NOW, description="USDC / USD")

    def test_caching(self):
        registry = _make_registry()
        contract = _feed_contract()
        registry._w3.eth.contract.return_value = contract

        registry.describe_feed(STABLE)
        registry.describe_feed(STABLE)
        assert contract.functions.latestRoundData.return_value.call.call_count == 1

        registry.refresh()
        registry.describe_feed(STABLE)
        assert contract.functions.latestRoundData.return_value.call.call_count == 2

    def test_fallback_on_rpc_failure(self):
        fallback = StaticPriceFeedRegistry({STABLE: HEALTHY})
        registry = _make_registry(fallback=fallback)
        contract = _feed_contract()
        contract.functions.decimals.return_value.call.side_effect = Exception("RPC error")
        registry._w3.eth.contract.return_value = contract

        assert registry.describe_feed(STABLE) is HEALTHY

    def test_failure_without_fallback(self):
        registry = _make_registry()
        contract = _feed_contract()
        contract.functions.latestRoundData.return_value.call.side_effect = Exception("RPC error")
        registry._w3.eth.contract.return_value = contract

        with pytest.raises(LookupError):
            registry.describe_feed(STABLE)

    def test_missing_description(self):
        registry = _make_registry()
        contract = _feed_contract()
        contract.functions.description.return_value.call.side_effect = Exception("no such method")
        registry._w3.eth.contract.return_value = contract

        assert registry.describe_feed(STABLE).description == ""

    def test_is_connected(self):
        registry = _make_registry()
        registry._w3.is_connected.return_value = True
        assert registry.is_connected is True

        registry._w3.is_connected.side_effect = Exception("down")
        assert registry.is_connected is False


# ======================================================================
# 4. Registry factory
# ======================================================================


class TestRegistryFactory:
    def test_static_by_default(self):
        assert isinstance(create_registry(), StaticPriceFeedRegistry)

    def test_static_fallback_returned(self):
        fallback = StaticPriceFeedRegistry({STABLE: HEALTHY})
        assert create_registry(fallback=fallback) is fallback

    @patch.dict("os.environ", {}, clear=True)
    def test_onchain_without_url_falls_back(self):
        registry = create_registry(use_onchain=True, rpc_url=None)
        assert isinstance(registry, StaticPriceFeedRegistry)

    @patch.dict("os.environ", {"ETH_RPC_URL": ""})
    def test_empty_env_var_falls_back(self):
        assert isinstance(create_registry(use_onchain=True), StaticPriceFeedRegistry)

    def test_onchain_with_url(self):
        with patch("web3.Web3"):
            registry = create_registry(use_onchain=True, rpc_url="http://localhost:8545")
        assert isinstance(registry, OnChainPriceFeedRegistry)

    @patch.dict("os.environ", {"FEED_CACHE_TTL": "5"})
    def test_cache_ttl_from_env(self):
        with patch("web3.Web3"):
            registry = create_registry(use_onchain=True, rpc_url="http://localhost:8545")
        assert registry._cache._ttl == 5.0

    def test_construction_failure_falls_back(self):
        with patch("web3.Web3", side_effect=RuntimeError("bad url")):
            registry = create_registry(use_onchain=True, rpc_url="http://localhost:8545")
        assert isinstance(registry, StaticPriceFeedRegistry)
