"""Units, limits and asset identifiers shared by the listing engine."""

# Basis points: 10_000 bps = 100%
BPS = 10_000

# Addresses are 20-byte identifiers
ADDRESS_LENGTH = 20

# Chainlink feeds report with 8 (USD pairs) or 18 (ETH pairs) decimals
EXPECTED_FEED_DECIMALS = frozenset({8, 18})
FEED_MAX_AGE_SECONDS = 24 * 3600

# Stablecoins that may share a single price feed with other assets of the
# same peg unit.
STABLECOIN_PEGS: dict[str, str] = {
    "USDC": "USD",
    "USDT": "USD",
    "DAI": "USD",
    "USDS": "USD",
    "FRAX": "USD",
    "LUSD": "USD",
    "GHO": "USD",
    "PYUSD": "USD",
    "USDE": "USD",
    "EURC": "EUR",
    "EURS": "EUR",
    "AGEUR": "EUR",
}
