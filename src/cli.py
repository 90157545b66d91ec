"""Command line entry point: validate, encode and preview reserve listings.

Exit codes: 0 on success (warnings allowed), 1 on hard errors, 2 when the
configuration cannot be read.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import TextIO

import pandas as pd

from src.data.loader import ConfigError, ParsedConfig, load_config
from src.data.price_feeds import check_price_feeds
from src.data.registry_factory import create_registry
from src.data.sample_listing import load_sample
from src.listing.encoder import ValidationError
from src.listing.report import Report
from src.protocol.interest_rate import InterestRateModel

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


def _load_dotenv(path: Path) -> None:
    """Load KEY=VALUE lines into os.environ without overriding existing values."""
    if not path.exists():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            key, _, value = line.partition("=")
            os.environ.setdefault(key.strip(), value.strip())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reserve-listing",
        description="Validate and encode reserve listings for the configuration engine.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_source(cmd: argparse.ArgumentParser) -> None:
        source = cmd.add_mutually_exclusive_group(required=True)
        source.add_argument("config", nargs="?", help="JSON listing configuration")
        source.add_argument("--sample", action="store_true", help="use the bundled sample markets")

    validate_cmd = sub.add_parser("validate", help="report every hard error and warning")
    add_source(validate_cmd)

    encode_cmd = sub.add_parser("encode", help="emit the canonical submission")
    add_source(encode_cmd)
    encode_cmd.add_argument("-o", "--output", help="write the submission here instead of stdout")
    encode_cmd.add_argument("--check-feeds", action="store_true", help="query price feeds after encoding")
    encode_cmd.add_argument("--rpc-url", help="JSON-RPC endpoint (default: $ETH_RPC_URL)")

    curves_cmd = sub.add_parser("curves", help="preview interest rate curves")
    add_source(curves_cmd)

    return parser


def _load(args: argparse.Namespace) -> ParsedConfig:
    if args.sample:
        return load_sample()
    return load_config(args.config)


def _print_report(report: Report, stream: TextIO) -> None:
    if report.issues or not report.ok:
        print(report.render(), file=stream)


def _cmd_validate(parsed: ParsedConfig) -> int:
    report = parsed.validate()
    print(report.render())
    return EXIT_OK if report.ok else EXIT_INVALID


def _cmd_encode(parsed: ParsedConfig, args: argparse.Namespace) -> int:
    try:
        submission = parsed.encode()
    except ValidationError as exc:
        print(exc.report.render(), file=sys.stderr)
        return EXIT_INVALID

    _print_report(submission.report, sys.stderr)

    payload = submission.to_json()
    if args.output:
        Path(args.output).write_bytes(payload)
        logger.info("Wrote %d reserve(s) to %s", len(submission), args.output)
    else:
        sys.stdout.write(payload.decode("utf-8") + "\n")

    if args.check_feeds:
        registry = create_registry(use_onchain=True, rpc_url=args.rpc_url)
        _print_report(check_price_feeds(submission, registry), sys.stderr)
    return EXIT_OK


def _cmd_curves(parsed: ParsedConfig) -> int:
    frames = []
    for group in parsed.groups:
        for listing in group.listings:
            model = InterestRateModel(listing.rate_strategy_params, listing.reserve_factor)
            df = model.key_points()
            df.insert(0, "asset", listing.asset_symbol)
            df.insert(0, "group", group.name)
            frames.append(df)
    if not frames:
        print("No listings to preview")
        return EXIT_OK if parsed.ok else EXIT_INVALID

    table = pd.concat(frames, ignore_index=True)
    for column in ("utilization", "borrow_rate", "supply_rate"):
        table[column] = (table[column] * 100).round(2)
    print(table.to_string(index=False))
    return EXIT_OK if parsed.ok else EXIT_INVALID


def main(argv: list[str] | None = None) -> int:
    _load_dotenv(Path.cwd() / ".env")
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        parsed = _load(args)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if args.command == "validate":
        return _cmd_validate(parsed)
    if args.command == "encode":
        return _cmd_encode(parsed, args)
    return _cmd_curves(parsed)


if __name__ == "__main__":
    sys.exit(main())
