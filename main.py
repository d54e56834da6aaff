# main.py

"""Entry point for the price_compare command-line tool."""

import argparse
import asyncio
import logging
import sys

from price_compare.config.logging_config import setup_logging
from price_compare.config.settings import Settings

logger = logging.getLogger("price_compare.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    source_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="price_compare",
        description="Cross-marketplace price comparison engine.",
        epilog=f"Registered sources: {source_ids}",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Product search text.",
    )
    ids = parser.add_argument_group("product identifiers")
    for flag in ("upc", "ean", "gtin", "asin", "mpn", "brand"):
        ids.add_argument(f"--{flag}", default=None)
    ids.add_argument("--ebay-item-id", default=None, dest="ebay_item_id")
    ids.add_argument("--model", default=None, dest="model_number")
    ids.add_argument(
        "--spec",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Variant specification, e.g. color=black (repeatable).",
    )
    ids.add_argument(
        "--url",
        default=None,
        help="Product page URL; ASIN or eBay item id is read from it.",
    )
    parser.add_argument(
        "-c",
        "--currency",
        default=None,
        help="Also express prices in this currency (e.g. EUR, NGN).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--invalidate",
        action="store_true",
        default=False,
        help="Drop the cached result for the query instead of comparing.",
    )
    parser.add_argument(
        "--currencies",
        action="store_true",
        default=False,
        help="List supported currencies.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check connectivity to the scraper API, rate API and cache.",
    )
    return parser


def _run_compare(args: argparse.Namespace) -> int:
    from price_compare.cli.runner import (
        build_identifiers,
        cli_compare,
        parse_specs,
    )

    identifiers = build_identifiers(
        {
            "upc": args.upc,
            "ean": args.ean,
            "gtin": args.gtin,
            "asin": args.asin,
            "mpn": args.mpn,
            "ebay_item_id": args.ebay_item_id,
            "model_number": args.model_number,
            "brand": args.brand,
        },
        parse_specs(args.spec),
        args.url,
    )
    return asyncio.run(
        cli_compare(
            search_text=args.query,
            identifiers=identifiers,
            target_currency=args.currency,
            output_format=args.output_format,
        )
    )


def main() -> None:
    """Route to the requested command and exit with its status."""
    log_file = setup_logging()
    logger.info("price_compare starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.health:
        from price_compare.cli.runner import run_health_check

        sys.exit(asyncio.run(run_health_check()))
    if args.currencies:
        from price_compare.cli.runner import run_list_currencies

        sys.exit(run_list_currencies())
    if args.query is None:
        parser.error("a search query is required")
    if args.invalidate:
        from price_compare.cli.runner import run_invalidate

        sys.exit(run_invalidate(args.query))
    sys.exit(_run_compare(args))


if __name__ == "__main__":
    main()
