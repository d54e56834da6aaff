# price_compare/cli/runner.py

"""Headless CLI runner around the async price comparator."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from price_compare.errors import CacheError, InternalError, NoMatchError
from price_compare.models.comparison import ComparisonResult
from price_compare.models.product import ProductIdentifiers
from price_compare.services.currency_service import (
    SUPPORTED_CURRENCIES,
    format_amount,
)
from price_compare.services.price_comparator import PriceComparator

logger = logging.getLogger("price_compare.cli")

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_INTERNAL = 2

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def parse_specs(pairs: list[str] | None) -> dict[str, str]:
    """Turn ``["color=black", "storage=256GB"]`` into a dict.

    Raises ``SystemExit`` on a pair without ``=``.
    """
    specs: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip() or not value.strip():
            _err.print(f"[red]Invalid --spec '{pair}', expected key=value[/red]")
            raise SystemExit(EXIT_INTERNAL)
        specs[key.strip()] = value.strip()
    return specs


def build_identifiers(
    fields: dict[str, str | None],
    specs: dict[str, str],
    url: str | None,
) -> ProductIdentifiers:
    """Combine explicit flags with identifiers recovered from a URL."""
    identifiers = ProductIdentifiers.from_dict(
        {**fields, "specifications": specs}
    )
    if url:
        identifiers = identifiers.merged_with(ProductIdentifiers.from_url(url))
    return identifiers


def _print_table(result: ComparisonResult) -> None:
    """Render a Rich table of ranked quotes to stdout."""
    table = Table(
        title="Price Comparison",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Site", style="magenta")
    table.add_column("Title", max_width=60)
    table.add_column("Price", justify="right")
    table.add_column("USD", justify="right", style="green")
    table.add_column("Converted", justify="right")
    table.add_column("Match", justify="center")
    table.add_column("Link", overflow="fold", style="dim")

    for idx, q in enumerate(result.prices, 1):
        converted = (
            format_amount(q.price_converted, q.target_currency)
            if q.price_converted is not None and q.target_currency
            else "—"
        )
        table.add_row(
            str(idx),
            q.site,
            q.title[:60],
            format_amount(q.price, q.currency),
            format_amount(q.price_usd, "USD"),
            converted,
            f"{q.confidence}%",
            q.url,
        )

    Console().print(table)


async def cli_compare(
    search_text: str,
    identifiers: ProductIdentifiers,
    target_currency: str | None,
    output_format: str,
    comparator: PriceComparator | None = None,
) -> int:
    """Run one comparison and return an exit code (0 ok, 1 no match, 2 internal)."""
    if target_currency and target_currency.upper() not in SUPPORTED_CURRENCIES:
        _err.print(
            f"[yellow]Currency {target_currency} is not in the supported "
            f"list; conversion may keep original amounts.[/yellow]"
        )

    _err.print(f"[bold]Comparing:[/bold] {search_text}")
    if identifiers.has_any():
        _err.print(f"[dim]Identifiers: {identifiers}[/dim]")

    try:
        comparator = comparator or PriceComparator()
        result = await comparator.compare(
            search_text, identifiers, target_currency
        )
    except NoMatchError as exc:
        logger.warning("No match: %s", exc)
        _err.print(f"[yellow]{exc}[/yellow]")
        return EXIT_NO_MATCH
    except InternalError as exc:
        logger.error("Comparison failed: %s", exc)
        _err.print(f"[red]{exc}[/red]")
        return EXIT_INTERNAL

    best = result.best_deal
    if best is not None:
        _err.print(
            f"[green]✓ Best deal: {best.site} at "
            f"{format_amount(best.price_usd, 'USD')}[/green]"
            f" [dim]({len(result.prices)} verified quotes)[/dim]"
        )

    if output_format == "table":
        _print_table(result)
    else:
        json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")

    return EXIT_OK


def run_invalidate(
    search_text: str, comparator: PriceComparator | None = None,
) -> int:
    """Drop a cached comparison."""
    try:
        comparator = comparator or PriceComparator()
        removed = comparator.invalidate(search_text)
    except CacheError as exc:
        _err.print(f"[red]Cache unavailable: {exc}[/red]")
        return EXIT_INTERNAL

    if removed:
        _err.print(f"[green]✓ Cache cleared for '{search_text}'[/green]")
    else:
        _err.print(f"[dim]Nothing cached for '{search_text}'[/dim]")
    return EXIT_OK


def run_list_currencies() -> int:
    """Print the supported currency table."""
    table = Table(title="Supported Currencies", title_style="bold cyan")
    table.add_column("Code", style="bold")
    table.add_column("Symbol", justify="center")
    table.add_column("Name")
    for code, (symbol, name) in SUPPORTED_CURRENCIES.items():
        table.add_row(code, symbol.strip(), name)
    Console().print(table)
    return EXIT_OK


async def run_health_check() -> int:
    """Run connectivity health check on all dependencies."""
    from price_compare.services.health_checker import HealthChecker

    _err.print("[bold]Running dependency health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Dependency Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Component", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        elif r.status == "skipped":
            status = "[dim]SKIPPED[/dim]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "—"
        table.add_row(r.component, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0
