"""CLI command for running a listing search."""

from __future__ import annotations

import asyncio
import json
from datetime import date, datetime
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from roomscout.exceptions import InvalidSearchParamsError, NavigationError
from roomscout.models.listing import SearchParams
from roomscout.search.dates import add_days, next_monday
from roomscout.search.runner import SearchMode, SearchOutcome, run_search

console = Console()


def _parse_date(value: Optional[str], option: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}", param_hint=option)


def search(
    location: str = typer.Argument(..., help="Destination, e.g. 'New York'."),
    check_in: Optional[str] = typer.Option(None, "--check-in", help="Check-in date (YYYY-MM-DD). Defaults to next Monday."),
    check_out: Optional[str] = typer.Option(None, "--check-out", help="Check-out date (YYYY-MM-DD). Overrides --nights."),
    nights: int = typer.Option(6, "--nights", "-n", min=1, help="Length of stay when --check-out is not given."),
    adults: int = typer.Option(2, "--adults", "-a", min=0, help="Adult guests."),
    children: int = typer.Option(0, "--children", "-c", min=0, help="Child guests."),
    max_results: Optional[int] = typer.Option(None, "--max-results", "-m", min=1, help="Maximum listings to extract."),
    mode: SearchMode = typer.Option(SearchMode.FORM, "--mode", help="form: fill the search form; url: open the results URL."),
    scroll: int = typer.Option(0, "--scroll", min=0, help="Scroll passes before extraction."),
    as_json: bool = typer.Option(False, "--json", help="Print the outcome as JSON."),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window."),
) -> None:
    """Search for listings and print what was extracted."""
    start = _parse_date(check_in, "--check-in") or next_monday()
    end = _parse_date(check_out, "--check-out") or add_days(start, nights)

    try:
        params = SearchParams(location=location, check_in=start, check_out=end, adults=adults, children=children)
    except InvalidSearchParamsError as e:
        console.print(f"[red]✗[/red] Invalid search: {e}")
        raise typer.Exit(code=2)

    if not as_json:
        console.print(
            Panel(
                f"[bold]{params.location}[/bold]  {params.check_in} → {params.check_out} "
                f"({params.nights} nights, {params.adults} adults, {params.children} children)",
                title="roomscout",
                border_style="blue",
            )
        )

    try:
        outcome = asyncio.run(
            run_search(params, mode=mode, max_results=max_results, scroll_times=scroll, headless=False if headed else None)
        )
    except NavigationError as e:
        console.print(f"[red]✗[/red] Search failed: {e}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
        return
    _print_outcome(outcome)


def _print_outcome(outcome: SearchOutcome) -> None:
    report = outcome.report

    table = Table(title=f"Listings ({len(report.listings)})")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Price")
    table.add_column("Rating")
    table.add_column("URL", overflow="fold")
    for i, listing in enumerate(report.listings, start=1):
        table.add_row(str(i), listing.name, listing.price or "—", listing.rating or "—", listing.url or "—")
    console.print(table)

    console.print(
        f"  Cards found: {report.cards_found}, scanned: {report.cards_scanned}, skipped: {report.skipped_cards}"
    )
    if report.all_skipped:
        console.print("[yellow]⚠[/yellow] Cards were present but none had a readable name — selectors may be stale.")
    if not outcome.form_completed:
        console.print("[yellow]⚠[/yellow] Some search form steps did not complete; results may not match the query.")
    if outcome.dismissed_popups:
        console.print(f"  Dismissed popups: {', '.join(outcome.dismissed_popups)}")
    console.print(f"  Results URL: {outcome.results_url}")
