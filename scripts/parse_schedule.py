#!/usr/bin/env python3
"""
Import a media schedule from the command line.

Runs the full pipeline (content extraction, model extraction with one retry on
generic site names, validation) over a file on disk, prints the placements,
issues and debug trail, and optionally confirms every candidate into a JSON
cart file.

Usage:
    # Parse and review only
    python scripts/parse_schedule.py schedule.xlsx --channel ooh --publisher jcdecaux

    # Confirm every placement into a cart with a 7-day creative buffer
    python scripts/parse_schedule.py schedule.pdf -c ooh -p lumo --buffer 7 --confirm-all --cart cart.json

    # Dump the raw operator response
    python scripts/parse_schedule.py schedule.csv -c radio -p sca --json
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from mediabrief.contexts.extraction import ExtractionClient, PlacementRecord, parse_schedule
from mediabrief.contexts.extraction.logger import setup_extraction_logger
from mediabrief.contexts.staging import (
    DEFAULT_BUFFER_DAYS,
    BriefCart,
    BriefItem,
    ImportSession,
    ImportStager,
)
from mediabrief.exceptions import ModelUnavailable
from mediabrief.utils.logger import run_log_dir

app = typer.Typer(
    help="Import placements from a media schedule (spreadsheet, CSV or PDF).",
    add_completion=False,
)


def load_cart(cart_path: Optional[Path]) -> BriefCart:
    """Load a cart file (JSON list of brief items), empty if missing."""
    if cart_path is None or not cart_path.exists():
        return BriefCart()
    items = json.loads(cart_path.read_text(encoding="utf-8"))
    return BriefCart(BriefItem.from_dict(item) for item in items)


def save_cart(cart: BriefCart, cart_path: Path) -> None:
    cart_path.parent.mkdir(parents=True, exist_ok=True)
    cart_path.write_text(
        json.dumps([item.to_dict() for item in cart.items], indent=2), encoding="utf-8"
    )


@app.command()
def main(
    schedule: Annotated[
        Path,
        typer.Argument(help="Schedule file (.xlsx, .xlsm, .xls, .csv or .pdf)", exists=True, dir_okay=False),
    ],
    channel: Annotated[str, typer.Option("--channel", "-c", help="Channel id (tv, radio, ooh, digital)")],
    publisher: Annotated[str, typer.Option("--publisher", "-p", help="Publisher id (e.g., jcdecaux)")],
    buffer: Annotated[
        int, typer.Option("--buffer", "-b", min=0, help="Creative due-date buffer in days")
    ] = DEFAULT_BUFFER_DAYS,
    confirm_all: Annotated[
        bool, typer.Option("--confirm-all", help="Select and confirm every placement into the cart")
    ] = False,
    cart_path: Annotated[
        Optional[Path], typer.Option("--cart", help="JSON cart file to append confirmed items to")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw response as JSON")] = False,
):
    """Parse a schedule, show the result, and optionally confirm it into a cart."""
    client = ExtractionClient()
    try:
        provider_name = client.provider.name
    except ModelUnavailable as e:
        typer.secho(f"Error: {str(e).splitlines()[0]}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    log_file = setup_extraction_logger(run_log_dir("import"), provider_name)

    session = ImportSession()
    response = parse_schedule(
        schedule.read_bytes(),
        schedule.name,
        declared_channel=channel,
        declared_publisher=publisher,
        client=client,
        session=session,
    )

    if as_json:
        typer.echo(json.dumps(response, indent=2))
    else:
        _print_response(response)
    typer.echo(f"\nLog: {log_file}")

    if "error" in response:
        raise typer.Exit(code=1)
    if not confirm_all:
        return

    cart = load_cart(cart_path)
    stager = ImportStager(cart)
    placements = [PlacementRecord.from_dict(p) for p in response["placements"]]
    stager.stage(placements, buffer_days=buffer, session=session)
    stager.select_all(session)
    items = stager.confirm(session, channel, publisher)

    typer.secho(f"\n✓ Confirmed {len(items)} item(s) into cart ({len(cart)} total)", fg=typer.colors.GREEN, bold=True)
    for item in items:
        typer.echo(f"  {item.id}: {item.placement_name} (due {item.due_date or '-'})")

    if cart_path is not None:
        save_cart(cart, cart_path)
        typer.echo(f"Cart: {cart_path}")


def _print_response(response: dict) -> None:
    typer.secho("\n=== Debug trail ===", bold=True)
    for step in response["debug"]["steps"]:
        typer.echo(f"  - {step}")

    if "error" in response:
        typer.secho(f"\n✗ {response['error']}", fg=typer.colors.RED, err=True)
        return

    typer.echo(f"\nDetected channel: {response['detectedChannel'] or '-'}")
    typer.echo(f"Detected publisher: {response['detectedPublisher'] or '-'}")

    placements = response["placements"]
    typer.secho(f"\n=== Placements ({len(placements)}) ===", bold=True)
    for index, placement in enumerate(placements, start=1):
        dates = f"{placement['startDate'] or '?'} to {placement['endDate'] or '?'}"
        typer.echo(f"  {index}. {placement['siteName']}  [{dates}]")

    validation = response["validation"]
    if validation["valid"]:
        typer.secho("\n✓ Validation passed", fg=typer.colors.GREEN)
    else:
        typer.secho(f"\n! Validation found {len(validation['issues'])} issue(s)", fg=typer.colors.YELLOW)
        for issue in validation["issues"]:
            typer.echo(f"  - {issue}")


if __name__ == "__main__":
    app()
