#!/usr/bin/env python
"""
Quote one RSC box from the price book and print the line with its trace.

Usage:
    python scripts/quote_box.py 400 300 200 --ply 5 --quantity 1000
"""
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from box_costing.config.settings import get_settings
from box_costing.engine import BoxCostingEngine, BoxInput, ManufacturingOptions
from box_costing.pricebook import PriceBookError, load_price_book
from box_costing.services import RateMemoryService


def main(
    length: Annotated[float, typer.Argument(help="Box length")],
    width: Annotated[float, typer.Argument(help="Box width")],
    height: Annotated[float, typer.Argument(help="Box height")],
    ply: Annotated[str, typer.Option("--ply", "-p", help="Ply: 1, 3, 5, 7 or 9")] = "5",
    unit: Annotated[str, typer.Option("--unit", "-u", help="mm or inches")] = "mm",
    measured_on: Annotated[str, typer.Option("--measured-on", help="ID or OD")] = "ID",
    flutes: Annotated[Optional[str], typer.Option("--flutes", "-f", help="Flute combination, e.g. BC")] = None,
    quantity: Annotated[float, typer.Option("--quantity", "-q", help="Order quantity")] = 1000,
    max_length: Annotated[Optional[float], typer.Option("--max-length", help="Max blank length before a second flap (mm)")] = None,
    print_cost: Annotated[float, typer.Option("--print-cost", help="Printing cost per box; 0 disables printing")] = 0.0,
    price_book_dir: Annotated[Optional[Path], typer.Option("--price-book", help="Price book directory")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = get_settings()

    try:
        price_book = load_price_book(price_book_dir or settings.price_book_dir)
    except PriceBookError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)

    rate_memory = RateMemoryService(settings.rate_memory_csv).load()
    engine = BoxCostingEngine(settings=settings, price_book=price_book, rate_memory=rate_memory)

    box = BoxInput(
        length=length,
        width=width,
        height=height,
        ply=ply,
        unit=unit,
        measured_on=measured_on.upper(),
        max_length_threshold=max_length,
        flute_combination=flutes,
    )
    result = engine.calculate_rsc(box)
    if result is None:
        typer.echo("ERROR: box dimensions are insufficient", err=True)
        raise typer.Exit(code=1)

    options = ManufacturingOptions(printing_enabled=print_cost > 0, cost_per_print=print_cost)
    item = engine.add_to_quote(result, box, quantity, options=options)

    typer.echo("Calculation trace:")
    typer.echo(result.get_trace_text())
    for warning in result.warnings:
        typer.echo(f"WARNING: {warning}")

    typer.echo("")
    typer.echo(f"{item.name}")
    typer.echo(f"  Sheet:       {item.sheet_length:.1f} x {item.sheet_width:.1f} mm "
               f"({item.sheet_length_inches:.2f} x {item.sheet_width_inches:.2f} in)")
    typer.echo(f"  Weight:      {item.sheet_weight:.4f}")
    typer.echo(f"  BS/ECT/BCT:  {item.bs:.2f} / {item.ect:.2f} / {item.bct:.1f}")
    typer.echo(f"  Paper cost:  ₹{item.paper_cost:.2f}")
    typer.echo(f"  Cost/box:    ₹{item.total_cost_per_box:.2f}")
    typer.echo(f"  Total value: ₹{item.total_value:,.2f} for {item.quantity:g} boxes")


if __name__ == "__main__":
    typer.run(main)
