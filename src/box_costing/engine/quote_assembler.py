"""
Quote Item Assembler - turns a calculation into a priced, frozen quote line.

    total cost per box = (paper cost + add-ons) x (1 + markup%) + sheet weight x conversion cost/kg
    total value        = total cost per box x quantity

Negotiation and add-on edits return new QuoteItems; paper cost and layer specs
are carried over from the snapshot and never re-resolved.
"""
import logging
from dataclasses import replace
from typing import Optional, Union

from ..config.settings import Settings, get_settings
from .models import (
    AddOnCosts,
    BoxInput,
    CalculationResult,
    ManufacturingOptions,
    QuoteItem,
    SheetInput,
    NEGOTIATION_NONE,
    NEGOTIATION_FIXED,
    NEGOTIATION_MODES,
)
from .units import mm_to_inches, to_mm, non_negative

logger = logging.getLogger(__name__)


def manufacturing_costs(
    options: ManufacturingOptions,
    quantity: float,
    sheet_length: float = 0.0,
    sheet_width: float = 0.0,
) -> AddOnCosts:
    """
    Per-box add-on costs for the enabled finishing operations.

    Args:
        options: Toggles and rates from the quote form
        quantity: Order quantity; job-level charges are spread over it
        sheet_length, sheet_width: Sheet size in mm, used for lamination area
    """
    qty = quantity if quantity and quantity > 0 else 1

    printing = 0.0
    if options.printing_enabled:
        printing = options.cost_per_print + options.plate_cost / qty
        # Below the printer's MOQ the shortfall is still charged
        if options.print_moq > qty:
            printing += options.cost_per_print * (options.print_moq - qty) / qty

    lamination = 0.0
    if options.lamination_enabled and options.lamination_rate > 0:
        if options.lamination_length_in and options.lamination_width_in:
            length_in, width_in = options.lamination_length_in, options.lamination_width_in
        else:
            length_in, width_in = mm_to_inches(sheet_length), mm_to_inches(sheet_width)
        lamination = length_in * width_in * options.lamination_rate / 100

    die = options.die_development_charge / qty if options.die_enabled else 0.0
    punching = options.punching_cost if options.punching_enabled else 0.0
    varnish = options.varnish_cost if options.varnish_enabled else 0.0

    return AddOnCosts(
        printing=printing,
        lamination=lamination,
        varnish=varnish,
        die=die,
        punching=punching,
    )


def total_cost_per_box(
    paper_cost: float,
    add_ons: AddOnCosts,
    markup_percent: float,
    sheet_weight: float,
    conversion_cost_per_kg: float,
) -> float:
    """Marked-up paper and add-on cost plus per-kg conversion cost."""
    marked_up = (non_negative(paper_cost) + add_ons.total) * (1 + markup_percent / 100)
    return marked_up + non_negative(sheet_weight) * non_negative(conversion_cost_per_kg)


def assemble_quote_item(
    calc_result: CalculationResult,
    add_ons: AddOnCosts,
    markup_percent: Optional[float],
    quantity: float,
    conversion_cost_per_kg: Optional[float] = None,
    source: Optional[Union[BoxInput, SheetInput]] = None,
    name: Optional[str] = None,
    description: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> QuoteItem:
    """
    Freeze a calculation into a priced quote line.

    Args:
        calc_result: Result of BoxCostingEngine.calculate_rsc / calculate_sheet
        add_ons: Per-box add-on costs (see manufacturing_costs)
        markup_percent: Markup on paper + add-ons; settings default when None
        quantity: Number of boxes
        conversion_cost_per_kg: Conversion cost; settings default when None
        source: The form input the result came from, kept for dimensions and allowances

    Returns:
        QuoteItem holding copies of the resolved layer specs
    """
    settings = settings or get_settings()
    if markup_percent is None:
        markup_percent = settings.markup_percent
    if conversion_cost_per_kg is None:
        conversion_cost_per_kg = settings.conversion_cost_per_kg

    cost_per_box = total_cost_per_box(
        calc_result.paper_cost,
        add_ons,
        markup_percent,
        calc_result.sheet_weight,
        conversion_cost_per_kg,
    )

    if isinstance(source, BoxInput):
        details = dict(
            item_type="rsc",
            ply=str(source.ply),
            input_unit=source.unit,
            measured_on=source.measured_on,
            length=to_mm(source.length, source.unit),
            width=to_mm(source.width, source.unit),
            height=to_mm(source.height, source.unit),
            glue_flap=source.glue_flap if source.glue_flap is not None
            else settings.ply_value(settings.glue_flap_defaults, source.ply),
            deckle_allowance=source.deckle_allowance if source.deckle_allowance is not None
            else settings.ply_value(settings.deckle_allowance_defaults, source.ply),
            max_length_threshold=source.max_length_threshold,
            thickness_source="manual" if source.board_thickness_override is not None else "calculated",
        )
    elif isinstance(source, SheetInput):
        details = dict(
            item_type="sheet",
            ply=str(source.ply),
            input_unit=source.unit,
            length=to_mm(source.length, source.unit),
            width=to_mm(source.width, source.unit),
            height=None,
            sheet_allowance=source.allowance if source.allowance is not None
            else settings.sheet_allowance_default,
            thickness_source="manual" if source.board_thickness_override is not None else "calculated",
        )
    else:
        details = dict(
            item_type="sheet",
            ply=str(len(calc_result.layer_specs)),
            length=calc_result.sheet_length,
            width=calc_result.sheet_width,
            height=None,
        )

    if calc_result.unresolved_layers:
        logger.warning(
            "Quote line saved with unresolved paper rates for layers %s",
            list(calc_result.unresolved_layers),
        )

    ply = details["ply"]
    item_name = name or (source.name if source is not None and source.name else "")
    if not item_name:
        item_name = f"{ply}-Ply {'Box' if details['item_type'] == 'rsc' else 'Sheet'}"

    return QuoteItem(
        name=item_name,
        description=description,
        ply_thickness_used=settings.ply_value(settings.ply_thickness, ply),
        additional_flap_applied=calc_result.additional_flap_applied,
        sheet_length=calc_result.sheet_length,
        sheet_width=calc_result.sheet_width,
        sheet_weight=calc_result.sheet_weight,
        board_thickness=calc_result.board_thickness,
        box_perimeter=calc_result.box_perimeter,
        ect=calc_result.ect,
        bct=calc_result.bct,
        bs=calc_result.bs,
        layer_specs=tuple(calc_result.layer_specs),
        paper_cost=calc_result.paper_cost,
        printing_cost=add_ons.printing,
        lamination_cost=add_ons.lamination,
        varnish_cost=add_ons.varnish,
        die_cost=add_ons.die,
        punching_cost=add_ons.punching,
        conversion_cost_per_kg=conversion_cost_per_kg,
        markup_percent=markup_percent,
        total_cost_per_box=cost_per_box,
        quantity=quantity,
        total_value=cost_per_box * quantity,
        unresolved_layers=tuple(calc_result.unresolved_layers),
        **details,
    )


def negotiate(item: QuoteItem, mode: str, value: Optional[float] = None) -> QuoteItem:
    """
    Apply a negotiated price to a quote line.

    Always computed from the item's total_cost_per_box, so negotiating twice
    replaces the earlier deal instead of compounding it. original_price is only
    set while a negotiation is active.

    Args:
        mode: "none" clears negotiation, "percentage" discounts by `value`%,
            "fixed" sets the per-box price to `value`
    """
    if mode not in NEGOTIATION_MODES:
        raise ValueError(f"Unknown negotiation mode '{mode}', must be one of: {NEGOTIATION_MODES}")

    original = item.total_cost_per_box

    if mode == NEGOTIATION_NONE:
        return replace(
            item,
            negotiation_mode=NEGOTIATION_NONE,
            negotiation_value=None,
            negotiated_price=None,
            original_price=None,
            total_value=original * item.quantity,
        )

    if value is None:
        raise ValueError(f"Negotiation mode '{mode}' needs a value")

    if mode == NEGOTIATION_FIXED:
        negotiated = float(value)
    else:
        negotiated = original * (1 - value / 100)

    logger.debug("Negotiated %s: %.2f -> %.2f (%s %s)", item.name, original, negotiated, mode, value)
    return replace(
        item,
        negotiation_mode=mode,
        negotiation_value=value,
        original_price=original,
        negotiated_price=negotiated,
        total_value=negotiated * item.quantity,
    )


def update_add_on_costs(
    item: QuoteItem,
    add_ons: AddOnCosts,
    quantity: Optional[float] = None,
) -> QuoteItem:
    """
    Correct finishing costs on a saved quote line.

    Totals are rebuilt from the stored paper cost and sheet weight; price
    tables are not consulted. An active negotiation is re-applied against
    the new cost.
    """
    qty = item.quantity if quantity is None else quantity
    cost_per_box = total_cost_per_box(
        item.paper_cost,
        add_ons,
        item.markup_percent,
        item.sheet_weight,
        item.conversion_cost_per_kg,
    )
    updated = replace(
        item,
        printing_cost=add_ons.printing,
        lamination_cost=add_ons.lamination,
        varnish_cost=add_ons.varnish,
        die_cost=add_ons.die,
        punching_cost=add_ons.punching,
        quantity=qty,
        total_cost_per_box=cost_per_box,
        total_value=cost_per_box * qty,
    )
    if updated.negotiation_mode != NEGOTIATION_NONE:
        return negotiate(updated, updated.negotiation_mode, updated.negotiation_value)
    return updated
